"""
Geohash codec.

A geohash names a rectangular cell of the Earth's surface.  Encoding
bisects the longitude range [-180, 180] and the latitude range [-90, 90]
alternately (longitude first), emitting one bit per bisection: 1 when the
coordinate lies in the upper half, 0 otherwise.  Every 5 bits become one
symbol of the 32-character alphabet, most-significant bit first.

Because each bisection only depends on the bits before it, a hash of
length n is always a prefix of the hash of length n+1 for the same point,
and the cell it decodes to contains the finer cell.

Usage
-----
    from geozone.geo.geohash import encode, decode
    h = encode(42.6, -5.6, 5)          # "ezs42"
    cell = decode(h)
    print(cell.center_lat, cell.center_lng, cell.bounds)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from shapely.geometry import Polygon, box

ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"
_DECODE_MAP = {c: i for i, c in enumerate(ALPHABET)}

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)


class DecodeError(ValueError):
    """Raised when a hash contains a symbol outside the geohash alphabet."""

    def __init__(self, geohash: str, position: int):
        self.geohash = geohash
        self.position = position
        super().__init__(
            f"Invalid geohash character {geohash[position]!r} "
            f"at position {position} in {geohash!r}"
        )


@dataclass(frozen=True)
class Interval:
    """Closed real interval [low, high]."""
    low: float
    high: float

    @property
    def mid(self) -> float:
        return (self.low + self.high) / 2.0

    @property
    def width(self) -> float:
        return self.high - self.low

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high

    def upper(self) -> "Interval":
        return Interval(self.mid, self.high)

    def lower(self) -> "Interval":
        return Interval(self.low, self.mid)


@dataclass(frozen=True)
class DecodedCell:
    """The cell a geohash names: its center and both axis intervals."""

    geohash: str
    center_lat: float
    center_lng: float
    lat_interval: Interval
    lng_interval: Interval

    @property
    def bounds(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """((south, west), (north, east)) corners for rectangle rendering."""
        return (
            (self.lat_interval.low, self.lng_interval.low),
            (self.lat_interval.high, self.lng_interval.high),
        )

    @property
    def half_height(self) -> float:
        return self.lat_interval.width / 2.0

    @property
    def half_width(self) -> float:
        return self.lng_interval.width / 2.0

    def contains(self, lat: float, lng: float) -> bool:
        return self.lat_interval.contains(lat) and self.lng_interval.contains(lng)

    def to_polygon(self) -> Polygon:
        """Cell rectangle as a shapely polygon in lon/lat order."""
        return box(
            self.lng_interval.low, self.lat_interval.low,
            self.lng_interval.high, self.lat_interval.high,
        )


def encode(lat: float, lng: float, precision: int = 6) -> str:
    """Encode a coordinate into a geohash of *precision* characters.

    ``precision <= 0`` yields an empty string.  Coordinates are not range
    checked; values past the poles or the antimeridian land in the edge
    cell.
    """
    lat_iv = Interval(*LAT_RANGE)
    lng_iv = Interval(*LNG_RANGE)
    chars = []
    value = 0
    bits = 0
    even = True  # longitude first

    while len(chars) < precision:
        if even:
            if lng >= lng_iv.mid:
                value = (value << 1) | 1
                lng_iv = lng_iv.upper()
            else:
                value <<= 1
                lng_iv = lng_iv.lower()
        else:
            if lat >= lat_iv.mid:
                value = (value << 1) | 1
                lat_iv = lat_iv.upper()
            else:
                value <<= 1
                lat_iv = lat_iv.lower()
        even = not even
        bits += 1

        if bits == 5:
            chars.append(ALPHABET[value])
            value = 0
            bits = 0

    return "".join(chars)


def decode(geohash: str) -> DecodedCell:
    """Decode a geohash into its cell.

    An empty string decodes to the whole world.  Raises
    :class:`DecodeError` on any symbol outside :data:`ALPHABET`.
    """
    lat_iv = Interval(*LAT_RANGE)
    lng_iv = Interval(*LNG_RANGE)
    even = True

    for pos, char in enumerate(geohash):
        idx = _DECODE_MAP.get(char)
        if idx is None:
            raise DecodeError(geohash, pos)
        for shift in range(4, -1, -1):
            bit = (idx >> shift) & 1
            if even:
                lng_iv = lng_iv.upper() if bit else lng_iv.lower()
            else:
                lat_iv = lat_iv.upper() if bit else lat_iv.lower()
            even = not even

    return DecodedCell(
        geohash=geohash,
        center_lat=lat_iv.mid,
        center_lng=lng_iv.mid,
        lat_interval=lat_iv,
        lng_interval=lng_iv,
    )


def is_valid(geohash: str) -> bool:
    """True if every character of *geohash* is a geohash symbol."""
    return all(c in _DECODE_MAP for c in geohash)
