"""Geohash codec, precision tables and grid construction."""
