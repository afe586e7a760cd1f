"""External lookup clients."""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from ..config import LOOKUP_TIMEOUT

log = logging.getLogger(__name__)

USER_AGENT = "geozone/0.1"


def fetch_json(
    url: str,
    *,
    params: Optional[dict] = None,
    timeout: float = LOOKUP_TIMEOUT,
) -> Any:
    """GET *url* once and decode the JSON body.

    Raises ``requests.RequestException`` on network or HTTP errors and
    ``ValueError`` on a body that is not JSON.
    """
    resp = requests.get(
        url, params=params, timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )
    resp.raise_for_status()
    return resp.json()
