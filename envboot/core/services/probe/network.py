"""
Network probe — can we reach the package registry at all.

A HEAD request against one URL. Used as an install pre-flight.
"""

from __future__ import annotations

import logging
import time
import urllib.request

from envboot import __version__

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://registry.npmjs.org/"


def check_internet(url: str = DEFAULT_URL, timeout: int = 5) -> dict:
    """Probe ``url`` for reachability.

    Returns::

        {"reachable": True, "url": "https://...", "latency_ms": 42}
        or
        {"reachable": False, "url": "https://...", "error": "timeout"}
    """
    start = time.monotonic()
    try:
        req = urllib.request.Request(
            url,
            method="HEAD",
            headers={"User-Agent": f"envboot/{__version__}"},
        )
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            elapsed = int((time.monotonic() - start) * 1000)
            return {
                "reachable": True,
                "url": url,
                "status": resp.getcode(),
                "latency_ms": elapsed,
            }
    except Exception as exc:
        elapsed = int((time.monotonic() - start) * 1000)
        logger.debug("Connectivity check to %s failed: %s", url, exc)
        return {
            "reachable": False,
            "url": url,
            "error": str(exc)[:200],
            "latency_ms": elapsed,
        }
