"""Probe — read-only questions about the machine."""

from envboot.core.services.probe.network import check_internet
from envboot.core.services.probe.platform import (
    detect_package_manager,
    detect_platform,
)
from envboot.core.services.probe.tools import (
    detect_tool,
    meets_minimum,
    parse_major,
)

__all__ = [
    "check_internet",
    "detect_package_manager",
    "detect_platform",
    "detect_tool",
    "meets_minimum",
    "parse_major",
]
