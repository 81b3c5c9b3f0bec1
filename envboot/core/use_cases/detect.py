"""
Detect use case — report what the probe sees, change nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from envboot.core.config.loader import ConfigError
from envboot.core.models.platform import Platform
from envboot.core.models.status import ToolStatus
from envboot.core.services.probe.platform import detect_package_manager
from envboot.core.use_cases.environment import RunEnvironment, prepare_environment

logger = logging.getLogger(__name__)


@dataclass
class DetectResult:
    """Result of the detect use case."""

    platform: Platform | None = None
    package_manager: str = "none"
    statuses: list[ToolStatus] = field(default_factory=list)
    backends: dict[str, dict] = field(default_factory=dict)
    network: dict | None = None
    error: str | None = None

    @property
    def all_satisfied(self) -> bool:
        return all(s.installed and s.meets_minimum for s in self.statuses)

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "platform": self.platform.to_dict() if self.platform else None,
            "package_manager": self.package_manager,
            "requirements": [s.to_dict() for s in self.statuses],
            "backends": self.backends,
            "network": self.network,
        }


def run_detect(
    manifest_path: Path | None = None,
    check_network: bool = False,
    env: RunEnvironment | None = None,
) -> DetectResult:
    """Probe the platform and every requirement that applies to it."""
    result = DetectResult()
    try:
        env = env or prepare_environment(manifest_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.platform = env.platform
    result.package_manager = detect_package_manager(env.platform)

    for req in env.manifest.requirements:
        if not req.candidates_for(env.platform):
            continue
        result.statuses.append(env.probe(req))

    result.backends = env.registry.backend_status()
    if check_network:
        result.network = env.connectivity()

    logger.debug("Detected %d requirement statuses", len(result.statuses))
    return result
