"""
Run environment — the collaborators every use case needs.

Loads the manifest, probes the platform once, and wires the backend
registry, the probe and the PATH mutator, either for the real machine
or for a simulated one (mock mode).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from envboot.adapters.mock import machine_probe
from envboot.adapters.registry import BackendRegistry, build_registry
from envboot.core.config.loader import load_manifest
from envboot.core.engine.executor import Connectivity
from envboot.core.engine.planner import Probe
from envboot.core.models.manifest import Manifest
from envboot.core.models.platform import Platform
from envboot.core.observability.output import NullSink, OutputSink
from envboot.core.services.path_mutator import PathMutator
from envboot.core.services.probe.network import check_internet
from envboot.core.services.probe.platform import detect_platform
from envboot.core.services.probe.tools import detect_tool

logger = logging.getLogger(__name__)


@dataclass
class RunEnvironment:
    manifest: Manifest
    platform: Platform
    registry: BackendRegistry
    probe: Probe
    connectivity: Connectivity
    path_mutator: PathMutator | None = None
    mock: bool = False
    machine: dict[str, str] = field(default_factory=dict)


def prepare_environment(
    manifest_path: Path | None = None,
    mock: bool = False,
    output: OutputSink | None = None,
    manifest: Manifest | None = None,
    platform: Platform | None = None,
) -> RunEnvironment:
    """Build the collaborators for one run.

    Raises:
        ConfigError: If the manifest cannot be loaded.
    """
    out = output or NullSink()
    manifest = manifest or load_manifest(manifest_path)
    platform = platform or detect_platform()
    settings = manifest.settings

    if mock:
        # Simulated machine: mock installs land here and the probe reads it
        machine: dict[str, str] = {}
        return RunEnvironment(
            manifest=manifest,
            platform=platform,
            registry=build_registry(mock_mode=True, mock_machine=machine),
            probe=machine_probe(machine),
            connectivity=lambda: {"reachable": True, "url": settings.connectivity_url},
            mock=True,
            machine=machine,
        )

    return RunEnvironment(
        manifest=manifest,
        platform=platform,
        registry=build_registry(npm_user_prefix=settings.npm_user_prefix),
        probe=detect_tool,
        connectivity=lambda: check_internet(
            settings.connectivity_url, settings.connectivity_timeout
        ),
        path_mutator=PathMutator(
            platform.shell, config_file=settings.shell_config, output=out
        ),
    )
