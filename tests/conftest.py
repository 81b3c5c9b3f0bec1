"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import pytest
from helpers import FakeRunner

from envboot.adapters.mock import MockBackend, machine_probe
from envboot.adapters.registry import BackendRegistry
from envboot.core.models.platform import Arch, LinuxDistro, OSFamily, Platform, ShellKind


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def linux() -> Platform:
    return Platform(
        os=OSFamily.LINUX, distro=LinuxDistro.DEBIAN, arch=Arch.X64, shell=ShellKind.BASH
    )


@pytest.fixture
def macos() -> Platform:
    return Platform(
        os=OSFamily.MACOS, distro=LinuxDistro.NONE, arch=Arch.ARM64, shell=ShellKind.ZSH
    )


@pytest.fixture
def machine() -> dict[str, str]:
    """Simulated machine: command → installed version."""
    return {}


@pytest.fixture
def probe(machine):
    return machine_probe(machine)


@pytest.fixture
def make_registry(machine):
    """Registry of MockBackends sharing the simulated machine."""
    def build(*names: str, extra: list[MockBackend] | None = None) -> BackendRegistry:
        registry = BackendRegistry()
        for name in names:
            registry.register(MockBackend(backend_name=name, machine=machine))
        for backend in extra or []:
            registry.register(backend)
        return registry
    return build
