"""
Backend registry — central lookup for installer backends.

The registry is the single point of backend management. It handles
registration, lookup, mock mode, and availability queries. The
planner and executor never construct backends themselves; they
always ask the registry.
"""

from __future__ import annotations

import logging
from typing import Any

from envboot.adapters.base import Backend
from envboot.adapters.mock import MockBackend

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Central registry of installer backends.

    Features:
        - Register backends by name
        - Mock mode: every lookup returns a MockBackend of that name
        - Query backend availability
        - First-available selection from an ordered candidate list
    """

    def __init__(
        self,
        mock_mode: bool = False,
        mock_machine: dict[str, str] | None = None,
    ):
        self._backends: dict[str, Backend] = {}
        self._mock_mode = mock_mode
        self._mock_machine = mock_machine
        self._mocks: dict[str, MockBackend] = {}

    def register(self, backend: Backend) -> None:
        """Register a backend under its own name."""
        name = backend.name
        if name in self._backends:
            logger.warning("Overwriting existing backend: %s", name)
        self._backends[name] = backend
        logger.debug("Registered backend: %s", name)

    def get(self, name: str) -> Backend | None:
        """Look up a backend by name (a mock of that name in mock mode)."""
        if self._mock_mode:
            if name not in self._mocks:
                self._mocks[name] = MockBackend(
                    backend_name=name, machine=self._mock_machine
                )
            return self._mocks[name]
        return self._backends.get(name)

    def is_available(self, name: str) -> bool:
        """Availability of ``name``; unknown or crashing backends are unavailable."""
        backend = self.get(name)
        if backend is None:
            return False
        try:
            return backend.is_available()
        except Exception as e:
            logger.warning("Backend %s availability check raised: %s", name, e)
            return False

    def backend_status(self) -> dict[str, dict[str, Any]]:
        """Availability status of all registered backends."""
        status = {}
        for name, backend in self._backends.items():
            status[name] = {
                "name": name,
                "available": self.is_available(name),
                "type": backend.__class__.__name__,
            }
        return status

    def select(self, candidates: list[str]) -> Backend | None:
        """First available backend among ``candidates``, in order."""
        for name in candidates:
            if self.is_available(name):
                return self.get(name)
        return None


def build_registry(
    npm_user_prefix: bool = True,
    mock_mode: bool = False,
    mock_machine: dict[str, str] | None = None,
) -> BackendRegistry:
    """Registry with every built-in backend registered."""
    from envboot.adapters.languages.npm import NpmGlobalBackend
    from envboot.adapters.system.homebrew import HomebrewBackend
    from envboot.adapters.system.linux import (
        APT_FAMILY_MANAGERS,
        AptFamilyBackend,
        ApkBackend,
        PacmanBackend,
    )
    from envboot.adapters.system.script import InstallScriptBackend
    from envboot.adapters.system.winget import WingetBackend

    registry = BackendRegistry(mock_mode=mock_mode, mock_machine=mock_machine)
    registry.register(HomebrewBackend())
    for manager in APT_FAMILY_MANAGERS:
        registry.register(AptFamilyBackend(manager))
    registry.register(PacmanBackend())
    registry.register(ApkBackend())
    registry.register(WingetBackend())
    registry.register(NpmGlobalBackend(user_prefix=npm_user_prefix))
    registry.register(InstallScriptBackend())
    return registry
