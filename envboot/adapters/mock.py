"""
Mock backend — universal test double for installer operations.

Used in mock mode to simulate installs without touching the machine,
and by the test suite. Can be wired to a "machine" dict (command →
version) so that a successful install becomes visible to a probe that
reads the same dict.
"""

from __future__ import annotations

from envboot.adapters.base import Backend
from envboot.core.models.action import Receipt
from envboot.core.models.requirement import Requirement


class MockBackend(Backend):
    """Scriptable backend.

    By default every call succeeds. Failures and exceptions can be
    configured per requirement; installs land at ``install_version``
    or the requirement's declared minimum.
    """

    def __init__(
        self,
        backend_name: str = "mock",
        available: bool = True,
        machine: dict[str, str] | None = None,
        install_version: str | None = None,
        requires_command: str | None = None,
        bin_dir: str | None = None,
    ):
        super().__init__()
        self._name = backend_name
        self._available = available
        self._machine = machine
        self._install_version = install_version
        self._failures: dict[str, str] = {}
        self._raises: dict[str, Exception] = {}
        self._bin_dir = bin_dir
        self._call_log: list[tuple[str, str]] = []
        self.requires_command = requires_command

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """All ``(operation, requirement name)`` calls received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, name: str, error: str = "Mock failure") -> None:
        """Configure install/upgrade of ``name`` to fail."""
        self._failures[name] = error

    def set_exception(self, name: str, exc: Exception) -> None:
        """Configure install/upgrade of ``name`` to raise (misbehaving backend)."""
        self._raises[name] = exc

    def _landing_version(self, requirement: Requirement) -> str:
        # Without an explicit version, land exactly at the declared minimum
        if self._install_version:
            return self._install_version
        return requirement.min_version or "1.0.0"

    def _apply(self, operation: str, requirement: Requirement) -> Receipt:
        self._call_log.append((operation, requirement.name))

        if requirement.name in self._raises:
            raise self._raises[requirement.name]

        if requirement.name in self._failures:
            return Receipt.failure(
                backend=self._name,
                target=requirement.name,
                error=self._failures[requirement.name],
                metadata={"operation": operation, "mock": True},
            )

        if self._machine is not None:
            if operation == "uninstall":
                self._machine.pop(requirement.effective_command, None)
            else:
                version = self._landing_version(requirement)
                self._machine[requirement.effective_command] = version

        return Receipt.success(
            backend=self._name,
            target=requirement.name,
            output=f"[mock] {operation} {requirement.name}",
            metadata={"operation": operation, "mock": True},
        )

    def install(self, requirement: Requirement) -> Receipt:
        return self._apply("install", requirement)

    def upgrade(self, requirement: Requirement) -> Receipt:
        return self._apply("upgrade", requirement)

    def uninstall(self, requirement: Requirement) -> Receipt:
        return self._apply("uninstall", requirement)

    def current_version(self, requirement: Requirement) -> str | None:
        if self._machine is None:
            return None
        return self._machine.get(requirement.effective_command)

    def manual_command(self, requirement: Requirement) -> str:
        return f"{self._name} install {requirement.name}"

    def bin_dir(self) -> str | None:
        return self._bin_dir


def machine_probe(machine: dict[str, str]):
    """Probe that reads installed commands from a simulated machine.

    Pairs with MockBackends sharing the same ``machine`` dict, so a
    mock install is visible to the verification pass.
    """
    from envboot.core.models.status import ToolStatus
    from envboot.core.services.probe.tools import meets_minimum

    def probe(requirement: Requirement) -> ToolStatus:
        command = requirement.effective_command
        if command not in machine:
            return ToolStatus(requirement=requirement)
        version = machine[command]
        return ToolStatus(
            requirement=requirement,
            installed=True,
            installed_version=version,
            meets_minimum=meets_minimum(version, requirement.min_version),
            path=f"/mock/bin/{command}",
        )

    return probe
