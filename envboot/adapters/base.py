"""
Backend base — the contract between the engine and installers.

Every installer integration (Homebrew, apt, winget, npm, ...) is a
Backend. The planner and executor only talk to installers through
this interface, never by spawning processes themselves.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable

from envboot.adapters.shell.command import CommandResult, Runner, run_command
from envboot.core.models.action import Receipt
from envboot.core.models.requirement import Requirement

logger = logging.getLogger(__name__)

Which = Callable[[str], str | None]


class Backend(ABC):
    """Abstract base class for all installer backends.

    Backends perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new backend:
        1. Subclass Backend
        2. Implement name, is_available, install, upgrade, current_version
        3. Register it in the BackendRegistry
    """

    # Binary this backend drives. The planner uses it to see that an
    # earlier Install in the same plan will make the backend usable.
    requires_command: str | None = None

    def __init__(self, runner: Runner | None = None, which: Which | None = None):
        self._runner: Runner = runner or run_command
        self._which: Which = which or shutil.which

    @property
    @abstractmethod
    def name(self) -> str:
        """The backend identifier (e.g., 'homebrew', 'apt', 'npm')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying installer exists on this machine.

        Should be fast and never raise.
        """

    @abstractmethod
    def install(self, requirement: Requirement) -> Receipt:
        """Install the requirement's package(s)."""

    @abstractmethod
    def upgrade(self, requirement: Requirement) -> Receipt:
        """Upgrade the requirement's package(s) to the latest version."""

    @abstractmethod
    def current_version(self, requirement: Requirement) -> str | None:
        """Version of the package as this backend sees it, or None."""

    def uninstall(self, requirement: Requirement) -> Receipt:
        return Receipt.failure(
            backend=self.name,
            target=requirement.name,
            error=f"Backend '{self.name}' does not support uninstall",
        )

    def manual_command(self, requirement: Requirement) -> str:
        """The command a human would run to install this by hand."""
        return ""

    def bin_dir(self) -> str | None:
        """Directory this backend puts executables in, if known."""
        return None

    # ── Helpers for subclasses ──────────────────────────────────

    def _run(self, argv: list[str] | str, **kwargs) -> CommandResult:
        return self._runner(argv, **kwargs)

    def _receipt(
        self,
        requirement: Requirement,
        result: CommandResult,
        operation: str,
    ) -> Receipt:
        """Convert a command result into a receipt."""
        metadata = {
            "operation": operation,
            "command": result.argv,
            "return_code": result.returncode,
        }
        if result.ok:
            return Receipt.success(
                backend=self.name,
                target=requirement.name,
                output=result.stdout.strip(),
                duration_ms=result.duration_ms,
                metadata=metadata,
            )
        return Receipt.failure(
            backend=self.name,
            target=requirement.name,
            error=result.diagnostic,
            duration_ms=result.duration_ms,
            metadata=metadata,
        )

    def _pre_install(self, requirement: Requirement) -> Receipt | None:
        """Run the requirement's pre-install hook for this backend, if any.

        Returns a failure receipt when the hook fails, else None.
        """
        hook = requirement.pre_install.get(self.name)
        if not hook:
            return None
        logger.debug("Pre-install hook for %s via %s", requirement.name, self.name)
        result = self._run(hook, shell=True)
        if result.ok:
            return None
        receipt = self._receipt(requirement, result, "pre_install")
        receipt.error = f"Pre-install step failed: {receipt.error}"
        return receipt

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
