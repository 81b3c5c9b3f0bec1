"""
Package-manager backend — shared shape of every native installer.

Homebrew, apt, dnf, pacman, apk and winget all boil down to "run
<manager> install <pkg>", "run <manager> upgrade <pkg>" and "ask
<manager> which version of <pkg> is installed". Subclasses only
supply the argument lists and the version parser.
"""

from __future__ import annotations

import logging
import os
from abc import abstractmethod

from envboot.adapters.base import Backend, Which
from envboot.adapters.shell.command import CommandResult, Runner, format_argv
from envboot.core.models.action import Receipt
from envboot.core.models.requirement import Requirement

logger = logging.getLogger(__name__)

# Version queries are read-only and should answer quickly.
PROBE_TIMEOUT = 30


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


class PackageManagerBackend(Backend):
    """Backend driven by a native package manager CLI.

    Class attributes:
        binary: The manager's executable (also the availability check).
        needs_sudo: Whether install/upgrade/uninstall require root.
        one_at_a_time: Manager takes a single package id per call.
    """

    binary: str = ""
    needs_sudo: bool = False
    one_at_a_time: bool = False

    def __init__(
        self,
        runner: Runner | None = None,
        which: Which | None = None,
        use_sudo: bool | None = None,
    ):
        super().__init__(runner=runner, which=which)
        self._use_sudo = use_sudo

    @property
    def requires_command(self) -> str:  # type: ignore[override]
        return self.binary

    def is_available(self) -> bool:
        return self._which(self.binary) is not None

    # ── Argument builders ───────────────────────────────────────

    @abstractmethod
    def install_argv(self, packages: list[str]) -> list[str]:
        """Command that installs ``packages``."""

    @abstractmethod
    def upgrade_argv(self, packages: list[str]) -> list[str]:
        """Command that upgrades ``packages``."""

    def uninstall_argv(self, packages: list[str]) -> list[str] | None:
        return None

    def refresh_argv(self) -> list[str] | None:
        """Index refresh run before install/upgrade (e.g. apt-get update)."""
        return None

    @abstractmethod
    def version_argv(self, package: str) -> list[str]:
        """Read-only command that reports the installed version."""

    @abstractmethod
    def parse_version(self, output: str, package: str) -> str | None:
        """Extract a version string from ``version_argv`` output."""

    # ── Backend interface ───────────────────────────────────────

    def install(self, requirement: Requirement) -> Receipt:
        return self._change(requirement, "install", self.install_argv)

    def upgrade(self, requirement: Requirement) -> Receipt:
        return self._change(requirement, "upgrade", self.upgrade_argv)

    def uninstall(self, requirement: Requirement) -> Receipt:
        packages = requirement.package_ids(self.name)
        if self.uninstall_argv(packages) is None:
            return super().uninstall(requirement)
        return self._change(
            requirement, "uninstall", self.uninstall_argv, pre_install=False
        )

    def current_version(self, requirement: Requirement) -> str | None:
        package = requirement.package_id(self.name)
        result = self._run(self.version_argv(package), timeout=PROBE_TIMEOUT)
        if not result.ok:
            return None
        return self.parse_version(result.stdout, package)

    def manual_command(self, requirement: Requirement) -> str:
        argv = self.install_argv(requirement.package_ids(self.name))
        if self.needs_sudo:
            argv = ["sudo", *argv]
        return format_argv(argv)

    # ── Internals ───────────────────────────────────────────────

    def _privileged(self, argv: list[str]) -> list[str]:
        if not self.needs_sudo:
            return argv
        use_sudo = self._use_sudo
        if use_sudo is None:
            use_sudo = not _is_root() and self._which("sudo") is not None
        return ["sudo", *argv] if use_sudo else argv

    def _change(
        self,
        requirement: Requirement,
        operation: str,
        build_argv,
        pre_install: bool = True,
    ) -> Receipt:
        packages = requirement.package_ids(self.name)
        if not packages:
            return Receipt.failure(
                backend=self.name,
                target=requirement.name,
                error="no package ids configured",
                metadata={"operation": operation},
            )

        if pre_install:
            failed = self._pre_install(requirement)
            if failed is not None:
                return failed

            refresh = self.refresh_argv()
            if refresh:
                result = self._run(self._privileged(refresh))
                if not result.ok:
                    # A stale index rarely blocks the install itself.
                    logger.warning(
                        "%s index refresh failed: %s", self.name, result.diagnostic
                    )

        batches = [[p] for p in packages] if self.one_at_a_time else [packages]

        result = CommandResult(argv=[], returncode=0)
        outputs: list[str] = []
        for batch in batches:
            result = self._run(self._privileged(build_argv(batch)))
            if not result.ok:
                return self._receipt(requirement, result, operation)
            outputs.append(result.stdout.strip())

        receipt = self._receipt(requirement, result, operation)
        receipt.output = "\n".join(o for o in outputs if o)
        return receipt
