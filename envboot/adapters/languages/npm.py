"""
npm global backend — CLI packages installed with ``npm install -g``.

Also owns npm's global prefix: on Linux a system-wide prefix under
/usr would need sudo for every global install, so the backend can
switch the user to a private ``~/.npm-global`` prefix first.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

from envboot.adapters.base import Which
from envboot.adapters.shell.command import Runner
from envboot.adapters.system.package_manager import (
    PROBE_TIMEOUT,
    PackageManagerBackend,
    _is_root,
)
from envboot.core.models.action import Receipt
from envboot.core.models.requirement import Requirement

logger = logging.getLogger(__name__)

USER_PREFIX_DIRNAME = ".npm-global"


class NpmGlobalBackend(PackageManagerBackend):
    """Node.js package manager, global installs.

    Args:
        user_prefix: Switch a /usr prefix to ``~/.npm-global`` before
            installing (Linux, non-root only).
        home: Home directory used for the user prefix.
        linux: Override host detection (tests).
    """

    binary = "npm"

    def __init__(
        self,
        runner: Runner | None = None,
        which: Which | None = None,
        user_prefix: bool = True,
        home: Path | None = None,
        linux: bool | None = None,
    ):
        super().__init__(runner=runner, which=which, use_sudo=False)
        self._user_prefix = user_prefix
        self._home = home or Path.home()
        self._linux = sys.platform.startswith("linux") if linux is None else linux

    @property
    def name(self) -> str:
        return "npm"

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["npm", "install", "-g", *packages]

    def upgrade_argv(self, packages: list[str]) -> list[str]:
        return ["npm", "install", "-g", *(f"{p}@latest" for p in packages)]

    def uninstall_argv(self, packages: list[str]) -> list[str]:
        return ["npm", "uninstall", "-g", *packages]

    def version_argv(self, package: str) -> list[str]:
        return ["npm", "list", "-g", package, "--depth=0", "--json"]

    def parse_version(self, output: str, package: str) -> str | None:
        try:
            data = json.loads(output or "{}")
        except json.JSONDecodeError:
            return None
        dep = (data.get("dependencies") or {}).get(package) or {}
        return dep.get("version")

    def install(self, requirement: Requirement) -> Receipt:
        if self._user_prefix:
            self.configure_user_prefix()
        return super().install(requirement)

    # ── Prefix handling ─────────────────────────────────────────

    def global_prefix(self) -> str | None:
        result = self._run(["npm", "config", "get", "prefix"], timeout=PROBE_TIMEOUT)
        prefix = result.stdout.strip() if result.ok else ""
        return prefix or None

    def bin_dir(self) -> str | None:
        prefix = self.global_prefix()
        if not prefix:
            return None
        if os.name == "nt":
            return prefix
        return f"{prefix}/bin"

    def configure_user_prefix(self) -> str | None:
        """Point npm at ``~/.npm-global`` when the prefix is system-owned.

        Returns the new prefix, or None when nothing was changed.
        """
        if not self._linux or _is_root():
            return None
        prefix = self.global_prefix()
        if not prefix or not prefix.startswith("/usr"):
            return None

        target = self._home / USER_PREFIX_DIRNAME
        target.mkdir(parents=True, exist_ok=True)
        result = self._run(["npm", "config", "set", "prefix", str(target)])
        if not result.ok:
            logger.warning("Could not set npm prefix: %s", result.diagnostic)
            return None
        logger.info("npm global prefix set to %s", target)
        return str(target)

    # ── Update check ────────────────────────────────────────────

    def latest_version(self, requirement: Requirement) -> str | None:
        package = requirement.package_id(self.name)
        result = self._run(["npm", "view", package, "version"], timeout=PROBE_TIMEOUT)
        version = result.stdout.strip() if result.ok else ""
        return version or None

    def check_update(self, requirement: Requirement) -> dict:
        """Compare the installed and published versions of a package.

        Returns::

            {"state": "up_to_date", "current": "1.0.3", "latest": "1.0.3"}

        ``state`` is one of not_installed, up_to_date, update_available,
        unknown.
        """
        current = self.current_version(requirement)
        if current is None:
            return {"state": "not_installed", "current": None, "latest": None}
        latest = self.latest_version(requirement)
        if latest is None:
            state = "unknown"
        elif latest == current:
            state = "up_to_date"
        else:
            state = "update_available"
        return {"state": state, "current": current, "latest": latest}
