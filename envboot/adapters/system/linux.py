"""
Linux native package managers — apt family, pacman, apk.

apt, dnf, yum and zypper share one backend class: they differ only in
verbs and in how the installed version is queried (dpkg vs rpm).
"""

from __future__ import annotations

import re

from envboot.adapters.base import Which
from envboot.adapters.shell.command import Runner
from envboot.adapters.system.package_manager import PackageManagerBackend

_APT_FAMILY: dict[str, dict] = {
    "apt": {
        "binary": "apt-get",
        "install": ["apt-get", "install", "-y"],
        "upgrade": ["apt-get", "install", "--only-upgrade", "-y"],
        "uninstall": ["apt-get", "remove", "-y"],
        "refresh": ["apt-get", "update"],
        "query": "dpkg",
    },
    "dnf": {
        "binary": "dnf",
        "install": ["dnf", "install", "-y"],
        "upgrade": ["dnf", "upgrade", "-y"],
        "uninstall": ["dnf", "remove", "-y"],
        "refresh": None,
        "query": "rpm",
    },
    "yum": {
        "binary": "yum",
        "install": ["yum", "install", "-y"],
        "upgrade": ["yum", "update", "-y"],
        "uninstall": ["yum", "remove", "-y"],
        "refresh": None,
        "query": "rpm",
    },
    "zypper": {
        "binary": "zypper",
        "install": ["zypper", "--non-interactive", "install"],
        "upgrade": ["zypper", "--non-interactive", "update"],
        "uninstall": ["zypper", "--non-interactive", "remove"],
        "refresh": None,
        "query": "rpm",
    },
}

APT_FAMILY_MANAGERS = tuple(_APT_FAMILY)


def _strip_epoch(version: str) -> str:
    """``1:20.11.0-1nodesource1`` → ``20.11.0-1nodesource1``."""
    return version.split(":", 1)[1] if ":" in version else version


class AptFamilyBackend(PackageManagerBackend):
    """apt / dnf / yum / zypper — "install package via native manager"."""

    needs_sudo = True

    def __init__(
        self,
        manager: str = "apt",
        runner: Runner | None = None,
        which: Which | None = None,
        use_sudo: bool | None = None,
    ):
        if manager not in _APT_FAMILY:
            raise ValueError(f"Unknown apt-family manager: {manager}")
        super().__init__(runner=runner, which=which, use_sudo=use_sudo)
        self._manager = manager
        self._commands = _APT_FAMILY[manager]
        self.binary = self._commands["binary"]

    @property
    def name(self) -> str:
        return self._manager

    def install_argv(self, packages: list[str]) -> list[str]:
        return [*self._commands["install"], *packages]

    def upgrade_argv(self, packages: list[str]) -> list[str]:
        return [*self._commands["upgrade"], *packages]

    def uninstall_argv(self, packages: list[str]) -> list[str]:
        return [*self._commands["uninstall"], *packages]

    def refresh_argv(self) -> list[str] | None:
        refresh = self._commands["refresh"]
        return list(refresh) if refresh else None

    def version_argv(self, package: str) -> list[str]:
        if self._commands["query"] == "dpkg":
            return ["dpkg-query", "-W", "-f=${Version}", package]
        return ["rpm", "-q", "--qf", "%{VERSION}", package]

    def parse_version(self, output: str, package: str) -> str | None:
        text = output.strip()
        if not text or "not installed" in text:
            return None
        return _strip_epoch(text.splitlines()[0].strip())


class PacmanBackend(PackageManagerBackend):
    """Arch Linux pacman."""

    binary = "pacman"
    needs_sudo = True

    @property
    def name(self) -> str:
        return "pacman"

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["pacman", "-S", "--needed", "--noconfirm", *packages]

    def upgrade_argv(self, packages: list[str]) -> list[str]:
        return ["pacman", "-S", "--noconfirm", *packages]

    def uninstall_argv(self, packages: list[str]) -> list[str]:
        return ["pacman", "-R", "--noconfirm", *packages]

    def version_argv(self, package: str) -> list[str]:
        return ["pacman", "-Q", package]

    def parse_version(self, output: str, package: str) -> str | None:
        # "nodejs 20.11.0-1"
        parts = output.strip().split()
        if len(parts) >= 2 and parts[0] == package:
            return _strip_epoch(parts[1])
        return None


class ApkBackend(PackageManagerBackend):
    """Alpine apk."""

    binary = "apk"
    needs_sudo = True

    @property
    def name(self) -> str:
        return "apk"

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["apk", "add", "--no-cache", *packages]

    def upgrade_argv(self, packages: list[str]) -> list[str]:
        return ["apk", "add", "--no-cache", "--upgrade", *packages]

    def uninstall_argv(self, packages: list[str]) -> list[str]:
        return ["apk", "del", *packages]

    def version_argv(self, package: str) -> list[str]:
        return ["apk", "list", "--installed", package]

    def parse_version(self, output: str, package: str) -> str | None:
        # "nodejs-20.15.1-r0 x86_64 {nodejs} (MIT) [installed]"
        pattern = rf"^{re.escape(package)}-(\d[^\s]*?)(?:-r\d+)?\s"
        for line in output.splitlines():
            match = re.match(pattern, line.strip() + " ")
            if match:
                return match.group(1)
        return None
