"""
winget backend — Windows packages via the Windows Package Manager.

winget takes one package id per call and needs the agreement flags
to run unattended.
"""

from __future__ import annotations

import re

from envboot.adapters.system.package_manager import PackageManagerBackend

_AGREEMENTS = ["--accept-package-agreements", "--accept-source-agreements"]


class WingetBackend(PackageManagerBackend):
    binary = "winget"
    one_at_a_time = True

    @property
    def name(self) -> str:
        return "winget"

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["winget", "install", "--id", packages[0], "-e", "--silent", *_AGREEMENTS]

    def upgrade_argv(self, packages: list[str]) -> list[str]:
        return ["winget", "upgrade", "--id", packages[0], "-e", "--silent", *_AGREEMENTS]

    def uninstall_argv(self, packages: list[str]) -> list[str]:
        return ["winget", "uninstall", "--id", packages[0], "-e", "--silent"]

    def version_argv(self, package: str) -> list[str]:
        return ["winget", "list", "--id", package, "-e", "--accept-source-agreements"]

    def parse_version(self, output: str, package: str) -> str | None:
        # Name            Id                 Version  Available Source
        # Node.js LTS     OpenJS.NodeJS.LTS  20.11.0  20.12.2   winget
        match = re.search(rf"{re.escape(package)}\s+v?(\d[\w.\-]*)", output)
        return match.group(1) if match else None
