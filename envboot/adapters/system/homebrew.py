"""
Homebrew backend — macOS (and Linuxbrew) packages via ``brew``.
"""

from __future__ import annotations

from envboot.adapters.system.package_manager import PROBE_TIMEOUT, PackageManagerBackend


class HomebrewBackend(PackageManagerBackend):
    """Install formulae with Homebrew. Never needs sudo."""

    binary = "brew"

    @property
    def name(self) -> str:
        return "homebrew"

    def install_argv(self, packages: list[str]) -> list[str]:
        return ["brew", "install", *packages]

    def upgrade_argv(self, packages: list[str]) -> list[str]:
        return ["brew", "upgrade", *packages]

    def uninstall_argv(self, packages: list[str]) -> list[str]:
        return ["brew", "uninstall", *packages]

    def refresh_argv(self) -> list[str]:
        return ["brew", "update"]

    def version_argv(self, package: str) -> list[str]:
        return ["brew", "list", "--versions", package]

    def parse_version(self, output: str, package: str) -> str | None:
        # "node 20.11.0 21.6.1" — newest keg last
        parts = output.strip().split()
        if len(parts) >= 2:
            return parts[-1]
        return None

    def bin_dir(self) -> str | None:
        result = self._run(["brew", "--prefix"], timeout=PROBE_TIMEOUT)
        prefix = result.stdout.strip() if result.ok else ""
        return f"{prefix}/bin" if prefix else None
