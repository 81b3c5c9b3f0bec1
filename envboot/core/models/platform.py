"""
Platform model — what kind of machine we are running on.

Computed once per run by the probe and treated as read-only after
that. Every attribute has an explicit ``unknown`` member so the rest
of the engine always has a total value to dispatch on.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class OSFamily(StrEnum):
    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


class LinuxDistro(StrEnum):
    """Linux distribution families, grouped by native package manager."""

    DEBIAN = "debian"
    FEDORA = "fedora"
    ARCH = "arch"
    ALPINE = "alpine"
    SUSE = "suse"
    UNKNOWN = "unknown"
    NONE = "none"  # not a Linux host


class Arch(StrEnum):
    X64 = "x64"
    ARM64 = "arm64"
    X86 = "x86"
    ARM = "arm"
    UNKNOWN = "unknown"


class ShellKind(StrEnum):
    ZSH = "zsh"
    BASH = "bash"
    FISH = "fish"
    POWERSHELL = "powershell"
    SH = "sh"
    UNKNOWN = "unknown"


class Platform(BaseModel):
    """Immutable description of the host."""

    model_config = ConfigDict(frozen=True)

    os: OSFamily = OSFamily.UNKNOWN
    distro: LinuxDistro = LinuxDistro.NONE
    arch: Arch = Arch.UNKNOWN
    shell: ShellKind = ShellKind.UNKNOWN

    @property
    def label(self) -> str:
        """Short human-readable label, e.g. ``linux/debian x64``."""
        base = self.os.value
        if self.os == OSFamily.LINUX:
            base = f"{base}/{self.distro.value}"
        return f"{base} {self.arch.value}"

    def to_dict(self) -> dict:
        return {
            "os": self.os.value,
            "distro": self.distro.value,
            "arch": self.arch.value,
            "shell": self.shell.value,
        }
