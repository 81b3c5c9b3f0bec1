"""
Platform probe — OS family, Linux distro, architecture, shell.

Read-only and total: every detector returns an ``unknown`` member
instead of raising, so the planner always has something to dispatch
on. Inputs can be injected for tests.
"""

from __future__ import annotations

import logging
import os
import platform as _platform
import shutil
from collections.abc import Mapping
from pathlib import PurePath

import distro

from envboot.core.models.platform import Arch, LinuxDistro, OSFamily, Platform, ShellKind

logger = logging.getLogger(__name__)


# ── Lookup tables ───────────────────────────────────────────

_ARCH_MAP: dict[str, Arch] = {
    "x86_64": Arch.X64,
    "amd64": Arch.X64,
    "x64": Arch.X64,
    "arm64": Arch.ARM64,
    "aarch64": Arch.ARM64,
    "armv8": Arch.ARM64,
    "i386": Arch.X86,
    "i686": Arch.X86,
    "x86": Arch.X86,
    "armv7l": Arch.ARM,
    "armv6l": Arch.ARM,
    "arm": Arch.ARM,
}

_DISTRO_FAMILIES: dict[str, LinuxDistro] = {
    "debian": LinuxDistro.DEBIAN,
    "ubuntu": LinuxDistro.DEBIAN,
    "linuxmint": LinuxDistro.DEBIAN,
    "pop": LinuxDistro.DEBIAN,
    "elementary": LinuxDistro.DEBIAN,
    "raspbian": LinuxDistro.DEBIAN,
    "fedora": LinuxDistro.FEDORA,
    "rhel": LinuxDistro.FEDORA,
    "centos": LinuxDistro.FEDORA,
    "rocky": LinuxDistro.FEDORA,
    "almalinux": LinuxDistro.FEDORA,
    "amzn": LinuxDistro.FEDORA,
    "ol": LinuxDistro.FEDORA,
    "arch": LinuxDistro.ARCH,
    "manjaro": LinuxDistro.ARCH,
    "endeavouros": LinuxDistro.ARCH,
    "alpine": LinuxDistro.ALPINE,
    "opensuse": LinuxDistro.SUSE,
    "opensuse-leap": LinuxDistro.SUSE,
    "opensuse-tumbleweed": LinuxDistro.SUSE,
    "sles": LinuxDistro.SUSE,
    "suse": LinuxDistro.SUSE,
}

_SHELLS: dict[str, ShellKind] = {
    "zsh": ShellKind.ZSH,
    "bash": ShellKind.BASH,
    "fish": ShellKind.FISH,
    "pwsh": ShellKind.POWERSHELL,
    "powershell": ShellKind.POWERSHELL,
    "sh": ShellKind.SH,
    "dash": ShellKind.SH,
    "ksh": ShellKind.SH,
    "ash": ShellKind.SH,
}

# System package managers per OS family, in probe order.
SYSTEM_PACKAGE_MANAGERS: dict[OSFamily, list[tuple[str, str]]] = {
    OSFamily.MACOS: [("homebrew", "brew")],
    OSFamily.LINUX: [
        ("apt", "apt-get"),
        ("dnf", "dnf"),
        ("yum", "yum"),
        ("pacman", "pacman"),
        ("apk", "apk"),
        ("zypper", "zypper"),
    ],
    OSFamily.WINDOWS: [("winget", "winget")],
}


# ── Detectors ───────────────────────────────────────────────


def detect_os(system: str | None = None) -> OSFamily:
    """Map ``platform.system()`` (or an injected value) to an OS family."""
    raw = (system if system is not None else _platform.system()).strip().lower()
    if raw == "darwin":
        return OSFamily.MACOS
    if raw == "linux":
        return OSFamily.LINUX
    if raw == "windows" or raw.startswith(("mingw", "msys", "cygwin")):
        return OSFamily.WINDOWS
    return OSFamily.UNKNOWN


def detect_arch(machine: str | None = None) -> Arch:
    raw = (machine if machine is not None else _platform.machine()).strip().lower()
    return _ARCH_MAP.get(raw, Arch.UNKNOWN)


def detect_linux_distro(
    distro_id: str | None = None,
    distro_like: str | None = None,
) -> LinuxDistro:
    """Classify the running distribution by its id, then its ID_LIKE list."""
    if distro_id is None:
        distro_id = distro.id()
    if distro_like is None:
        distro_like = distro.like()

    candidates = [distro_id.strip().lower(), *distro_like.lower().split()]
    for candidate in candidates:
        if candidate in _DISTRO_FAMILIES:
            return _DISTRO_FAMILIES[candidate]
        if candidate.startswith("opensuse"):
            return LinuxDistro.SUSE
    return LinuxDistro.UNKNOWN


def detect_shell(
    os_family: OSFamily,
    environ: Mapping[str, str] | None = None,
) -> ShellKind:
    """Identify the user's login shell.

    ``ENVBOOT_SHELL`` overrides ``SHELL``. On Windows without a POSIX
    ``SHELL`` (Git Bash sets one) the shell is PowerShell.
    """
    env = os.environ if environ is None else environ
    value = env.get("ENVBOOT_SHELL") or env.get("SHELL") or ""
    if value:
        name = PurePath(value.replace("\\", "/")).name.lower()
        name = name.removesuffix(".exe")
        return _SHELLS.get(name, ShellKind.UNKNOWN)
    if os_family == OSFamily.WINDOWS:
        return ShellKind.POWERSHELL
    return ShellKind.UNKNOWN


def detect_platform(
    system: str | None = None,
    machine: str | None = None,
    environ: Mapping[str, str] | None = None,
    distro_id: str | None = None,
    distro_like: str | None = None,
) -> Platform:
    """Probe the host once. Never raises."""
    os_family = detect_os(system)
    if os_family == OSFamily.LINUX:
        try:
            linux_distro = detect_linux_distro(distro_id, distro_like)
        except OSError as e:
            logger.debug("Distro detection failed: %s", e)
            linux_distro = LinuxDistro.UNKNOWN
    else:
        linux_distro = LinuxDistro.NONE

    result = Platform(
        os=os_family,
        distro=linux_distro,
        arch=detect_arch(machine),
        shell=detect_shell(os_family, environ),
    )
    logger.debug("Detected platform: %s", result.to_dict())
    return result


def detect_package_manager(
    platform: Platform,
    which=shutil.which,
) -> str:
    """First system package manager present on this machine, or ``none``."""
    for name, binary in SYSTEM_PACKAGE_MANAGERS.get(platform.os, []):
        if which(binary):
            return name
    return "none"
