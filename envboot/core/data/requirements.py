"""
Built-in default manifest: Homebrew (macOS), Node.js >= 18, npm, and
the ``claude`` CLI installed globally with npm.

Used whenever no envboot.yml is found.
"""

from __future__ import annotations

from envboot.core.models.manifest import Manifest
from envboot.core.models.requirement import Requirement

# Every backend name a manifest may reference.
BUILTIN_BACKENDS: tuple[str, ...] = (
    "homebrew",
    "apt",
    "dnf",
    "yum",
    "zypper",
    "pacman",
    "apk",
    "winget",
    "npm",
    "script",
)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"

_NODE_LINUX = ["apt", "dnf", "yum", "zypper", "pacman", "apk"]

_NODE_PACKAGES: dict[str, str] = {
    "homebrew": "node",
    "apt": "nodejs",
    "dnf": "nodejs",
    "yum": "nodejs",
    "zypper": "nodejs npm",
    "pacman": "nodejs npm",
    "apk": "nodejs npm",
    "winget": "OpenJS.NodeJS.LTS",
}

# Distro Node.js is often too old; NodeSource ships current LTS.
_NODESOURCE_SETUP: dict[str, str] = {
    "apt": "curl -fsSL https://deb.nodesource.com/setup_20.x | sudo -E bash -",
    "dnf": "curl -fsSL https://rpm.nodesource.com/setup_20.x | sudo bash -",
    "yum": "curl -fsSL https://rpm.nodesource.com/setup_20.x | sudo bash -",
}

_NODE_BACKENDS: dict[str, list[str]] = {
    "macos": ["homebrew"],
    "linux": _NODE_LINUX,
    "windows": ["winget"],
}


def default_requirements() -> list[Requirement]:
    return [
        Requirement(
            name="homebrew",
            command="brew",
            description="The missing package manager for macOS",
            backends={"macos": ["script"]},
            packages={"script": HOMEBREW_INSTALL_URL},
            homepage="https://brew.sh",
            ensure_path=True,
            bin_dirs=[
                "/opt/homebrew/bin",
                "/usr/local/bin",
                "/home/linuxbrew/.linuxbrew/bin",
            ],
        ),
        Requirement(
            name="node",
            description="Node.js JavaScript runtime",
            min_version="18",
            backends=dict(_NODE_BACKENDS),
            packages=dict(_NODE_PACKAGES),
            pre_install=dict(_NODESOURCE_SETUP),
            depends_on=["homebrew"],
            homepage="https://nodejs.org",
        ),
        Requirement(
            name="npm",
            description="Node.js package manager",
            backends=dict(_NODE_BACKENDS),
            packages=dict(_NODE_PACKAGES),
            pre_install=dict(_NODESOURCE_SETUP),
            depends_on=["node"],
            homepage="https://docs.npmjs.com",
        ),
        Requirement(
            name="claude",
            description="Claude Code CLI",
            backends={"macos": ["npm"], "linux": ["npm"], "windows": ["npm"]},
            packages={"npm": "@anthropic-ai/claude-code"},
            depends_on=["node", "npm"],
            homepage="https://docs.anthropic.com/en/docs/claude-code",
            ensure_path=True,
        ),
    ]


def default_manifest() -> Manifest:
    return Manifest(name="default", requirements=default_requirements())
