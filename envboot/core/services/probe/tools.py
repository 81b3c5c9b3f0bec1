"""
Tool probe — is a command installed, and at which version.

Runs the requirement's version command and parses the output.
A missing binary is a normal answer, not an error.
"""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path, PurePosixPath

from envboot.adapters.base import Which
from envboot.adapters.shell.command import Runner, run_command
from envboot.core.models.platform import OSFamily
from envboot.core.models.requirement import Requirement
from envboot.core.models.status import ToolStatus

logger = logging.getLogger(__name__)

VERSION_TIMEOUT = 10

_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+)*)")
_LEADING_INT_RE = re.compile(r"^(\d+)")


def parse_major(text: str | None) -> int:
    """Leading integer of a version string.

    ``"v20.11.0"`` → 20, ``"18"`` → 18. Anything unparsable is 0.
    """
    if not text:
        return 0
    value = text.strip()
    if value[:1] in ("v", "V"):
        value = value[1:]
    head = value.split(".", 1)[0]
    match = _LEADING_INT_RE.match(head)
    return int(match.group(1)) if match else 0


def meets_minimum(version: str | None, minimum: str | None) -> bool:
    """Compare major versions. No minimum means any version is fine."""
    if minimum is None:
        return True
    return parse_major(version) >= parse_major(minimum)


def extract_version(output: str) -> str | None:
    """First version-looking token in a command's output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else None


def detect_tool(
    requirement: Requirement,
    runner: Runner | None = None,
    which: Which | None = None,
) -> ToolStatus:
    """Probe one requirement on the live PATH.

    Probe errors degrade to "installed, unknown version".
    """
    run = runner or run_command
    locate = which or shutil.which

    command = requirement.effective_command
    path = locate(command)
    if path is None:
        return ToolStatus(requirement=requirement)

    result = run([path, *requirement.version_args], timeout=VERSION_TIMEOUT)
    version = None
    if result.ok:
        version = extract_version(result.stdout) or extract_version(result.stderr)
    else:
        logger.debug("Version probe for %s failed: %s", command, result.diagnostic)

    return ToolStatus(
        requirement=requirement,
        installed=True,
        installed_version=version,
        meets_minimum=meets_minimum(version, requirement.min_version),
        path=path,
    )


# Version managers that keep their shims under the user's home.
_HOME_MANAGERS = (
    (".nvm", "nvm"),
    (".fnm", "fnm"),
    (".local/share/fnm", "fnm"),
    (".volta", "volta"),
)

_HOMEBREW_PREFIXES = ("/opt/homebrew", "/home/linuxbrew/.linuxbrew")
_SYSTEM_DIRS = ("/usr/bin", "/bin", "/usr/sbin", "/sbin")


def install_method(
    path: str | None,
    os_family: OSFamily,
    home: Path | None = None,
) -> str:
    """Guess how a tool was installed from where its command lives.

    Returns one of ``none``, ``homebrew``, ``nvm``, ``fnm``, ``volta``,
    ``system``, ``manual`` or ``unknown``.
    """
    if not path:
        return "none"

    command = PurePosixPath(path.replace("\\", "/"))
    home_dir = PurePosixPath(str(home or Path.home()).replace("\\", "/"))

    for subdir, method in _HOME_MANAGERS:
        if command.is_relative_to(home_dir / subdir):
            return method

    if any(command.is_relative_to(prefix) for prefix in _HOMEBREW_PREFIXES):
        return "homebrew"
    if str(command.parent) == "/usr/local/bin":
        # Intel Homebrew links here, anything else put it there by hand
        return "homebrew" if os_family == OSFamily.MACOS else "manual"
    if str(command.parent) in _SYSTEM_DIRS:
        return "system"
    return "unknown"
