"""
Shell command runner — the single place external processes are spawned.

Every backend and probe goes through ``run_command`` so that spawning
a process and capturing its output lives behind one seam. Tests swap
it for a scripted fake.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Keep receipts readable; installers can be very chatty.
_OUTPUT_TAIL = 2000


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    error: str | None = None    # spawn-level error (binary missing, timeout)
    metadata: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.error is None

    @property
    def diagnostic(self) -> str:
        """Best available explanation of a failure."""
        if self.error:
            return self.error
        text = self.stderr.strip() or self.stdout.strip()
        if text:
            return text[-_OUTPUT_TAIL:]
        return f"Command exited with code {self.returncode}"


Runner = Callable[..., CommandResult]


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str] | str,
    *,
    shell: bool = False,
    env_overrides: Mapping[str, str] | None = None,
    timeout: float | None = None,
    which: Callable[[str], str | None] | None = None,
) -> CommandResult:
    """Run a command and capture its output.

    Never raises for process-level problems: a missing binary or a
    timeout comes back as a non-zero ``CommandResult`` with ``error``
    set. No timeout by default; installers run as long as they need.

    Args:
        argv: Argument list, or a command string when ``shell`` is True.
        shell: Run through ``sh -c`` (needed for ``curl ... | bash``).
        env_overrides: Extra environment variables for the child.
        timeout: Seconds before giving up (``None`` = wait forever).
        which: Executable lookup (default ``shutil.which`` on the child's
            PATH). Resolving first lets Windows run ``npm.cmd`` shims,
            which CreateProcess does not find from a bare name.
    """
    if isinstance(argv, str):
        argv_list = [argv] if shell else shlex.split(argv)
    else:
        argv_list = list(argv)

    display = argv_list[0] if shell else format_argv(argv_list)
    logger.info("CMD %s", display)

    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    spawn_argv = argv_list
    if not shell and argv_list:
        locate = which or (lambda name: shutil.which(name, path=env.get("PATH")))
        resolved = locate(argv_list[0])
        if resolved:
            spawn_argv = [resolved, *argv_list[1:]]

    start = time.monotonic()
    try:
        proc = subprocess.run(
            argv_list[0] if shell else spawn_argv,
            shell=shell,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except FileNotFoundError:
        return CommandResult(
            argv=argv_list,
            returncode=127,
            error=f"Command not found: {argv_list[0]}",
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            argv=argv_list,
            returncode=124,
            error=f"Command timed out after {timeout}s: {display}",
        )
    except OSError as e:
        return CommandResult(
            argv=argv_list,
            returncode=126,
            error=f"Command execution error: {e}",
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)

    if proc.stdout:
        logger.debug("STDOUT %s", proc.stdout.strip()[-_OUTPUT_TAIL:])
    if proc.stderr:
        logger.debug("STDERR %s", proc.stderr.strip()[-_OUTPUT_TAIL:])

    return CommandResult(
        argv=argv_list,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_ms=elapsed_ms,
    )
