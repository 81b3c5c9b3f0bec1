"""
PATH mutator — put a directory on PATH, now and for future shells.

Two separate effects:
    live       the current process environment (children spawned by
               this run see it; the parent shell does not)
    persisted  one line appended to the user's shell config file
               (only shells started afterwards see it)

Both are idempotent. The config file is only ever appended to.
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass
from pathlib import Path

from envboot.core.models.platform import ShellKind
from envboot.core.observability.output import NullSink, OutputSink

logger = logging.getLogger(__name__)

MARKER = "# Added by envboot"


@dataclass
class PathUpdate:
    directory: str
    already_present: bool = False   # was on the live PATH before the call
    persisted: bool = False         # config file mentions the directory afterwards
    config_updated: bool = False    # this call appended to the config file
    config_file: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def config_file_for(shell: ShellKind, home: Path) -> Path:
    """The file a login/interactive shell of this kind reads at startup."""
    if shell == ShellKind.ZSH:
        rc = home / ".zshrc"
        return rc if rc.exists() else home / ".zprofile"
    if shell == ShellKind.BASH:
        rc = home / ".bashrc"
        return rc if rc.exists() else home / ".bash_profile"
    if shell == ShellKind.FISH:
        return home / ".config" / "fish" / "config.fish"
    if shell == ShellKind.POWERSHELL:
        return home / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"
    return home / ".profile"


def path_line(shell: ShellKind, directory: str) -> str:
    """Shell syntax that prepends ``directory`` to PATH."""
    if shell == ShellKind.FISH:
        return f'set -gx PATH "{directory}" $PATH'
    if shell == ShellKind.POWERSHELL:
        return f'$env:Path = "{directory};" + $env:Path'
    return f'export PATH="{directory}:$PATH"'


class PathMutator:
    """Idempotent PATH editing for one shell.

    Args:
        shell: Determines the config file and line syntax.
        config_file: Explicit config file (overrides the shell default).
        environ: Live environment to edit (default ``os.environ``).
        home: Home directory for the default config file.
        pathsep: PATH separator of the live environment.
    """

    def __init__(
        self,
        shell: ShellKind,
        config_file: str | Path | None = None,
        environ: MutableMapping[str, str] | None = None,
        home: Path | None = None,
        pathsep: str = os.pathsep,
        output: OutputSink | None = None,
    ):
        self.shell = shell
        self._environ = os.environ if environ is None else environ
        self._home = home or Path.home()
        self._pathsep = pathsep
        self._output = output or NullSink()
        self._config_file = Path(config_file).expanduser() if config_file else None

    @property
    def config_file(self) -> Path:
        return self._config_file or config_file_for(self.shell, self._home)

    def on_live_path(self, directory: str) -> bool:
        wanted = _normalize(directory)
        entries = self._environ.get("PATH", "").split(self._pathsep)
        return any(_normalize(e) == wanted for e in entries if e)

    def in_config(self, directory: str) -> bool:
        """Whether the config file already mentions ``directory`` at all."""
        path = self.config_file
        if not path.exists():
            return False
        try:
            return directory in path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            return False

    def ensure_on_path(self, directory: str | Path) -> PathUpdate:
        """Prepend ``directory`` to the live PATH and persist it. Idempotent."""
        directory = str(directory)
        update = PathUpdate(directory=directory, config_file=str(self.config_file))

        update.already_present = self.on_live_path(directory)
        if not update.already_present:
            current = self._environ.get("PATH", "")
            self._environ["PATH"] = (
                f"{directory}{self._pathsep}{current}" if current else directory
            )
            logger.info("Prepended %s to PATH for this process", directory)

        if self.in_config(directory):
            update.persisted = True
            return update

        try:
            self._append(directory)
        except OSError as e:
            update.error = f"Could not update {self.config_file}: {e}"
            logger.warning(update.error)
            self._output.warning(update.error)
            return update

        update.persisted = True
        update.config_updated = True
        self._output.success(f"Added {directory} to PATH in {self.config_file}")
        self._output.info("Open a new terminal (or source the file) to pick it up")
        return update

    def _append(self, directory: str) -> None:
        path = self.config_file
        path.parent.mkdir(parents=True, exist_ok=True)
        prefix = ""
        if path.exists() and path.stat().st_size > 0:
            with path.open("rb") as f:
                f.seek(-1, os.SEEK_END)
                if f.read(1) != b"\n":
                    prefix = "\n"
        with path.open("a", encoding="utf-8") as f:
            f.write(f"{prefix}\n{MARKER}\n{path_line(self.shell, directory)}\n")
        logger.info("Appended PATH entry for %s to %s", directory, path)


def _normalize(entry: str) -> str:
    entry = entry.strip().strip('"')
    if len(entry) > 1:
        entry = entry.rstrip("/\\")
    return entry
