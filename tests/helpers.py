"""
Test helpers — scripted runner, fake ``which``, requirement factory.
"""

from __future__ import annotations

from collections.abc import Callable

from envboot.adapters.shell.command import CommandResult
from envboot.core.models.requirement import Requirement


class FakeRunner:
    """Scripted stand-in for ``run_command``.

    Responses are matched by argv prefix (or substring for shell
    strings); unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self._responses: list[tuple[Callable[[list[str] | str], bool], CommandResult]] = []

    def on(self, prefix: list[str] | str, stdout: str = "", stderr: str = "",
           returncode: int = 0, error: str | None = None) -> FakeRunner:
        def matches(argv):
            if isinstance(prefix, str):
                text = argv if isinstance(argv, str) else " ".join(argv)
                return prefix in text
            return not isinstance(argv, str) and list(argv[: len(prefix)]) == prefix

        result = CommandResult(
            argv=[prefix] if isinstance(prefix, str) else list(prefix),
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            error=error,
        )
        self._responses.insert(0, (matches, result))
        return self

    def __call__(self, argv, **kwargs) -> CommandResult:
        self.calls.append({"argv": argv, **kwargs})
        for matches, result in self._responses:
            if matches(argv):
                return result
        return CommandResult(argv=argv if isinstance(argv, list) else [argv], returncode=0)

    @property
    def argvs(self) -> list:
        return [c["argv"] for c in self.calls]


def which_from(*present: str) -> Callable[[str], str | None]:
    """``shutil.which`` stand-in that knows only ``present`` commands."""
    def which(cmd: str) -> str | None:
        return f"/usr/bin/{cmd}" if cmd in present else None
    return which



def req(name: str, **kwargs) -> Requirement:
    """Requirement installable by the ``pm`` backend on every OS unless overridden."""
    kwargs.setdefault("backends", {"linux": ["pm"], "macos": ["pm"], "windows": ["pm"]})
    return Requirement(name=name, **kwargs)
