"""
Output sinks — user-facing progress messages.

The engine never prints. Planner, executor and PATH mutator receive an
OutputSink and report through it; the CLI passes a ClickSink, tests
pass a MemorySink, library callers can pass a NullSink.
"""

from __future__ import annotations

import click


class OutputSink:
    """Receives progress messages. The base class discards everything."""

    def step(self, message: str) -> None:
        """A phase of the run is starting."""

    def info(self, message: str) -> None:
        """Neutral progress."""

    def success(self, message: str) -> None:
        """Something completed."""

    def skip(self, message: str) -> None:
        """Something was intentionally not done."""

    def warning(self, message: str) -> None:
        """Something needs the user's attention but the run continues."""

    def error(self, message: str) -> None:
        """Something failed."""

    def debug(self, message: str) -> None:
        """Verbose-only detail."""


class NullSink(OutputSink):
    pass


class MemorySink(OutputSink):
    """Records ``(kind, message)`` pairs."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def _record(self, kind: str, message: str) -> None:
        self.messages.append((kind, message))

    def step(self, message: str) -> None:
        self._record("step", message)

    def info(self, message: str) -> None:
        self._record("info", message)

    def success(self, message: str) -> None:
        self._record("success", message)

    def skip(self, message: str) -> None:
        self._record("skip", message)

    def warning(self, message: str) -> None:
        self._record("warning", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def debug(self, message: str) -> None:
        self._record("debug", message)

    def of_kind(self, kind: str) -> list[str]:
        return [m for k, m in self.messages if k == kind]

    @property
    def text(self) -> str:
        return "\n".join(m for _, m in self.messages)


class ClickSink(OutputSink):
    """Terminal rendering with click."""

    def __init__(self, verbose: bool = False, quiet: bool = False):
        self._verbose = verbose
        self._quiet = quiet

    def step(self, message: str) -> None:
        if not self._quiet:
            click.secho(f"\n▸ {message}", fg="cyan", bold=True)

    def info(self, message: str) -> None:
        if not self._quiet:
            click.echo(f"   {message}")

    def success(self, message: str) -> None:
        if not self._quiet:
            click.secho(f"   ✓ {message}", fg="green")

    def skip(self, message: str) -> None:
        if not self._quiet:
            click.secho(f"   ⊘ {message}", fg="yellow")

    def warning(self, message: str) -> None:
        click.secho(f"   ⚠️  {message}", fg="yellow", err=True)

    def error(self, message: str) -> None:
        click.secho(f"   ✗ {message}", fg="red", err=True)

    def debug(self, message: str) -> None:
        if self._verbose:
            click.secho(f"   {message}", dim=True)
