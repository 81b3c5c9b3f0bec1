"""
CLI commands for PATH management.

Thin wrappers over ``envboot.core.services.path_mutator``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from envboot.core.models.platform import ShellKind

_SHELL_CHOICES = [s.value for s in ShellKind if s != ShellKind.UNKNOWN]


def _mutator(shell: str | None, config_file: str | None):
    from envboot.core.services.path_mutator import PathMutator
    from envboot.core.services.probe.platform import detect_platform

    kind = ShellKind(shell) if shell else detect_platform().shell
    return PathMutator(kind, config_file=config_file)


@click.group()
def path() -> None:
    """PATH — make directories visible to this and future shells."""


@path.command()
@click.argument("directory", type=click.Path(file_okay=False))
@click.option("--shell", "shell", type=click.Choice(_SHELL_CHOICES), default=None,
              help="Shell whose config to edit (default: detected).")
@click.option("--config-file", default=None, help="Explicit config file to append to.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def ensure(directory: str, shell: str | None, config_file: str | None, as_json: bool) -> None:
    """Put DIRECTORY on PATH (idempotent)."""
    mutator = _mutator(shell, config_file)
    update = mutator.ensure_on_path(str(Path(directory).expanduser()))

    if as_json:
        click.echo(json.dumps(update.to_dict(), indent=2))
        if update.error:
            sys.exit(1)
        return

    if update.error:
        click.secho(f"❌ {update.error}", fg="red")
        sys.exit(1)

    if update.config_updated:
        click.secho(f"✅ Added {update.directory} to {update.config_file}", fg="green", bold=True)
        click.echo("   Open a new terminal (or source the file) to pick it up.")
    else:
        click.secho(f"✓ {update.directory} is already in {update.config_file}", fg="green")


@path.command()
@click.argument("directory", type=click.Path(file_okay=False))
@click.option("--shell", "shell", type=click.Choice(_SHELL_CHOICES), default=None,
              help="Shell whose config to inspect (default: detected).")
@click.option("--config-file", default=None, help="Explicit config file to inspect.")
def check(directory: str, shell: str | None, config_file: str | None) -> None:
    """Report whether DIRECTORY is on PATH, live and persisted."""
    mutator = _mutator(shell, config_file)
    directory = str(Path(directory).expanduser())
    live = mutator.on_live_path(directory)
    persisted = mutator.in_config(directory)

    click.secho(f"   {'✓' if live else '✗'} current PATH", fg="green" if live else "red")
    click.secho(
        f"   {'✓' if persisted else '✗'} {mutator.config_file}",
        fg="green" if persisted else "red",
    )
    if not (live and persisted):
        sys.exit(1)
