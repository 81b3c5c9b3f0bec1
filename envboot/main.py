"""
envboot — CLI entrypoint.

Usage:
    envboot                 # same as `envboot run`
    envboot run --dry-run
    envboot detect
    envboot tool diagnose node
    envboot path ensure ~/.npm-global/bin
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from envboot import __version__
from envboot.core.observability.logging_config import resolve_level, setup_logging
from envboot.core.observability.output import ClickSink, NullSink, OutputSink

_RESULT_COLORS = {
    "installed": "green",
    "upgraded": "green",
    "already_satisfied": "green",
    "failed": "red",
    "skipped_unsupported": "white",
    "skipped_no_backend": "yellow",
    "installed_not_on_path": "yellow",
}

_RESULT_ICONS = {
    "installed": "✓",
    "upgraded": "✓",
    "already_satisfied": "✓",
    "failed": "✗",
    "skipped_unsupported": "⊘",
    "skipped_no_backend": "⊘",
    "installed_not_on_path": "⚠️ ",
}


def make_output(ctx: click.Context, as_json: bool = False) -> OutputSink:
    """Progress sink for a command; silent when printing JSON."""
    if as_json:
        return NullSink()
    return ClickSink(verbose=ctx.obj.get("verbose", False), quiet=ctx.obj.get("quiet", False))


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="envboot")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--manifest",
    "-m",
    "manifest_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to envboot.yml (default: auto-detect, else built-in).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    manifest_path: str | None,
) -> None:
    """envboot — bring this machine to a known-good developer setup."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose or debug
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["manifest_path"] = Path(manifest_path) if manifest_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        cli_level = "DEBUG"
    elif verbose:
        cli_level = "INFO"
    elif quiet:
        cli_level = "ERROR"
    else:
        cli_level = None

    setup_logging(
        level=resolve_level(cli_level),
        log_file=os.environ.get("ENVBOOT_LOG_FILE"),
        log_file_level=os.environ.get("ENVBOOT_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


# ── run ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show the plan without executing it.")
@click.option("--offline", is_flag=True, help="Skip the network pre-flight check.")
@click.option("--mock", is_flag=True, help="Simulate all installers (no real changes).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, dry_run: bool, offline: bool, mock: bool, as_json: bool) -> None:
    """Detect, plan, install, verify (the default command)."""
    from envboot.core.use_cases.bootstrap import run_bootstrap

    result = run_bootstrap(
        manifest_path=ctx.obj.get("manifest_path"),
        dry_run=dry_run,
        offline=offline,
        mock=mock,
        output=make_output(ctx, as_json),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.success:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if dry_run:
        click.secho("\n📋 Dry run: nothing was executed", fg="cyan", bold=True)
        return

    report = result.report
    if report is not None and report.preflight_error:
        click.secho(f"\n❌ Aborted before any change: {report.preflight_error}", fg="red", bold=True)
        sys.exit(1)

    _print_summary(result.rows)

    if result.success:
        click.secho("\n✅ Environment is ready", fg="green", bold=True)
    else:
        click.secho("\n❌ Some requirements could not be installed", fg="red", bold=True)
        sys.exit(1)


def _print_summary(rows) -> None:
    click.secho("\n📊 Summary", fg="cyan", bold=True)
    width = max((len(r.requirement) for r in rows), default=10) + 2
    for row in rows:
        icon = _RESULT_ICONS.get(row.result, " ")
        color = _RESULT_COLORS.get(row.result, "white")
        version = f" ({row.version})" if row.version else ""
        click.secho(f"   {icon} {row.requirement:<{width}}", fg=color, nl=False)
        click.echo(f"{row.label}{version}")
        if row.message and row.result == "failed":
            click.secho(f"      {row.message.splitlines()[-1]}", fg="red")
        if row.remediation and row.result != "skipped_unsupported":
            click.secho(f"      → {row.remediation}", fg="yellow")


# ── detect ──────────────────────────────────────────────────────


@cli.command()
@click.option("--network", is_flag=True, help="Also check registry connectivity.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, network: bool, as_json: bool) -> None:
    """Show platform, package manager and requirement status."""
    from envboot.core.use_cases.detect import run_detect

    result = run_detect(manifest_path=ctx.obj.get("manifest_path"), check_network=network)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    platform = result.platform
    click.secho(f"\n🔍 Platform: {platform.label}", fg="cyan", bold=True)
    click.echo(f"   Shell:           {platform.shell.value}")
    click.echo(f"   Package manager: {result.package_manager}")
    if result.network is not None:
        if result.network.get("reachable"):
            click.secho(f"   ✓ Network ({result.network.get('latency_ms')} ms)", fg="green")
        else:
            click.secho(f"   ✗ Network: {result.network.get('error')}", fg="red")

    click.secho("\n   Requirements:", fg="white", bold=True)
    for status in result.statuses:
        req = status.requirement
        minimum = f" (need >= {req.min_version})" if req.min_version else ""
        if status.installed and status.meets_minimum:
            click.secho(f"   ✓ {status.name} ", fg="green", nl=False)
            click.echo(f"{status.installed_version or 'unknown version'}")
        elif status.installed:
            click.secho(f"   ⚠️  {status.name} ", fg="yellow", nl=False)
            click.echo(f"{status.installed_version}{minimum}")
        else:
            click.secho(f"   ✗ {status.name} ", fg="red", nl=False)
            click.echo(f"not installed{minimum}")
    click.echo()


# ── plan ────────────────────────────────────────────────────────


@cli.command()
@click.option("--mock", is_flag=True, help="Plan against a simulated empty machine.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, mock: bool, as_json: bool) -> None:
    """Print what a run would do, without doing it."""
    from envboot.core.use_cases.bootstrap import run_bootstrap

    result = run_bootstrap(
        manifest_path=ctx.obj.get("manifest_path"),
        dry_run=True,
        mock=mock,
        output=NullSink(),
    )

    if as_json:
        payload = result.plan.to_dict() if result.plan else result.to_dict()
        click.echo(json.dumps(payload, indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"\n📋 Plan for {result.platform.label}", fg="cyan", bold=True)
    for i, action in enumerate(result.plan.actions, 1):
        color = "white" if action.kind == "skip" else "green"
        click.secho(f"   {i}. {action.describe()}", fg=color)
    click.echo()


# ── Sub-groups ──────────────────────────────────────────────────

from envboot.ui.cli.path import path  # noqa: E402
from envboot.ui.cli.tool import tool  # noqa: E402

cli.add_command(tool)
cli.add_command(path)


if __name__ == "__main__":
    cli()
