"""
CLI commands for single-tool operations.

Thin wrappers over ``envboot.core.use_cases.tool_ops``.
"""

from __future__ import annotations

import json
import sys

import click


def _finish(result, as_json: bool) -> None:
    """Print a ToolOpResult and exit non-zero on failure."""
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if result.ok:
        via = f" via {result.backend}" if result.backend else ""
        click.secho(f"✅ {result.name}: {result.message}{via}", fg="green", bold=True)
        if result.after and result.after.installed_version:
            click.echo(f"   Version: {result.after.installed_version}")
        return

    click.secho(f"❌ {result.name}: {result.operation} failed", fg="red", bold=True)
    if result.message:
        click.secho(f"   {result.message}", fg="red")
    sys.exit(1)


def _output(ctx: click.Context, as_json: bool):
    from envboot.main import make_output

    return make_output(ctx, as_json)


@click.group()
def tool() -> None:
    """Tool — install, update, uninstall, diagnose one requirement."""


# ── Act ─────────────────────────────────────────────────────────


@tool.command()
@click.argument("name")
@click.option("--offline", is_flag=True, help="Skip the network pre-flight check.")
@click.option("--mock", is_flag=True, help="Simulate the installer.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, name: str, offline: bool, mock: bool, as_json: bool) -> None:
    """Install NAME if it is missing or outdated."""
    from envboot.core.use_cases.tool_ops import install_tool

    result = install_tool(
        name,
        manifest_path=ctx.obj.get("manifest_path"),
        offline=offline,
        mock=mock,
        output=_output(ctx, as_json),
    )
    _finish(result, as_json)


@tool.command()
@click.argument("name")
@click.option("--mock", is_flag=True, help="Simulate the installer.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(ctx: click.Context, name: str, mock: bool, as_json: bool) -> None:
    """Upgrade NAME to the latest version its backend offers."""
    from envboot.core.use_cases.tool_ops import update_tool

    result = update_tool(
        name,
        manifest_path=ctx.obj.get("manifest_path"),
        mock=mock,
        output=_output(ctx, as_json),
    )
    _finish(result, as_json)


@tool.command()
@click.argument("name")
@click.option("--mock", is_flag=True, help="Simulate the installer.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, name: str, mock: bool, yes: bool, as_json: bool) -> None:
    """Remove NAME through the backend that manages it."""
    from envboot.core.use_cases.tool_ops import uninstall_tool

    if not yes and not as_json:
        click.confirm(f"Uninstall {name}?", abort=True)

    result = uninstall_tool(
        name,
        manifest_path=ctx.obj.get("manifest_path"),
        mock=mock,
        output=_output(ctx, as_json),
    )
    _finish(result, as_json)


# ── Observe ─────────────────────────────────────────────────────


@tool.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def diagnose(ctx: click.Context, name: str, as_json: bool) -> None:
    """Explain the state of NAME on this machine."""
    from envboot.core.use_cases.tool_ops import diagnose_tool

    result = diagnose_tool(name, manifest_path=ctx.obj.get("manifest_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    details = result.details
    status = result.before
    color = "green" if result.ok else "red"
    click.secho(f"\n🔍 {result.name}: {result.message}", fg=color, bold=True)
    click.echo(f"   Command:   {details.get('command')}")
    click.echo(f"   Path:      {status.path if status and status.path else '-'}")
    click.echo(f"   Version:   {(status.installed_version if status else None) or '-'}")
    if status and status.installed:
        click.echo(f"   Installed: via {details.get('install_method')}")
    if details.get("min_version"):
        click.echo(f"   Minimum:   {details['min_version']}")

    click.secho("   Backends:", fg="white", bold=True)
    for candidate in details.get("candidates", []):
        mark = "✓" if candidate["available"] else "✗"
        selected = "  (selected)" if candidate["name"] == result.backend else ""
        click.echo(f"     {mark} {candidate['name']}{selected}")

    if "backend_version" in details:
        click.echo(f"   Backend reports: {details['backend_version'] or 'not installed'}")
    if details.get("bin_dir"):
        click.echo(f"   Backend bin dir: {details['bin_dir']}")
    update = details.get("update")
    if update and update.get("state") == "update_available":
        click.secho(f"   ⬆ Update available: {update['current']} → {update['latest']}", fg="yellow")
    if not result.ok and details.get("remediation"):
        click.secho(f"   → {details['remediation']}", fg="yellow")
    click.echo()
    if not result.ok:
        sys.exit(1)
