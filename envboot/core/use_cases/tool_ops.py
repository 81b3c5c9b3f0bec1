"""
Tool operations — install, update, uninstall or diagnose one requirement.

Standalone counterparts of the full bootstrap, addressed by
requirement name. Install goes through the planner and executor so a
single-tool install behaves exactly like the same requirement inside
a full run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from envboot.adapters.base import Backend
from envboot.core.config.loader import ConfigError
from envboot.core.engine.executor import execute
from envboot.core.engine.planner import plan
from envboot.core.engine.summary import remediation_for
from envboot.core.models.action import Receipt, SkipReason
from envboot.core.models.requirement import Requirement
from envboot.core.models.status import ToolStatus
from envboot.core.observability.output import NullSink, OutputSink
from envboot.core.services.probe.tools import install_method
from envboot.core.use_cases.environment import RunEnvironment, prepare_environment

logger = logging.getLogger(__name__)


@dataclass
class ToolOpResult:
    """Result of a single-tool operation."""

    name: str
    operation: str
    ok: bool = False
    backend: str | None = None
    message: str = ""
    before: ToolStatus | None = None
    after: ToolStatus | None = None
    receipt: Receipt | None = None
    details: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "name": self.name,
            "operation": self.operation,
            "ok": self.ok,
        }
        if self.error:
            result["error"] = self.error
            return result
        result["backend"] = self.backend
        result["message"] = self.message
        result["before"] = self.before.to_dict() if self.before else None
        result["after"] = self.after.to_dict() if self.after else None
        result["receipt"] = self.receipt.model_dump(mode="json") if self.receipt else None
        if self.details:
            result["details"] = self.details
        return result


def _resolve(
    name: str,
    operation: str,
    manifest_path: Path | None,
    mock: bool,
    output: OutputSink | None,
    env: RunEnvironment | None,
) -> tuple[ToolOpResult, RunEnvironment | None, Requirement | None]:
    result = ToolOpResult(name=name, operation=operation)
    try:
        env = env or prepare_environment(manifest_path, mock=mock, output=output)
    except ConfigError as e:
        result.error = str(e)
        return result, None, None

    req = env.manifest.get(name)
    if req is None:
        known = ", ".join(env.manifest.requirement_names)
        result.error = f"Unknown requirement '{name}' (known: {known})"
        return result, env, None
    return result, env, req


def _select_backend(req: Requirement, env: RunEnvironment) -> Backend | str:
    """Usable backend, or an error message."""
    candidates = req.candidates_for(env.platform)
    if not candidates:
        return f"{req.name} is not supported on {env.platform.os.value}"
    backend = env.registry.select(candidates)
    if backend is None:
        return f"No backend available for {req.name} (tried: {', '.join(candidates)})"
    return backend


def _call(backend: Backend, operation: str, req: Requirement) -> Receipt:
    try:
        return getattr(backend, operation)(req)
    except Exception as e:
        logger.exception("Backend %s raised during %s", backend.name, operation)
        return Receipt.failure(backend=backend.name, target=req.name, error=str(e))


# ── Operations ──────────────────────────────────────────────────


def install_tool(
    name: str,
    manifest_path: Path | None = None,
    offline: bool = False,
    mock: bool = False,
    output: OutputSink | None = None,
    env: RunEnvironment | None = None,
) -> ToolOpResult:
    """Install one requirement (no-op when already satisfied)."""
    out = output or NullSink()
    result, env, req = _resolve(name, "install", manifest_path, mock, out, env)
    if req is None:
        return result

    result.before = env.probe(req)
    single = plan([req], env.platform, env.registry, env.probe, out)
    action = single.actions[0]
    result.backend = action.backend

    report = execute(
        single,
        env.registry,
        probe=env.probe,
        path_mutator=env.path_mutator,
        check_network=env.manifest.settings.check_network and not offline,
        connectivity=env.connectivity,
        output=out,
    )
    result.after = env.probe(req)

    if report.preflight_error:
        result.message = report.preflight_error
        return result

    outcome = report.outcomes[0]
    result.receipt = outcome.receipt
    result.message = outcome.message
    result.ok = outcome.status != "failed"
    if outcome.status == "skipped" and action.reason != SkipReason.ALREADY_SATISFIED:
        result.ok = False
    return result


def update_tool(
    name: str,
    manifest_path: Path | None = None,
    mock: bool = False,
    output: OutputSink | None = None,
    env: RunEnvironment | None = None,
) -> ToolOpResult:
    """Upgrade an installed requirement to the latest version its backend offers."""
    out = output or NullSink()
    result, env, req = _resolve(name, "update", manifest_path, mock, out, env)
    if req is None:
        return result

    result.before = env.probe(req)
    if not result.before.installed:
        result.message = f"{name} is not installed; use 'envboot tool install {name}'"
        return result

    backend = _select_backend(req, env)
    if isinstance(backend, str):
        result.message = backend
        return result
    result.backend = backend.name

    out.info(f"upgrade {name} via {backend.name} ...")
    result.receipt = _call(backend, "upgrade", req)
    result.after = env.probe(req)
    result.ok = result.receipt.ok
    result.message = "updated" if result.ok else (result.receipt.error or "update failed")
    return result


def uninstall_tool(
    name: str,
    manifest_path: Path | None = None,
    mock: bool = False,
    output: OutputSink | None = None,
    env: RunEnvironment | None = None,
) -> ToolOpResult:
    """Remove a requirement through the backend that would install it."""
    out = output or NullSink()
    result, env, req = _resolve(name, "uninstall", manifest_path, mock, out, env)
    if req is None:
        return result

    result.before = env.probe(req)
    if not result.before.installed:
        result.ok = True
        result.message = f"{name} is not installed"
        return result

    backend = _select_backend(req, env)
    if isinstance(backend, str):
        result.message = backend
        return result
    result.backend = backend.name

    out.info(f"uninstall {name} via {backend.name} ...")
    result.receipt = _call(backend, "uninstall", req)
    result.after = env.probe(req)
    result.ok = result.receipt.ok
    result.message = "removed" if result.ok else (result.receipt.error or "uninstall failed")
    return result


def diagnose_tool(
    name: str,
    manifest_path: Path | None = None,
    mock: bool = False,
    env: RunEnvironment | None = None,
) -> ToolOpResult:
    """Everything we know about one requirement on this machine."""
    result, env, req = _resolve(name, "diagnose", manifest_path, mock, None, env)
    if req is None:
        return result

    status = env.probe(req)
    result.before = status

    candidates = []
    for backend_name in req.candidates_for(env.platform):
        candidates.append({
            "name": backend_name,
            "available": env.registry.is_available(backend_name),
        })

    details: dict[str, Any] = {
        "platform": env.platform.to_dict(),
        "command": req.effective_command,
        "on_path": status.path is not None,
        "install_method": install_method(status.path, env.platform.os),
        "min_version": req.min_version,
        "candidates": candidates,
        "remediation": remediation_for(req, env.platform, env.registry),
    }

    selected = env.registry.select(req.candidates_for(env.platform))
    if selected is not None:
        result.backend = selected.name
        check_update = getattr(selected, "check_update", None)
        try:
            details["backend_version"] = selected.current_version(req)
            details["bin_dir"] = selected.bin_dir()
            if callable(check_update) and status.installed:
                details["update"] = check_update(req)
        except Exception as e:
            logger.debug("Backend %s diagnostics raised: %s", selected.name, e)

    if not candidates:
        result.message = f"not supported on {env.platform.os.value}"
    elif not status.installed:
        result.message = "not installed"
    elif not status.meets_minimum:
        result.message = f"version {status.installed_version} is below {req.min_version}"
    else:
        result.message = "ok"

    result.details = details
    result.ok = status.installed and status.meets_minimum
    return result
