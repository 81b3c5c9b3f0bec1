"""
Engine executor — run a plan against the machine.

Flow:
    pre-flight → actions in plan order → PATH fix-up → verification

Actions run one at a time, strictly in plan order. A failed action
never stops the run: only requirements that depend on it are marked
failed without being attempted. Fatal conditions are detected before
the first action, so a run either starts cleanly or changes nothing.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from envboot.adapters.base import Backend, Which
from envboot.adapters.registry import BackendRegistry
from envboot.core.engine.ordering import dependents_of
from envboot.core.engine.planner import PlanResult, Probe
from envboot.core.models.action import (
    Action,
    InstallAction,
    Receipt,
    SkipAction,
    SkipReason,
    UpgradeAction,
    action_to_dict,
)
from envboot.core.models.requirement import Requirement
from envboot.core.models.status import ToolStatus
from envboot.core.observability.output import NullSink, OutputSink
from envboot.core.services.path_mutator import PathMutator, PathUpdate
from envboot.core.services.probe.network import check_internet
from envboot.core.services.probe.tools import detect_tool

logger = logging.getLogger(__name__)

Connectivity = Callable[[], dict]


class PreflightError(Exception):
    """The run cannot succeed; nothing was executed."""


# ── Result types ────────────────────────────────────────────────


@dataclass
class ActionOutcome:
    """What happened to one action."""

    action: Action
    status: str                          # succeeded | failed | skipped
    message: str = ""
    receipt: Receipt | None = None
    path_update: PathUpdate | None = None

    @property
    def name(self) -> str:
        return self.action.requirement.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": action_to_dict(self.action),
            "status": self.status,
            "message": self.message,
            "receipt": self.receipt.model_dump(mode="json") if self.receipt else None,
            "path_update": self.path_update.to_dict() if self.path_update else None,
        }


@dataclass
class VerificationResult:
    """Post-execution state of one requirement."""

    status: ToolStatus
    state: str                           # satisfied | not_visible | outdated | missing
    backend_version: str | None = None

    @property
    def name(self) -> str:
        return self.status.requirement.name

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.status.to_dict(),
            "state": self.state,
            "backend_version": self.backend_version,
        }


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    outcomes: list[ActionOutcome] = field(default_factory=list)
    verification: list[VerificationResult] = field(default_factory=list)
    preflight_error: str | None = None
    started_at: str = ""
    ended_at: str = ""

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "succeeded")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")

    @property
    def success(self) -> bool:
        return self.preflight_error is None and self.failed == 0

    @property
    def status(self) -> str:
        if self.preflight_error:
            return "aborted"
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def outcome_for(self, name: str) -> ActionOutcome | None:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None

    def verification_for(self, name: str) -> VerificationResult | None:
        for result in self.verification:
            if result.name == name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "success": self.success,
            "preflight_error": self.preflight_error,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "verification": [v.to_dict() for v in self.verification],
        }


# ── Pre-flight ──────────────────────────────────────────────────


def preflight(
    plan: PlanResult,
    check_network: bool = True,
    connectivity: Connectivity = check_internet,
) -> None:
    """Refuse to start a run that cannot succeed.

    Raises:
        PreflightError: No backend can install anything that is missing,
            or installs are planned and the network is unreachable.
    """
    changes = plan.changes
    if plan.has_pending_work and not changes:
        raise PreflightError(
            "No backend capable of installing any missing requirement "
            f"on {plan.platform.label}"
        )
    if changes and check_network:
        result = connectivity()
        if not result.get("reachable"):
            reason = result.get("error") or "unreachable"
            raise PreflightError(
                f"No network: cannot reach {result.get('url', 'the registry')} ({reason})"
            )


# ── Execution ───────────────────────────────────────────────────


def execute(
    plan: PlanResult,
    registry: BackendRegistry,
    probe: Probe = detect_tool,
    path_mutator: PathMutator | None = None,
    check_network: bool = True,
    connectivity: Connectivity = check_internet,
    which: Which = shutil.which,
    output: OutputSink | None = None,
) -> ExecutionReport:
    """Execute every action of ``plan`` and verify the result.

    Never raises for backend problems; a pre-flight failure is
    recorded on the report and no action runs.
    """
    out = output or NullSink()
    report = ExecutionReport(
        operation_id=f"run-{uuid.uuid4().hex[:8]}",
        started_at=_now_iso(),
    )

    out.step("Pre-flight checks")
    try:
        preflight(plan, check_network=check_network, connectivity=connectivity)
    except PreflightError as e:
        logger.error("Pre-flight failed: %s", e)
        out.error(str(e))
        report.preflight_error = str(e)
        report.ended_at = _now_iso()
        return report
    out.success("Ready")

    out.step("Installing")
    # requirement name → the failed requirement it transitively depends on
    blocked: dict[str, str] = {}
    requirements = plan.requirements
    for action in plan.actions:
        outcome = _run_action(action, registry, blocked, path_mutator, which, out)
        if outcome.status == "failed":
            root = blocked.get(outcome.name, outcome.name)
            for name in dependents_of(outcome.name, requirements):
                blocked.setdefault(name, root)
        report.outcomes.append(outcome)

    out.step("Verifying")
    report.verification = verify(plan, registry, probe, out)
    report.ended_at = _now_iso()

    logger.info(
        "Run %s: %d succeeded, %d failed, %d skipped",
        report.operation_id, report.succeeded, report.failed, report.skipped,
    )
    return report


def _run_action(
    action: Action,
    registry: BackendRegistry,
    blocked: dict[str, str],
    path_mutator: PathMutator | None,
    which: Which,
    out: OutputSink,
) -> ActionOutcome:
    req = action.requirement

    if isinstance(action, SkipAction):
        out.skip(f"{req.name}: {action.reason.value}")
        return ActionOutcome(action=action, status="skipped", message=action.reason.value)

    if req.name in blocked:
        message = f"dependency {blocked[req.name]} failed"
        out.error(f"{req.name}: {message}")
        return ActionOutcome(action=action, status="failed", message=message)

    backend = registry.get(action.backend)
    if backend is None or not registry.is_available(action.backend):
        message = f"backend {action.backend} is not available"
        out.error(f"{req.name}: {message}")
        return ActionOutcome(action=action, status="failed", message=message)

    out.info(f"{action.describe()} ...")
    try:
        if isinstance(action, UpgradeAction):
            receipt = backend.upgrade(req)
        else:
            receipt = backend.install(req)
    except Exception as e:
        # Backends should never raise, but one misbehaving must not end the run
        logger.exception("Backend %s raised for %s", backend.name, req.name)
        message = f"{backend.name} raised: {e}"
        out.error(f"{req.name}: {message}")
        return ActionOutcome(action=action, status="failed", message=message)

    if not receipt.ok:
        message = receipt.error or f"{backend.name} reported failure"
        out.error(f"{req.name}: {message}")
        return ActionOutcome(action=action, status="failed", message=message, receipt=receipt)

    verb = "upgraded" if isinstance(action, UpgradeAction) else "installed"
    out.success(f"{req.name} {verb} via {backend.name}")
    outcome = ActionOutcome(action=action, status="succeeded", message=verb, receipt=receipt)

    if req.ensure_path and path_mutator is not None:
        outcome.path_update = _fix_path(req, backend, path_mutator, which, out)
    return outcome


def _fix_path(
    req: Requirement,
    backend: Backend,
    path_mutator: PathMutator,
    which: Which,
    out: OutputSink,
) -> PathUpdate | None:
    """Make a freshly installed command reachable on PATH."""
    command = req.effective_command
    if which(command) is not None:
        return None

    directory = _find_bin_dir(req, backend)
    if directory is None:
        out.warning(f"{command} was installed but its directory is unknown")
        return None

    logger.info("Putting %s on PATH for %s", directory, command)
    return path_mutator.ensure_on_path(directory)


def _find_bin_dir(req: Requirement, backend: Backend) -> str | None:
    try:
        directory = backend.bin_dir()
    except Exception as e:
        logger.warning("bin_dir() of %s raised: %s", backend.name, e)
        directory = None
    if directory:
        return directory
    command = req.effective_command
    for candidate in req.bin_dirs:
        path = Path(candidate).expanduser()
        if path.is_dir() and any(
            (path / f"{command}{ext}").exists() for ext in ("", ".exe", ".cmd")
        ):
            return str(path)
    return None


# ── Verification ────────────────────────────────────────────────


def verify(
    plan: PlanResult,
    registry: BackendRegistry,
    probe: Probe = detect_tool,
    output: OutputSink | None = None,
) -> list[VerificationResult]:
    """Re-probe every requirement in the plan."""
    out = output or NullSink()
    results: list[VerificationResult] = []

    for action in plan.actions:
        req = action.requirement
        if isinstance(action, SkipAction) and action.reason == SkipReason.UNSUPPORTED_PLATFORM:
            continue

        status = probe(req)
        if status.installed:
            state = "satisfied" if status.meets_minimum else "outdated"
            result = VerificationResult(status=status, state=state)
        else:
            backend_version = _backend_version(action, registry)
            state = "not_visible" if backend_version else "missing"
            result = VerificationResult(
                status=status, state=state, backend_version=backend_version
            )

        if result.state == "satisfied":
            out.success(f"{req.name} {status.installed_version or ''}".rstrip())
        elif result.state == "not_visible":
            out.warning(f"{req.name} is installed but not on PATH yet")
        elif result.state == "outdated":
            out.warning(
                f"{req.name} {status.installed_version} is below {req.min_version}"
            )
        else:
            out.error(f"{req.name} not found")
        results.append(result)

    return results


def _backend_version(action: Action, registry: BackendRegistry) -> str | None:
    if not isinstance(action, (InstallAction, UpgradeAction)):
        return None
    backend = registry.get(action.backend)
    if backend is None:
        return None
    try:
        return backend.current_version(action.requirement)
    except Exception as e:
        logger.debug("current_version() of %s raised: %s", backend.name, e)
        return None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()
