"""
Summary — one final row per requirement, with remediation text.

Combines the plan (what was intended), the execution report (what
happened) and the verification pass (what is true now).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from envboot.adapters.registry import BackendRegistry
from envboot.core.engine.executor import ExecutionReport
from envboot.core.engine.planner import PlanResult
from envboot.core.models.action import SkipAction, SkipReason, UpgradeAction
from envboot.core.models.platform import Platform
from envboot.core.models.requirement import Requirement

logger = logging.getLogger(__name__)

INSTALLED = "installed"
UPGRADED = "upgraded"
ALREADY_SATISFIED = "already_satisfied"
FAILED = "failed"
SKIPPED_UNSUPPORTED = "skipped_unsupported"
SKIPPED_NO_BACKEND = "skipped_no_backend"
INSTALLED_NOT_ON_PATH = "installed_not_on_path"

LABELS: dict[str, str] = {
    INSTALLED: "Installed",
    UPGRADED: "Upgraded",
    ALREADY_SATISFIED: "Already satisfied",
    FAILED: "Failed",
    SKIPPED_UNSUPPORTED: "Skipped (unsupported platform)",
    SKIPPED_NO_BACKEND: "Skipped (no backend available)",
    INSTALLED_NOT_ON_PATH: "Installed (not on PATH yet)",
}


@dataclass
class SummaryRow:
    requirement: str
    result: str
    version: str | None = None
    message: str = ""
    remediation: str = ""

    @property
    def label(self) -> str:
        return LABELS.get(self.result, self.result)

    def to_dict(self) -> dict:
        return asdict(self)


def remediation_for(
    requirement: Requirement,
    platform: Platform,
    registry: BackendRegistry,
) -> str:
    """Manual install instructions: the first backend command we can
    produce for this platform, plus the project homepage."""
    parts: list[str] = []
    for name in requirement.candidates_for(platform):
        backend = registry.get(name)
        if backend is None:
            continue
        try:
            command = backend.manual_command(requirement)
        except Exception as e:
            logger.debug("manual_command() of %s raised: %s", name, e)
            continue
        if command:
            parts.append(f"Install manually: {command}")
            break
    if requirement.homepage:
        parts.append(f"See {requirement.homepage}")
    return "; ".join(parts)


def summarize(
    plan: PlanResult,
    report: ExecutionReport,
    registry: BackendRegistry,
) -> list[SummaryRow]:
    rows: list[SummaryRow] = []
    platform = plan.platform

    for action in plan.actions:
        req = action.requirement

        if isinstance(action, SkipAction):
            if action.reason == SkipReason.UNSUPPORTED_PLATFORM:
                rows.append(SummaryRow(req.name, SKIPPED_UNSUPPORTED))
            elif action.reason == SkipReason.ALREADY_SATISFIED:
                rows.append(
                    SummaryRow(req.name, ALREADY_SATISFIED, action.installed_version)
                )
            else:
                rows.append(SummaryRow(
                    req.name,
                    SKIPPED_NO_BACKEND,
                    action.installed_version,
                    remediation=remediation_for(req, platform, registry),
                ))
            continue

        outcome = report.outcome_for(req.name)
        if outcome is None or outcome.status != "succeeded":
            message = outcome.message if outcome else (
                report.preflight_error or "not attempted"
            )
            rows.append(SummaryRow(
                req.name,
                FAILED,
                message=message,
                remediation=remediation_for(req, platform, registry),
            ))
            continue

        verified = report.verification_for(req.name)
        if verified is not None and verified.state == "not_visible":
            hint = "Open a new terminal so the updated PATH takes effect"
            if outcome.path_update is None:
                hint = f"Add the directory containing '{req.effective_command}' to PATH"
            rows.append(SummaryRow(
                req.name,
                INSTALLED_NOT_ON_PATH,
                verified.backend_version,
                remediation=hint,
            ))
            continue

        version = verified.status.installed_version if verified else None
        result = UPGRADED if isinstance(action, UpgradeAction) else INSTALLED
        message = ""
        if verified is not None and verified.state in ("outdated", "missing"):
            message = f"verification: {verified.state}"
        rows.append(SummaryRow(req.name, result, version, message=message))

    return rows
