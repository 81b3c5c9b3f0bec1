"""
Bootstrap use case — the full run.

    detect → plan → pre-flight → execute → verify → summary
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from envboot.core.config.loader import ConfigError
from envboot.core.engine.executor import ExecutionReport, execute
from envboot.core.engine.ordering import DependencyCycleError
from envboot.core.engine.planner import PlanResult, plan
from envboot.core.engine.summary import SummaryRow, summarize
from envboot.core.models.manifest import Manifest
from envboot.core.models.platform import Platform
from envboot.core.observability.output import NullSink, OutputSink
from envboot.core.use_cases.environment import RunEnvironment, prepare_environment

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    """Result of the bootstrap use case."""

    platform: Platform | None = None
    plan: PlanResult | None = None
    report: ExecutionReport | None = None
    rows: list[SummaryRow] = field(default_factory=list)
    dry_run: bool = False
    mock: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        if self.error:
            return False
        if self.dry_run:
            return True
        return self.report is not None and self.report.success

    def to_dict(self) -> dict:
        result: dict = {"success": self.success, "dry_run": self.dry_run, "mock": self.mock}
        if self.error:
            result["error"] = self.error
            return result
        if self.platform:
            result["platform"] = self.platform.to_dict()
        if self.plan:
            result["plan"] = self.plan.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()
        result["summary"] = [r.to_dict() for r in self.rows]
        return result


def run_bootstrap(
    manifest_path: Path | None = None,
    dry_run: bool = False,
    offline: bool = False,
    mock: bool = False,
    output: OutputSink | None = None,
    manifest: Manifest | None = None,
    env: RunEnvironment | None = None,
) -> BootstrapResult:
    """Bring the machine to the manifest's target state.

    Args:
        manifest_path: Explicit manifest (default: auto-detect / built-in).
        dry_run: Plan only; execute nothing.
        offline: Skip the connectivity pre-flight.
        mock: Simulate every backend instead of touching the machine.
        output: Where progress messages go.
        manifest: Pre-loaded manifest (skips loading).
        env: Pre-built collaborators (tests).
    """
    out = output or NullSink()
    result = BootstrapResult(dry_run=dry_run, mock=mock)

    try:
        env = env or prepare_environment(
            manifest_path, mock=mock, output=out, manifest=manifest
        )
    except ConfigError as e:
        result.error = str(e)
        return result

    result.platform = env.platform
    out.step("Detecting environment")
    out.info(f"Platform: {env.platform.label}")
    out.info(f"Shell: {env.platform.shell.value}")
    if env.mock:
        out.warning("Mock mode: no installer will actually run")

    out.step("Planning")
    try:
        result.plan = plan(
            env.manifest.requirements, env.platform, env.registry, env.probe, out
        )
    except DependencyCycleError as e:
        result.error = str(e)
        return result

    for action in result.plan.actions:
        out.info(action.describe())

    if dry_run:
        logger.info("Dry run: %d actions planned", len(result.plan.actions))
        return result

    settings = env.manifest.settings
    result.report = execute(
        result.plan,
        env.registry,
        probe=env.probe,
        path_mutator=env.path_mutator,
        check_network=settings.check_network and not offline,
        connectivity=env.connectivity,
        output=out,
    )
    result.rows = summarize(result.plan, result.report, env.registry)
    return result
