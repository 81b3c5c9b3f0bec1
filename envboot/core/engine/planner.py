"""
Planner — decide what to do for each requirement.

Pure decision logic over injected collaborators: the platform, the
backend registry and a probe function. Never runs an installer.

Decision order per requirement (after dependency ordering):
    1. No backends declared for this OS       → Skip(unsupported platform)
    2. Probe; installed and meets minimum     → Skip(already satisfied)
    3. No usable backend                      → Skip(no backend available)
    4. Not installed                          → Install
    5. Installed below minimum                → Upgrade
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from envboot.adapters.base import Backend
from envboot.adapters.registry import BackendRegistry
from envboot.core.engine.ordering import dependency_order
from envboot.core.models.action import (
    Action,
    InstallAction,
    SkipAction,
    SkipReason,
    UpgradeAction,
    action_to_dict,
)
from envboot.core.models.platform import Platform
from envboot.core.models.requirement import Requirement
from envboot.core.models.status import ToolStatus
from envboot.core.observability.output import NullSink, OutputSink
from envboot.core.services.probe.tools import detect_tool

logger = logging.getLogger(__name__)

Probe = Callable[[Requirement], ToolStatus]


@dataclass
class PlanResult:
    """Ordered actions for one run, plus what the probe saw."""

    platform: Platform
    actions: list[Action] = field(default_factory=list)
    statuses: dict[str, ToolStatus] = field(default_factory=dict)

    @property
    def changes(self) -> list[Action]:
        """Install and Upgrade actions, in plan order."""
        return [a for a in self.actions if not isinstance(a, SkipAction)]

    @property
    def has_pending_work(self) -> bool:
        """Something is unsatisfied that this platform should have."""
        for action in self.actions:
            if not isinstance(action, SkipAction):
                return True
            if action.reason == SkipReason.NO_BACKEND:
                return True
        return False

    @property
    def requirements(self) -> list[Requirement]:
        return [a.requirement for a in self.actions]

    def action_for(self, name: str) -> Action | None:
        for action in self.actions:
            if action.requirement.name == name:
                return action
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform.to_dict(),
            "actions": [action_to_dict(a) for a in self.actions],
            "statuses": {n: s.to_dict() for n, s in self.statuses.items()},
        }


def _usable_backend(
    candidates: list[str],
    registry: BackendRegistry,
    planned_commands: set[str],
) -> Backend | None:
    """First backend that is available now or will be once earlier
    actions in this plan have installed its binary."""
    for name in candidates:
        backend = registry.get(name)
        if backend is None:
            logger.debug("Backend %s is not registered", name)
            continue
        if registry.is_available(name):
            return backend
        if backend.requires_command and backend.requires_command in planned_commands:
            return backend
    return None


def plan(
    requirements: list[Requirement],
    platform: Platform,
    registry: BackendRegistry,
    probe: Probe = detect_tool,
    output: OutputSink | None = None,
) -> PlanResult:
    """Build the ordered plan for ``requirements`` on ``platform``.

    Raises:
        DependencyCycleError: If ``depends_on`` forms a loop.
    """
    out = output or NullSink()
    result = PlanResult(platform=platform)
    planned_commands: set[str] = set()

    for req in dependency_order(requirements):
        action = _plan_one(req, platform, registry, probe, planned_commands, result)
        if not isinstance(action, SkipAction):
            planned_commands.add(req.effective_command)
        result.actions.append(action)
        out.debug(f"plan: {action.describe()}")
        logger.info("Planned %s", action.describe())

    return result


def _plan_one(
    req: Requirement,
    platform: Platform,
    registry: BackendRegistry,
    probe: Probe,
    planned_commands: set[str],
    result: PlanResult,
) -> Action:
    candidates = req.candidates_for(platform)
    if not candidates:
        return SkipAction(requirement=req, reason=SkipReason.UNSUPPORTED_PLATFORM)

    status = probe(req)
    result.statuses[req.name] = status

    if status.installed and status.meets_minimum:
        return SkipAction(
            requirement=req,
            reason=SkipReason.ALREADY_SATISFIED,
            installed_version=status.installed_version,
        )

    backend = _usable_backend(candidates, registry, planned_commands)
    if backend is None:
        return SkipAction(
            requirement=req,
            reason=SkipReason.NO_BACKEND,
            installed_version=status.installed_version,
        )

    if not status.installed:
        return InstallAction(requirement=req, backend=backend.name)

    return UpgradeAction(
        requirement=req,
        backend=backend.name,
        from_version=status.installed_version,
        to_version=req.min_version,
    )
