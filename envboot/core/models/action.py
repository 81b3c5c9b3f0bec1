"""
Action and Receipt models — the execution contract.

Actions are what the planner decides to do for each requirement.
Receipts are what a backend reports back after doing it. Backends
return Receipts, never exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

from envboot.core.models.requirement import Requirement


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class SkipReason(StrEnum):
    ALREADY_SATISFIED = "already satisfied"
    UNSUPPORTED_PLATFORM = "unsupported platform"
    NO_BACKEND = "no backend available"


class InstallAction(BaseModel):
    """Requirement is missing; install it through ``backend``."""

    kind: Literal["install"] = "install"
    requirement: Requirement
    backend: str

    def describe(self) -> str:
        return f"install {self.requirement.name} via {self.backend}"


class UpgradeAction(BaseModel):
    """Requirement is installed below its minimum; upgrade it."""

    kind: Literal["upgrade"] = "upgrade"
    requirement: Requirement
    backend: str
    from_version: str | None = None
    to_version: str | None = None   # the declared minimum

    def describe(self) -> str:
        current = self.from_version or "?"
        return (
            f"upgrade {self.requirement.name} {current} → "
            f">={self.to_version} via {self.backend}"
        )


class SkipAction(BaseModel):
    """Nothing to do (or nothing that can be done) for a requirement."""

    kind: Literal["skip"] = "skip"
    requirement: Requirement
    reason: SkipReason
    installed_version: str | None = None

    @property
    def backend(self) -> None:
        return None

    def describe(self) -> str:
        return f"skip {self.requirement.name} ({self.reason.value})"


Action = InstallAction | UpgradeAction | SkipAction


def action_to_dict(action: Action) -> dict[str, Any]:
    """Flat JSON-friendly view of an action."""
    data: dict[str, Any] = {
        "kind": action.kind,
        "requirement": action.requirement.name,
        "backend": action.backend,
    }
    if isinstance(action, UpgradeAction):
        data["from_version"] = action.from_version
        data["to_version"] = action.to_version
    if isinstance(action, SkipAction):
        data["reason"] = action.reason.value
        data["installed_version"] = action.installed_version
    return data


class Receipt(BaseModel):
    """Result of one backend call.

    Receipts capture the full outcome of an install/upgrade/uninstall.
    The backend NEVER raises — failures are captured here, including
    the installer's own diagnostic text.
    """

    backend: str
    target: str                     # requirement name
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the backend call succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the backend call failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        backend: str,
        target: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            backend=backend,
            target=target,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        backend: str,
        target: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            backend=backend,
            target=target,
            status="failed",
            error=error,
            **kwargs,
        )
