"""
ToolStatus — what the probe found for one requirement.

Derived data: recomputed by re-probing the live machine before
planning and again after execution. Never persisted.
"""

from __future__ import annotations

from pydantic import BaseModel

from envboot.core.models.requirement import Requirement


class ToolStatus(BaseModel):
    requirement: Requirement
    installed: bool = False
    installed_version: str | None = None
    meets_minimum: bool = False
    path: str | None = None

    @property
    def name(self) -> str:
        return self.requirement.name

    def to_dict(self) -> dict:
        return {
            "name": self.requirement.name,
            "command": self.requirement.effective_command,
            "installed": self.installed,
            "installed_version": self.installed_version,
            "min_version": self.requirement.min_version,
            "meets_minimum": self.meets_minimum,
            "path": self.path,
        }
