"""
Requirement model — a declarative description of a desired tool.

Requirements are static configuration: they say what should be on the
machine and which installer backends may put it there, per OS family.
They never carry runtime state; that lives in ToolStatus.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from envboot.core.models.platform import Platform


class Requirement(BaseModel):
    """A tool that must be present, optionally at a minimum version.

    ``backends`` maps an OS family (``macos``, ``linux``, ``windows``)
    to an ordered list of backend names; the first available one wins.
    ``packages`` maps a backend name to the package id(s) that backend
    should install. When a backend has no entry the requirement name
    is used.
    """

    name: str
    command: str = ""                   # binary probed on PATH (default: name)
    description: str = ""
    min_version: str | None = None      # None = any installed version
    backends: dict[str, list[str]] = Field(default_factory=dict)
    packages: dict[str, str | list[str]] = Field(default_factory=dict)
    pre_install: dict[str, str] = Field(default_factory=dict)
    depends_on: list[str] = Field(default_factory=list)
    version_args: list[str] = Field(default_factory=lambda: ["--version"])
    homepage: str = ""
    ensure_path: bool = False           # put the backend's bin dir on PATH
    bin_dirs: list[str] = Field(default_factory=list)   # fallback bin dirs to look in

    @field_validator("min_version", mode="before")
    @classmethod
    def _coerce_min_version(cls, value: object) -> object:
        # YAML reads ``min_version: 18`` as an int.
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def effective_command(self) -> str:
        return self.command or self.name

    def candidates_for(self, platform: Platform) -> list[str]:
        """Ordered backend names declared for this platform's OS family."""
        return list(self.backends.get(platform.os.value, []))

    def package_ids(self, backend: str) -> list[str]:
        """Package ids to hand to ``backend``."""
        value = self.packages.get(backend, self.name)
        if isinstance(value, str):
            return value.split()
        return list(value)

    def package_id(self, backend: str) -> str:
        """The primary (first) package id for ``backend``."""
        ids = self.package_ids(backend)
        return ids[0] if ids else self.name
