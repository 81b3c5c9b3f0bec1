"""
Manifest model — the target state of a machine.

A manifest is an ordered list of requirements plus run settings.
Loaded from envboot.yml, or taken from the built-in default.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from envboot.core.models.requirement import Requirement


class Settings(BaseModel):
    """Run-wide knobs."""

    check_network: bool = True
    connectivity_url: str = "https://registry.npmjs.org/"
    connectivity_timeout: int = 5
    shell_config: str | None = None     # override the persisted PATH file
    npm_user_prefix: bool = True        # ~/.npm-global when prefix is under /usr


class Manifest(BaseModel):
    name: str = "default"
    requirements: list[Requirement] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)

    def get(self, name: str) -> Requirement | None:
        """Look up a requirement by name."""
        for req in self.requirements:
            if req.name == name:
                return req
        return None

    @property
    def requirement_names(self) -> list[str]:
        return [r.name for r in self.requirements]
