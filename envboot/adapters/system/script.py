"""
Install-script backend — vendor ``curl | bash`` installers.

Some tools ship their own installer script instead of a package
(Homebrew itself is the canonical example). The requirement's
``packages["script"]`` entry holds the script URL.
"""

from __future__ import annotations

import re
import shlex

from envboot.adapters.base import Backend, Which
from envboot.adapters.shell.command import Runner
from envboot.core.models.action import Receipt
from envboot.core.models.requirement import Requirement

_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+)+)")


class InstallScriptBackend(Backend):
    """Download and run an installer script non-interactively."""

    def __init__(
        self,
        runner: Runner | None = None,
        which: Which | None = None,
        env: dict[str, str] | None = None,
    ):
        super().__init__(runner=runner, which=which)
        self._env = env if env is not None else {"NONINTERACTIVE": "1"}

    @property
    def name(self) -> str:
        return "script"

    def is_available(self) -> bool:
        has_fetcher = self._which("curl") is not None or self._which("wget") is not None
        return has_fetcher and self._which("bash") is not None

    def _script_url(self, requirement: Requirement) -> str | None:
        value = requirement.packages.get(self.name)
        if isinstance(value, list):
            return value[0] if value else None
        return value or None

    def _command(self, url: str) -> str:
        quoted = shlex.quote(url)
        if self._which("curl") is not None:
            fetch = f"curl -fsSL {quoted}"
        else:
            fetch = f"wget -qO- {quoted}"
        return f'/bin/bash -c "$({fetch})"'

    def install(self, requirement: Requirement) -> Receipt:
        url = self._script_url(requirement)
        if not url:
            return Receipt.failure(
                backend=self.name,
                target=requirement.name,
                error=f"No install script URL configured for '{requirement.name}'",
            )
        failed = self._pre_install(requirement)
        if failed is not None:
            return failed
        result = self._run(self._command(url), shell=True, env_overrides=self._env)
        return self._receipt(requirement, result, "install")

    def upgrade(self, requirement: Requirement) -> Receipt:
        # Vendor installers are re-runnable and fetch the latest release.
        return self.install(requirement)

    def current_version(self, requirement: Requirement) -> str | None:
        command = requirement.effective_command
        if self._which(command) is None:
            return None
        result = self._run([command, *requirement.version_args], timeout=30)
        if not result.ok:
            return None
        match = _VERSION_RE.search(result.stdout + result.stderr)
        return match.group(1) if match else None

    def manual_command(self, requirement: Requirement) -> str:
        url = self._script_url(requirement)
        if not url:
            return ""
        return f'/bin/bash -c "$(curl -fsSL {shlex.quote(url)})"'
