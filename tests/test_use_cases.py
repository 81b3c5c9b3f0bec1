"""
Tests for use cases — bootstrap, detect, single-tool operations.

Collaborators are injected through a RunEnvironment wired to
MockBackends and a simulated machine.
"""

import pytest
from helpers import req

from envboot.adapters.mock import MockBackend
from envboot.adapters.registry import BackendRegistry
from envboot.core.models.manifest import Manifest, Settings
from envboot.core.models.requirement import Requirement
from envboot.core.observability.output import MemorySink
from envboot.core.use_cases.bootstrap import run_bootstrap
from envboot.core.use_cases.detect import run_detect
from envboot.core.use_cases.environment import RunEnvironment, prepare_environment
from envboot.core.use_cases.tool_ops import (
    diagnose_tool,
    install_tool,
    uninstall_tool,
    update_tool,
)


@pytest.fixture
def backend(machine):
    return MockBackend(backend_name="pm", machine=machine, install_version="20.1.0")


@pytest.fixture
def make_env(linux, machine, probe, backend):
    def build(*requirements, reachable=True, check_network=True):
        registry = BackendRegistry()
        registry.register(backend)
        manifest = Manifest(
            requirements=list(requirements),
            settings=Settings(check_network=check_network),
        )
        return RunEnvironment(
            manifest=manifest,
            platform=linux,
            registry=registry,
            probe=probe,
            connectivity=lambda: {"reachable": reachable, "url": "https://x", "error": "down"},
            mock=True,
            machine=machine,
        )
    return build


# ── Bootstrap ────────────────────────────────────────────────────────


class TestBootstrap:
    def test_full_run(self, make_env, machine):
        env = make_env(req("node", min_version="18"), req("claude", depends_on=["node"]))
        result = run_bootstrap(env=env)
        assert result.success
        assert [r.result for r in result.rows] == ["installed", "installed"]
        assert machine == {"node": "20.1.0", "claude": "20.1.0"}

    def test_dry_run_executes_nothing(self, make_env, backend):
        result = run_bootstrap(dry_run=True, env=make_env(req("node")))
        assert result.success
        assert result.report is None
        assert result.rows == []
        assert backend.call_count == 0
        assert result.plan.actions[0].kind == "install"

    def test_second_run_is_noop(self, make_env, backend):
        env = make_env(req("node"), req("jq"))
        run_bootstrap(env=env)
        calls = backend.call_count
        second = run_bootstrap(env=env)
        assert second.success
        assert backend.call_count == calls
        assert {r.result for r in second.rows} == {"already_satisfied"}

    def test_offline_aborts_before_changes(self, make_env, backend):
        result = run_bootstrap(env=make_env(req("node"), reachable=False))
        assert not result.success
        assert result.report.preflight_error
        assert backend.call_count == 0

    def test_offline_flag_skips_network_check(self, make_env):
        result = run_bootstrap(offline=True, env=make_env(req("node"), reachable=False))
        assert result.success

    def test_settings_disable_network_check(self, make_env):
        env = make_env(req("node"), reachable=False, check_network=False)
        assert run_bootstrap(env=env).success

    def test_cycle_reported(self, make_env):
        env = make_env(req("a", depends_on=["b"]), req("b", depends_on=["a"]))
        result = run_bootstrap(env=env)
        assert not result.success
        assert "cycle" in result.error

    def test_config_error_reported(self, tmp_path):
        result = run_bootstrap(manifest_path=tmp_path / "missing.yml")
        assert not result.success
        assert "not found" in result.error
        assert result.to_dict()["error"] == result.error

    def test_progress_output(self, make_env):
        sink = MemorySink()
        run_bootstrap(env=make_env(req("node")), output=sink)
        steps = sink.of_kind("step")
        assert steps[:2] == ["Detecting environment", "Planning"]
        assert "Verifying" in steps

    def test_to_dict(self, make_env):
        data = run_bootstrap(env=make_env(req("node"))).to_dict()
        assert data["success"] is True
        assert data["summary"][0]["result"] == "installed"
        assert data["report"]["status"] == "ok"


class TestMockEnvironment:
    def test_default_manifest_mock_run(self, linux):
        env = prepare_environment(mock=True, manifest=_default(), platform=linux)
        assert env.path_mutator is None
        result = run_bootstrap(env=env)
        assert result.success
        rows = {r.requirement: r.result for r in result.rows}
        assert rows == {
            "homebrew": "skipped_unsupported",
            "node": "installed",
            "npm": "installed",
            "claude": "installed",
        }

    def test_macos_installs_homebrew_first(self, macos):
        env = prepare_environment(mock=True, manifest=_default(), platform=macos)
        result = run_bootstrap(env=env)
        assert result.success
        assert [a.requirement.name for a in result.plan.actions][0] == "homebrew"
        assert "brew" in env.machine


def _default():
    from envboot.core.data import default_manifest

    return default_manifest()


# ── Detect ───────────────────────────────────────────────────────────


class TestDetect:
    def test_statuses(self, make_env, machine):
        machine["git"] = "2.43.0"
        macos_only = Requirement(name="homebrew", backends={"macos": ["pm"]})
        result = run_detect(env=make_env(req("git"), req("jq"), macos_only))
        assert [s.name for s in result.statuses] == ["git", "jq"]
        assert result.statuses[0].installed_version == "2.43.0"
        assert not result.all_satisfied
        assert result.backends["pm"]["available"] is True
        assert result.network is None

    def test_network(self, make_env):
        result = run_detect(check_network=True, env=make_env(req("git")))
        assert result.network["reachable"] is True

    def test_error(self, tmp_path):
        result = run_detect(manifest_path=tmp_path / "missing.yml")
        assert result.to_dict() == {"error": result.error}


# ── Tool operations ──────────────────────────────────────────────────


class TestInstallTool:
    def test_installs(self, make_env, machine):
        result = install_tool("node", env=make_env(req("node")))
        assert result.ok
        assert result.backend == "pm"
        assert not result.before.installed
        assert result.after.installed_version == "20.1.0"
        assert machine["node"] == "20.1.0"

    def test_already_satisfied_is_ok(self, make_env, machine, backend):
        machine["node"] = "22.0.0"
        result = install_tool("node", env=make_env(req("node")))
        assert result.ok
        assert backend.call_count == 0

    def test_unsupported_is_not_ok(self, make_env):
        macos_only = Requirement(name="homebrew", backends={"macos": ["pm"]})
        result = install_tool("homebrew", env=make_env(macos_only))
        assert not result.ok
        assert result.message == "unsupported platform"

    def test_failure(self, make_env, backend):
        backend.set_failure("node", "E: Unable to locate package nodejs")
        result = install_tool("node", env=make_env(req("node")))
        assert not result.ok
        assert "Unable to locate" in result.message
        assert result.receipt.failed

    def test_unknown_name(self, make_env):
        result = install_tool("ghost", env=make_env(req("node")))
        assert not result.ok
        assert "Unknown requirement 'ghost'" in result.error

    def test_preflight(self, make_env):
        result = install_tool("node", env=make_env(req("node"), reachable=False))
        assert not result.ok
        assert "No network" in result.message


class TestUpdateTool:
    def test_not_installed(self, make_env):
        result = update_tool("node", env=make_env(req("node")))
        assert not result.ok
        assert "not installed" in result.message

    def test_upgrades(self, make_env, machine, backend):
        machine["node"] = "16.0.0"
        result = update_tool("node", env=make_env(req("node")))
        assert result.ok
        assert backend.call_log == [("upgrade", "node")]
        assert result.before.installed_version == "16.0.0"
        assert result.after.installed_version == "20.1.0"

    def test_backend_exception_is_failure(self, make_env, machine, backend):
        machine["node"] = "16.0.0"
        backend.set_exception("node", RuntimeError("segfault"))
        result = update_tool("node", env=make_env(req("node")))
        assert not result.ok
        assert "segfault" in result.message


class TestUninstallTool:
    def test_absent_is_ok(self, make_env, backend):
        result = uninstall_tool("node", env=make_env(req("node")))
        assert result.ok
        assert backend.call_count == 0

    def test_removes(self, make_env, machine):
        machine["node"] = "20.0.0"
        result = uninstall_tool("node", env=make_env(req("node")))
        assert result.ok
        assert "node" not in machine
        assert not result.after.installed


class TestDiagnoseTool:
    def test_missing(self, make_env):
        result = diagnose_tool("node", env=make_env(req("node", homepage="https://nodejs.org")))
        assert not result.ok
        assert result.message == "not installed"
        assert result.details["install_method"] == "none"
        assert result.details["candidates"] == [{"name": "pm", "available": True}]
        assert "pm install node" in result.details["remediation"]

    def test_outdated(self, make_env, machine):
        machine["node"] = "16.0.0"
        result = diagnose_tool("node", env=make_env(req("node", min_version="18")))
        assert not result.ok
        assert "below 18" in result.message
        assert result.details["backend_version"] == "16.0.0"

    def test_ok(self, make_env, machine):
        machine["node"] = "20.0.0"
        result = diagnose_tool("node", env=make_env(req("node")))
        assert result.ok
        assert result.message == "ok"
        assert result.details["on_path"] is True
        # mock commands live outside any known install location
        assert result.details["install_method"] == "unknown"
