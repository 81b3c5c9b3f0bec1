"""
Tests for the engine — ordering, planner, executor, summary.
"""

import pytest
from helpers import req, which_from

from envboot.adapters.mock import MockBackend
from envboot.core.engine.executor import PreflightError, execute, preflight
from envboot.core.engine.ordering import (
    DependencyCycleError,
    dependency_order,
    dependents_of,
    validate_dependencies,
)
from envboot.core.engine.planner import plan
from envboot.core.engine.summary import summarize
from envboot.core.models.action import InstallAction, SkipAction, SkipReason, UpgradeAction
from envboot.core.models.requirement import Requirement
from envboot.core.observability.output import MemorySink

ONLINE = lambda: {"reachable": True, "url": "https://registry.npmjs.org/"}  # noqa: E731
OFFLINE = lambda: {"reachable": False, "url": "https://registry.npmjs.org/", "error": "timeout"}  # noqa: E731


def names(requirements):
    return [r.name for r in requirements]


# ── Ordering ─────────────────────────────────────────────────────────


class TestDependencyOrder:
    def test_declaration_order_kept(self):
        reqs = [req("a"), req("b"), req("c")]
        assert names(dependency_order(reqs)) == ["a", "b", "c"]

    def test_dependency_hoisted(self):
        reqs = [req("claude", depends_on=["node"]), req("git"), req("node")]
        assert names(dependency_order(reqs)) == ["git", "node", "claude"]

    def test_chain(self):
        reqs = [req("c", depends_on=["b"]), req("b", depends_on=["a"]), req("a")]
        assert names(dependency_order(reqs)) == ["a", "b", "c"]

    def test_external_dependency_ignored(self):
        assert names(dependency_order([req("npm", depends_on=["node"])])) == ["npm"]

    def test_cycle(self):
        reqs = [req("a", depends_on=["b"]), req("b", depends_on=["a"])]
        with pytest.raises(DependencyCycleError):
            dependency_order(reqs)

    def test_validate(self):
        assert validate_dependencies([req("a"), req("b", depends_on=["a"])]) == []
        errors = validate_dependencies([req("a", depends_on=["ghost"]), req("a")])
        assert any("Duplicate" in e for e in errors)
        assert any("ghost" in e for e in errors)
        cyc = validate_dependencies([req("a", depends_on=["b"]), req("b", depends_on=["a"])])
        assert any("cycle" in e for e in cyc)

    def test_dependents_of(self):
        reqs = [req("node"), req("npm", depends_on=["node"]), req("claude", depends_on=["npm"])]
        assert dependents_of("node", reqs) == {"npm", "claude"}


# ── Planner ──────────────────────────────────────────────────────────


class TestPlanner:
    def test_missing_becomes_install(self, linux, make_registry, probe):
        result = plan([req("node")], linux, make_registry("pm"), probe)
        action = result.actions[0]
        assert isinstance(action, InstallAction)
        assert action.backend == "pm"

    def test_satisfied_is_skipped(self, linux, make_registry, probe, machine):
        machine["node"] = "20.11.0"
        result = plan([req("node", min_version="18")], linux, make_registry("pm"), probe)
        action = result.actions[0]
        assert isinstance(action, SkipAction)
        assert action.reason == SkipReason.ALREADY_SATISFIED
        assert action.installed_version == "20.11.0"

    def test_equal_version_satisfies(self, linux, make_registry, probe, machine):
        machine["node"] = "18.0.0"
        result = plan([req("node", min_version="18")], linux, make_registry("pm"), probe)
        assert result.actions[0].reason == SkipReason.ALREADY_SATISFIED

    def test_outdated_becomes_upgrade(self, linux, make_registry, probe, machine):
        machine["node"] = "16.20.2"
        result = plan([req("node", min_version="18")], linux, make_registry("pm"), probe)
        action = result.actions[0]
        assert isinstance(action, UpgradeAction)
        assert action.from_version == "16.20.2"
        assert action.to_version == "18"

    def test_unparsable_version_without_minimum(self, linux, make_registry, probe, machine):
        machine["tool"] = "weird-build"
        result = plan([req("tool")], linux, make_registry("pm"), probe)
        assert result.actions[0].reason == SkipReason.ALREADY_SATISFIED

    def test_unsupported_platform(self, linux, make_registry, probe):
        homebrew = Requirement(name="homebrew", command="brew", backends={"macos": ["script"]})
        result = plan([homebrew], linux, make_registry("script"), probe)
        assert result.actions[0].reason == SkipReason.UNSUPPORTED_PLATFORM
        # Probe is not consulted for unsupported requirements
        assert "homebrew" not in result.statuses

    def test_no_backend_available(self, linux, probe):
        from envboot.adapters.registry import BackendRegistry

        registry = BackendRegistry()
        registry.register(MockBackend(backend_name="pm", available=False))
        result = plan([req("node")], linux, registry, probe)
        assert result.actions[0].reason == SkipReason.NO_BACKEND

    def test_first_available_candidate_wins(self, linux, make_registry, probe):
        registry = make_registry("second", extra=[MockBackend(backend_name="first", available=False)])
        node = req("node", backends={"linux": ["first", "second"]})
        assert plan([node], linux, registry, probe).actions[0].backend == "second"

    def test_backend_enabled_by_earlier_install(self, linux, make_registry, probe):
        npm = MockBackend(backend_name="npm", available=False, requires_command="npm")
        registry = make_registry("pm", extra=[npm])
        reqs = [
            req("claude", backends={"linux": ["npm"]}, depends_on=["npm"]),
            req("npm"),
        ]
        result = plan(reqs, linux, registry, probe)
        assert [a.requirement.name for a in result.actions] == ["npm", "claude"]
        assert isinstance(result.actions[1], InstallAction)
        assert result.actions[1].backend == "npm"

    def test_unavailable_backend_not_enabled_without_planned_install(self, linux, make_registry, probe):
        npm = MockBackend(backend_name="npm", available=False, requires_command="npm")
        registry = make_registry(extra=[npm])
        result = plan([req("claude", backends={"linux": ["npm"]})], linux, registry, probe)
        assert result.actions[0].reason == SkipReason.NO_BACKEND

    def test_plan_order_follows_dependencies(self, linux, make_registry, probe):
        reqs = [req("claude", depends_on=["node"]), req("node")]
        result = plan(reqs, linux, make_registry("pm"), probe)
        assert [a.requirement.name for a in result.actions] == ["node", "claude"]

    def test_plan_does_not_execute(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine)
        registry = BackendRegistry()
        registry.register(backend)
        plan([req("node")], linux, registry, probe)
        assert backend.call_count == 0

    def test_to_dict(self, linux, make_registry, probe):
        data = plan([req("node")], linux, make_registry("pm"), probe).to_dict()
        assert data["platform"]["os"] == "linux"
        assert data["actions"][0] == {"kind": "install", "requirement": "node", "backend": "pm"}


# ── Pre-flight ───────────────────────────────────────────────────────


class TestPreflight:
    def test_no_backend_for_anything(self, linux, probe):
        from envboot.adapters.registry import BackendRegistry

        registry = BackendRegistry()
        registry.register(MockBackend(backend_name="pm", available=False))
        result = plan([req("node")], linux, registry, probe)
        with pytest.raises(PreflightError, match="No backend"):
            preflight(result, connectivity=ONLINE)

    def test_no_network(self, linux, make_registry, probe):
        result = plan([req("node")], linux, make_registry("pm"), probe)
        with pytest.raises(PreflightError, match="No network"):
            preflight(result, connectivity=OFFLINE)

    def test_network_not_checked_when_disabled(self, linux, make_registry, probe):
        result = plan([req("node")], linux, make_registry("pm"), probe)
        preflight(result, check_network=False, connectivity=OFFLINE)

    def test_nothing_to_do_needs_no_network(self, linux, make_registry, probe, machine):
        machine["node"] = "20.0.0"
        result = plan([req("node")], linux, make_registry("pm"), probe)
        preflight(result, connectivity=OFFLINE)

    def test_unsupported_only_is_not_pending(self, linux, make_registry, probe):
        homebrew = Requirement(name="homebrew", backends={"macos": ["script"]})
        result = plan([homebrew], linux, make_registry("script"), probe)
        preflight(result, connectivity=OFFLINE)


# ── Executor ─────────────────────────────────────────────────────────


class TestExecutor:
    def _run(self, reqs, platform, registry, probe, **kwargs):
        result = plan(reqs, platform, registry, probe)
        kwargs.setdefault("connectivity", ONLINE)
        report = execute(result, registry, probe=probe, **kwargs)
        return result, report

    def test_installs_and_verifies(self, linux, make_registry, probe, machine):
        _, report = self._run([req("node")], linux, make_registry("pm"), probe)
        assert report.success
        assert report.succeeded == 1
        assert machine["node"] == "1.0.0"
        assert report.verification[0].state == "satisfied"

    def test_preflight_abort_runs_nothing(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine)
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run([req("node")], linux, registry, probe, connectivity=OFFLINE)
        assert not report.success
        assert report.status == "aborted"
        assert "No network" in report.preflight_error
        assert backend.call_count == 0
        assert report.outcomes == []

    def test_failure_does_not_block_independent(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine)
        backend.set_failure("a", "E: broken package")
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run([req("a"), req("b")], linux, registry, probe)
        assert report.outcome_for("a").status == "failed"
        assert "broken package" in report.outcome_for("a").message
        assert report.outcome_for("b").status == "succeeded"
        assert not report.success
        assert report.status == "partial"
        assert ("install", "b") in backend.call_log

    def test_dependent_of_failure_not_attempted(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine)
        backend.set_failure("node")
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run(
            [req("node"), req("claude", depends_on=["node"]), req("git")],
            linux, registry, probe,
        )
        claude = report.outcome_for("claude")
        assert claude.status == "failed"
        assert "dependency node failed" in claude.message
        assert ("install", "claude") not in backend.call_log
        assert report.outcome_for("git").status == "succeeded"

    def test_failure_blocks_transitive_dependents(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine)
        backend.set_failure("node")
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run(
            [req("node"), req("npm", depends_on=["node"]), req("claude", depends_on=["npm"])],
            linux, registry, probe,
        )
        assert report.outcome_for("npm").status == "failed"
        claude = report.outcome_for("claude")
        assert claude.status == "failed"
        assert "dependency node failed" in claude.message
        assert ("install", "npm") not in backend.call_log
        assert ("install", "claude") not in backend.call_log

    def test_backend_exception_becomes_failure(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine)
        backend.set_exception("a", RuntimeError("kaboom"))
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run([req("a"), req("b")], linux, registry, probe)
        assert report.outcome_for("a").status == "failed"
        assert "kaboom" in report.outcome_for("a").message
        assert report.outcome_for("b").status == "succeeded"

    def test_backend_unavailable_at_runtime(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        npm = MockBackend(backend_name="npm", available=False, requires_command="npm", machine=machine)
        pm = MockBackend(backend_name="pm", machine=machine)
        registry = BackendRegistry()
        registry.register(pm)
        registry.register(npm)
        # npm gets installed but the npm backend never comes alive
        _, report = self._run(
            [req("npm"), req("claude", backends={"linux": ["npm"]})],
            linux, registry, probe,
        )
        claude = report.outcome_for("claude")
        assert claude.status == "failed"
        assert "not available" in claude.message

    def test_upgrade_called_for_outdated(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        machine["node"] = "16.0.0"
        backend = MockBackend(backend_name="pm", machine=machine, install_version="20.11.0")
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run([req("node", min_version="18")], linux, registry, probe)
        assert backend.call_log == [("upgrade", "node")]
        assert report.verification[0].state == "satisfied"

    def test_verification_outdated(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine, install_version="16.0.0")
        registry = BackendRegistry()
        registry.register(backend)
        _, report = self._run([req("node", min_version="18")], linux, registry, probe)
        assert report.success
        assert report.verification[0].state == "outdated"

    def test_verification_not_visible(self, linux, make_registry):
        from envboot.adapters.registry import BackendRegistry
        from envboot.core.models.status import ToolStatus

        backend_machine: dict[str, str] = {}
        backend = MockBackend(backend_name="pm", machine=backend_machine)
        registry = BackendRegistry()
        registry.register(backend)

        def never_on_path(requirement):
            return ToolStatus(requirement=requirement)

        result = plan([req("claude")], linux, registry, never_on_path)
        report = execute(result, registry, probe=never_on_path, connectivity=ONLINE)
        assert report.verification[0].state == "not_visible"
        assert report.verification[0].backend_version == "1.0.0"

    def test_unsupported_not_verified(self, linux, make_registry, probe):
        homebrew = Requirement(name="homebrew", backends={"macos": ["script"]})
        _, report = self._run([homebrew, req("node")], linux, make_registry("pm"), probe)
        assert report.success
        assert report.outcome_for("homebrew").status == "skipped"
        assert report.verification_for("homebrew") is None

    def test_output_messages(self, linux, make_registry, probe):
        sink = MemorySink()
        result = plan([req("node")], linux, make_registry("pm"), probe)
        execute(result, make_registry("pm"), probe=probe, connectivity=ONLINE, output=sink)
        assert "Pre-flight checks" in sink.of_kind("step")
        assert any("node installed" in m for m in sink.of_kind("success"))

    def test_report_to_dict(self, linux, make_registry, probe):
        _, report = self._run([req("node")], linux, make_registry("pm"), probe)
        data = report.to_dict()
        assert data["success"] is True
        assert data["outcomes"][0]["receipt"]["status"] == "ok"
        assert data["verification"][0]["state"] == "satisfied"


class TestPathFixup:
    def test_bin_dir_put_on_path(self, linux, machine, probe, tmp_path):
        from envboot.adapters.registry import BackendRegistry
        from envboot.core.services.path_mutator import PathMutator

        backend = MockBackend(backend_name="pm", machine=machine, bin_dir="/opt/tools/bin")
        registry = BackendRegistry()
        registry.register(backend)
        env = {"PATH": "/usr/bin"}
        mutator = PathMutator(linux.shell, home=tmp_path, environ=env, pathsep=":")

        result = plan([req("claude", ensure_path=True)], linux, registry, probe)
        report = execute(
            result, registry, probe=probe, path_mutator=mutator,
            connectivity=ONLINE, which=which_from(),
        )
        update = report.outcome_for("claude").path_update
        assert update is not None and update.config_updated
        assert env["PATH"].startswith("/opt/tools/bin:")
        assert "/opt/tools/bin" in (tmp_path / ".bash_profile").read_text()

    def test_fallback_bin_dirs(self, linux, machine, probe, tmp_path):
        from envboot.adapters.registry import BackendRegistry
        from envboot.core.services.path_mutator import PathMutator

        bindir = tmp_path / "brew" / "bin"
        bindir.mkdir(parents=True)
        (bindir / "brew").write_text("")
        registry = BackendRegistry()
        registry.register(MockBackend(backend_name="pm", machine=machine))
        env = {"PATH": "/usr/bin"}
        mutator = PathMutator(linux.shell, home=tmp_path, environ=env, pathsep=":")

        homebrew = req(
            "homebrew", command="brew", ensure_path=True,
            bin_dirs=[str(tmp_path / "missing"), str(bindir)],
        )
        result = plan([homebrew], linux, registry, probe)
        report = execute(
            result, registry, probe=probe, path_mutator=mutator,
            connectivity=ONLINE, which=which_from(),
        )
        assert report.outcome_for("homebrew").path_update.directory == str(bindir)

    def test_skipped_when_already_on_path(self, linux, machine, probe, tmp_path):
        from envboot.adapters.registry import BackendRegistry
        from envboot.core.services.path_mutator import PathMutator

        registry = BackendRegistry()
        registry.register(MockBackend(backend_name="pm", machine=machine, bin_dir="/x/bin"))
        mutator = PathMutator(linux.shell, home=tmp_path, environ={"PATH": ""}, pathsep=":")
        result = plan([req("claude", ensure_path=True)], linux, registry, probe)
        report = execute(
            result, registry, probe=probe, path_mutator=mutator,
            connectivity=ONLINE, which=which_from("claude"),
        )
        assert report.outcome_for("claude").path_update is None


# ── Idempotence ──────────────────────────────────────────────────────


class TestIdempotence:
    def test_second_run_changes_nothing(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        backend = MockBackend(backend_name="pm", machine=machine, install_version="20.0.0")
        registry = BackendRegistry()
        registry.register(backend)
        reqs = [req("node", min_version="18"), req("claude", depends_on=["node"])]

        first = execute(plan(reqs, linux, registry, probe), registry, probe=probe, connectivity=ONLINE)
        assert first.success
        calls_after_first = backend.call_count

        second_plan = plan(reqs, linux, registry, probe)
        assert all(
            isinstance(a, SkipAction) and a.reason == SkipReason.ALREADY_SATISFIED
            for a in second_plan.actions
        )
        second = execute(second_plan, registry, probe=probe, connectivity=OFFLINE)
        assert second.success
        assert backend.call_count == calls_after_first


# ── Summary ──────────────────────────────────────────────────────────


class TestSummary:
    def test_rows(self, linux, machine, probe):
        from envboot.adapters.registry import BackendRegistry

        machine["git"] = "2.43.0"
        machine["node"] = "16.0.0"
        backend = MockBackend(backend_name="pm", machine=machine, install_version="20.0.0")
        backend.set_failure("claude", "npm ERR! code EACCES")
        registry = BackendRegistry()
        registry.register(backend)

        reqs = [
            Requirement(name="homebrew", backends={"macos": ["script"]}),
            req("git"),
            req("node", min_version="18", homepage="https://nodejs.org"),
            req("jq"),
            req("claude", homepage="https://example.invalid/claude"),
        ]
        result = plan(reqs, linux, registry, probe)
        report = execute(result, registry, probe=probe, connectivity=ONLINE)
        rows = {r.requirement: r for r in summarize(result, report, registry)}

        assert rows["homebrew"].result == "skipped_unsupported"
        assert rows["git"].result == "already_satisfied"
        assert rows["git"].version == "2.43.0"
        assert rows["node"].result == "upgraded"
        assert rows["node"].version == "20.0.0"
        assert rows["jq"].result == "installed"
        assert rows["claude"].result == "failed"
        assert "EACCES" in rows["claude"].message
        assert "pm install claude" in rows["claude"].remediation
        assert "https://example.invalid/claude" in rows["claude"].remediation

    def test_not_on_path_row(self, linux):
        from envboot.adapters.registry import BackendRegistry
        from envboot.core.models.status import ToolStatus

        registry = BackendRegistry()
        registry.register(MockBackend(backend_name="pm", machine={}))

        def never_on_path(requirement):
            return ToolStatus(requirement=requirement)

        result = plan([req("claude")], linux, registry, never_on_path)
        report = execute(result, registry, probe=never_on_path, connectivity=ONLINE)
        row = summarize(result, report, registry)[0]
        assert row.result == "installed_not_on_path"
        assert row.remediation

    def test_preflight_rows(self, linux, make_registry, probe):
        registry = make_registry("pm")
        result = plan([req("node")], linux, registry, probe)
        report = execute(result, registry, probe=probe, connectivity=OFFLINE)
        row = summarize(result, report, registry)[0]
        assert row.result == "failed"
        assert "No network" in row.message
