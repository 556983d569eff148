"""
Tests for ScenarioRunner sequencing, probes and teardown, using stub
actions in place of real processes.
"""

import asyncio
import time

import pytest

from faultline.env import Env
from faultline.errors import RpcFailure
from faultline.scenario import (
    ActionOutcome,
    ActionSpec,
    ScenarioResult,
    ScenarioRunner,
    ScenarioRuntime,
    ScenarioSpec,
)
from faultline.scenario.actions import ActionRegistry, build_default_registry


def _env() -> Env:
    return Env(FAULTLINE_TEARDOWN_SETTLE_PERIOD="0s")


def _spec(*actions: dict, **extra) -> ScenarioSpec:
    return ScenarioSpec.from_dict({"name": "stubbed", "actions": list(actions), **extra})


async def _ok(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    return ActionOutcome(name=action.step_name, succeeded=True, duration_seconds=0.0)


async def _rejected(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    raise RpcFailure("deactivate_app", "purposeful signing error", error_type="internal_error")


async def _broken(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    raise RuntimeError("keystore exploded")


async def _slow(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    await asyncio.sleep(10)
    return ActionOutcome(name=action.step_name, succeeded=True, duration_seconds=10.0)


def _registry() -> ActionRegistry:
    registry = ActionRegistry()
    registry.register("ok", _ok)
    registry.register("rejected", _rejected)
    registry.register("broken", _broken)
    registry.register("slow", _slow)
    return registry


class _Component:
    def __init__(self, name: str, stopped: list[str], fail: bool = False) -> None:
        self.name = name
        self.stopped = stopped
        self.fail = fail

    async def _stop(self):
        self.stopped.append(self.name)
        if self.fail:
            raise OSError(f"{self.name} would not stop")

    async def close(self):
        await self._stop()

    async def stop(self):
        await self._stop()

    async def terminate(self):
        await self._stop()


class TestScenarioRunnerProbes:
    """Tests for expect_failure probe handling."""

    @pytest.mark.asyncio
    async def test_probe_failure_is_recorded_and_run_continues(self):
        spec = _spec(
            {"type": "ok", "name": "before"},
            {"type": "rejected", "name": "probe", "expect_failure": True},
            {"type": "ok", "name": "after"},
        )

        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert outcome.result == ScenarioResult.PASSED
        assert [action.name for action in outcome.actions] == ["before", "probe", "after"]
        assert outcome.probe_results() == [("probe", False)]

        probe = outcome.get_action("probe")
        assert probe.expected_failure is True
        assert probe.error_type == "internal_error"
        assert "purposeful signing error" in probe.details

    @pytest.mark.asyncio
    async def test_probe_success_is_recorded(self):
        """A probe that succeeds is kept in the results, not hidden."""
        spec = _spec({"type": "ok", "name": "probe", "expect_failure": True})

        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert outcome.result == ScenarioResult.PASSED
        assert outcome.probe_results() == [("probe", True)]

    @pytest.mark.asyncio
    async def test_expected_failure_timeout_is_recorded_and_run_continues(self):
        """A hung step that may fail is recorded as failed, not fatal."""
        spec = _spec(
            {"type": "slow", "name": "hung", "expect_failure": True, "timeout_seconds": 0.1},
            {"type": "ok", "name": "after"},
        )

        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert outcome.result == ScenarioResult.PASSED
        assert [action.name for action in outcome.actions] == ["hung", "after"]
        assert outcome.probe_results() == [("hung", False)]

        hung = outcome.get_action("hung")
        assert hung.expected_failure is True
        assert hung.error_type == "timeout"
        assert "timed out" in hung.details

    @pytest.mark.asyncio
    async def test_probe_does_not_mask_other_errors(self):
        spec = _spec({"type": "broken", "name": "probe", "expect_failure": True})

        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert outcome.result == ScenarioResult.FAILED
        assert "keystore exploded" in outcome.error


class TestScenarioRunnerFailures:
    """Tests for failing actions."""

    @pytest.mark.asyncio
    async def test_rpc_failure_outside_probe_fails_scenario(self):
        spec = _spec(
            {"type": "ok", "name": "first"},
            {"type": "rejected", "name": "deactivate"},
            {"type": "ok", "name": "never"},
        )

        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert outcome.result == ScenarioResult.FAILED
        assert outcome.failed_action == "deactivate"
        assert "RpcFailure" in outcome.error
        assert [action.name for action in outcome.actions] == ["first", "deactivate"]
        assert outcome.get_action("deactivate").succeeded is False
        assert len(outcome.teardown) == 4

    @pytest.mark.asyncio
    async def test_unknown_action_type(self):
        outcome = await ScenarioRunner(_env(), registry=_registry()).run(
            _spec({"type": "restart_universe"})
        )

        assert outcome.result == ScenarioResult.FAILED
        assert "Unknown action type" in outcome.error

    @pytest.mark.asyncio
    async def test_unknown_action_type_fails_before_anything_runs(self):
        ran: list[str] = []

        async def record(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
            ran.append(action.step_name)
            return await _ok(runtime, action)

        registry = _registry()
        registry.register("record", record)

        outcome = await ScenarioRunner(_env(), registry=registry).run(
            _spec({"type": "record"}, {"type": "restart_universe"})
        )

        assert outcome.result == ScenarioResult.FAILED
        assert ran == []
        assert outcome.actions == []

    @pytest.mark.asyncio
    async def test_action_timeout(self):
        spec = _spec({"type": "slow", "timeout_seconds": 0.1})

        started = time.monotonic()
        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert time.monotonic() - started < 5
        assert outcome.result == ScenarioResult.FAILED
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_default_timeout_per_action_type(self):
        spec = _spec({"type": "slow"}, timeouts={"slow": 0.1})

        outcome = await ScenarioRunner(_env(), registry=_registry()).run(spec)

        assert outcome.result == ScenarioResult.FAILED
        assert "timed out" in outcome.error


class TestScenarioRuntimeTeardown:
    """Tests for teardown ordering and failure isolation."""

    @pytest.mark.asyncio
    async def test_teardown_order(self):
        stopped: list[str] = []

        async def start_everything(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
            runtime.keystore = _Component("keystore", stopped)
            runtime.proxy = _Component("proxy", stopped)
            runtime.conductor = _Component("conductor", stopped)
            runtime.admin = _Component("admin", stopped)
            return await _ok(runtime, action)

        registry = _registry()
        registry.register("start_everything", start_everything)

        outcome = await ScenarioRunner(_env(), registry=registry).run(
            _spec({"type": "start_everything"}, {"type": "broken"})
        )

        assert outcome.result == ScenarioResult.FAILED
        assert stopped == ["admin", "proxy", "conductor", "keystore"]
        assert outcome.teardown_clean

    @pytest.mark.asyncio
    async def test_teardown_continues_after_failure(self):
        """A component that fails to stop does not stop the rest."""
        stopped: list[str] = []

        async def start_everything(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
            runtime.keystore = _Component("keystore", stopped)
            runtime.proxy = _Component("proxy", stopped, fail=True)
            runtime.conductor = _Component("conductor", stopped)
            runtime.admin = _Component("admin", stopped)
            return await _ok(runtime, action)

        registry = _registry()
        registry.register("start_everything", start_everything)

        outcome = await ScenarioRunner(_env(), registry=registry).run(
            _spec({"type": "start_everything"})
        )

        assert outcome.result == ScenarioResult.PASSED
        assert stopped == ["admin", "proxy", "conductor", "keystore"]
        assert outcome.teardown_clean is False

        failed = [step for step in outcome.teardown if not step.succeeded]
        assert [step.name for step in failed] == ["stop signing proxy"]
        assert "proxy would not stop" in failed[0].details

    @pytest.mark.asyncio
    async def test_teardown_with_nothing_started(self):
        runtime = ScenarioRuntime.create(_spec({"type": "ok"}), _env())

        steps = await runtime.teardown()

        assert [step.name for step in steps] == [
            "stop admin session",
            "stop signing proxy",
            "stop conductor",
            "stop keystore",
        ]
        assert all(step.succeeded for step in steps)


class TestDefaultRegistry:
    """Tests for the built-in action registry."""

    def test_every_builtin_action_is_registered(self):
        registry = build_default_registry()

        for action_type in [
            "prepare_workspace",
            "start_keystore",
            "start_proxy",
            "start_conductor",
            "generate_agents",
            "install_app",
            "activate_app",
            "deactivate_app",
            "inject_fault",
            "clear_fault",
            "list_apps",
            "assert_app_status",
            "sleep",
        ]:
            assert action_type in registry

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            build_default_registry().get("reboot")
