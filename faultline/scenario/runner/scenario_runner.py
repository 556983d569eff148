import asyncio
import time

from faultline.env import Env
from faultline.errors import RpcFailure
from faultline.logging import LoggingConfig
from faultline.logging.faultline_logging_models import (
    ScenarioDebug,
    ScenarioError,
    ScenarioInfo,
    ScenarioWarning,
)

from faultline.scenario.actions.action_registry import ActionRegistry
from faultline.scenario.actions.default_registry import build_default_registry
from faultline.scenario.results.action_outcome import ActionOutcome
from faultline.scenario.results.scenario_outcome import ScenarioOutcome
from faultline.scenario.results.scenario_result import ScenarioResult
from faultline.scenario.runtime.scenario_runtime import ScenarioRuntime
from faultline.scenario.specs.action_spec import ActionSpec
from faultline.scenario.specs.scenario_spec import ScenarioSpec


def _failed(action: ActionSpec, started: float, error: BaseException) -> ActionOutcome:
    return ActionOutcome(
        name=action.step_name,
        succeeded=False,
        duration_seconds=time.monotonic() - started,
        details=str(error),
        error_type=type(error).__name__,
    )


class ScenarioRunner:
    """
    Runs a scenario's actions in order against one runtime.

    The first failing action stops the sequence and fails the scenario,
    except for probe actions (``expect_failure``) whose RPC failures are
    recorded and passed over. Teardown always runs.
    """

    def __init__(
        self,
        env: Env,
        registry: ActionRegistry | None = None,
    ) -> None:
        self._env = env
        self._registry = registry or build_default_registry()

    async def run(self, spec: ScenarioSpec) -> ScenarioOutcome:
        if spec.logging:
            LoggingConfig().update(**spec.logging)

        runtime = ScenarioRuntime.create(spec, self._env)
        outcome = ScenarioOutcome(
            name=spec.name,
            result=ScenarioResult.PASSED,
            duration_seconds=0.0,
            runtime=runtime,
        )

        started = time.monotonic()

        try:
            self._registry.check(spec.actions)

            for index, action in enumerate(spec.actions, start=1):
                outcome.failed_action = action.step_name
                await self._run_action(runtime, outcome, action, index)
                outcome.failed_action = None

                self._check_deadline(spec, started)

        except Exception as error:
            outcome.result = ScenarioResult.FAILED
            outcome.error = f"{type(error).__name__}: {error}"

            await runtime.logger.log(
                ScenarioError(
                    message=f"Scenario failed - {outcome.error}",
                    scenario=spec.name,
                    step=outcome.failed_action or "scenario",
                )
            )

        finally:
            await runtime.settle()
            outcome.teardown = await runtime.teardown()
            outcome.duration_seconds = time.monotonic() - started

            await self._log_summary(outcome)

        return outcome

    def _timeout_for(self, spec: ScenarioSpec, action: ActionSpec) -> float | None:
        for timeout in (
            action.timeout_seconds,
            spec.timeouts.get(action.action_type),
            spec.default_action_timeout_seconds,
        ):
            if timeout is not None:
                return timeout or None

        return None

    def _check_deadline(self, spec: ScenarioSpec, started: float):
        limit = spec.scenario_timeout_seconds
        if limit is None:
            return

        elapsed = time.monotonic() - started
        if elapsed > limit:
            raise AssertionError(
                f"Scenario '{spec.name}' exceeded its {limit:.2f}s limit after {elapsed:.2f}s"
            )

    async def _run_action(
        self,
        runtime: ScenarioRuntime,
        outcome: ScenarioOutcome,
        action: ActionSpec,
        index: int,
    ):
        spec = runtime.spec
        handler = self._registry.get(action.action_type)
        timeout = self._timeout_for(spec, action)

        await runtime.logger.log(
            ScenarioDebug(
                message=f"Running action {index} ({action.action_type}, timeout={timeout})",
                scenario=spec.name,
                step=action.step_name,
            )
        )

        started = time.monotonic()

        try:
            result = await asyncio.wait_for(
                handler(runtime, action),
                timeout=timeout,
            )

        except asyncio.TimeoutError as error:
            elapsed = time.monotonic() - started

            if action.expect_failure:
                await self._record_expected_failure(
                    runtime,
                    outcome,
                    action,
                    started,
                    f"timed out after {elapsed:.2f}s",
                    "timeout",
                )
                return

            timed_out = AssertionError(
                f"Action '{action.step_name}' timed out after {elapsed:.2f}s "
                f"(index {index}, params={action.params})"
            )
            outcome.actions.append(_failed(action, started, timed_out))

            raise timed_out from error

        except RpcFailure as error:
            if not action.expect_failure:
                outcome.actions.append(_failed(action, started, error))
                raise

            await self._record_expected_failure(
                runtime,
                outcome,
                action,
                started,
                str(error),
                error.error_type,
            )
            return

        except Exception as error:
            outcome.actions.append(_failed(action, started, error))
            raise

        if action.expect_failure:
            result.expected_failure = True

            await runtime.logger.log(
                ScenarioWarning(
                    message="Probe succeeded although it was expected to fail",
                    scenario=spec.name,
                    step=action.step_name,
                )
            )

        outcome.actions.append(result)

    async def _record_expected_failure(
        self,
        runtime: ScenarioRuntime,
        outcome: ScenarioOutcome,
        action: ActionSpec,
        started: float,
        details: str,
        error_type: str,
    ):
        outcome.actions.append(
            ActionOutcome(
                name=action.step_name,
                succeeded=False,
                duration_seconds=time.monotonic() - started,
                details=details,
                expected_failure=True,
                error_type=error_type,
            )
        )

        await runtime.logger.log(
            ScenarioInfo(
                message=f"Failed as expected - {details}",
                scenario=runtime.spec.name,
                step=action.step_name,
            )
        )

    async def _log_summary(self, outcome: ScenarioOutcome):
        logger = outcome.runtime.logger

        for action in [*outcome.actions, *outcome.teardown]:
            status = "ok" if action.succeeded else "failed"
            if action.expected_failure:
                status = f"probe {status}"

            await logger.log(
                ScenarioInfo(
                    message=f"{status} ({action.duration_seconds:.2f}s) - {action.details or ''}",
                    scenario=outcome.name,
                    step=action.name,
                )
            )

        await logger.log(
            ScenarioInfo(
                message=f"Scenario {outcome.result.value} in {outcome.duration_seconds:.2f}s",
                scenario=outcome.name,
                step="summary",
            )
        )
