import asyncio
import time

from faultline.env import TimeParser
from faultline.logging.faultline_logging_models import ScenarioDebug

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    """Pause the scenario, e.g. to let gossip or an app status settle."""
    duration = TimeParser().parse(str(action.params.get("seconds", 0)))

    await runtime.logger.log(
        ScenarioDebug(
            message=f"Waiting {duration:.2f}s",
            scenario=runtime.spec.name,
            step=action.step_name,
        )
    )

    started = time.monotonic()
    await asyncio.sleep(duration)

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - started,
        details=f"slept {duration:.2f}s",
    )
