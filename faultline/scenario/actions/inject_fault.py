import time

from faultline.logging.faultline_logging_models import ScenarioInfo

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    name = action.params["agent"]
    agent = runtime.require_agent(name)
    runtime.denylist.add(agent)

    await runtime.logger.log(
        ScenarioInfo(
            message=f"Sign requests for {name} ({agent}) will now fail",
            scenario=runtime.spec.name,
            step=action.step_name,
        )
    )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"denylisted {name}",
    )
