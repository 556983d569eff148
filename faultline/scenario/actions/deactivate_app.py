import time

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    app_id = action.params["app_id"]
    await runtime.require_admin().deactivate_app(app_id)
    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"deactivated {app_id}",
    )
