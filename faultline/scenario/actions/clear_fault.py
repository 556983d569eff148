import time

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    name = action.params.get("agent")

    if name is None:
        runtime.denylist.clear()
        details = "cleared denylist"

    else:
        removed = runtime.denylist.remove(runtime.require_agent(name))
        details = f"removed {name}" if removed else f"{name} was not denylisted"

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=details,
    )
