import asyncio
import time

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, runtime.layout.prepare)
    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"scratch={runtime.layout.scratch_root} logs={runtime.layout.log_directory}",
    )
