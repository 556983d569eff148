import time

from faultline.process import launch

from ..readiness import connect_when_ready
from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    if runtime.conductor:
        raise RuntimeError("Conductor already started")

    start = time.monotonic()
    env = runtime.env
    command = action.params.get("command", env.FAULTLINE_CONDUCTOR_COMMAND)
    config_path = action.params.get("config_path", env.FAULTLINE_CONDUCTOR_CONFIG_PATH)

    runtime.conductor = await launch(
        command,
        ["--config-path", config_path],
        runtime.layout.log_path_for(command),
        grace_period=runtime.timeouts["terminate_grace_period"],
    )

    runtime.admin = await connect_when_ready(
        env.FAULTLINE_CONDUCTOR_ADMIN_URL,
        runtime.timeouts["readiness_timeout"],
        base_delay=env.FAULTLINE_READINESS_BASE_DELAY,
        request_timeout=runtime.timeouts["rpc_timeout"],
        watch=runtime.conductor,
    )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"pid={runtime.conductor.pid} admin={env.FAULTLINE_CONDUCTOR_ADMIN_URL}",
    )
