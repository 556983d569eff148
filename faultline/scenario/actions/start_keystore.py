import time

from faultline.process import launch

from ..readiness import wait_for_unix_socket
from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    if runtime.keystore:
        raise RuntimeError("Keystore already started")

    start = time.monotonic()
    layout = runtime.layout
    command = action.params.get("command", runtime.env.FAULTLINE_KEYSTORE_COMMAND)

    runtime.keystore = await launch(
        command,
        ["--lair-dir", str(layout.keystore_directory)],
        layout.log_path_for(command),
        grace_period=runtime.timeouts["terminate_grace_period"],
    )

    await wait_for_unix_socket(
        layout.keystore_socket,
        runtime.timeouts["readiness_timeout"],
        base_delay=runtime.env.FAULTLINE_READINESS_BASE_DELAY,
        watch=runtime.keystore,
    )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"pid={runtime.keystore.pid} socket={layout.keystore_socket}",
    )
