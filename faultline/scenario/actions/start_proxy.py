import time

from faultline.keystore import KeystoreWire
from faultline.proxy import DenylistReject, start_signing_proxy

from ..readiness import wait_for_unix_socket
from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    if runtime.proxy:
        raise RuntimeError("Signing proxy already started")

    start = time.monotonic()
    layout = runtime.layout
    layout.prepare_proxy_directory()

    reason = action.params.get("reason", runtime.env.FAULTLINE_SIGNING_REJECT_REASON)

    runtime.proxy = await start_signing_proxy(
        str(layout.keystore_socket),
        str(layout.proxy_socket),
        decision=DenylistReject(runtime.denylist, reason=reason),
        wire=KeystoreWire(**runtime.env.get_keystore_wire_config()),
    )

    await wait_for_unix_socket(
        layout.proxy_socket,
        runtime.timeouts["readiness_timeout"],
        base_delay=runtime.env.FAULTLINE_READINESS_BASE_DELAY,
    )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"{layout.proxy_socket} -> {layout.keystore_socket}",
    )
