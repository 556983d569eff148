import base64
import time

from faultline.conductor import InstallAppBundleRequest

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


def _decode_membrane_proofs(proofs: dict[str, str]) -> dict[str, bytes]:
    return {
        role: base64.b64decode(proof)
        for role, proof in proofs.items()
    }


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    admin = runtime.require_admin()

    app_id = action.params["app_id"]
    agent = runtime.require_agent(action.params["agent"])
    bundle_path = action.params.get("bundle_path", runtime.env.FAULTLINE_APP_BUNDLE_PATH)

    await admin.install_app_bundle(
        InstallAppBundleRequest(
            installed_app_id=app_id,
            agent_key=agent.raw,
            path=bundle_path,
            membrane_proofs=_decode_membrane_proofs(
                action.params.get("membrane_proofs", {})
            ),
            uid=action.params.get("uid"),
        )
    )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"{app_id} for {action.params['agent']} from {bundle_path}",
    )
