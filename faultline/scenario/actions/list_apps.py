import time

from faultline.logging.faultline_logging_models import ScenarioInfo

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    apps = await runtime.require_admin().list_apps(
        status_filter=action.params.get("status_filter"),
    )
    runtime.listings.append(apps)

    listing = ", ".join(f"{app.installed_app_id}={app.status}" for app in apps)

    await runtime.logger.log(
        ScenarioInfo(
            message=f"Installed apps - {listing or 'none'}",
            scenario=runtime.spec.name,
            step=action.step_name,
        )
    )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=listing,
    )
