import time

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    app_id = action.params["app_id"]
    expected = action.params["status"].lower()

    apps = await runtime.require_admin().list_apps()
    runtime.listings.append(apps)

    installed = {app.installed_app_id: app for app in apps}
    if app_id not in installed:
        raise AssertionError(f"App '{app_id}' is not installed")

    app = installed[app_id]
    actual = app.status
    matched = app.active if expected == "active" else actual == expected
    if not matched:
        raise AssertionError(
            f"Expected app '{app_id}' to be {expected} but it is {actual}"
        )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=f"{app_id}={actual}",
    )
