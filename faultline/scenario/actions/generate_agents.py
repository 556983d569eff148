import time

from faultline.logging.faultline_logging_models import ScenarioInfo

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec


async def run(runtime: ScenarioRuntime, action: ActionSpec) -> ActionOutcome:
    start = time.monotonic()
    admin = runtime.require_admin()

    names = action.params.get("names")
    if not names:
        raise ValueError("generate_agents requires a non-empty 'names' list")

    for name in names:
        agent = await admin.generate_agent_pub_key()
        runtime.agents[name] = agent

        await runtime.logger.log(
            ScenarioInfo(
                message=f"Generated {name} - {agent}",
                scenario=runtime.spec.name,
                step=action.step_name,
            )
        )

    return ActionOutcome(
        name=action.step_name,
        succeeded=True,
        duration_seconds=time.monotonic() - start,
        details=", ".join(f"{name}={runtime.agents[name]}" for name in names),
    )
