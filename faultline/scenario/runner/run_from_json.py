import asyncio
from pathlib import Path

from faultline.env import Env
from faultline.scenario.results.scenario_outcome import ScenarioOutcome
from faultline.scenario.runner.scenario_runner import ScenarioRunner
from faultline.scenario.specs.scenario_spec import ScenarioSpec


async def run_from_json(path: str | Path, env: Env) -> ScenarioOutcome:
    loop = asyncio.get_running_loop()
    spec = await loop.run_in_executor(None, ScenarioSpec.from_json, Path(path))
    runner = ScenarioRunner(env)
    return await runner.run(spec)
