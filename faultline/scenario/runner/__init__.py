from .run_from_json import run_from_json as run_from_json
from .scenario_runner import ScenarioRunner as ScenarioRunner
