from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from faultline.scenario.results.action_outcome import ActionOutcome
from faultline.scenario.results.scenario_result import ScenarioResult

if TYPE_CHECKING:
    from faultline.scenario.runtime.scenario_runtime import ScenarioRuntime


@dataclass(slots=True)
class ScenarioOutcome:
    name: str
    result: ScenarioResult
    duration_seconds: float
    actions: list[ActionOutcome] = field(default_factory=list)
    teardown: list[ActionOutcome] = field(default_factory=list)
    error: str | None = None
    failed_action: str | None = None
    runtime: "ScenarioRuntime | None" = None

    def probe_results(self) -> list[tuple[str, bool]]:
        return [
            (action.name, action.succeeded)
            for action in self.actions
            if action.expected_failure
        ]

    def get_action(self, name: str) -> ActionOutcome:
        for action in self.actions:
            if action.name == name:
                return action

        raise KeyError(f"No outcome recorded for action '{name}'")

    @property
    def teardown_clean(self) -> bool:
        return all(step.succeeded for step in self.teardown)
