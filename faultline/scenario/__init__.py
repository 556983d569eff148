from .default_scenario import signing_fault_scenario as signing_fault_scenario
from .readiness import (
    connect_when_ready as connect_when_ready,
    wait_for_unix_socket as wait_for_unix_socket,
)
from .results import (
    ActionOutcome as ActionOutcome,
    ScenarioOutcome as ScenarioOutcome,
    ScenarioResult as ScenarioResult,
)
from .runner import (
    ScenarioRunner as ScenarioRunner,
    run_from_json as run_from_json,
)
from .runtime import (
    ScenarioRuntime as ScenarioRuntime,
    WorkspaceLayout as WorkspaceLayout,
)
from .specs import (
    ActionSpec as ActionSpec,
    ScenarioSpec as ScenarioSpec,
)
