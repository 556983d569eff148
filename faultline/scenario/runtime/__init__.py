from .scenario_runtime import ScenarioRuntime as ScenarioRuntime
from .workspace_layout import WorkspaceLayout as WorkspaceLayout
