from typing import Awaitable, Callable, Iterable

from ..results.action_outcome import ActionOutcome
from ..runtime.scenario_runtime import ScenarioRuntime
from ..specs.action_spec import ActionSpec

ActionHandler = Callable[[ScenarioRuntime, ActionSpec], Awaitable[ActionOutcome]]


class ActionRegistry:
    """Maps a scenario action's ``type`` to the coroutine that runs it."""

    def __init__(self) -> None:
        self._handlers: dict[str, ActionHandler] = {}

    def register(self, action_type: str, handler: ActionHandler) -> None:
        self._handlers[action_type] = handler

    def get(self, action_type: str) -> ActionHandler:
        handler = self._handlers.get(action_type)
        if handler is None:
            raise ValueError(f"Unknown action type: {action_type}")

        return handler

    def check(self, actions: Iterable[ActionSpec]) -> None:
        unknown = sorted({
            action.action_type
            for action in actions
            if action.action_type not in self._handlers
        })

        if unknown:
            raise ValueError(f"Unknown action type: {', '.join(unknown)}")

    def __contains__(self, action_type: str) -> bool:
        return action_type in self._handlers
