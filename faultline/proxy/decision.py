from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from faultline.keystore import AgentIdentity

from .denylist import Denylist


@dataclass(slots=True, frozen=True)
class Forward:
    pass


@dataclass(slots=True, frozen=True)
class Reject:
    reason: str


Decision = Union[Forward, Reject]

# A strategy may also return None to forward, or an awaitable of either.
DecisionStrategy = Callable[
    [AgentIdentity, bytes],
    Decision | None | Awaitable[Decision | None],
]

FORWARD = Forward()


class AlwaysForward:
    def __call__(self, agent: AgentIdentity, payload: bytes) -> Decision:
        return FORWARD


class DenylistReject:
    def __init__(
        self,
        denylist: Denylist,
        reason: str = "purposeful signing error",
    ) -> None:
        self.denylist = denylist
        self.reason = reason

    def __call__(self, agent: AgentIdentity, payload: bytes) -> Decision:
        if agent in self.denylist:
            return Reject(self.reason)

        return FORWARD
