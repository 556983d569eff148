import time
from dataclasses import dataclass, field
from enum import Enum

from faultline.keystore import AgentIdentity


class SigningOutcomeKind(Enum):
    FORWARDED_SUCCESS = "FORWARDED_SUCCESS"
    FORWARDED_FAILURE = "FORWARDED_FAILURE"
    SYNTHETIC_FAILURE = "SYNTHETIC_FAILURE"


@dataclass(slots=True)
class SigningOutcome:
    kind: SigningOutcomeKind
    agent: AgentIdentity
    msg_id: int
    detail: str | None = None
    timestamp: float = field(default_factory=time.monotonic)

    @property
    def synthetic(self) -> bool:
        return self.kind == SigningOutcomeKind.SYNTHETIC_FAILURE

    @property
    def succeeded(self) -> bool:
        return self.kind == SigningOutcomeKind.FORWARDED_SUCCESS
