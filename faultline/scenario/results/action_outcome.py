from dataclasses import dataclass


@dataclass(slots=True)
class ActionOutcome:
    name: str
    succeeded: bool
    duration_seconds: float
    details: str | None = None
    expected_failure: bool = False
    error_type: str | None = None
