from enum import Enum


class ScenarioResult(Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
