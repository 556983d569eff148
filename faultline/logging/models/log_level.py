from __future__ import annotations

from enum import Enum
from typing import Literal

LogLevelName = Literal[
    'trace',
    'debug',
    'info',
    'warn',
    'error',
    'critical',
    'fatal',
]


class LogLevel(Enum):
    TRACE = 'TRACE'
    DEBUG = 'DEBUG'
    INFO = 'INFO'
    WARN = 'WARN'
    ERROR = 'ERROR'
    CRITICAL = 'CRITICAL'
    FATAL = 'FATAL'

    @classmethod
    def to_level(cls, name: LogLevelName | str) -> LogLevel:
        level = cls.__members__.get(name.upper())
        if level is None:
            raise ValueError(f"Err. - unknown log level '{name}'")

        return level

    @property
    def rank(self) -> int:
        """Severity order, TRACE lowest."""
        return _SEVERITY.index(self)


_SEVERITY = list(LogLevel)
