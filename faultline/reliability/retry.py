"""
Retry with exponential backoff, jitter and an optional overall deadline.

Used by the readiness probes: each dependency is retried until it accepts a
connection or its deadline passes.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from faultline.errors import ReadinessTimeout

T = TypeVar("T")


class JitterStrategy(Enum):
    """
    Jitter strategies for retry delays.

    FULL: delay = random(0, min(cap, base * 2^attempt))
    EQUAL: temp = min(cap, base * 2^attempt); delay = temp/2 + random(0, temp/2)
    NONE: delay = min(cap, base * 2^attempt)
    """

    FULL = "full"
    EQUAL = "equal"
    NONE = "none"


@dataclass(slots=True)
class RetryConfig:
    """Backoff settings. Delays and the deadline are in seconds."""

    max_attempts: int | None = 3
    base_delay: float = 0.5
    max_delay: float = 30.0
    jitter: JitterStrategy = JitterStrategy.FULL

    # Total seconds across all attempts, None for no limit
    deadline: float | None = None

    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (
            ConnectionError,
            TimeoutError,
            OSError,
        )
    )

    is_retryable: Callable[[Exception], bool] | None = None


class RetryExecutor:
    """
    Retry execution with jitter.

    Example usage:
        executor = RetryExecutor(RetryConfig(max_attempts=None, deadline=30.0))

        client = await executor.execute(
            lambda: AdminClient.connect(url),
            operation_name="conductor",
        )
    """

    def __init__(self, config: RetryConfig | None = None):
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay(self, attempt: int) -> float:
        ceiling = min(
            self._config.max_delay,
            self._config.base_delay * (2**attempt),
        )

        match self._config.jitter:
            case JitterStrategy.FULL:
                return random.uniform(0, ceiling)

            case JitterStrategy.EQUAL:
                return ceiling / 2 + random.uniform(0, ceiling / 2)

            case _:
                return ceiling

    def should_retry(self, error: Exception) -> bool:
        if self._config.is_retryable is not None:
            return self._config.is_retryable(error)

        return isinstance(error, self._config.retryable_exceptions)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "operation",
    ) -> T:
        """
        Execute operation, retrying retryable errors.

        Raises the last error once max_attempts is exhausted, or
        ReadinessTimeout once the deadline has passed.
        """
        started = time.monotonic()
        deadline = self._config.deadline
        max_attempts = self._config.max_attempts

        attempt = 0
        while True:
            try:
                if deadline is None:
                    return await operation()

                remaining = deadline - (time.monotonic() - started)
                return await asyncio.wait_for(operation(), timeout=max(remaining, 0.001))

            except Exception as error:
                if not self.should_retry(error):
                    raise

                attempt += 1
                if max_attempts is not None and attempt >= max_attempts:
                    raise

                delay = self.calculate_delay(attempt - 1)

                if deadline is not None:
                    elapsed = time.monotonic() - started
                    if elapsed + delay >= deadline:
                        raise ReadinessTimeout(operation_name, deadline, error) from error

                await asyncio.sleep(delay)
