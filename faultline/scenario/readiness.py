"""
Readiness probes for the processes a scenario starts.

Each probe retries a connection with exponential backoff until it succeeds
or the deadline passes, and stops early when the watched process has
already exited.
"""

import asyncio
import pathlib

import aiohttp

from faultline.conductor import AdminClient
from faultline.errors import ReadinessTimeout
from faultline.process import ManagedProcess
from faultline.reliability import JitterStrategy, RetryConfig, RetryExecutor


def _retry_while_running(
    watch: ManagedProcess | None,
    retryable: tuple[type[Exception], ...],
):
    def is_retryable(exc: Exception) -> bool:
        if watch is not None and watch.exited:
            return False

        return isinstance(exc, retryable)

    return is_retryable


def _executor(
    deadline: float,
    base_delay: float,
    watch: ManagedProcess | None,
    retryable: tuple[type[Exception], ...],
) -> RetryExecutor:
    return RetryExecutor(
        RetryConfig(
            max_attempts=None,
            base_delay=base_delay,
            max_delay=1.0,
            jitter=JitterStrategy.EQUAL,
            deadline=deadline,
            is_retryable=_retry_while_running(watch, retryable),
        )
    )


async def wait_for_unix_socket(
    path: str | pathlib.Path,
    deadline: float,
    base_delay: float = 0.1,
    watch: ManagedProcess | None = None,
):
    async def probe():
        _, writer = await asyncio.open_unix_connection(str(path))
        writer.close()

        try:
            await writer.wait_closed()

        except (ConnectionError, OSError):
            pass

    executor = _executor(
        deadline,
        base_delay,
        watch,
        (ConnectionError, OSError, asyncio.TimeoutError),
    )

    try:
        await executor.execute(probe, operation_name=f"unix socket {path}")

    except (ConnectionError, OSError) as err:
        if watch is not None and watch.exited:
            raise ReadinessTimeout(
                f"{watch.command} (exited with {watch.return_code})",
                deadline,
                err,
            ) from err

        raise


async def connect_when_ready(
    url: str,
    deadline: float,
    base_delay: float = 0.1,
    request_timeout: float = 60.0,
    watch: ManagedProcess | None = None,
) -> AdminClient:
    executor = _executor(
        deadline,
        base_delay,
        watch,
        (aiohttp.ClientError, ConnectionError, OSError, asyncio.TimeoutError),
    )

    try:
        return await executor.execute(
            lambda: AdminClient.connect(url, request_timeout=request_timeout),
            operation_name=f"conductor admin {url}",
        )

    except (aiohttp.ClientError, ConnectionError, OSError) as err:
        if watch is not None and watch.exited:
            raise ReadinessTimeout(
                f"{watch.command} (exited with {watch.return_code})",
                deadline,
                err,
            ) from err

        raise
