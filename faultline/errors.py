"""
Exceptions raised by the harness.

SyntheticSigningFailure has no exception class: a denylist rejection is a
normal error frame on the keystore channel, not an error of the proxy.
"""


class FaultlineError(Exception):
    pass


class SetupFailure(FaultlineError):
    """
    Raised when the scratch or log directories cannot be prepared.

    Fatal: the run aborts before any process is started.
    """
    pass


class ProcessSpawnFailure(FaultlineError):
    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Err. - could not start '{command}' - {reason}")
        self.command = command
        self.reason = reason


class RpcFailure(FaultlineError):
    """
    Raised when a conductor admin call returns an error, times out,
    or loses its session.

    Probe steps catch this and record it; everywhere else it fails the run.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        error_type: str | None = None,
    ) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message
        self.error_type = error_type


class ReadinessTimeout(FaultlineError):
    def __init__(self, dependency: str, deadline: float, last_error: Exception | None) -> None:
        super().__init__(
            f"Err. - {dependency} not reachable after {deadline:.2f}s - last error: {last_error}"
        )
        self.dependency = dependency
        self.deadline = deadline
        self.last_error = last_error


class KeystoreFrameError(FaultlineError):
    pass


class TeardownFailure(FaultlineError):
    def __init__(self, component: str, error: Exception) -> None:
        super().__init__(f"Err. - failed to stop {component} - {error}")
        self.component = component
        self.error = error
