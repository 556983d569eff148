import asyncio
import io
import os
import pathlib
import time
from asyncio.subprocess import Process
from typing import Dict

from faultline.errors import ProcessSpawnFailure
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import (
    ProcessDebug,
    ProcessInfo,
    ProcessWarning,
)

from .process_status import ProcessStatus


class ManagedProcess:
    __slots__ = (
        "command",
        "args",
        "log_path",
        "grace_period",
        "status",
        "start",
        "end",
        "_env",
        "_working_directory",
        "_process",
        "_pid",
        "_logfile",
        "_exit",
        "_return_code",
        "_terminate_requested",
        "_terminate_lock",
        "_logger",
    )

    def __init__(
        self,
        command: str,
        args: tuple[str, ...] | list[str],
        log_path: str | pathlib.Path,
        grace_period: int | float = 5,
        env: Dict[str, str] | None = None,
        cwd: str | pathlib.Path | None = None,
    ) -> None:
        self.command = command
        self.args = tuple(args)
        self.log_path = str(log_path)
        self.grace_period = grace_period
        self.status = ProcessStatus.CREATED
        self.start = 0.0
        self.end = 0.0

        self._env = env
        self._working_directory = str(cwd) if cwd else None
        self._process: Process | None = None
        self._pid: int | None = None
        self._logfile: io.BufferedWriter | None = None
        self._exit: asyncio.Future | None = None
        self._return_code: int | None = None
        self._terminate_requested = False
        self._terminate_lock = asyncio.Lock()
        self._logger = Logger()

    @property
    def pid(self):
        return self._pid

    @property
    def return_code(self):
        return self._return_code

    @property
    def running(self):
        return self.status == ProcessStatus.RUNNING

    @property
    def exited(self):
        return self.status in [
            ProcessStatus.EXITED,
            ProcessStatus.TERMINATED,
        ]

    async def launch(self):
        if self.status != ProcessStatus.CREATED:
            raise RuntimeError(f"Process '{self.command}' was already launched")

        loop = asyncio.get_running_loop()

        try:
            self._logfile = await loop.run_in_executor(
                None,
                self._open_logfile,
            )

            self._process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=self._logfile,
                stderr=asyncio.subprocess.STDOUT,
                env=self._env,
                cwd=self._working_directory,
            )

        except OSError as err:
            self.status = ProcessStatus.FAILED
            self._close_logfile()

            raise ProcessSpawnFailure(self.command, str(err)) from err

        self._pid = self._process.pid
        self.start = time.monotonic()
        self.status = ProcessStatus.RUNNING
        self._exit = asyncio.ensure_future(self._watch_exit(self._process))

        await self._logger.log(
            ProcessInfo(
                message=f"Started {self.command} {' '.join(self.args)} - output to {self.log_path}",
                command=self.command,
                pid=self._pid,
            )
        )

        return self

    def _open_logfile(self):
        path = pathlib.Path(self.log_path)
        if not path.parent.exists():
            os.makedirs(path.parent, exist_ok=True)

        return open(path, "ab")

    def _close_logfile(self):
        if self._logfile and self._logfile.closed is False:
            self._logfile.close()

    async def _watch_exit(self, process: Process) -> int:
        return_code = await process.wait()
        self._return_code = return_code
        self.end = time.monotonic()

        if self._terminate_requested is False:
            self.status = ProcessStatus.EXITED

            await self._logger.log(
                ProcessWarning(
                    message=f"{self.command} exited on its own after {self.end - self.start:.2f}s",
                    command=self.command,
                    pid=self._pid,
                    return_code=return_code,
                )
            )

        return return_code

    async def terminate(self) -> int | None:
        """
        Ask the process to stop (SIGTERM), escalate to SIGKILL after the
        grace period, then wait for the exit with no timeout.

        Safe to call repeatedly: later calls return the recorded return code.
        """
        async with self._terminate_lock:
            if self._process is None:
                return self._return_code

            self._terminate_requested = True
            process = self._process

            if self.status == ProcessStatus.RUNNING:
                self.status = ProcessStatus.TERMINATING

            if process.returncode is None:
                try:
                    process.terminate()

                except ProcessLookupError:
                    pass

                try:
                    await asyncio.wait_for(
                        asyncio.shield(self._exit),
                        timeout=self.grace_period,
                    )

                except asyncio.TimeoutError:
                    await self._logger.log(
                        ProcessDebug(
                            message=f"{self.command} ignored SIGTERM for {self.grace_period}s - killing",
                            command=self.command,
                            pid=self._pid,
                        )
                    )

                    try:
                        process.kill()

                    except ProcessLookupError:
                        pass

            self._return_code = await self._exit

            if self.status == ProcessStatus.TERMINATING:
                self.status = ProcessStatus.TERMINATED

            self._close_logfile()
            self._process = None

            await self._logger.log(
                ProcessInfo(
                    message=f"{self.command} stopped with return code {self._return_code}",
                    command=self.command,
                    pid=self._pid,
                )
            )

            return self._return_code

    async def wait(self) -> int | None:
        if self._exit is None:
            return None

        return await asyncio.shield(self._exit)


async def launch(
    command: str,
    args: tuple[str, ...] | list[str],
    log_path: str | pathlib.Path,
    grace_period: int | float = 5,
    env: Dict[str, str] | None = None,
    cwd: str | pathlib.Path | None = None,
) -> ManagedProcess:
    managed = ManagedProcess(
        command,
        args,
        log_path,
        grace_period=grace_period,
        env=env,
        cwd=cwd,
    )

    return await managed.launch()
