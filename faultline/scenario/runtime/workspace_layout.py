import os
import pathlib
import shutil
from dataclasses import dataclass

from faultline.env import Env
from faultline.errors import SetupFailure


@dataclass(slots=True, frozen=True)
class WorkspaceLayout:
    """
    Where a run keeps its sockets and process output.

    The scratch root is wiped and recreated on every run. The log
    directory is created when missing and never cleared, so process output
    from earlier runs accumulates.
    """

    scratch_root: pathlib.Path
    log_directory: pathlib.Path

    @classmethod
    def from_env(cls, env: Env) -> "WorkspaceLayout":
        return cls(
            scratch_root=pathlib.Path(env.FAULTLINE_SCRATCH_DIRECTORY),
            log_directory=pathlib.Path(env.FAULTLINE_LOGS_DIRECTORY),
        )

    @property
    def keystore_directory(self) -> pathlib.Path:
        return self.scratch_root / "keystore"

    @property
    def keystore_socket(self) -> pathlib.Path:
        return self.keystore_directory / "socket"

    @property
    def proxy_directory(self) -> pathlib.Path:
        return self.scratch_root / "shim"

    @property
    def proxy_socket(self) -> pathlib.Path:
        return self.proxy_directory / "socket"

    def log_path_for(self, command: str) -> pathlib.Path:
        return self.log_directory / f"{os.path.basename(command)}.txt"

    def prepare(self):
        try:
            if self.scratch_root.exists():
                shutil.rmtree(self.scratch_root)

            self.scratch_root.mkdir(parents=True)
            self.log_directory.mkdir(parents=True, exist_ok=True)

        except OSError as err:
            raise SetupFailure(
                f"Err. - could not prepare workspace at {self.scratch_root} - {err}"
            ) from err

    def prepare_proxy_directory(self):
        try:
            self.proxy_directory.mkdir(parents=True, exist_ok=True)

        except OSError as err:
            raise SetupFailure(
                f"Err. - could not create proxy directory {self.proxy_directory} - {err}"
            ) from err
