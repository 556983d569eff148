import asyncio
import os
import pathlib
import sys
from typing import Callable, TextIO, TypeVar

import msgspec

from faultline.logging.config.logging_config import LoggingConfig
from faultline.logging.config.stream_type import StreamType
from faultline.logging.models import Entry, Log

T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = (
    "{timestamp} - {level} - {logger} - "
    "{filename}:{function_name}.{line_number} - {message}"
)


class LoggerStream:
    """
    Output for one named logger.

    Without a log file, entries are rendered with the template to the
    console stream LoggingConfig selects. With one, each entry is appended
    to it as a single msgspec JSON line. A stream that was given no path
    still writes to `<directory>/<name>.json` while LoggingConfig has a
    log directory set.
    """

    def __init__(
        self,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
    ) -> None:
        self.name = name
        self.template = template or DEFAULT_TEMPLATE
        self.path = path

        self._config = LoggingConfig()
        self._encoder = msgspec.json.Encoder()
        self._lock = asyncio.Lock()

    def logfile_path(self) -> str | None:
        if self.path:
            return str(pathlib.Path(self.path).absolute())

        if directory := self._config.directory:
            return os.path.join(directory, f"{self.name}.json")

        return None

    async def log(
        self,
        entry: T | Log,
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if isinstance(entry, Log):
            record = entry

        else:
            frame = sys._getframe(1)
            record = Log(
                entry=entry,
                logger=self.name,
                filename=frame.f_code.co_filename,
                function_name=frame.f_code.co_name,
                line_number=frame.f_lineno,
            )

        if not self._config.enabled(self.name, record.entry.level):
            return

        if filter and filter(record.entry) is False:
            return

        loop = asyncio.get_running_loop()
        logfile_path = self.logfile_path()

        async with self._lock:
            if logfile_path:
                await loop.run_in_executor(
                    None,
                    self._append,
                    logfile_path,
                    self._encoder.encode(record),
                )

                return

            line = record.entry.to_template(
                template or self.template,
                context=record.context(),
            )

            stream = sys.stdout if self._config.output == StreamType.STDOUT else sys.stderr

            await loop.run_in_executor(
                None,
                self._write_line,
                stream,
                line,
            )

    def _write_line(self, stream: TextIO, line: str):
        if stream.closed:
            return

        stream.write(line + "\n")
        stream.flush()

    def _append(self, logfile_path: str, data: bytes):
        os.makedirs(os.path.dirname(logfile_path), exist_ok=True)

        with open(logfile_path, 'ab') as logfile:
            logfile.write(data + b"\n")
