import sys
from typing import Callable, Dict, TypeVar

from faultline.logging.models import Entry, Log

from .logger_stream import LoggerStream

T = TypeVar('T', bound=Entry)


class Logger:
    """
    Routes entries to named streams.

    Each name gets one LoggerStream the first time it is used. Passing a
    template or path for a name that already has a stream updates that
    stream in place.
    """

    def __init__(self) -> None:
        self._streams: Dict[str, LoggerStream] = {}

    def stream(
        self,
        name: str | None = None,
        template: str | None = None,
        path: str | None = None,
    ) -> LoggerStream:
        name = name or 'default'

        stream = self._streams.get(name)
        if stream is None:
            stream = LoggerStream(name=name, template=template, path=path)
            self._streams[name] = stream

        if template:
            stream.template = template

        if path:
            stream.path = path

        return stream

    async def log(
        self,
        entry: T,
        name: str | None = None,
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        stream = self.stream(name=name, path=path)

        frame = sys._getframe(1)
        await stream.log(
            Log(
                entry=entry,
                logger=stream.name,
                filename=frame.f_code.co_filename,
                function_name=frame.f_code.co_name,
                line_number=frame.f_lineno,
            ),
            template=template,
            filter=filter,
        )
