import datetime
import threading

import msgspec

from .entry import Entry


def _utc_timestamp() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat()


class Log(msgspec.Struct, kw_only=True):
    """An entry plus where and when it was logged."""

    entry: Entry
    logger: str = 'default'
    filename: str
    function_name: str
    line_number: int
    thread_id: int = msgspec.field(default_factory=threading.get_native_id)
    timestamp: str = msgspec.field(default_factory=_utc_timestamp)

    def context(self) -> dict[str, str | int]:
        return {
            'logger': self.logger,
            'filename': self.filename,
            'function_name': self.function_name,
            'line_number': self.line_number,
            'thread_id': self.thread_id,
            'timestamp': self.timestamp,
        }
