from typing import Any, Dict

import msgspec

from .log_level import LogLevel


class Entry(msgspec.Struct, kw_only=True):
    level: LogLevel
    message: str | None = None
    tags: set[str] = msgspec.field(default_factory=set)

    def to_template(
        self,
        template: str,
        context: Dict[str, Any] | None = None,
    ) -> str:
        values = msgspec.structs.asdict(self)
        values['level'] = self.level.value

        if context:
            values.update(context)

        return template.format(**values)
