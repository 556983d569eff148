from typing import Any

import msgspec


class WireMessage(msgspec.Struct, kw_only=True):
    type: str
    id: int | None = None
    data: bytes | None = None


class AdminRequest(msgspec.Struct, kw_only=True):
    type: str
    data: Any = None


class AdminResponse(msgspec.Struct, kw_only=True):
    type: str
    data: Any = None
