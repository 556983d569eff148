from __future__ import annotations

from typing import Any

import msgspec


class InstalledApp(msgspec.Struct, kw_only=True):
    installed_app_id: str
    status: str
    status_detail: Any = None
    cell_data: list[Any] = msgspec.field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.status in ('active', 'running', 'enabled')

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> InstalledApp:
        status = data.get('status')
        status_detail: Any = None

        if isinstance(status, dict) and len(status) == 1:
            status_name, status_detail = next(iter(status.items()))

        elif isinstance(status, str):
            status_name = status

        else:
            status_name = 'unknown'
            status_detail = status

        return cls(
            installed_app_id=str(data.get('installed_app_id')),
            status=str(status_name).lower(),
            status_detail=status_detail,
            cell_data=list(data.get('cell_data') or []),
        )
