import msgspec


class InstallAppBundleRequest(msgspec.Struct, kw_only=True, omit_defaults=True):
    installed_app_id: str
    agent_key: bytes
    path: str
    membrane_proofs: dict[str, bytes] = msgspec.field(default_factory=dict)
    uid: str | None = None
