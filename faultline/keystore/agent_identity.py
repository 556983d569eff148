from __future__ import annotations

import base64
from dataclasses import dataclass

AGENT_KEY_PREFIX = bytes([0x84, 0x20, 0x24])
SIGNING_KEY_LENGTH = 32
AGENT_KEY_LENGTH = len(AGENT_KEY_PREFIX) + SIGNING_KEY_LENGTH + 4


@dataclass(slots=True, frozen=True)
class AgentIdentity:
    """
    An agent key as issued by the conductor (39 bytes: type prefix,
    ed25519 public key, location suffix) or the bare 32-byte public
    key the keystore sees in sign requests.

    Two identities refer to the same agent when their signing keys are
    equal, so a conductor-issued key matches the keystore form.
    """

    raw: bytes

    def __post_init__(self):
        if len(self.raw) not in (SIGNING_KEY_LENGTH, AGENT_KEY_LENGTH):
            raise ValueError(
                f"Err. - agent key must be {SIGNING_KEY_LENGTH} or {AGENT_KEY_LENGTH} bytes, got {len(self.raw)}"
            )

        if len(self.raw) == AGENT_KEY_LENGTH and not self.raw.startswith(AGENT_KEY_PREFIX):
            raise ValueError("Err. - agent key has an unknown type prefix")

    @classmethod
    def from_signing_key(cls, signing_key: bytes) -> AgentIdentity:
        return cls(raw=bytes(signing_key))

    @property
    def signing_key(self) -> bytes:
        if len(self.raw) == AGENT_KEY_LENGTH:
            return self.raw[len(AGENT_KEY_PREFIX):len(AGENT_KEY_PREFIX) + SIGNING_KEY_LENGTH]

        return self.raw

    def matches(self, other: AgentIdentity | bytes) -> bool:
        if isinstance(other, AgentIdentity):
            other = other.signing_key

        return self.signing_key == other

    def __str__(self) -> str:
        return "u" + base64.urlsafe_b64encode(self.raw).decode().rstrip("=")
