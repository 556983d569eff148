from __future__ import annotations

import threading
from typing import Iterable

from faultline.keystore import AgentIdentity


class Denylist:
    """
    Agents whose sign requests the proxy fails synthetically.

    Readers take the current mapping reference without locking; writers
    build a replacement under a lock and swap it in, so every request sees
    one consistent snapshot and the last completed write wins.
    """

    def __init__(self, identities: Iterable[AgentIdentity] = ()) -> None:
        self._lock = threading.Lock()
        self._entries: dict[bytes, AgentIdentity] = {
            identity.signing_key: identity for identity in identities
        }

    def add(self, identity: AgentIdentity) -> None:
        with self._lock:
            entries = dict(self._entries)
            entries[identity.signing_key] = identity
            self._entries = entries

    def remove(self, identity: AgentIdentity) -> bool:
        with self._lock:
            if identity.signing_key not in self._entries:
                return False

            entries = dict(self._entries)
            del entries[identity.signing_key]
            self._entries = entries

            return True

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def snapshot(self) -> frozenset[bytes]:
        return frozenset(self._entries)

    def __contains__(self, identity: AgentIdentity | bytes) -> bool:
        if isinstance(identity, AgentIdentity):
            identity = identity.signing_key

        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)
