from __future__ import annotations

import asyncio
import inspect
import itertools
import os
import stat
from collections import deque

from faultline.keystore import AgentIdentity, KeystoreWire
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import (
    ProxyDebug,
    ProxyError,
    ProxyInfo,
)

from .decision import FORWARD, AlwaysForward, Decision, DecisionStrategy, Reject
from .proxy_connection import ProxyConnection
from .signing_outcome import SigningOutcome


class SigningProxy:
    """
    Keystore stand-in that listens on a unix socket and relays each client
    connection to the real keystore socket.

    Sign requests are first passed to the decision strategy. A Reject is
    answered locally with a keystore error frame and never reaches the
    keystore. Everything else is relayed byte for byte in both directions.
    """

    def __init__(
        self,
        upstream_address: str,
        listen_address: str,
        decision: DecisionStrategy | None = None,
        wire: KeystoreWire | None = None,
        history_size: int = 1024,
    ) -> None:
        if decision is None:
            decision = AlwaysForward()

        if wire is None:
            wire = KeystoreWire()

        self.upstream_address = upstream_address
        self.listen_address = listen_address
        self.decision = decision
        self.wire = wire
        self.logger = Logger()

        self.outcomes: deque[SigningOutcome] = deque(maxlen=history_size)
        self.upstream_connections_opened = 0

        self._server: asyncio.Server | None = None
        self._connections: set[ProxyConnection] = set()
        self._connection_ids = itertools.count(1)
        self._closing = False
        self._stopped = False

    @property
    def closing(self) -> bool:
        return self._closing

    @property
    def running(self) -> bool:
        return self._server is not None and not self._closing

    @property
    def active_connections(self) -> int:
        return len(self._connections)

    async def start(self):
        if self._server is not None:
            raise RuntimeError("Signing proxy already started")

        self._server = await asyncio.start_unix_server(
            self._handle_connection,
            path=self.listen_address,
        )

        await self.logger.log(
            ProxyInfo(
                message="Signing proxy listening",
                listen_address=self.listen_address,
                upstream_address=self.upstream_address,
            )
        )

    async def stop(self):
        if self._stopped:
            return

        self._closing = True

        if self._server:
            self._server.close()

        await asyncio.gather(
            *[connection.close() for connection in list(self._connections)],
            return_exceptions=True,
        )

        if self._server:
            await self._server.wait_closed()

        self._remove_socket_file()
        self._stopped = True

        await self.logger.log(
            ProxyInfo(
                message=f"Signing proxy stopped after {len(self.outcomes)} signing requests",
                listen_address=self.listen_address,
                upstream_address=self.upstream_address,
            )
        )

    async def decide(self, agent: AgentIdentity, payload: bytes) -> Decision:
        try:
            decision = self.decision(agent, payload)

            if inspect.isawaitable(decision):
                decision = await decision

        except Exception as err:
            await self.logger.log(
                ProxyError(
                    message=f"Decision strategy failed for agent {agent} - rejecting - {err}",
                    listen_address=self.listen_address,
                    upstream_address=self.upstream_address,
                )
            )

            return Reject(str(err))

        if decision is None:
            return FORWARD

        return decision

    async def open_upstream(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        connection = await asyncio.open_unix_connection(self.upstream_address)
        self.upstream_connections_opened += 1

        return connection

    async def record(self, outcome: SigningOutcome):
        self.outcomes.append(outcome)

        await self.logger.log(
            ProxyDebug(
                message=f"Sign request {outcome.msg_id} for agent {outcome.agent} - {outcome.kind.value}",
                listen_address=self.listen_address,
                upstream_address=self.upstream_address,
            )
        )

    def discard(self, connection: ProxyConnection):
        self._connections.discard(connection)

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        if self._closing:
            writer.close()
            return

        connection = ProxyConnection(
            self,
            reader,
            writer,
            next(self._connection_ids),
        )

        self._connections.add(connection)
        await connection.run()

    def _remove_socket_file(self):
        try:
            if stat.S_ISSOCK(os.stat(self.listen_address).st_mode):
                os.remove(self.listen_address)

        except FileNotFoundError:
            pass


async def start_signing_proxy(
    upstream_address: str,
    listen_address: str,
    decision: DecisionStrategy | None = None,
    wire: KeystoreWire | None = None,
) -> SigningProxy:
    proxy = SigningProxy(
        upstream_address,
        listen_address,
        decision=decision,
        wire=wire,
    )

    await proxy.start()

    return proxy
