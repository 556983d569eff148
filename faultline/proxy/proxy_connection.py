from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from faultline.errors import KeystoreFrameError
from faultline.keystore import AgentIdentity, KeystoreFrame, read_frame
from faultline.logging.faultline_logging_models import ProxyDebug, ProxyError

from .decision import Reject
from .signing_outcome import SigningOutcome, SigningOutcomeKind

if TYPE_CHECKING:
    from .signing_proxy import SigningProxy


class ProxyConnection:
    """
    One inbound client connection and, once something has been forwarded,
    its paired upstream keystore connection.

    Client frames are handled in arrival order. Upstream responses are
    relayed by a separate pump task, so several requests can be in flight
    at once. All writes to the client go through one lock so synthetic
    and relayed frames never interleave.
    """

    def __init__(
        self,
        proxy: SigningProxy,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        connection_id: int,
    ) -> None:
        self.connection_id = connection_id

        self._proxy = proxy
        self._client_reader = reader
        self._client_writer = writer
        self._upstream_reader: asyncio.StreamReader | None = None
        self._upstream_writer: asyncio.StreamWriter | None = None
        self._upstream_task: asyncio.Task | None = None
        self._run_task: asyncio.Task | None = None

        self._write_lock = asyncio.Lock()
        self._pending: dict[int, AgentIdentity] = {}
        self._closed = False

    async def run(self):
        self._run_task = asyncio.current_task()

        try:
            while not self._closed and not self._proxy.closing:
                frame = await read_frame(
                    self._client_reader,
                    self._proxy.wire.max_frame_size,
                )

                if frame is None:
                    break

                await self._handle_frame(frame)

        except KeystoreFrameError as err:
            await self._log_error(f"Dropping client connection - {err}")

        except ConnectionError as err:
            await self._log_debug(f"Client connection lost - {err}")

        finally:
            await self.close()

    async def _handle_frame(self, frame: KeystoreFrame):
        wire = self._proxy.wire

        if wire.is_sign_request(frame):
            try:
                agent = frame.agent()

            except KeystoreFrameError as err:
                await self._log_debug(f"Forwarding unparseable sign request untouched - {err}")
                await self._forward(frame)
                return

            decision = await self._proxy.decide(agent, frame.payload)

            if isinstance(decision, Reject):
                await self._reply(
                    wire.error_response(frame.msg_id, decision.reason)
                )

                await self._proxy.record(
                    SigningOutcome(
                        kind=SigningOutcomeKind.SYNTHETIC_FAILURE,
                        agent=agent,
                        msg_id=frame.msg_id,
                        detail=decision.reason,
                    )
                )

                return

            self._pending[frame.msg_id] = agent

        await self._forward(frame)

    async def _forward(self, frame: KeystoreFrame):
        if self._proxy.closing:
            return

        try:
            upstream_writer = await self._ensure_upstream()

        except OSError as err:
            reason = f"keystore unavailable: {err}"
            await self._log_error(f"Could not reach upstream keystore - {err}")

            await self._reply(
                self._proxy.wire.error_response(frame.msg_id, reason)
            )

            if agent := self._pending.pop(frame.msg_id, None):
                await self._proxy.record(
                    SigningOutcome(
                        kind=SigningOutcomeKind.FORWARDED_FAILURE,
                        agent=agent,
                        msg_id=frame.msg_id,
                        detail=reason,
                    )
                )

            return

        # stop() may have begun while the upstream connection was opening.
        if (
            upstream_writer is None
            or self._proxy.closing
            or upstream_writer.is_closing()
        ):
            self._pending.pop(frame.msg_id, None)
            return

        upstream_writer.write(frame.raw)
        await upstream_writer.drain()

    async def _ensure_upstream(self) -> asyncio.StreamWriter | None:
        if self._upstream_writer is not None:
            return self._upstream_writer

        reader, writer = await self._proxy.open_upstream()

        if self._closed or self._proxy.closing:
            writer.close()

            try:
                await writer.wait_closed()

            except (ConnectionError, OSError):
                pass

            return None

        self._upstream_reader = reader
        self._upstream_writer = writer
        self._upstream_task = asyncio.create_task(self._pump_upstream())

        return writer

    async def _pump_upstream(self):
        wire = self._proxy.wire

        try:
            while True:
                frame = await read_frame(
                    self._upstream_reader,
                    wire.max_frame_size,
                )

                if frame is None:
                    break

                if agent := self._pending.pop(frame.msg_id, None):
                    failed = wire.is_error(frame)
                    await self._proxy.record(
                        SigningOutcome(
                            kind=(
                                SigningOutcomeKind.FORWARDED_FAILURE
                                if failed
                                else SigningOutcomeKind.FORWARDED_SUCCESS
                            ),
                            agent=agent,
                            msg_id=frame.msg_id,
                            detail=wire.error_reason(frame),
                        )
                    )

                await self._reply(frame)

        except KeystoreFrameError as err:
            await self._log_error(f"Dropping upstream connection - {err}")

        except ConnectionError as err:
            await self._log_debug(f"Upstream connection lost - {err}")

        finally:
            await self.close()

    async def _reply(self, frame: KeystoreFrame):
        if self._client_writer.is_closing():
            return

        async with self._write_lock:
            self._client_writer.write(frame.raw)
            await self._client_writer.drain()

    async def close(self):
        if self._closed:
            return

        self._closed = True

        for writer in (self._upstream_writer, self._client_writer):
            if writer is None:
                continue

            writer.close()

            try:
                await writer.wait_closed()

            except (ConnectionError, OSError):
                pass

        current_task = asyncio.current_task()
        if self._upstream_task and self._upstream_task is not current_task:
            self._upstream_task.cancel()

            try:
                await self._upstream_task

            except asyncio.CancelledError:
                pass

        # A frame handler may still be waiting on the upstream connect.
        if (
            self._run_task
            and self._run_task is not current_task
            and not self._run_task.done()
        ):
            self._run_task.cancel()

            try:
                await self._run_task

            except asyncio.CancelledError:
                pass

        self._pending.clear()
        self._proxy.discard(self)

    async def _log_debug(self, message: str):
        await self._proxy.logger.log(
            ProxyDebug(
                message=f"[connection {self.connection_id}] {message}",
                listen_address=self._proxy.listen_address,
                upstream_address=self._proxy.upstream_address,
            )
        )

    async def _log_error(self, message: str):
        await self._proxy.logger.log(
            ProxyError(
                message=f"[connection {self.connection_id}] {message}",
                listen_address=self._proxy.listen_address,
                upstream_address=self._proxy.upstream_address,
            )
        )
