from __future__ import annotations

import asyncio
import itertools
from typing import Any

import aiohttp
import msgspec

from faultline.errors import RpcFailure
from faultline.keystore import AgentIdentity
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import (
    ConductorDebug,
    ConductorError,
)

from .models import (
    AdminRequest,
    AdminResponse,
    InstallAppBundleRequest,
    InstalledApp,
    WireMessage,
)


def _describe_error(data: Any) -> tuple[str | None, str]:
    if isinstance(data, dict):
        error_type = data.get('type')
        return (
            str(error_type) if error_type is not None else None,
            str(data.get('data', data)),
        )

    return None, str(data)


class AdminClient:
    """
    Conductor admin session over a websocket.

    Requests and responses are msgpack envelopes matched by id; a reader
    task resolves the pending request futures as responses arrive.
    """

    def __init__(
        self,
        url: str,
        session: aiohttp.ClientSession,
        websocket: aiohttp.ClientWebSocketResponse,
        request_timeout: float = 60.0,
    ) -> None:
        self.url = url
        self.request_timeout = request_timeout

        self._session = session
        self._websocket = websocket
        self._request_ids = itertools.count(0)
        self._pending: dict[int, asyncio.Future] = {}
        self._reader_task: asyncio.Task | None = None
        self._closed = False
        self._logger = Logger()

    @classmethod
    async def connect(
        cls,
        url: str,
        request_timeout: float = 60.0,
        connect_timeout: float = 10.0,
    ) -> AdminClient:
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=connect_timeout),
        )

        try:
            websocket = await session.ws_connect(
                url,
                max_msg_size=0,
            )

        except BaseException:
            await session.close()
            raise

        client = cls(
            url,
            session,
            websocket,
            request_timeout=request_timeout,
        )

        client._reader_task = asyncio.create_task(client._read_responses())

        return client

    @property
    def closed(self) -> bool:
        return self._closed or self._websocket.closed

    async def generate_agent_pub_key(self) -> AgentIdentity:
        data = await self._request(
            'generate_agent_pub_key',
            None,
            'agent_pub_key_generated',
        )

        try:
            return AgentIdentity(raw=bytes(data))

        except (TypeError, ValueError) as err:
            raise RpcFailure(
                'generate_agent_pub_key',
                f"conductor returned an invalid agent key - {err}",
            ) from err

    async def install_app_bundle(self, request: InstallAppBundleRequest) -> Any:
        return await self._request(
            'install_app_bundle',
            request,
            'app_bundle_installed',
        )

    async def activate_app(self, installed_app_id: str) -> Any:
        return await self._request(
            'activate_app',
            {'installed_app_id': installed_app_id},
            'app_activated',
        )

    async def deactivate_app(self, installed_app_id: str) -> Any:
        return await self._request(
            'deactivate_app',
            {'installed_app_id': installed_app_id},
            'app_deactivated',
        )

    async def list_apps(self, status_filter: str | None = None) -> list[InstalledApp]:
        request: dict[str, Any] = {}
        if status_filter:
            request['status_filter'] = status_filter

        data = await self._request(
            'list_apps',
            request,
            'apps_listed',
        )

        return [InstalledApp.from_wire(app) for app in data or []]

    async def _request(
        self,
        operation: str,
        data: Any,
        expected_response: str,
    ) -> Any:
        if self.closed:
            raise RpcFailure(operation, "admin session is closed")

        request_id = next(self._request_ids)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        await self._logger.log(
            ConductorDebug(
                message=f"Request {request_id} - {operation}",
                admin_url=self.url,
            )
        )

        try:
            await self._websocket.send_bytes(
                msgspec.msgpack.encode(
                    WireMessage(
                        type='Request',
                        id=request_id,
                        data=msgspec.msgpack.encode(
                            AdminRequest(type=operation, data=data)
                        ),
                    )
                )
            )

            payload: bytes = await asyncio.wait_for(
                future,
                timeout=self.request_timeout,
            )

        except asyncio.TimeoutError as err:
            raise RpcFailure(
                operation,
                f"no response within {self.request_timeout}s",
            ) from err

        except (aiohttp.ClientError, ConnectionError) as err:
            raise RpcFailure(operation, f"admin session failed - {err}") from err

        finally:
            self._pending.pop(request_id, None)

        try:
            response = msgspec.msgpack.decode(payload, type=AdminResponse)

        except msgspec.DecodeError as err:
            raise RpcFailure(operation, f"undecodable response - {err}") from err

        if response.type == 'error':
            error_type, message = _describe_error(response.data)

            await self._logger.log(
                ConductorError(
                    message=f"Request {request_id} - {operation} - {error_type}: {message}",
                    admin_url=self.url,
                )
            )

            raise RpcFailure(operation, message, error_type=error_type)

        if response.type != expected_response:
            raise RpcFailure(
                operation,
                f"expected '{expected_response}' response but got '{response.type}'",
            )

        return response.data

    async def _read_responses(self):
        try:
            async for message in self._websocket:
                if message.type != aiohttp.WSMsgType.BINARY:
                    if message.type == aiohttp.WSMsgType.ERROR:
                        break

                    continue

                try:
                    envelope = msgspec.msgpack.decode(message.data, type=WireMessage)

                except msgspec.DecodeError as err:
                    await self._logger.log(
                        ConductorError(
                            message=f"Discarding undecodable message - {err}",
                            admin_url=self.url,
                        )
                    )

                    continue

                if envelope.type != 'Response' or envelope.id is None:
                    continue

                future = self._pending.get(envelope.id)
                if future and not future.done():
                    future.set_result(envelope.data or b'')

        finally:
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(
                        ConnectionError("admin websocket closed")
                    )

    async def close(self):
        if self._closed:
            return

        self._closed = True

        try:
            await self._websocket.close()

        finally:
            if self._reader_task:
                self._reader_task.cancel()

                try:
                    await self._reader_task

                except asyncio.CancelledError:
                    pass

            await self._session.close()
