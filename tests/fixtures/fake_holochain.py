"""
Conductor admin API stand-in.

Serves msgpack admin requests over a websocket. Installing, activating and
deactivating an app each sign through the configured keystore socket, and
fail with an ``internal_error`` when the keystore answers with an error
frame. Run as a script with ``--config-path <file>``, where the file is
JSON with ``admin_port`` and ``keystore_socket``.
"""

import argparse
import asyncio
import itertools
import json
import secrets
from typing import Any

import aiohttp
import msgspec
from aiohttp import web

from faultline.keystore import KeystoreFrame, KeystoreWire, read_frame
from faultline.keystore.agent_identity import AGENT_KEY_PREFIX


def _error(error_type: str, message: str) -> tuple[str, Any]:
    return "error", {"type": error_type, "data": message}


class FakeConductor:
    def __init__(self, keystore_socket: str | None = None) -> None:
        self.keystore_socket = keystore_socket
        self.wire = KeystoreWire()
        self.apps: dict[str, dict[str, Any]] = {}
        self.requests: list[str] = []

        self._keystore: tuple[asyncio.StreamReader, asyncio.StreamWriter] | None = None
        self._msg_ids = itertools.count(1)
        self._sign_lock = asyncio.Lock()

    async def sign(self, agent_key: bytes, payload: bytes) -> str | None:
        """Sign through the keystore, returning the error reason on failure."""
        if self.keystore_socket is None:
            return None

        async with self._sign_lock:
            if self._keystore is None:
                self._keystore = await asyncio.open_unix_connection(self.keystore_socket)

            reader, writer = self._keystore
            frame = KeystoreFrame.build(
                self.wire.sign_request_type,
                next(self._msg_ids),
                bytes(agent_key[3:35]) + payload,
            )

            writer.write(frame.raw)
            await writer.drain()

            response = await read_frame(reader, self.wire.max_frame_size)
            if response is None:
                self._keystore = None
                return "keystore closed the connection"

            return self.wire.error_reason(response)

    def app_info(self, app_id: str) -> dict[str, Any]:
        app = self.apps[app_id]
        return {
            "installed_app_id": app_id,
            "status": app["status"],
            "cell_data": [],
        }

    async def handle(self, request_type: str, data: Any) -> tuple[str, Any]:
        self.requests.append(request_type)

        if request_type == "generate_agent_pub_key":
            return (
                "agent_pub_key_generated",
                AGENT_KEY_PREFIX + secrets.token_bytes(32) + bytes(4),
            )

        if request_type == "list_apps":
            return "apps_listed", [self.app_info(app_id) for app_id in self.apps]

        if request_type == "install_app_bundle":
            app_id = data["installed_app_id"]
            if app_id in self.apps:
                return _error("app_already_installed", app_id)

            failure = await self.sign(data["agent_key"], b"genesis:" + app_id.encode())
            if failure:
                return _error("internal_error", f"genesis failed: {failure}")

            self.apps[app_id] = {
                "agent_key": data["agent_key"],
                "status": {"disabled": {"reason": "never_started"}},
            }
            return "app_bundle_installed", self.app_info(app_id)

        if request_type in ("activate_app", "deactivate_app"):
            app_id = data["installed_app_id"]
            if app_id not in self.apps:
                return _error("app_not_installed", app_id)

            app = self.apps[app_id]
            failure = await self.sign(app["agent_key"], f"{request_type}:{app_id}".encode())
            if failure:
                return _error("internal_error", failure)

            if request_type == "activate_app":
                app["status"] = {"running": None}
                return "app_activated", None

            app["status"] = {"disabled": {"reason": "user"}}
            return "app_deactivated", None

        return _error("deserialization", f"unknown request {request_type}")

    async def admin_socket(self, request: web.Request) -> web.WebSocketResponse:
        websocket = web.WebSocketResponse(max_msg_size=0)
        await websocket.prepare(request)

        async for message in websocket:
            if message.type != aiohttp.WSMsgType.BINARY:
                continue

            envelope = msgspec.msgpack.decode(message.data)
            inner = msgspec.msgpack.decode(envelope["data"])

            response_type, response_data = await self.handle(
                inner["type"],
                inner.get("data"),
            )

            await websocket.send_bytes(
                msgspec.msgpack.encode(
                    {
                        "type": "Response",
                        "id": envelope["id"],
                        "data": msgspec.msgpack.encode(
                            {"type": response_type, "data": response_data}
                        ),
                    }
                )
            )

        return websocket

    async def close(self):
        if self._keystore:
            _, writer = self._keystore
            writer.close()
            self._keystore = None


async def serve(
    conductor: FakeConductor,
    host: str = "127.0.0.1",
    port: int = 0,
) -> tuple[web.AppRunner, int]:
    app = web.Application()
    app.router.add_get("/", conductor.admin_socket)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    _, bound_port = runner.addresses[0][:2]
    return runner, bound_port


async def run_from_config(config_path: str):
    with open(config_path) as config_file:
        config = json.load(config_file)

    conductor = FakeConductor(config["keystore_socket"])
    await serve(conductor, port=config["admin_port"])

    print(f"admin interface on port {config['admin_port']}", flush=True)
    await asyncio.Event().wait()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--config-path", required=True)
    args = parser.parse_args()

    asyncio.run(run_from_config(args.config_path))


if __name__ == "__main__":
    main()
