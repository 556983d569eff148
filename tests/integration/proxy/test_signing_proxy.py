"""
Integration tests for SigningProxy over real unix sockets.

Covers:
- Byte-for-byte relay of forwarded sign requests and other frames
- Synthetic rejection of denylisted agents without touching the keystore
- Keystore errors and an unreachable keystore
- Denylist changes while a request is in flight
- Stop semantics
"""

import asyncio
import os

import pytest

from faultline.keystore import AgentIdentity, KeystoreFrame, KeystoreWire, read_frame
from faultline.keystore.agent_identity import AGENT_KEY_PREFIX
from faultline.proxy import (
    Denylist,
    DenylistReject,
    Forward,
    Reject,
    SigningOutcomeKind,
    SigningProxy,
    start_signing_proxy,
)
from tests.fixtures.fake_keystore import SIGN_RESPONSE_TYPE, FakeKeystore, sign


WIRE = KeystoreWire()


def _agent(seed: int) -> AgentIdentity:
    return AgentIdentity(raw=AGENT_KEY_PREFIX + bytes([seed]) * 32 + bytes(4))


def _sign_request(agent: AgentIdentity, msg_id: int, payload: bytes = b"data") -> KeystoreFrame:
    return KeystoreFrame.build(WIRE.sign_request_type, msg_id, agent.signing_key + payload)


class _Client:
    """A conductor-side keystore client speaking to the proxy."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.reader = reader
        self.writer = writer

    @classmethod
    async def connect(cls, path: str) -> "_Client":
        reader, writer = await asyncio.open_unix_connection(path)
        return cls(reader, writer)

    async def send(self, frame: KeystoreFrame):
        self.writer.write(frame.raw)
        await self.writer.drain()

    async def receive(self) -> KeystoreFrame | None:
        return await asyncio.wait_for(read_frame(self.reader, WIRE.max_frame_size), timeout=5)

    async def close(self):
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass


async def _setup(
    socket_dir: str,
    decision=None,
    with_keystore: bool = True,
) -> tuple[FakeKeystore | None, SigningProxy]:
    keystore_path = os.path.join(socket_dir, "keystore.sock")
    keystore = None
    if with_keystore:
        keystore = await FakeKeystore(keystore_path).start()

    proxy = await start_signing_proxy(
        keystore_path,
        os.path.join(socket_dir, "shim.sock"),
        decision=decision,
    )
    return keystore, proxy


async def _teardown(keystore: FakeKeystore | None, proxy: SigningProxy, *clients: _Client):
    for client in clients:
        await client.close()
    await proxy.stop()
    if keystore:
        await keystore.stop()


class TestForwarding:
    """Tests for frames the proxy relays."""

    @pytest.mark.asyncio
    async def test_sign_request_relayed_byte_for_byte(self, socket_dir):
        keystore, proxy = await _setup(socket_dir, decision=DenylistReject(Denylist()))
        client = await _Client.connect(proxy.listen_address)

        try:
            request = _sign_request(_agent(1), 11)
            await client.send(request)
            response = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert keystore.received == [request]
        assert response.wire_type == SIGN_RESPONSE_TYPE
        assert response.msg_id == 11
        assert response.body == sign(request.body)

        assert [outcome.kind for outcome in proxy.outcomes] == [
            SigningOutcomeKind.FORWARDED_SUCCESS
        ]

    @pytest.mark.asyncio
    async def test_non_sign_frames_relayed(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)
        client = await _Client.connect(proxy.listen_address)

        try:
            frame = KeystoreFrame.build(0x00000100, 3, b"\x00hello\xff")
            await client.send(frame)
            response = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert response.raw == frame.raw
        assert len(proxy.outcomes) == 0

    @pytest.mark.asyncio
    async def test_keystore_error_is_forwarded_failure(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)
        agent = _agent(2)
        keystore.refuse.add(agent.signing_key)
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(agent, 5))
            response = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert WIRE.error_reason(response) == "keystore refused to sign"
        assert proxy.outcomes[0].kind == SigningOutcomeKind.FORWARDED_FAILURE
        assert proxy.outcomes[0].detail == "keystore refused to sign"

    @pytest.mark.asyncio
    async def test_unreachable_keystore(self, socket_dir):
        """A missing keystore turns into an error frame, not a dropped client."""
        _, proxy = await _setup(socket_dir, with_keystore=False)
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(_agent(3), 8))
            response = await client.receive()

        finally:
            await _teardown(None, proxy, client)

        assert response.msg_id == 8
        assert WIRE.error_reason(response).startswith("keystore unavailable")
        assert proxy.outcomes[0].kind == SigningOutcomeKind.FORWARDED_FAILURE


class TestRejection:
    """Tests for synthetic failures."""

    @pytest.mark.asyncio
    async def test_denylisted_agent_never_reaches_keystore(self, socket_dir):
        denylist = Denylist()
        agent = _agent(4)
        denylist.add(agent)
        keystore, proxy = await _setup(socket_dir, decision=DenylistReject(denylist))
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(agent, 21))
            response = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert response.msg_id == 21
        assert WIRE.error_reason(response) == "purposeful signing error"
        assert keystore.connections_accepted == 0
        assert keystore.received == []
        assert proxy.upstream_connections_opened == 0

        outcome = proxy.outcomes[0]
        assert outcome.synthetic
        assert outcome.agent.matches(agent)

    @pytest.mark.asyncio
    async def test_other_agents_still_forwarded(self, socket_dir):
        denylist = Denylist([_agent(5)])
        keystore, proxy = await _setup(socket_dir, decision=DenylistReject(denylist))
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(_agent(5), 1))
            rejected = await client.receive()
            await client.send(_sign_request(_agent(6), 2))
            forwarded = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert WIRE.is_error(rejected)
        assert forwarded.wire_type == SIGN_RESPONSE_TYPE
        assert [frame.msg_id for frame in keystore.received] == [2]

    @pytest.mark.asyncio
    async def test_denylist_change_applies_to_next_request(self, socket_dir):
        """A request already forwarded completes; the next one is rejected."""
        denylist = Denylist()
        agent = _agent(7)
        keystore, proxy = await _setup(socket_dir, decision=DenylistReject(denylist))
        keystore.hold()
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(agent, 1))
            await asyncio.wait_for(keystore.sign_request_arrived.wait(), timeout=5)

            denylist.add(agent)
            await client.send(_sign_request(agent, 2))
            first_response = await client.receive()

            keystore.release()
            second_response = await client.receive()

        finally:
            keystore.release()
            await _teardown(keystore, proxy, client)

        assert first_response.msg_id == 2
        assert WIRE.is_error(first_response)
        assert second_response.msg_id == 1
        assert second_response.wire_type == SIGN_RESPONSE_TYPE
        assert [frame.msg_id for frame in keystore.received] == [1]

    @pytest.mark.asyncio
    async def test_async_strategy(self, socket_dir):
        async def decide(agent: AgentIdentity, payload: bytes):
            await asyncio.sleep(0)
            if payload == b"forbidden":
                return Reject("payload refused")
            return Forward()

        keystore, proxy = await _setup(socket_dir, decision=decide)
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(_agent(8), 1, b"forbidden"))
            response = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert WIRE.error_reason(response) == "payload refused"

    @pytest.mark.asyncio
    async def test_failing_strategy_rejects(self, socket_dir):
        def decide(agent: AgentIdentity, payload: bytes):
            raise LookupError("policy store offline")

        keystore, proxy = await _setup(socket_dir, decision=decide)
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(_agent(9), 1))
            response = await client.receive()

        finally:
            await _teardown(keystore, proxy, client)

        assert WIRE.error_reason(response) == "policy store offline"
        assert keystore.received == []


class TestProxyLifecycle:
    """Tests for start and stop."""

    @pytest.mark.asyncio
    async def test_stop_without_connections(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)

        assert proxy.running
        await proxy.stop()
        await proxy.stop()
        await keystore.stop()

        assert proxy.running is False
        assert not os.path.exists(proxy.listen_address)

    @pytest.mark.asyncio
    async def test_stop_closes_client_and_upstream(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)
        client = await _Client.connect(proxy.listen_address)

        try:
            await client.send(_sign_request(_agent(10), 1))
            await client.receive()
            assert proxy.active_connections == 1

            await proxy.stop()

            assert await client.receive() is None
            assert proxy.active_connections == 0
            assert not os.path.exists(proxy.listen_address)

            with pytest.raises(OSError):
                await asyncio.open_unix_connection(proxy.listen_address)

        finally:
            await _teardown(keystore, proxy, client)

    @pytest.mark.asyncio
    async def test_stop_during_upstream_connect_leaves_no_upstream(self, socket_dir):
        """
        A stop() that begins while the first upstream connect is still
        pending must not leave a keystore connection or pump behind.
        """
        keystore, proxy = await _setup(socket_dir)
        client = await _Client.connect(proxy.listen_address)

        connecting = asyncio.Event()
        gate = asyncio.Event()
        open_upstream = proxy.open_upstream

        async def gated_open_upstream():
            connecting.set()
            await gate.wait()
            return await open_upstream()

        proxy.open_upstream = gated_open_upstream

        try:
            await client.send(_sign_request(_agent(12), 1))
            await asyncio.wait_for(connecting.wait(), 5)

            stopping = asyncio.create_task(proxy.stop())
            await asyncio.sleep(0)
            gate.set()
            await asyncio.wait_for(stopping, 5)

            await asyncio.sleep(0.05)

            assert proxy.active_connections == 0
            assert keystore.open_connections == 0
            assert keystore.received == []
            assert await client.receive() is None

        finally:
            await _teardown(keystore, proxy, client)

    @pytest.mark.asyncio
    async def test_request_sent_with_stop_never_reaches_keystore(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)
        client = await _Client.connect(proxy.listen_address)
        agent = _agent(13)

        try:
            await client.send(_sign_request(agent, 1))
            assert (await client.receive()).msg_id == 1
            assert len(keystore.received) == 1

            client.writer.write(_sign_request(agent, 2).raw)
            await proxy.stop()

            await asyncio.sleep(0.05)

            assert [frame.msg_id for frame in keystore.received] == [1]
            assert keystore.open_connections == 0

        finally:
            await _teardown(keystore, proxy, client)

    @pytest.mark.asyncio
    async def test_malformed_frame_drops_only_that_client(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)
        bad_client = await _Client.connect(proxy.listen_address)
        good_client = await _Client.connect(proxy.listen_address)

        try:
            bad_client.writer.write(b"\xff\xff\xff\xff" + bytes(12))
            await bad_client.writer.drain()
            assert await bad_client.receive() is None

            await good_client.send(_sign_request(_agent(11), 4))
            response = await good_client.receive()

        finally:
            await _teardown(keystore, proxy, bad_client, good_client)

        assert response.msg_id == 4

    @pytest.mark.asyncio
    async def test_start_twice_is_rejected(self, socket_dir):
        keystore, proxy = await _setup(socket_dir)

        try:
            with pytest.raises(RuntimeError):
                await proxy.start()

        finally:
            await _teardown(keystore, proxy)
