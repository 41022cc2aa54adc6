import json
import socket
import threading
import time
import uuid

import pytest

from hcjfclient import (
    ConsoleClient,
    JsonLineTransport,
    RemoteError,
    TransportConfig,
    TransportError,
    compile_query,
)
from hcjfclient.messages import encode, parse_response

from console_stubs import ROWS, DummyConsoleServer


def _client(port, **kwargs):
    config = TransportConfig(host="127.0.0.1", port=port, connect_timeout=1.0, reconnect_backoff=0.05, max_retries=2)
    client = ConsoleClient(transport_config=config, poll_interval=0.05, **kwargs)
    client.connect()
    return client


def _wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while not predicate():
        if time.time() > deadline:
            return False
        time.sleep(0.01)
    return True


def test_metadata_round_trip(server):
    client = _client(server.port)
    try:
        metadata = client.get_metadata()
        assert metadata.server_name == "dummy"
        assert metadata.server_version == "2.1"
        assert metadata.login_required is False
        assert client.state.metadata is metadata
    finally:
        client.close()


def test_login_stores_session_and_tags_later_requests():
    server = DummyConsoleServer(login_required=True)
    client = _client(server.port)
    try:
        session = client.login({"user": "admin", "password": "secret"})
        assert session.id == server.session_id
        assert session.session_name == "admin"
        client.execute("ping", [])
        assert server.received[-1]["session"] == str(server.session_id)
    finally:
        client.close()
        server.stop()


def test_login_failure_raises_remote_error():
    server = DummyConsoleServer(login_required=True)
    client = _client(server.port)
    try:
        with pytest.raises(RemoteError) as excinfo:
            client.login({"user": "admin", "password": "nope"})
        assert excinfo.value.error_type == "LoginException"
        assert "bad credentials" in str(excinfo.value)
    finally:
        client.close()
        server.stop()


def test_evaluate_sends_query_and_parameters(server):
    client = _client(server.port)
    try:
        query = compile_query("SELECT * FROM rows WHERE id > ?").parameterized()
        query.add(3)
        assert client.evaluate(query) == ROWS
        sent = server.received[-1]
        assert sent["type"] == "evaluate"
        assert sent["query"] == "SELECT * FROM rows WHERE id > ?"
        assert sent["parameters"] == [3]
    finally:
        client.close()


def test_execute_serialises_typed_parameters(server):
    client = _client(server.port)
    value = uuid.uuid4()
    try:
        result = client.execute("store", ["a", 1, 2.5, True, None, value])
        assert result == {"command": "store", "parameters": ["a", 1, 2.5, True, None, str(value)]}
    finally:
        client.close()


def test_responses_are_matched_by_id_out_of_order():
    held = []

    def _reverse(message):
        reply = {"type": "response", "id": message["id"], "value": message["command"]}
        if not held:
            held.append(reply)
            return None
        return [reply, held[0]]

    server = DummyConsoleServer(handlers={"execute": _reverse})
    client = _client(server.port)
    results = {}
    try:
        first = threading.Thread(target=lambda: results.setdefault("first", client.execute("first", [])))
        first.start()
        assert _wait_for(lambda: len(held) == 1)
        assert client.execute("second", []) == "second"
        first.join(timeout=2.0)
        assert results["first"] == "first"
    finally:
        client.close()
        server.stop()


def test_cancel_returns_none_when_server_never_answers():
    server = DummyConsoleServer(handlers={"execute": lambda message: None})
    client = _client(server.port)
    cancel = threading.Event()
    try:
        threading.Timer(0.1, cancel.set).start()
        assert client.execute("silent", [], cancel=cancel) is None
    finally:
        client.close()
        server.stop()


def test_server_error_string_becomes_remote_error():
    server = DummyConsoleServer(
        handlers={"execute": lambda message: {"type": "response", "id": message["id"], "error": "boom"}}
    )
    client = _client(server.port)
    try:
        with pytest.raises(RemoteError, match="boom"):
            client.execute("explode", [])
    finally:
        client.close()
        server.stop()


def test_connect_failure_raises_transport_error():
    probe = DummyConsoleServer()
    port = probe.port
    probe.stop()
    config = TransportConfig(host="127.0.0.1", port=port, connect_timeout=0.2, reconnect_backoff=0.01, max_retries=2)
    transport = JsonLineTransport(config)
    with pytest.raises(TransportError):
        transport.connect()
    assert transport.state == "disconnected"


def test_transport_reports_disconnect(server):
    transport = JsonLineTransport(TransportConfig(port=server.port, connect_timeout=1.0))
    states = []
    transport.register_on_connect(states.append)
    transport.register_on_disconnect(states.append)
    transport.connect()
    assert transport.connected
    assert _wait_for(lambda: server.connections)
    server.drop_clients()
    assert _wait_for(lambda: not transport.connected)
    assert states == ["connected", "disconnected"]
    with pytest.raises(TransportError):
        transport.send({"type": "execute"})
    transport.close()


def test_peer_closing_right_after_accept_leaves_transport_disconnected():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)

    def _accept_and_close():
        conn, _ = listener.accept()
        conn.close()

    acceptor = threading.Thread(target=_accept_and_close, daemon=True)
    acceptor.start()
    transport = JsonLineTransport(TransportConfig(port=listener.getsockname()[1], connect_timeout=1.0))
    states = []
    transport.register_on_connect(states.append)
    transport.register_on_disconnect(states.append)
    try:
        transport.connect()
        assert _wait_for(lambda: transport.state == "disconnected")
        assert states == ["connected", "disconnected"]
    finally:
        transport.close()
        acceptor.join(timeout=1.0)
        listener.close()


def test_transport_dispatches_frames_to_handler(server):
    frames = []
    transport = JsonLineTransport(TransportConfig(port=server.port, connect_timeout=1.0))
    transport.set_message_handler(frames.append)
    transport.connect()
    try:
        transport.send({"type": "get_metadata", "id": str(uuid.uuid4())})
        assert _wait_for(lambda: len(frames) == 1)
        assert frames[0]["value"]["server_name"] == "dummy"
    finally:
        transport.close()


def test_encode_and_parse_response():
    message_id = uuid.uuid4()
    frame = json.loads(encode({"id": message_id}).decode("utf-8"))
    assert frame == {"id": str(message_id)}
    response = parse_response(
        {"type": "response", "id": str(message_id), "error": {"type": "E", "message": "bad"}}
    )
    assert response.failed
    assert str(response.error) == "E: bad"
