"""Stub terminal, client and server used by the console tests."""

from __future__ import annotations

import json
import socket
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from hcjfclient import Query, RemoteError, ResponseError, ServerMetadata, SessionMetadata
from hcjf_console.context import ConsoleContext
from hcjf_console.terminal import Terminal


class FakeTerminal(Terminal):
    """Records output and keeps a one-line screen model with a cursor column."""

    def __init__(self) -> None:
        super().__init__()
        self.lines: List[str] = []
        self.line: List[str] = []
        self.column = 0
        self.written: List[str] = []
        self.styled: List[Tuple[str, Optional[str], Optional[str]]] = []
        self.clears = 0
        self.newlines = 0
        self._input: Deque[bytes] = deque()
        self._input_ready = threading.Event()

    # Output -----------------------------------------------------------
    def write(self, text: str) -> None:
        self.written.append(text)
        for char in text:
            if char == "\n":
                self.newlines += 1
                self.lines.append("".join(self.line))
                self.line = []
                self.column = 0
                continue
            if self.column < len(self.line):
                self.line[self.column] = char
            else:
                self.line.extend(" " * (self.column - len(self.line)))
                self.line.append(char)
            self.column += 1

    def write_styled(self, text, color=None, *, bgcolor=None, bold=False) -> None:
        self.styled.append((text, color, bgcolor))
        self.write(text)

    def erase_line(self) -> None:
        self.line = []
        self.column = 0

    def move_to_column(self, column: int) -> None:
        self.column = column

    def clear_screen(self) -> None:
        self.clears += 1
        self.lines = []
        self.line = []
        self.column = 0

    @property
    def screen_line(self) -> str:
        return "".join(self.line)

    @property
    def text(self) -> str:
        return "".join(self.written)

    def styled_with(self, color: str) -> List[str]:
        return [text for text, fg, _ in self.styled if fg == color]

    # Input ------------------------------------------------------------
    def feed_input(self, data: bytes) -> None:
        self._input.append(data)
        self._input_ready.set()

    def poll(self, timeout: float) -> bool:
        if self._input:
            return True
        self._input_ready.wait(timeout)
        self._input_ready.clear()
        return bool(self._input)

    def read(self, size: int) -> bytes:
        if not self._input:
            return b""
        return self._input.popleft()


@dataclass
class StubClient:
    """Stands in for ConsoleClient; answers from canned values."""

    evaluate_results: List[Any] = field(default_factory=list)
    execute_results: List[Any] = field(default_factory=list)
    evaluated: List[Query] = field(default_factory=list)
    executed: List[Tuple[str, List[Any]]] = field(default_factory=list)
    connected: bool = True
    delay: Optional[threading.Event] = None
    metadata: ServerMetadata = field(default_factory=lambda: ServerMetadata(server_name="stub", server_version="1.0"))
    connect_error: Optional[BaseException] = None
    login_result: Any = None
    logins: List[Dict[str, Any]] = field(default_factory=list)

    def _next(self, values: List[Any]) -> Any:
        if self.delay is not None:
            self.delay.wait(5.0)
        value = values.pop(0) if values else None
        if isinstance(value, BaseException):
            raise value
        return value

    def evaluate(self, query: Query, **_: Any) -> Any:
        self.evaluated.append(query)
        return self._next(self.evaluate_results)

    def execute(self, command: str, parameters: List[Any], **_: Any) -> Any:
        self.executed.append((command, list(parameters)))
        return self._next(self.execute_results)

    def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def get_metadata(self) -> ServerMetadata:
        return self.metadata

    def login(self, parameters: Dict[str, Any]) -> SessionMetadata:
        self.logins.append(dict(parameters))
        if isinstance(self.login_result, BaseException):
            raise self.login_result
        return self.login_result or session_metadata(str(parameters.get("user", "guest")))

    def close(self) -> None:
        self.connected = False


class StubContext(ConsoleContext):
    def __init__(self, client: Optional[StubClient] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.stub_client = client or StubClient()
        self.metadata = self.stub_client.metadata

    def ensure_client(self):  # type: ignore[override]
        return self.stub_client

    @property
    def connected(self) -> bool:  # type: ignore[override]
        return self.stub_client.connected

    def disconnect(self) -> None:
        self.stub_client.close()


def remote_error(message: str) -> RemoteError:
    return RemoteError(ResponseError(type="QueryException", message=message))


ROWS = [{"id": index, "name": f"row{index}"} for index in range(1, 13)]


class DummyConsoleServer:
    """JSON-lines server speaking the console protocol on 127.0.0.1."""

    def __init__(
        self,
        *,
        login_required: bool = False,
        handlers: Optional[Dict[str, Callable[[dict], Any]]] = None,
    ) -> None:
        self.login_required = login_required
        self.handlers = dict(handlers or {})
        self.received: List[dict] = []
        self.session_id = uuid.uuid4()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self.port = self._sock.getsockname()[1]
        self._sock.listen(5)
        self._stop = threading.Event()
        self.connections: List[socket.socket] = []
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except OSError:
                break
            conn.settimeout(0.5)
            self.connections.append(conn)
            threading.Thread(target=self._handle_client, args=(conn,), daemon=True).start()

    def _handle_client(self, conn: socket.socket) -> None:
        buffer = b""
        with conn:
            while not self._stop.is_set():
                try:
                    chunk = conn.recv(4096)
                except socket.timeout:
                    continue
                except OSError:
                    break
                if not chunk:
                    break
                buffer += chunk
                while b"\n" in buffer:
                    line, buffer = buffer.split(b"\n", 1)
                    if not line:
                        continue
                    message = json.loads(line.decode("utf-8"))
                    self.received.append(message)
                    response = self._respond(message)
                    if response is None:
                        continue
                    replies = response if isinstance(response, list) else [response]
                    try:
                        for reply in replies:
                            conn.sendall(json.dumps(reply).encode("utf-8") + b"\n")
                    except OSError:
                        return

    def _respond(self, message: dict) -> Any:
        kind = message.get("type")
        handler = self.handlers.get(kind) or self.handlers.get(message.get("command", ""))
        if handler is not None:
            return handler(message)
        reply = {"type": "response", "id": message.get("id"), "value": None, "error": None}
        if kind == "get_metadata":
            reply["value"] = {
                "server_name": "dummy",
                "server_version": "2.1",
                "cluster_name": "local",
                "instance_id": "i-1",
                "login_required": self.login_required,
                "login_fields": ["user"],
                "login_secret_fields": ["password"],
            }
        elif kind == "login":
            params = message.get("parameters") or {}
            if params.get("password") != "secret":
                reply["error"] = {"type": "LoginException", "message": "bad credentials"}
            else:
                reply["value"] = {"id": str(self.session_id), "session_name": params.get("user")}
        elif kind == "evaluate":
            reply["value"] = ROWS
        elif kind == "execute":
            reply["value"] = {"command": message.get("command"), "parameters": message.get("parameters")}
        return reply

    def drop_clients(self) -> None:
        for conn in list(self.connections):
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def stop(self) -> None:
        self._stop.set()
        self.drop_clients()
        try:
            dummy = socket.create_connection(("127.0.0.1", self.port), timeout=0.2)
            dummy.close()
        except OSError:
            pass
        self._sock.close()
        self._thread.join(timeout=0.5)


def session_metadata(name: str = "admin") -> SessionMetadata:
    return SessionMetadata(id=uuid.uuid4(), session_name=name)
