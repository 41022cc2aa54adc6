"""
Transport layer for hcjfclient.

Responsibilities:
    * Manage the JSON-lines TCP connection to the console server.
    * Hand outbound frames to the socket (fire-and-forget).
    * Feed every inbound frame to a single registered handler from one
      reader thread.
    * Surface connection state changes to callers.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .messages import encode

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], None]


class TransportError(RuntimeError):
    """Raised when the transport cannot complete an operation."""


@dataclass
class TransportConfig:
    host: str = "127.0.0.1"
    port: int = 5900
    connect_timeout: float = 2.0
    reconnect_backoff: float = 0.5
    max_backoff: float = 5.0
    max_retries: int = 5


@dataclass
class JsonLineTransport:
    """Thin JSON-over-TCP transport with a background reader thread."""

    config: TransportConfig = field(default_factory=TransportConfig)

    _sock: Optional[socket.socket] = field(init=False, default=None)
    _send_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _connect_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _state_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _state: str = field(init=False, default="disconnected")
    _shutdown: bool = field(init=False, default=False)
    _reader_thread: Optional[threading.Thread] = field(init=False, default=None)
    _message_handler: Optional[MessageHandler] = field(init=False, default=None)
    _on_connect: list[Callable[[str], None]] = field(init=False, default_factory=list)
    _on_disconnect: list[Callable[[str], None]] = field(init=False, default_factory=list)

    #
    # Connection lifecycle helpers
    #
    @property
    def state(self) -> str:
        with self._state_lock:
            return self._state

    @property
    def connected(self) -> bool:
        return self.state == "connected"

    def register_on_connect(self, callback: Callable[[str], None]) -> None:
        self._on_connect.append(callback)

    def register_on_disconnect(self, callback: Callable[[str], None]) -> None:
        self._on_disconnect.append(callback)

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        self._message_handler = handler

    def connect(self, *, retry: bool = True) -> None:
        """Open the TCP connection and start the reader thread."""
        with self._connect_lock:
            if self._sock:
                return
            if self._shutdown:
                raise TransportError("transport closed")
            self._set_state("connecting")
            try:
                sock = self._connect_with_backoff(retry=retry)
            except TransportError:
                self._set_state("disconnected")
                raise
            self._sock = sock
            self._set_state("connected")
            self._reader_thread = threading.Thread(
                target=self._reader_loop,
                args=(sock,),
                name="hcjfclient-reader",
                daemon=True,
            )
            self._reader_thread.start()

    def close(self) -> None:
        self._shutdown = True
        self._handle_disconnect()
        reader = self._reader_thread
        if reader and reader.is_alive() and reader is not threading.current_thread():
            reader.join(timeout=0.5)

    def send(self, payload: Dict[str, Any]) -> None:
        """Write one frame; does not wait for any reply."""
        if self._shutdown:
            raise TransportError("transport closed")
        sock = self._sock
        if sock is None:
            raise TransportError("not connected")
        data = encode(payload)
        try:
            with self._send_lock:
                sock.sendall(data)
        except OSError as exc:
            self._handle_disconnect(exc)
            raise TransportError(f"send failed: {exc}") from exc

    #
    # Internal helpers
    #
    def _connect_with_backoff(self, *, retry: bool) -> socket.socket:
        attempt = 0
        backoff = self.config.reconnect_backoff
        last_error: Optional[OSError] = None
        while not self._shutdown:
            attempt += 1
            try:
                sock = socket.create_connection(
                    (self.config.host, self.config.port),
                    timeout=self.config.connect_timeout,
                )
                sock.settimeout(None)
                return sock
            except OSError as exc:
                last_error = exc
                logger.debug("connect attempt %d to %s:%s failed: %s", attempt, self.config.host, self.config.port, exc)
                if not retry:
                    break
                if self.config.max_retries > 0 and attempt >= self.config.max_retries:
                    break
                time.sleep(backoff)
                backoff = min(backoff * 2, self.config.max_backoff)
        if last_error is None:
            raise TransportError("connect failed: transport closed")
        raise TransportError(f"connect failed: {last_error}") from last_error

    def _reader_loop(self, sock: socket.socket) -> None:
        buffer = b""
        while not self._shutdown:
            try:
                chunk = sock.recv(4096)
            except OSError as exc:
                self._handle_disconnect(exc)
                break
            if not chunk:
                break
            buffer += chunk
            while b"\n" in buffer:
                line, buffer = buffer.split(b"\n", 1)
                if not line.strip():
                    continue
                try:
                    message = json.loads(line.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError):
                    logger.warning("dropping undecodable frame (%d bytes)", len(line))
                    continue
                if isinstance(message, dict):
                    self._dispatch(message)
        self._handle_disconnect()

    def _dispatch(self, message: Dict[str, Any]) -> None:
        handler = self._message_handler
        if not handler:
            return
        try:
            handler(message)
        except Exception:
            logger.exception("message handler failed")

    def _handle_disconnect(self, exc: Optional[BaseException] = None) -> None:
        sock = self._sock
        if sock:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            try:
                sock.close()
            except OSError:
                pass
        self._sock = None
        if exc is not None:
            logger.info("connection lost: %s", exc)
        self._set_state("disconnected")

    def _set_state(self, new_state: str) -> None:
        with self._state_lock:
            if self._state == new_state:
                return
            self._state = new_state
        logger.debug("transport state -> %s", new_state)
        callbacks: list[Callable[[str], None]]
        if new_state == "connected":
            callbacks = list(self._on_connect)
        elif new_state == "disconnected":
            callbacks = list(self._on_disconnect)
        else:
            callbacks = []
        for callback in callbacks:
            try:
                callback(new_state)
            except Exception:
                logger.exception("state callback failed")
