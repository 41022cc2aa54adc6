"""Client session built on top of the JSON-lines transport."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .correlator import RemoteError, ResponseCorrelator
from .messages import (
    EvaluateQueryableMessage,
    ExecuteMessage,
    GetMetadataMessage,
    LoginMessage,
    Message,
    ResponseMessage,
    ServerMetadata,
    SessionMetadata,
)
from .query import Query
from .transport import JsonLineTransport, TransportConfig, TransportError

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    session_id: Optional[uuid.UUID] = None
    session_name: str = "guest"
    metadata: Optional[ServerMetadata] = None


class ConsoleClient:
    """High-level request helpers: send a message and wait for its response."""

    def __init__(
        self,
        transport: Optional[JsonLineTransport] = None,
        *,
        transport_config: Optional[TransportConfig] = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.transport = transport or JsonLineTransport(transport_config or TransportConfig())
        self.correlator = ResponseCorrelator(self.transport.send, poll_interval=poll_interval)
        self.transport.set_message_handler(self.correlator.handle_frame)
        self.state = SessionState()

    @property
    def connected(self) -> bool:
        return self.transport.connected

    def connect(self, *, retry: bool = True) -> None:
        self.transport.connect(retry=retry)

    def close(self) -> None:
        self.correlator.close()
        self.transport.close()

    def round_trip(self, message: Message, *, cancel: Optional[threading.Event] = None) -> Optional[ResponseMessage]:
        """Send *message* and wait for the response.

        Raises :class:`RemoteError` if the response carries a failure.
        Returns ``None`` only if the wait was cancelled.
        """
        if message.session_id is None:
            message.session_id = self.state.session_id
        message_id = self.correlator.send(message)
        response = self.correlator.get_result(message_id, cancel=cancel)
        if response is not None and response.error is not None:
            raise RemoteError(response.error)
        return response

    def _value_of(self, message: Message, cancel: Optional[threading.Event]) -> Any:
        response = self.round_trip(message, cancel=cancel)
        return response.value if response is not None else None

    def get_metadata(self, *, cancel: Optional[threading.Event] = None) -> Optional[ServerMetadata]:
        value = self._value_of(GetMetadataMessage(), cancel)
        if value is None:
            return None
        metadata = ServerMetadata.from_value(value)
        self.state.metadata = metadata
        return metadata

    def login(self, parameters: Dict[str, Any], *, cancel: Optional[threading.Event] = None) -> SessionMetadata:
        value = self._value_of(LoginMessage(parameters=dict(parameters)), cancel)
        if value is None:
            raise TransportError("login cancelled")
        session = SessionMetadata.from_value(value)
        self.state.session_id = session.id
        self.state.session_name = session.session_name or self.state.session_name
        logger.info("logged in as %s (%s)", self.state.session_name, session.id)
        return session

    def evaluate(self, query: Query, *, cancel: Optional[threading.Event] = None) -> Any:
        message = EvaluateQueryableMessage(query=query.text, parameters=list(query.parameters))
        return self._value_of(message, cancel)

    def execute(self, command: str, parameters: List[Any], *, cancel: Optional[threading.Event] = None) -> Any:
        return self._value_of(ExecuteMessage(command=command, parameters=list(parameters)), cancel)
