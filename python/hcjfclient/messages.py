"""Message model for the console protocol.

Requests and responses travel as JSON objects, one per line.  Every request
carries a UUID in ``id``; the server echoes it back on the matching
response so replies can be correlated regardless of arrival order.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


class MessageError(ValueError):
    """Raised when an inbound frame cannot be decoded."""


def _to_uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _ensure_str_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return []


def _json_default(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serialisable")


def encode(payload: Dict[str, Any]) -> bytes:
    """Encode *payload* as a single newline-terminated JSON frame."""
    return json.dumps(payload, default=_json_default).encode("utf-8") + b"\n"


@dataclass
class Message:
    """Base request; subclasses set ``kind`` and add their own fields."""

    kind: str = field(init=False, default="")
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    session_id: Optional[uuid.UUID] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.kind, "id": str(self.id)}
        payload["session"] = str(self.session_id) if self.session_id else None
        payload.update(self._body())
        return payload

    def _body(self) -> Dict[str, Any]:
        return {}


@dataclass
class GetMetadataMessage(Message):
    kind: str = field(init=False, default="get_metadata")


@dataclass
class LoginMessage(Message):
    parameters: Dict[str, Any] = field(default_factory=dict)
    kind: str = field(init=False, default="login")

    def _body(self) -> Dict[str, Any]:
        return {"parameters": dict(self.parameters)}


@dataclass
class EvaluateQueryableMessage(Message):
    query: str = ""
    parameters: List[Any] = field(default_factory=list)
    kind: str = field(init=False, default="evaluate")

    def _body(self) -> Dict[str, Any]:
        return {"query": self.query, "parameters": list(self.parameters)}


@dataclass
class ExecuteMessage(Message):
    command: str = ""
    parameters: List[Any] = field(default_factory=list)
    kind: str = field(init=False, default="execute")

    def _body(self) -> Dict[str, Any]:
        return {"command": self.command, "parameters": list(self.parameters)}


@dataclass
class ResponseError:
    type: str
    message: str

    def __str__(self) -> str:
        if self.type and self.message:
            return f"{self.type}: {self.message}"
        return self.message or self.type


@dataclass
class ResponseMessage:
    id: uuid.UUID
    value: Any = None
    error: Optional[ResponseError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class ServerMetadata:
    server_name: Optional[str] = None
    server_version: Optional[str] = None
    cluster_name: Optional[str] = None
    instance_id: Optional[str] = None
    login_required: bool = False
    login_fields: List[str] = field(default_factory=list)
    login_secret_fields: List[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "ServerMetadata":
        if isinstance(value, ServerMetadata):
            return value
        if not isinstance(value, dict):
            raise MessageError(f"invalid server metadata: {value!r}")
        return cls(
            server_name=value.get("server_name"),
            server_version=value.get("server_version"),
            cluster_name=value.get("cluster_name"),
            instance_id=value.get("instance_id"),
            login_required=bool(value.get("login_required", False)),
            login_fields=_ensure_str_list(value.get("login_fields")),
            login_secret_fields=_ensure_str_list(value.get("login_secret_fields")),
        )


@dataclass
class SessionMetadata:
    id: uuid.UUID
    session_name: str = ""

    @classmethod
    def from_value(cls, value: Any) -> "SessionMetadata":
        if isinstance(value, SessionMetadata):
            return value
        if not isinstance(value, dict):
            raise MessageError(f"invalid session metadata: {value!r}")
        session_id = _to_uuid(value.get("id"))
        if session_id is None:
            raise MessageError("session metadata missing id")
        return cls(id=session_id, session_name=str(value.get("session_name") or ""))


def parse_response(message: Dict[str, Any]) -> ResponseMessage:
    """Convert a raw inbound frame into a :class:`ResponseMessage`."""

    if message.get("type") not in ("response", None):
        raise MessageError(f"not a response frame: {message.get('type')!r}")
    message_id = _to_uuid(message.get("id"))
    if message_id is None:
        raise MessageError("response frame missing id")
    error_block = message.get("error")
    error: Optional[ResponseError] = None
    if isinstance(error_block, dict):
        error = ResponseError(
            type=str(error_block.get("type") or ""),
            message=str(error_block.get("message") or ""),
        )
    elif isinstance(error_block, str) and error_block:
        error = ResponseError(type="", message=error_block)
    return ResponseMessage(id=message_id, value=message.get("value"), error=error)


__all__ = [
    "MessageError",
    "Message",
    "GetMetadataMessage",
    "LoginMessage",
    "EvaluateQueryableMessage",
    "ExecuteMessage",
    "ResponseError",
    "ResponseMessage",
    "ServerMetadata",
    "SessionMetadata",
    "encode",
    "parse_response",
]
