"""
hcjfclient - network toolkit for the hcjf console.

    messages.py   → request/response model and JSON framing
    transport.py  → TCP connection, reader thread, state hooks
    correlator.py → matches responses to requests by id
    query.py      → client-side query wrappers
    session.py    → request helpers used by the console shells
"""

from .transport import JsonLineTransport, TransportConfig, TransportError  # noqa: F401
from .correlator import RemoteError, RequestTimeout, ResponseCorrelator  # noqa: F401
from .messages import (  # noqa: F401
    EvaluateQueryableMessage,
    ExecuteMessage,
    GetMetadataMessage,
    LoginMessage,
    Message,
    MessageError,
    ResponseError,
    ResponseMessage,
    ServerMetadata,
    SessionMetadata,
    parse_response,
)
from .query import ParameterizedQuery, Query, QueryCompileError, compile_query  # noqa: F401
from .session import ConsoleClient, SessionState  # noqa: F401

__all__ = [
    "JsonLineTransport",
    "TransportConfig",
    "TransportError",
    "RemoteError",
    "RequestTimeout",
    "ResponseCorrelator",
    "Message",
    "MessageError",
    "GetMetadataMessage",
    "LoginMessage",
    "EvaluateQueryableMessage",
    "ExecuteMessage",
    "ResponseError",
    "ResponseMessage",
    "ServerMetadata",
    "SessionMetadata",
    "parse_response",
    "Query",
    "ParameterizedQuery",
    "QueryCompileError",
    "compile_query",
    "ConsoleClient",
    "SessionState",
]

__version__ = "0.1.0"
