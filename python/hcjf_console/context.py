"""Per-session console state shared by the loop, the editor and the shells."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from hcjfclient import ConsoleClient, ServerMetadata, TransportConfig

from .parser import DEFAULT_DATE_FORMAT

LOGGER = logging.getLogger("hcjf_console.context")

DEFAULT_CONNECT_TIMEOUT_MS = 120000
DEFAULT_COMMAND_TIMEOUT_MS = 10000
DEFAULT_PAGE_SIZE = 5


@dataclass
class ConsoleContext:
    """Holds shared console state."""

    host: str = "127.0.0.1"
    port: int = 5900
    prompt: str = ":"
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS
    date_format: str = DEFAULT_DATE_FORMAT
    page_size: int = DEFAULT_PAGE_SIZE
    session_name: str = "guest"
    session_id: Optional[uuid.UUID] = None
    metadata: Optional[ServerMetadata] = None
    aliases: Dict[str, str] = field(default_factory=dict)
    _client: Optional[ConsoleClient] = field(default=None, init=False, repr=False)

    @property
    def timeout(self) -> float:
        """Command timeout in seconds."""
        return self.timeout_ms / 1000.0

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def client(self) -> Optional[ConsoleClient]:
        return self._client

    def ensure_client(self) -> ConsoleClient:
        """Create the ConsoleClient if needed."""
        if self._client is None:
            self._client = ConsoleClient(transport_config=TransportConfig(host=self.host, port=self.port))
        return self._client

    @property
    def connected(self) -> bool:
        return self._client is not None and self._client.connected

    def disconnect(self) -> None:
        client = self._client
        if not client:
            return
        try:
            client.close()
        except Exception as exc:
            LOGGER.debug("client close failed: %s", exc)
        self._client = None

    def resolve_alias(self, name: str) -> str:
        return self.aliases.get(name, name)

    def set_alias(self, alias: str, command: str) -> None:
        if alias == command:
            self.aliases.pop(alias, None)
            return
        self.aliases[alias] = command
