"""Console application: connect, log in, then run the command loop."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from hcjfclient import ServerMetadata, TransportError

from .context import ConsoleContext
from .editor import EditorClosed, LineEditor
from .output import emit_error
from .shells import DefaultShell, ShellRouter
from .spinner import Outcome, ProgressIndicator
from .terminal import Terminal, TtyTerminal

LOGGER = logging.getLogger("hcjf_console.console")

TRYING_WITH = "Trying with %s:%d"
CONNECTING = "Connecting..."
CONNECTED = "Connected"
UNABLE_TO_CONNECT = "Unable to connect"
CONNECTION_LOST = "Connection lost %s:%d"
LOGGING_IN = "Logging in..."
LOGIN_FAIL = "Login fail"
PROMPT = "%s$%s "
PROMPT_COLOR = "ansiyellow"
READ_FIELD = "%s: "


class Console:
    """Interactive client bound to one server."""

    def __init__(
        self,
        ctx: ConsoleContext,
        terminal: Optional[Terminal] = None,
        *,
        editor: Optional[LineEditor] = None,
    ) -> None:
        self.ctx = ctx
        self.terminal = terminal if terminal is not None else TtyTerminal()
        self.editor = editor if editor is not None else LineEditor(self.terminal)
        self.router: Optional[ShellRouter] = None

    def run(self) -> int:
        self.editor.start()
        try:
            if not self.bootstrap():
                return 1
            if self.ctx.metadata and self.ctx.metadata.login_required:
                self.login()
            self.router = ShellRouter(
                self.ctx,
                self.terminal,
                DefaultShell(self.ctx, self.terminal, prompt=self.ctx.prompt),
                editor=self.editor,
            )
            self.router.clear()
            return self.loop()
        except SystemExit as exc:
            return exc.code if isinstance(exc.code, int) else 0
        except EditorClosed:
            self.terminal.print_line()
            return 0
        finally:
            self.editor.stop()
            self.ctx.disconnect()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    def bootstrap(self) -> bool:
        """Connect and fetch server metadata under a spinner."""
        self.terminal.print_line(TRYING_WITH % (self.ctx.host, self.ctx.port))
        spinner = ProgressIndicator(self.terminal, CONNECTING, self.ctx.connect_timeout)
        outcome = spinner.run(self._connect, lambda _: CONNECTED)
        if outcome is not Outcome.DONE:
            LOGGER.warning("connection to %s:%s failed: %s", self.ctx.host, self.ctx.port, spinner.result or outcome.value)
            return False
        return self.ctx.connected and self.ctx.metadata is not None

    def _connect(self) -> ServerMetadata:
        client = self.ctx.ensure_client()
        client.connect()
        if not client.connected:
            raise TransportError(UNABLE_TO_CONNECT)
        metadata = client.get_metadata()
        if metadata is None:
            raise TransportError(UNABLE_TO_CONNECT)
        self.ctx.metadata = metadata
        return metadata

    def login(self) -> bool:
        metadata = self.ctx.metadata
        assert metadata is not None
        self.terminal.print_line()
        parameters: Dict[str, Any] = {}
        for field_name in metadata.login_fields:
            parameters[field_name] = self.editor.read(READ_FIELD, None, field_name)
        for field_name in metadata.login_secret_fields:
            parameters[field_name] = self.editor.read_secret(READ_FIELD, None, field_name)
        client = self.ctx.ensure_client()
        spinner = ProgressIndicator(self.terminal, LOGGING_IN, self.ctx.timeout)
        outcome = spinner.run(lambda: client.login(parameters))
        if outcome is not Outcome.DONE:
            LOGGER.info("login failed: %s", spinner.result or outcome.value)
            emit_error(self.terminal, LOGIN_FAIL)
            return False
        session = spinner.value
        self.ctx.session_id = session.id
        self.ctx.session_name = session.session_name or self.ctx.session_name
        self.terminal.print_line(str(session.id))
        self.terminal.print_line(self.ctx.session_name)
        return True

    # ------------------------------------------------------------------
    # Command loop
    # ------------------------------------------------------------------
    def loop(self) -> int:
        router = self.router
        assert router is not None
        while True:
            if not self.ctx.connected:
                emit_error(self.terminal, CONNECTION_LOST % (self.ctx.host, self.ctx.port))
                return 1
            line = self.editor.read(PROMPT, PROMPT_COLOR, self.ctx.session_name, router.prompt)
            router.handle_line(line)
