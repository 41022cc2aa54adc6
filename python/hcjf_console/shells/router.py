"""Shell stack and built-in command handling."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from hcjfclient import RemoteError, RequestTimeout

from ..context import ConsoleContext
from ..output import emit_error, print_head
from ..parser import Command, parse_command
from ..terminal import Terminal
from .base import Shell, UsageError

if TYPE_CHECKING:  # pragma: no cover
    from ..editor import LineEditor

LOGGER = logging.getLogger("hcjf_console.router")

CLEAR_COMMAND = "clear"
SET_TIMEOUT_COMMAND = "set-timeout"
EXIT_COMMAND = "exit"
HELP_COMMAND = "help"
ALIAS_COMMAND = "alias"

BUILTINS: Dict[str, str] = {
    CLEAR_COMMAND: "Clear the screen and show the server banner",
    SET_TIMEOUT_COMMAND: "Set the request timeout of the active shell (ms)",
    EXIT_COMMAND: "Leave the active shell; exits the console at the top level",
    HELP_COMMAND: "Show available commands",
    ALIAS_COMMAND: "alias <name> <command> defines an alias; without arguments lists them",
}

BUILTIN_ALIASES: Dict[str, str] = {
    "quit": EXIT_COMMAND,
    "setTimeout": SET_TIMEOUT_COMMAND,
    "?": HELP_COMMAND,
}


class ShellRouter:
    """Routes commands to the innermost shell of a stack.

    The bottom of the stack is the root shell.  Shells push sub-shells by
    returning them from ``delegate_command``; ``exit`` pops one level and
    leaves the process when only the root is left.
    """

    def __init__(
        self,
        ctx: ConsoleContext,
        terminal: Terminal,
        root: Shell,
        *,
        editor: Optional["LineEditor"] = None,
    ) -> None:
        self.ctx = ctx
        self.terminal = terminal
        self.editor = editor
        self.stack: List[Shell] = [root]

    # ------------------------------------------------------------------
    # Stack
    # ------------------------------------------------------------------
    @property
    def root(self) -> Shell:
        return self.stack[0]

    @property
    def active(self) -> Shell:
        return self.stack[-1]

    @property
    def depth(self) -> int:
        return len(self.stack)

    @property
    def prompt(self) -> str:
        return "/".join(shell.display_prompt for shell in self.stack)

    def push(self, shell: Shell) -> None:
        LOGGER.debug("push %s", type(shell).__name__)
        self.stack.append(shell)

    def pop(self) -> Shell:
        if len(self.stack) == 1:
            raise SystemExit(0)
        shell = self.stack.pop()
        LOGGER.debug("pop %s", type(shell).__name__)
        return shell

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def resolve(self, name: str) -> str:
        name = self.ctx.resolve_alias(name)
        return BUILTIN_ALIASES.get(name, name)

    def execute(self, command: Command) -> None:
        name = self.resolve(command.name)
        if name == CLEAR_COMMAND:
            self.clear()
        elif name == SET_TIMEOUT_COMMAND:
            self._set_timeout(command)
        elif name == EXIT_COMMAND:
            self.pop()
        elif name == HELP_COMMAND:
            self._help()
        elif name == ALIAS_COMMAND:
            self._alias(command)
        else:
            if name != command.name:
                line = f"{name} {command.arguments_text}".rstrip()
                command = Command(line=line, name=name, parameters=command.parameters)
            pushed = self.active.delegate_command(command)
            if pushed is not None:
                self.push(pushed)

    def handle_line(self, line: str) -> None:
        """Parse and execute one line; failures are reported, never raised."""
        if not line.strip():
            return
        command = parse_command(line, self.ctx.date_format)
        try:
            self.execute(command)
        except (SystemExit, KeyboardInterrupt):
            raise
        except RequestTimeout as exc:
            LOGGER.info("%s", exc)
        except UsageError as exc:
            emit_error(self.terminal, str(exc))
        except RemoteError as exc:
            LOGGER.debug("remote command %s failed", command.name, exc_info=True)
            emit_error(self.terminal, f"RemoteError: {exc}")
        except Exception as exc:
            LOGGER.exception("command failed")
            emit_error(self.terminal, f"Command '{command.name}' failed: {type(exc).__name__}: {exc}")

    # ------------------------------------------------------------------
    # Built-ins
    # ------------------------------------------------------------------
    def clear(self) -> None:
        if self.editor is not None:
            self.editor.clear()
        print_head(self.terminal, self.ctx.metadata)

    def _set_timeout(self, command: Command) -> None:
        value = command.parameters[0] if len(command.parameters) == 1 else None
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise UsageError("You must indicate the timeout in milliseconds (i.e. set-timeout 5000)")
        self.active.timeout_ms = value
        self.terminal.print_line(f"Timeout: {value} ms")

    def _help(self) -> None:
        lines = [f"{name:<14} {text}" for name, text in BUILTINS.items()]
        lines.extend(f"{name:<14} {text}" for name, text in self.active.commands.items())
        with self.terminal.lock:
            for line in lines:
                self.terminal.print_line(line)

    def _alias(self, command: Command) -> None:
        if len(command.parameters) == 2:
            alias, target = (str(value) for value in command.parameters)
            self.ctx.set_alias(alias, target)
            self.terminal.print_line(f"{alias} -> {target}")
            return
        if command.parameters:
            raise UsageError("usage: alias <name> <command>")
        if not self.ctx.aliases:
            self.terminal.print_line("No aliases defined")
            return
        for alias, target in sorted(self.ctx.aliases.items()):
            self.terminal.print_line(f"  {alias}={target}")
