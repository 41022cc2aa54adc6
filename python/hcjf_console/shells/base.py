"""Shell base class shared by the default and query shells."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from hcjfclient import Query, RequestTimeout

from ..context import ConsoleContext
from ..output import is_collection, print_collection, print_object
from ..parser import Command
from ..spinner import Outcome, ProgressIndicator
from ..terminal import Terminal

EVALUATING_QUERY = "Evaluating query..."
RESULT_SET_SIZE = "Result set size: %d"


class UsageError(ValueError):
    """A command was called with missing or malformed arguments."""


def _result_size(value: Any) -> str:
    if is_collection(value):
        return RESULT_SET_SIZE % len(value)
    return ""


def _empty_summary(value: Any) -> str:
    return ""


class Shell:
    """One level of the shell stack.

    Subclasses implement :meth:`delegate_command`; returning a new shell from
    it asks the router to push that shell on top of this one.
    """

    commands: Dict[str, str] = {}

    def __init__(
        self,
        ctx: ConsoleContext,
        terminal: Terminal,
        *,
        prompt: str = "",
        timeout_ms: Optional[int] = None,
    ) -> None:
        self.ctx = ctx
        self.terminal = terminal
        self.prompt = prompt
        self.timeout_ms = int(timeout_ms if timeout_ms is not None else ctx.timeout_ms)

    @property
    def display_prompt(self) -> str:
        return self.prompt

    def delegate_command(self, command: Command) -> Optional["Shell"]:
        raise NotImplementedError("Shell must implement delegate_command()")

    # ------------------------------------------------------------------
    # Remote calls
    # ------------------------------------------------------------------
    def _round_trip(self, label: str, fn: Callable[[], Any], summary: Callable[[Any], str]) -> Any:
        spinner = ProgressIndicator(self.terminal, label, self.timeout_ms / 1000.0)
        outcome = spinner.run(fn, summary)
        if outcome is Outcome.TIMEOUT:
            raise RequestTimeout(f"{label} timed out after {self.timeout_ms} ms")
        if outcome is Outcome.FAIL and spinner.error is not None:
            raise spinner.error
        return spinner.value

    def evaluate_queryable(self, query: Query) -> Any:
        client = self.ctx.ensure_client()
        return self._round_trip(EVALUATING_QUERY, lambda: client.evaluate(query), _result_size)

    def execute_command(self, command: Command) -> Any:
        client = self.ctx.ensure_client()
        return self._round_trip(
            EVALUATING_QUERY,
            lambda: client.execute(command.name, list(command.parameters)),
            _empty_summary,
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def print_object(self, value: Any) -> None:
        print_object(self.terminal, value)

    def print_collection(self, items: Any, start: int, end: int) -> None:
        print_collection(self.terminal, items, start, end)
