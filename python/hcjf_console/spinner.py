"""Spinner shown while a request is in flight."""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Any, Callable, Optional

from .terminal import Terminal

LOGGER = logging.getLogger("hcjf_console.spinner")

PROCESSING_CHARS = ("\\", "|", "/", "-")


class Outcome(enum.Enum):
    DONE = "Done"
    FAIL = "Fail"
    TIMEOUT = "Timeout"


OUTCOME_COLORS = {
    Outcome.DONE: "ansigreen",
    Outcome.FAIL: "ansired",
    Outcome.TIMEOUT: "ansicyan",
}


def _no_summary(value: Any) -> str:
    return ""


class ProgressIndicator:
    """Render ``label glyph elapsed`` until the work ends or the timeout hits.

    Usage::

        spinner = ProgressIndicator(terminal, "Evaluating query...", timeout=10.0)
        spinner.start()
        spinner.consume(lambda: client.evaluate(query))
        outcome = spinner.join()

    Exactly one of :class:`Outcome` is reported.  On timeout the background
    work is left running; whatever it returns later is ignored.
    """

    def __init__(
        self,
        terminal: Terminal,
        label: str,
        timeout: float,
        *,
        interval: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.terminal = terminal
        self.label = label
        self.timeout = timeout
        self.interval = interval
        self._clock = clock
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None
        self._worker_outcome: Optional[Outcome] = None
        self._worker_value: Any = None
        self._worker_error: Optional[BaseException] = None
        self._worker_text = ""
        self.outcome: Optional[Outcome] = None
        self.result = ""
        self.elapsed_ms = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=f"spinner:{self.label}", daemon=True)
        self._thread.start()

    def consume(self, fn: Callable[[], Any], summary: Callable[[Any], str] = _no_summary) -> None:
        """Run *fn* on a background thread; *summary* turns its value into the result text."""

        def _work() -> None:
            try:
                value = fn()
                text = summary(value)
            except Exception as exc:
                LOGGER.debug("%s failed: %s", self.label, exc)
                with self._lock:
                    self._worker_outcome = Outcome.FAIL
                    self._worker_error = exc
                    self._worker_text = str(exc)
            else:
                with self._lock:
                    self._worker_outcome = Outcome.DONE
                    self._worker_value = value
                    self._worker_text = text
            self._done.set()
            if self.outcome is Outcome.TIMEOUT:
                LOGGER.debug("%s: late result discarded", self.label)

        self._worker = threading.Thread(target=_work, name=f"work:{self.label}", daemon=True)
        self._worker.start()

    def join(self, timeout: Optional[float] = None) -> Optional[Outcome]:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        return self.outcome

    def run(self, fn: Callable[[], Any], summary: Callable[[Any], str] = _no_summary) -> Outcome:
        self.start()
        self.consume(fn, summary)
        outcome = self.join()
        assert outcome is not None
        return outcome

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    @property
    def value(self) -> Any:
        """Value returned by the work; only meaningful after ``Outcome.DONE``."""
        return self._worker_value if self.outcome is Outcome.DONE else None

    @property
    def error(self) -> Optional[BaseException]:
        return self._worker_error if self.outcome is Outcome.FAIL else None

    # ------------------------------------------------------------------
    # Spinner thread
    # ------------------------------------------------------------------
    def _run(self) -> None:
        index = 0
        started = self._clock()
        while True:
            elapsed_ms = int((self._clock() - started) * 1000)
            self._render_tick(PROCESSING_CHARS[index], elapsed_ms)
            if self._done.is_set():
                with self._lock:
                    self.outcome = self._worker_outcome
                    self.result = self._worker_text
                break
            if elapsed_ms >= self.timeout * 1000:
                self.outcome = Outcome.TIMEOUT
                self.result = ""
                break
            index = (index + 1) % len(PROCESSING_CHARS)
            self._done.wait(self.interval)
        self.elapsed_ms = int((self._clock() - started) * 1000)
        self._render_end()

    def _render_tick(self, glyph: str, elapsed_ms: int) -> None:
        terminal = self.terminal
        with terminal.lock:
            terminal.erase_line()
            terminal.write(f"{self.label} {glyph} {elapsed_ms} ms ")
            terminal.flush()

    def _render_end(self) -> None:
        outcome = self.outcome or Outcome.FAIL
        terminal = self.terminal
        with terminal.lock:
            terminal.erase_line()
            terminal.write_styled(f"[{outcome.value} {self.elapsed_ms}ms] {self.result}", OUTCOME_COLORS[outcome])
            terminal.newline()
            terminal.flush()
