"""Paging shell over a buffered query result set."""

from __future__ import annotations

import math
from typing import Any, List, Optional

from hcjfclient import compile_query

from ..parser import Command
from .base import Shell, UsageError

NEXT = "next"
PREVIOUS = "previous"
PAGE = "page"
SET_PAGE_SIZE = "setPageSize"

PROMPT_WITH_RESULT_SET = "{prompt}[size:{size}, page:{page}/{max_page}]"
NO_RESULT_SET = "Make some query first"

PAGE_ALIASES = {
    "prev": PREVIOUS,
    "set-page-size": SET_PAGE_SIZE,
}


def _int_argument(command: Command) -> Optional[int]:
    if len(command.parameters) != 1:
        return None
    value = command.parameters[0]
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class QueryShell(Shell):
    commands = {
        NEXT: "Show the next page",
        PREVIOUS: "Show the previous page",
        PAGE: "Jump to page <n>",
        SET_PAGE_SIZE: "Set rows per page to <n> and go back to page 1",
        "<query>": "Evaluate a query and page through its result",
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.result_set: Optional[List[Any]] = None
        self.current_page = 1
        self.page_size = max(1, int(self.ctx.page_size))

    @property
    def max_page(self) -> int:
        if not self.result_set:
            return 0
        return math.ceil(len(self.result_set) / self.page_size)

    @property
    def display_prompt(self) -> str:
        if self.result_set is None:
            return self.prompt
        return PROMPT_WITH_RESULT_SET.format(
            prompt=self.prompt,
            size=len(self.result_set),
            page=min(self.current_page, self.max_page),
            max_page=self.max_page,
        )

    def delegate_command(self, command: Command) -> Optional[Shell]:
        name = PAGE_ALIASES.get(command.name, command.name)
        if name == NEXT:
            if self.result_set is not None and self.current_page < self.max_page:
                self.current_page += 1
        elif name == PREVIOUS:
            if self.result_set is not None and self.current_page > 1:
                self.current_page -= 1
        elif name == PAGE:
            page = _int_argument(command)
            if page is None:
                raise UsageError("You must indicate the page number (i.e. page 1)")
            if self.result_set is not None:
                self.current_page = max(1, min(page, self.max_page))
        elif name == SET_PAGE_SIZE:
            size = _int_argument(command)
            if size is None or size < 1:
                raise UsageError("You must indicate a page size greater than zero (i.e. setPageSize 10)")
            self.page_size = size
            self.current_page = 1
        else:
            result = self.evaluate_queryable(compile_query(command.line))
            self.result_set = self._as_rows(result)
            self.current_page = 1
        self.print_page()
        return None

    @staticmethod
    def _as_rows(result: Any) -> List[Any]:
        if result is None:
            return []
        if isinstance(result, (list, tuple, set, frozenset)):
            return list(result)
        return [result]

    def page_bounds(self) -> tuple[int, int]:
        start = (self.current_page - 1) * self.page_size
        return start, start + self.page_size

    def print_page(self) -> None:
        if self.result_set is None:
            self.terminal.print_line(NO_RESULT_SET)
            return
        start, end = self.page_bounds()
        self.print_collection(self.result_set, start, end)
