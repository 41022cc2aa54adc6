"""Client-side query objects.

The query language itself is compiled and evaluated by the server; the
client only checks that it has something to send and carries positional
parameters for parameterized queries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List


class QueryCompileError(ValueError):
    """Raised when a query cannot be prepared for evaluation."""


@dataclass(frozen=True)
class Query:
    text: str

    def parameterized(self) -> "ParameterizedQuery":
        return ParameterizedQuery(self.text)

    @property
    def parameters(self) -> List[Any]:
        return []


@dataclass(frozen=True)
class ParameterizedQuery(Query):
    values: List[Any] = field(default_factory=list)

    def add(self, value: Any) -> None:
        self.values.append(value)

    @property
    def parameters(self) -> List[Any]:
        return list(self.values)


def compile_query(text: Any) -> Query:
    """Validate *text* and wrap it as a :class:`Query`."""
    if not isinstance(text, str):
        raise QueryCompileError(f"query must be text, got {type(text).__name__}")
    stripped = text.strip()
    if not stripped:
        raise QueryCompileError("empty query")
    if _unbalanced(stripped):
        raise QueryCompileError(f"unbalanced quotes or parentheses in query: {stripped}")
    return Query(stripped)


def _unbalanced(text: str) -> bool:
    depth = 0
    quote = ""
    for char in text:
        if quote:
            if char == quote:
                quote = ""
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return True
    return bool(quote) or depth != 0


__all__ = ["Query", "ParameterizedQuery", "QueryCompileError", "compile_query"]
