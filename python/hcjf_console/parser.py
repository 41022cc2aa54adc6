"""Command line tokenizer for the console."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Tuple

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

RICH_TEXT_SEPARATOR = '"'
RICH_TEXT_SKIP_CHARACTER = "\\"
REPLACEABLE_RICH_TEXT = "¿"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

UUID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
INTEGER_PATTERN = re.compile(r"^[-+]?\d+$")
DECIMAL_PATTERN = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?$")
PLACEHOLDER_PATTERN = re.compile(
    re.escape(RICH_TEXT_SEPARATOR) + re.escape(REPLACEABLE_RICH_TEXT) + r"(\d+)" + re.escape(RICH_TEXT_SEPARATOR)
)


@dataclass(frozen=True)
class Command:
    """A parsed console line: command name plus typed parameters."""

    line: str
    name: str
    parameters: Tuple[Any, ...] = field(default_factory=tuple)

    @property
    def arguments_text(self) -> str:
        """Everything after the command name, as typed."""
        parts = self.line.strip().split(None, 1)
        return parts[1] if len(parts) > 1 else ""


def placeholder(index: int) -> str:
    return f"{RICH_TEXT_SEPARATOR}{REPLACEABLE_RICH_TEXT}{index}{RICH_TEXT_SEPARATOR}"


def group_rich_text(line: str) -> Tuple[List[str], str]:
    """Pull quoted segments out of *line*.

    Returns the raw segments (escapes still in place) and the line with each
    segment replaced by a numbered placeholder.  A separator preceded by the
    skip character stays inside the segment; an unterminated segment runs to
    the end of the line.
    """
    segments: List[str] = []
    out: List[str] = []
    index = 0
    size = len(line)
    while index < size:
        char = line[index]
        if char != RICH_TEXT_SEPARATOR:
            out.append(char)
            index += 1
            continue
        cursor = index + 1
        segment: List[str] = []
        while cursor < size:
            current = line[cursor]
            if (
                current == RICH_TEXT_SKIP_CHARACTER
                and cursor + 1 < size
                and line[cursor + 1] == RICH_TEXT_SEPARATOR
            ):
                segment.append(current + RICH_TEXT_SEPARATOR)
                cursor += 2
                continue
            if current == RICH_TEXT_SEPARATOR:
                break
            segment.append(current)
            cursor += 1
        out.append(placeholder(len(segments)))
        segments.append("".join(segment))
        index = cursor + 1
    return segments, "".join(out)


def unescape(segment: str) -> str:
    return segment.replace(RICH_TEXT_SKIP_CHARACTER + RICH_TEXT_SEPARATOR, RICH_TEXT_SEPARATOR)


def _rich_value(text: str, date_format: str) -> Any:
    try:
        return datetime.strptime(text, date_format)
    except (TypeError, ValueError):
        return text


def classify(token: str, segments: List[str], date_format: str = DEFAULT_DATE_FORMAT) -> Any:
    """Turn one whitespace token into a typed parameter value."""
    if token == "true":
        return True
    if token == "false":
        return False
    if token == "null":
        return None
    match = PLACEHOLDER_PATTERN.fullmatch(token)
    if match and int(match.group(1)) < len(segments):
        return _rich_value(unescape(segments[int(match.group(1))]), date_format)
    if UUID_PATTERN.match(token):
        return uuid.UUID(token)
    if INTEGER_PATTERN.match(token):
        value = int(token)
        if INT64_MIN <= value <= INT64_MAX:
            return value
    if DECIMAL_PATTERN.match(token):
        return float(token)
    return restore(token, segments)


def restore(text: str, segments: List[str]) -> str:
    """Put the original quoted text back wherever a placeholder is embedded."""

    def _replace(match: "re.Match[str]") -> str:
        position = int(match.group(1))
        if position >= len(segments):
            return match.group(0)
        return RICH_TEXT_SEPARATOR + unescape(segments[position]) + RICH_TEXT_SEPARATOR

    return PLACEHOLDER_PATTERN.sub(_replace, text)


def parse_command(line: str, date_format: str = DEFAULT_DATE_FORMAT) -> Command:
    """Tokenize *line* into a :class:`Command`; never raises on bad tokens."""
    segments, replaced = group_rich_text(line.strip())
    parts = replaced.split()
    if not parts:
        return Command(line=line, name="")
    name = restore(parts[0], segments)
    parameters = tuple(classify(token, segments, date_format) for token in parts[1:])
    return Command(line=line, name=name, parameters=parameters)


__all__ = [
    "Command",
    "DEFAULT_DATE_FORMAT",
    "classify",
    "group_rich_text",
    "parse_command",
    "placeholder",
    "restore",
    "unescape",
]
