"""Output helpers for the console shells."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from hcjfclient import ServerMetadata

from .terminal import Terminal

PROTOCOL_VERSION = "1.0.0"
SERVER_DATA = "Protocol Version: {protocol} | Server: {server} | Version: {version} | Cluster: {cluster} | Id: {instance}"
ROW_BACKGROUNDS = ("ansiblue", "ansiyellow")
FIELD_SEPARATOR = ": "


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def emit_error(terminal: Terminal, message: str) -> None:
    terminal.print_line(message, "ansired")


def print_head(terminal: Terminal, metadata: Optional[ServerMetadata]) -> None:
    """Clear the screen and print the server banner."""
    metadata = metadata or ServerMetadata()
    banner = SERVER_DATA.format(
        protocol=PROTOCOL_VERSION,
        server=_text(metadata.server_name),
        version=_text(metadata.server_version),
        cluster=_text(metadata.cluster_name),
        instance=_text(metadata.instance_id),
    )
    with terminal.lock:
        terminal.clear_screen()
        terminal.print_line(banner, "ansiblue")


def is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def print_object(terminal: Terminal, value: Any) -> None:
    if is_collection(value):
        items = list(value)
        print_collection(terminal, items, 0, len(items))
    else:
        terminal.print_line(str(value))


def print_collection(terminal: Terminal, items: Iterable[Any], start: int, end: int) -> None:
    """Print the items whose zero-based index falls in ``[start, end)``."""
    with terminal.lock:
        for index, item in enumerate(items):
            if index < start:
                continue
            if index >= end:
                break
            background = ROW_BACKGROUNDS[index % 2]
            if isinstance(item, Mapping):
                _print_map(terminal, item, background, index + 1)
            else:
                terminal.write_styled(f"{index + 1}: {item}", bgcolor=background)
            terminal.newline()
        terminal.flush()


def _print_map(terminal: Terminal, row: Mapping[Any, Any], background: str, position: int) -> None:
    terminal.write_styled(f"{position}: ", bgcolor=background)
    for key, value in row.items():
        terminal.write_styled(str(key), "ansiblack", bgcolor=background, bold=True)
        terminal.write_styled(f"{FIELD_SEPARATOR}{value}  ", "ansiwhite", bgcolor=background)


__all__ = [
    "emit_error",
    "print_head",
    "print_object",
    "print_collection",
    "is_collection",
]
