"""
hcjf-console package.

Interactive terminal client for an hcjf server: a raw-mode line editor, a
typed command parser and a stack of shells that turn commands into
requests.  Use ``hcjf-console <host> <port>`` or ``python -m hcjf_console``.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"
