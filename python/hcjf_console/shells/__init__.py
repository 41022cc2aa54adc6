"""Shell stack for the console."""

from __future__ import annotations

from .base import Shell, UsageError
from .default import DefaultShell
from .query import QueryShell
from .router import ShellRouter

__all__ = ["Shell", "UsageError", "DefaultShell", "QueryShell", "ShellRouter"]
