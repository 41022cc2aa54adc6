"""Root shell: query evaluation and generic remote commands."""

from __future__ import annotations

from typing import Optional

from hcjfclient import Query, compile_query

from ..parser import Command
from .base import Shell
from .query import QueryShell

EVALUATE_COMMAND = "evaluate"
QUERY_PROMPT = "query"


class DefaultShell(Shell):
    commands = {
        EVALUATE_COMMAND: "Open the query shell, or evaluate \"<query>\" [params...]",
        "<name> [params...]": "Execute a named command on the server",
    }

    def delegate_command(self, command: Command) -> Optional[Shell]:
        if command.name == EVALUATE_COMMAND:
            if not command.parameters:
                return QueryShell(self.ctx, self.terminal, prompt=QUERY_PROMPT, timeout_ms=self.timeout_ms)
            query: Query = compile_query(command.parameters[0])
            if len(command.parameters) > 1:
                parameterized = query.parameterized()
                for value in command.parameters[1:]:
                    parameterized.add(value)
                query = parameterized
            self.print_object(self.evaluate_queryable(query))
            return None
        self.print_object(self.execute_command(command))
        return None
