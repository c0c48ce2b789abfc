"""A minimal interactive command shell driven by a table of commands."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import IO, Any, Callable, Iterable, Optional

try:
    import readline  # noqa: F401  (enables line editing and history for input())
except ImportError:
    readline = None

ANSI_FG_RED = "\33[1;31m"
ANSI_NONE = "\33[0m"


class UnknownCommandError(LookupError):
    """Raised when a line names no known command."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


@dataclass(frozen=True)
class Command:
    """A shell command: its name, a description and the handler it runs."""

    name: str
    desc: str
    handler: Callable[[Optional[str]], Any]


class Minish:
    """Reads lines, splits off the first word and runs the matching command."""

    def __init__(self, prompt: str, commands: Iterable[Command],
                 output: Optional[IO[str]] = None):
        self.prompt = prompt
        self.commands = list(commands)
        self.output = output

    def _find(self, name: str) -> Optional[Command]:
        return next((c for c in self.commands if c.name == name), None)

    def dispatch(self, line: str) -> Any:
        """Run the command named by the first word of ``line``.

        The handler gets the text after the separating space, or None if there is
        none. A blank line does nothing and returns None.
        """
        name, _, rest = line.lstrip(" ").partition(" ")
        if not name:
            return None
        command = self._find(name)
        if command is None:
            raise UnknownCommandError(name)
        return command.handler(rest if rest else None)

    def run(self, input_func: Optional[Callable[[str], str]] = None) -> int:
        """Read and dispatch lines until end of input; returns 0."""
        read = input_func if input_func is not None else input
        while True:
            try:
                line = read(self.prompt)
            except EOFError:
                return 0
            try:
                self.dispatch(line)
            except UnknownCommandError as exc:
                out = self.output if self.output is not None else sys.stdout
                print(f"{ANSI_FG_RED}Unknown command `{exc.name}`\n{ANSI_NONE}",
                      end="", file=out)