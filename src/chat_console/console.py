"""Plain line-oriented terminal I/O.

Everything the user sees goes through Console; diagnostics go to the log.
"""

import sys
from typing import TextIO

SEPARATOR = "-" * 52


class Console:
    """Reads input lines and writes unbuffered output.

    Attributes:
        stdin: Stream lines are read from
        stdout: Stream output is written to
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout

    def read_line(self) -> str | None:
        """Read one line without its line ending.

        Returns:
            The line, or None at end of input
        """
        line = self.stdin.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")

    def write(self, text: str) -> None:
        """Write text immediately, without a trailing newline."""
        self.stdout.write(text)
        self.stdout.flush()

    def line(self, text: str = "") -> None:
        self.write(f"{text}\n")

    def warning(self, text: str) -> None:
        self.line(f"Warning: {text}")

    def separator(self) -> None:
        self.line(SEPARATOR)
