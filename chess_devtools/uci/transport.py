"""
Line transport for the UCI adapter.

Reads GUI commands from an input stream one line at a time and writes
replies to an output stream. Every write is one full line, flushed at once,
under a lock so that replies from the main thread and from a search thread
never interleave.

An optional wire logger mirrors the raw traffic:

    >>> position startpos moves e2e4
    <<< bestmove e7e5
"""

import logging
import sys
import threading
from typing import IO, Iterator, Optional

from chess_devtools.uci.errors import TransportError
from chess_devtools.uci.serializer import serialize_gui_command
from chess_devtools.uci.types import UCIGUICommand


class LineTransport:
    """
    Attributes:
        input: Stream the GUI writes commands to (default: stdin)
        output: Stream replies are written to (default: stdout)
        wire_log: Logger receiving every raw line in both directions
    """

    def __init__(
        self,
        input: Optional[IO[str]] = None,
        output: Optional[IO[str]] = None,
        wire_log: Optional[logging.Logger] = None,
    ):
        self.input = input if input is not None else sys.stdin
        self.output = output if output is not None else sys.stdout
        self.wire_log = wire_log
        self._lock = threading.Lock()

    def lines(self) -> Iterator[str]:
        """
        Yield input lines without their line terminator until EOF.

        Raises:
            TransportError: If reading the input stream fails
        """
        while True:
            try:
                raw = self.input.readline()
            except (OSError, ValueError) as e:
                raise TransportError(f"cannot read input: {e}") from e

            if not raw:
                return

            line = raw.rstrip("\r\n")
            if self.wire_log is not None:
                self.wire_log.debug(f">>> {line}")
            yield line

    def send(self, command: UCIGUICommand):
        self.send_line(serialize_gui_command(command))

    def send_line(self, line: str):
        """
        Write one line and flush it.

        Raises:
            TransportError: If the output stream is closed or broken
        """
        with self._lock:
            try:
                self.output.write(line + "\n")
                self.output.flush()
            except (OSError, ValueError) as e:
                raise TransportError(f"cannot write output: {e}") from e

            if self.wire_log is not None:
                self.wire_log.debug(f"<<< {line}")
