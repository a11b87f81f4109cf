"""
UCI Adapter

Lets an HTTP move service act as a UCI engine. Chess GUIs and test
harnesses talk UCI to this process over stdin/stdout; every "go" becomes a
request to the move service, and its answer comes back as "bestmove".

Data flow:
    stdin line -> parse_engine_command -> UCIDispatcher.dispatch
               -> replies -> serialize_gui_command -> stdout

Failure handling:
    - Malformed lines (ParseError) and commands out of order
      (ProtocolViolation) are logged and skipped
    - Move service failures are handled by the search task (see protocol)
    - TransportError (stdin/stdout broken) ends the loop

Diagnostics never go to stdout: stdout carries protocol lines only.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from chess_devtools.uci.bridge import MoveServiceBridge
from chess_devtools.uci.config import AdapterConfig
from chess_devtools.uci.errors import ProtocolViolation, TransportError, UCIError
from chess_devtools.uci.parser import parse_engine_command
from chess_devtools.uci.protocol import EngineIdentity, UCIDispatcher
from chess_devtools.uci.transport import LineTransport

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def setup_logger(log_file: Optional[Path] = None, debug: bool = False) -> logging.Logger:
    """
    Set up the diagnostic logger for the chess_devtools package.

    Args:
        log_file: File to log to; None logs to stderr
        debug: If True, log at DEBUG level; otherwise INFO level

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("chess_devtools")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.handlers.clear()

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, mode="w")
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)
    return logger


def setup_wire_logger(wire_log_file: Path) -> logging.Logger:
    """
    Logger that mirrors raw protocol traffic to its own file.

    It does not propagate, so wire lines stay out of the diagnostic log.
    """
    logger = logging.getLogger("chess_devtools.wire")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.handlers.clear()

    wire_log_file = Path(wire_log_file)
    wire_log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(wire_log_file, mode="w")
    handler.setFormatter(logging.Formatter("%(asctime)s.%(msecs)03d %(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger


class UCIAdapter:
    """
    Read loop tying the transport, parser and dispatcher together.

    Attributes:
        config: Adapter settings
        transport: Line transport (stdin/stdout unless injected)
        bridge: Move-service client (built from config unless injected)
        dispatcher: Protocol state machine
    """

    def __init__(
        self,
        config: Optional[AdapterConfig] = None,
        transport: Optional[LineTransport] = None,
        bridge: Optional[MoveServiceBridge] = None,
    ):
        self.config = config if config is not None else AdapterConfig()
        self.logger = logging.getLogger(__name__)

        self.transport = transport if transport is not None else LineTransport()
        self.bridge = bridge if bridge is not None else MoveServiceBridge(
            url=self.config.url,
            timeout=self.config.timeout,
            bound_multiplier=self.config.bound_multiplier,
            max_attempts=self.config.max_attempts,
        )
        self.dispatcher = UCIDispatcher(
            EngineIdentity(self.config.name, self.config.author),
            self.bridge,
            emit=self.transport.send,
            fallback_on_failure=self.config.fallback_on_failure,
        )

    def handle_line(self, line: str):
        """
        Parse and dispatch one input line, writing any replies.

        Recoverable errors are logged here and never reach the caller.

        Raises:
            TransportError: If a reply cannot be written
        """
        try:
            command = parse_engine_command(line)
            if command is None:
                return
            replies = self.dispatcher.dispatch(command)
        except ProtocolViolation as e:
            self.logger.warning(f"Ignored: {e}")
            return
        except TransportError:
            raise
        except UCIError as e:
            self.logger.error(f"Command error: {e}")
            return
        except Exception as e:
            self.logger.error(f"Unexpected error handling {line!r}: {e}", exc_info=True)
            return

        for reply in replies:
            self.transport.send(reply)

    def run(self) -> int:
        """
        Main UCI command loop.

        Runs until "quit" is handled or the input reaches EOF.

        Returns:
            Process exit status: 0 on a clean shutdown, 1 on transport failure
        """
        self.logger.info(f"=== UCI adapter started (move service: {self.bridge.url}) ===")
        try:
            for line in self.transport.lines():
                self.handle_line(line)
                if self.dispatcher.terminated:
                    break
            else:
                self.logger.info("EOF received, shutting down")
                self.dispatcher.wait_for_search()
        except TransportError as e:
            self.logger.error(f"Transport failure: {e}")
            return 1
        finally:
            self.bridge.close()

        self.logger.info("=== UCI adapter stopped ===")
        return 0
