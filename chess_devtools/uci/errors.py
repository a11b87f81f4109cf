"""
Error types for the UCI adapter.

Everything the adapter can recover from derives from UCIError, so the read
loop can log it and move on to the next line. TransportError is the one
exception that is allowed to end the process.
"""

from typing import List, Optional


class UCIError(Exception):
    """Base class for adapter errors."""


class ParseError(UCIError):
    """An input line does not match the UCI command grammar."""

    def __init__(self, line: str, reason: str):
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class ProtocolViolation(UCIError):
    """A well-formed command arrived in a state that does not accept it."""


class TransportError(UCIError):
    """Reading stdin or writing stdout failed."""


class BridgeError(UCIError):
    """The move service could not provide a usable move."""


class BridgeTimeout(BridgeError):
    """The move service did not answer within the time bound."""


class BridgeCancelled(BridgeError):
    """The request was abandoned because the search was stopped."""


class BridgeIllegalMove(BridgeError):
    """Every answer from the move service failed to match a legal move."""

    def __init__(self, fen: str, failed_moves: Optional[List[str]] = None):
        self.fen = fen
        self.failed_moves = list(failed_moves or [])
        super().__init__(
            f"no legal move among service answers {self.failed_moves} for {fen}"
        )
