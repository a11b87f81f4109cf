"""
Adapter session state.

A Session records where the GUI says the game stands (a base position plus
the moves played from it) and two lifecycle flags. Transitions return a new
Session; no field is ever updated on its own, and nothing here checks FEN
syntax or move legality.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from chess_devtools.uci.types import BasePosition, StartPosition


@dataclass(frozen=True)
class Session:
    """
    Attributes:
        base: Position the applied moves start from
        moves: Long algebraic moves replayed on top of base
        initialized: True once "uci" has been handled
        debug: Debug mode as last set by the GUI (informational)
    """
    base: BasePosition = StartPosition()
    moves: Tuple[str, ...] = ()
    initialized: bool = False
    debug: bool = False


def apply_init(session: Session) -> Session:
    return replace(session, initialized=True)


def apply_debug(session: Session, on: Optional[bool]) -> Session:
    """Set debug mode, or toggle it when on is None."""
    return replace(session, debug=(not session.debug) if on is None else on)


def apply_new_game(session: Session) -> Session:
    """Reset to the start position with no moves played."""
    return replace(session, base=StartPosition(), moves=())


def apply_position(session: Session, base: BasePosition, moves: Sequence[str]) -> Session:
    """Replace the base position and move list together."""
    return replace(session, base=base, moves=tuple(moves))
