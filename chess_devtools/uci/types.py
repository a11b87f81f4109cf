"""
UCI Message Types

Value types for both directions of the Universal Chess Interface:

    Engine commands (GUI -> engine):
        uci, debug, isready, setoption, register, ucinewgame,
        position, go, stop, ponderhit, quit

    GUI commands (engine -> GUI):
        id, uciok, readyok, bestmove, copyprotection, registration,
        info, option

Every message is a frozen dataclass. The Union aliases at the bottom of the
module list the closed set of variants; the serializer keeps one entry per
GUI variant, and the test suite checks that nothing is missing.

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

# Long algebraic move, or the UCI null move
MOVE_PATTERN = re.compile(r"^(?:[a-h][1-8][a-h][1-8][qrbn]?|0000)\Z")

# Rendered in place of an empty string option default
EMPTY_STRING_TOKEN = "<empty>"

# bestmove when the side to move has no legal moves
NO_MOVE = "(none)"

# Tokens that structure an "option" line
OPTION_KEYWORDS = frozenset(("name", "type", "default", "min", "max", "var"))


def _check_single_line(value: Optional[str], what: str) -> None:
    if value is not None and ("\n" in value or "\r" in value):
        raise ValueError(f"{what} must not contain line breaks: {value!r}")


def _check_move(value: str, what: str) -> None:
    if not isinstance(value, str) or MOVE_PATTERN.match(value) is None:
        raise ValueError(f"{what} must be a long algebraic move, got {value!r}")


def _check_option_words(value: str, what: str) -> None:
    """Words of an option line field: single spaces, no option keywords."""
    if " ".join(value.split()) != value:
        raise ValueError(f"{what} must be words separated by single spaces: {value!r}")
    keywords = OPTION_KEYWORDS.intersection(value.split())
    if keywords:
        raise ValueError(f"{what} cannot contain {sorted(keywords)}: {value!r}")


# ============================================================================
# Positions
# ============================================================================


@dataclass(frozen=True)
class StartPosition:
    """The standard initial position ("position startpos")."""


@dataclass(frozen=True)
class FenPosition:
    """An arbitrary position given as a FEN string ("position fen ...")."""
    fen: str


BasePosition = Union[StartPosition, FenPosition]


# ============================================================================
# Engine commands (GUI -> engine)
# ============================================================================


@dataclass(frozen=True)
class Uci:
    pass


@dataclass(frozen=True)
class Debug:
    # None means "debug" without an argument (toggle)
    on: Optional[bool] = None


@dataclass(frozen=True)
class IsReady:
    pass


@dataclass(frozen=True)
class SetOption:
    name: str
    value: Optional[str] = None


@dataclass(frozen=True)
class Register:
    later: bool = False
    name: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class UciNewGame:
    pass


@dataclass(frozen=True)
class SetPosition:
    """
    A "position" command.

    Attributes:
        base: Start position or FEN the moves are replayed from
        moves: Long algebraic moves, in the order they were played
    """
    base: BasePosition
    moves: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GoParameters:
    """
    Search limits carried by a "go" command.

    Times are in milliseconds. Fields the GUI did not send stay None
    (or empty / False for the keyword-only ones).
    """
    searchmoves: Tuple[str, ...] = ()
    ponder: bool = False
    wtime: Optional[int] = None
    btime: Optional[int] = None
    winc: Optional[int] = None
    binc: Optional[int] = None
    movestogo: Optional[int] = None
    depth: Optional[int] = None
    nodes: Optional[int] = None
    mate: Optional[int] = None
    movetime: Optional[int] = None
    infinite: bool = False


@dataclass(frozen=True)
class Go:
    params: GoParameters = field(default_factory=GoParameters)


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class PonderHit:
    pass


@dataclass(frozen=True)
class Quit:
    pass


# ============================================================================
# Info payloads
# ============================================================================


class NumericInfoKind(Enum):
    """Info fields that carry a single integer. Values are the UCI tokens."""
    DEPTH = "depth"
    SELDEPTH = "seldepth"
    TIME = "time"
    NODES = "nodes"
    MULTIPV = "multipv"
    CURRMOVENUMBER = "currmovenumber"
    HASHFULL = "hashfull"
    NPS = "nps"
    TBHITS = "tbhits"
    SBHITS = "sbhits"
    CPULOAD = "cpuload"


@dataclass(frozen=True)
class NumericInfo:
    kind: NumericInfoKind
    value: int


@dataclass(frozen=True)
class Centipawns:
    n: int


@dataclass(frozen=True)
class Mate:
    n: int


@dataclass(frozen=True)
class LowerBound:
    pass


@dataclass(frozen=True)
class UpperBound:
    pass


ScoreValue = Union[Centipawns, Mate, LowerBound, UpperBound]


@dataclass(frozen=True)
class Score:
    values: Tuple[ScoreValue, ...]

    def __post_init__(self):
        if not self.values:
            raise ValueError("score needs at least one value")


@dataclass(frozen=True)
class PrincipalVariation:
    moves: Tuple[str, ...]

    def __post_init__(self):
        for move in self.moves:
            _check_move(move, "pv move")


@dataclass(frozen=True)
class CurrMove:
    move: str

    def __post_init__(self):
        _check_move(self.move, "currmove")


@dataclass(frozen=True)
class Refutation:
    moves: Tuple[str, ...]

    def __post_init__(self):
        for move in self.moves:
            _check_move(move, "refutation move")


@dataclass(frozen=True)
class CurrLine:
    moves: Tuple[str, ...]
    cpunr: Optional[int] = None

    def __post_init__(self):
        for move in self.moves:
            _check_move(move, "currline move")


@dataclass(frozen=True)
class InfoString:
    """Free text. Consumes the rest of the info line, so it must come last."""
    text: str

    def __post_init__(self):
        _check_single_line(self.text, "info string")


InfoItem = Union[
    NumericInfo,
    Score,
    PrincipalVariation,
    CurrMove,
    Refutation,
    CurrLine,
    InfoString,
]


# ============================================================================
# Option descriptors
# ============================================================================


class OptionType(Enum):
    CHECK = "check"
    SPIN = "spin"
    COMBO = "combo"
    BUTTON = "button"
    STRING = "string"


@dataclass(frozen=True)
class OptionDescriptor:
    """
    An engine option advertised in reply to "uci".

    Example:
        option name Hash type spin default 16 min 1 max 1024
    """
    name: str
    type: OptionType
    default: Optional[str] = None
    min: Optional[int] = None
    max: Optional[int] = None
    vars: Tuple[str, ...] = ()

    def __post_init__(self):
        # Option keywords inside a field would end it early on the wire
        if not self.name.strip():
            raise ValueError("option name must not be empty")
        _check_option_words(self.name, "option name")
        if self.default == EMPTY_STRING_TOKEN:
            raise ValueError(f"option default cannot be the literal {EMPTY_STRING_TOKEN}")
        if self.default:
            _check_option_words(self.default, "option default")
        for var in self.vars:
            if not var.strip():
                raise ValueError("option var must not be empty")
            _check_option_words(var, "option var")


# ============================================================================
# GUI commands (engine -> GUI)
# ============================================================================


class IdKind(Enum):
    NAME = "name"
    AUTHOR = "author"


@dataclass(frozen=True)
class Id:
    kind: IdKind
    value: str

    def __post_init__(self):
        _check_single_line(self.value, "id value")


@dataclass(frozen=True)
class UciOk:
    pass


@dataclass(frozen=True)
class ReadyOk:
    pass


@dataclass(frozen=True)
class BestMove:
    move: str
    ponder: Optional[str] = None

    def __post_init__(self):
        if self.move != NO_MOVE:
            _check_move(self.move, "bestmove")
        if self.ponder is not None:
            _check_move(self.ponder, "ponder move")


class RegistrationStatus(Enum):
    CHECKING = "checking"
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class CopyProtection:
    status: RegistrationStatus


@dataclass(frozen=True)
class Registration:
    status: RegistrationStatus


@dataclass(frozen=True)
class Info:
    items: Tuple[InfoItem, ...]

    def __post_init__(self):
        if not self.items:
            raise ValueError("info needs at least one item")
        for item in self.items[:-1]:
            if isinstance(item, InfoString):
                raise ValueError("info string must be the last info item")


@dataclass(frozen=True)
class Option:
    descriptor: OptionDescriptor


UCIEngineCommand = Union[
    Uci,
    Debug,
    IsReady,
    SetOption,
    Register,
    UciNewGame,
    SetPosition,
    Go,
    Stop,
    PonderHit,
    Quit,
]

UCIGUICommand = Union[
    Id,
    UciOk,
    ReadyOk,
    BestMove,
    CopyProtection,
    Registration,
    Info,
    Option,
]


def info_string(text: str) -> Info:
    """Shorthand for an "info string <text>" line."""
    return Info((InfoString(text),))
