"""
UCI command parser.

Turns one line of GUI input into an engine command value. The first token
selects the command; the rest of the line must match that command's
sub-grammar:

    uci | isready | ucinewgame | stop | ponderhit | quit
    debug [on | off]
    setoption name <id> [value <x>]
    register later | register [name <x>] [code <y>]
    position (startpos | fen <6 fields>) [moves <move>...]
    go [searchmoves <move>...] [ponder] [infinite]
       [wtime|btime|winc|binc|movestogo|depth|nodes|mate|movetime <int>]...

Anything else raises ParseError. Blank lines parse to None.
"""

from typing import Dict, List, Optional

from chess_devtools.uci.errors import ParseError
from chess_devtools.uci.types import (
    Debug,
    FenPosition,
    Go,
    GoParameters,
    IsReady,
    MOVE_PATTERN,
    PonderHit,
    Quit,
    Register,
    SetOption,
    SetPosition,
    StartPosition,
    Stop,
    UCIEngineCommand,
    Uci,
    UciNewGame,
)

FEN_FIELD_COUNT = 6

_BARE_COMMANDS = {
    "uci": Uci,
    "isready": IsReady,
    "ucinewgame": UciNewGame,
    "stop": Stop,
    "ponderhit": PonderHit,
    "quit": Quit,
}

_GO_INT_KEYWORDS = (
    "wtime",
    "btime",
    "winc",
    "binc",
    "movestogo",
    "depth",
    "nodes",
    "mate",
    "movetime",
)
_GO_FLAG_KEYWORDS = ("ponder", "infinite")
_GO_KEYWORDS = frozenset(_GO_INT_KEYWORDS + _GO_FLAG_KEYWORDS + ("searchmoves",))


def is_long_algebraic(move: str) -> bool:
    """True if move looks like e2e4, e7e8q or 0000."""
    return MOVE_PATTERN.match(move) is not None


def parse_engine_command(line: str) -> Optional[UCIEngineCommand]:
    """
    Parse a single line of GUI input.

    Args:
        line: Raw input line; surrounding whitespace is ignored

    Returns:
        The parsed command, or None for a blank line

    Raises:
        ParseError: Unknown command keyword or malformed arguments
    """
    tokens = line.split()
    if not tokens:
        return None

    keyword = tokens[0].lower()
    args = tokens[1:]

    if keyword in _BARE_COMMANDS:
        if args:
            raise ParseError(line, f"'{keyword}' takes no arguments")
        return _BARE_COMMANDS[keyword]()

    if keyword == "debug":
        return _parse_debug(line, args)
    if keyword == "setoption":
        return _parse_setoption(line, args)
    if keyword == "register":
        return _parse_register(line, args)
    if keyword == "position":
        return _parse_position(line, args)
    if keyword == "go":
        return _parse_go(line, args)

    raise ParseError(line, f"unknown command '{tokens[0]}'")


def _parse_debug(line: str, args: List[str]) -> Debug:
    if not args:
        return Debug()
    if len(args) == 1 and args[0] in ("on", "off"):
        return Debug(on=args[0] == "on")
    raise ParseError(line, "debug expects 'on' or 'off'")


def _split_sections(args: List[str], keywords) -> Dict[str, List[str]]:
    """
    Split tokens into sections headed by the given keywords.

    The first token must be one of the keywords. Later keyword tokens start a
    new section, so values cannot contain another section's keyword.
    """
    sections: Dict[str, List[str]] = {}
    current = None
    for token in args:
        if token in keywords and token not in sections:
            current = token
            sections[current] = []
        elif current is None:
            raise KeyError(token)
        else:
            sections[current].append(token)
    return sections


def _parse_setoption(line: str, args: List[str]) -> SetOption:
    try:
        sections = _split_sections(args, ("name", "value"))
    except KeyError:
        raise ParseError(line, "setoption must start with 'name'")

    name_tokens = sections.get("name")
    if not name_tokens or args[0] != "name":
        raise ParseError(line, "setoption requires a name")

    value = None
    if "value" in sections:
        value = " ".join(sections["value"])
    return SetOption(name=" ".join(name_tokens), value=value)


def _parse_register(line: str, args: List[str]) -> Register:
    if args == ["later"]:
        return Register(later=True)

    try:
        sections = _split_sections(args, ("name", "code"))
    except KeyError:
        raise ParseError(line, "register expects 'later', 'name' or 'code'")

    if not sections or any(not tokens for tokens in sections.values()):
        raise ParseError(line, "register fields must not be empty")

    name = " ".join(sections["name"]) if "name" in sections else None
    code = " ".join(sections["code"]) if "code" in sections else None
    return Register(name=name, code=code)


def _parse_position(line: str, args: List[str]) -> SetPosition:
    if not args:
        raise ParseError(line, "position requires 'startpos' or 'fen'")

    if args[0] == "startpos":
        base = StartPosition()
        rest = args[1:]
    elif args[0] == "fen":
        fen_fields = args[1:1 + FEN_FIELD_COUNT]
        if len(fen_fields) != FEN_FIELD_COUNT or "moves" in fen_fields:
            raise ParseError(line, f"fen needs exactly {FEN_FIELD_COUNT} fields")
        base = FenPosition(" ".join(fen_fields))
        rest = args[1 + FEN_FIELD_COUNT:]
    else:
        raise ParseError(line, f"unknown position type '{args[0]}'")

    if not rest:
        return SetPosition(base=base)

    if rest[0] != "moves":
        raise ParseError(line, f"unexpected token '{rest[0]}' after position")

    moves = rest[1:]
    for move in moves:
        if not is_long_algebraic(move):
            raise ParseError(line, f"malformed move '{move}'")
    return SetPosition(base=base, moves=tuple(moves))


def _parse_go(line: str, args: List[str]) -> Go:
    values: Dict[str, object] = {}
    i = 0
    while i < len(args):
        token = args[i]

        if token in _GO_FLAG_KEYWORDS:
            values[token] = True
            i += 1

        elif token == "searchmoves":
            i += 1
            moves = []
            while i < len(args) and args[i] not in _GO_KEYWORDS:
                if not is_long_algebraic(args[i]):
                    raise ParseError(line, f"malformed move '{args[i]}'")
                moves.append(args[i])
                i += 1
            if not moves:
                raise ParseError(line, "searchmoves requires at least one move")
            values["searchmoves"] = tuple(moves)

        elif token in _GO_INT_KEYWORDS:
            if i + 1 >= len(args):
                raise ParseError(line, f"'{token}' requires a value")
            try:
                values[token] = int(args[i + 1])
            except ValueError:
                raise ParseError(line, f"'{token}' expects an integer, got '{args[i + 1]}'")
            i += 2

        else:
            raise ParseError(line, f"unknown go parameter '{token}'")

    return Go(GoParameters(**values))
