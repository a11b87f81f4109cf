"""
UCI response serializer.

Renders GUI command values as protocol lines. Each command type maps to a
tokenizer; the line is the tokens joined by single spaces. Value types
validate themselves on construction, so every value that exists can be
rendered.
"""

from typing import Callable, Dict, List

from chess_devtools.uci.types import (
    BestMove,
    Centipawns,
    CopyProtection,
    CurrLine,
    CurrMove,
    EMPTY_STRING_TOKEN,
    Id,
    Info,
    InfoItem,
    InfoString,
    LowerBound,
    Mate,
    NumericInfo,
    Option,
    OptionDescriptor,
    PrincipalVariation,
    ReadyOk,
    Refutation,
    Registration,
    Score,
    ScoreValue,
    UCIGUICommand,
    UciOk,
    UpperBound,
)

Tokens = List[str]


def _tokenize_score_value(value: ScoreValue) -> Tokens:
    return _SCORE_TOKENIZERS[type(value)](value)


_SCORE_TOKENIZERS: Dict[type, Callable[..., Tokens]] = {
    Centipawns: lambda v: ["cp", str(v.n)],
    Mate: lambda v: ["mate", str(v.n)],
    LowerBound: lambda v: ["lowerbound"],
    UpperBound: lambda v: ["upperbound"],
}


def _tokenize_score(score: Score) -> Tokens:
    tokens = ["score"]
    for value in score.values:
        tokens.extend(_tokenize_score_value(value))
    return tokens


def _tokenize_currline(item: CurrLine) -> Tokens:
    tokens = ["currline"]
    if item.cpunr is not None:
        tokens.append(str(item.cpunr))
    return tokens + list(item.moves)


_INFO_TOKENIZERS: Dict[type, Callable[..., Tokens]] = {
    NumericInfo: lambda i: [i.kind.value, str(i.value)],
    Score: _tokenize_score,
    PrincipalVariation: lambda i: ["pv"] + list(i.moves),
    CurrMove: lambda i: ["currmove", i.move],
    Refutation: lambda i: ["refutation"] + list(i.moves),
    CurrLine: _tokenize_currline,
    InfoString: lambda i: ["string", i.text],
}


def _tokenize_info_item(item: InfoItem) -> Tokens:
    return _INFO_TOKENIZERS[type(item)](item)


def _tokenize_option(descriptor: OptionDescriptor) -> Tokens:
    tokens = ["option", "name", descriptor.name, "type", descriptor.type.value]
    if descriptor.default is not None:
        tokens += ["default", descriptor.default or EMPTY_STRING_TOKEN]
    if descriptor.min is not None:
        tokens += ["min", str(descriptor.min)]
    if descriptor.max is not None:
        tokens += ["max", str(descriptor.max)]
    for var in descriptor.vars:
        tokens += ["var", var]
    return tokens


def _tokenize_info(command: Info) -> Tokens:
    tokens = ["info"]
    for item in command.items:
        tokens.extend(_tokenize_info_item(item))
    return tokens


def _tokenize_bestmove(command: BestMove) -> Tokens:
    tokens = ["bestmove", command.move]
    if command.ponder is not None:
        tokens += ["ponder", command.ponder]
    return tokens


_GUI_TOKENIZERS: Dict[type, Callable[..., Tokens]] = {
    Id: lambda c: ["id", c.kind.value, c.value],
    UciOk: lambda c: ["uciok"],
    ReadyOk: lambda c: ["readyok"],
    BestMove: _tokenize_bestmove,
    CopyProtection: lambda c: ["copyprotection", c.status.value],
    Registration: lambda c: ["registration", c.status.value],
    Info: _tokenize_info,
    Option: lambda c: _tokenize_option(c.descriptor),
}


def serialize_gui_command(command: UCIGUICommand) -> str:
    """
    Render a GUI command as one protocol line (without the newline).

    Example:
        >>> serialize_gui_command(BestMove("e2e4", ponder="e7e5"))
        'bestmove e2e4 ponder e7e5'
    """
    return " ".join(_GUI_TOKENIZERS[type(command)](command))
