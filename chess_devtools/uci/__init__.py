"""
UCI Protocol Adapter

This package lets an HTTP move service play as a UCI engine, so chess GUIs
(Arena, CuteChess, En-croissant) and test harnesses can use it.

Protocol Flow:
    GUI -> "uci"
    Adapter -> "id name Gnomes"
    Adapter -> "id author Gnomes"
    Adapter -> "option name MoveServiceUrl type string default ..."
    Adapter -> "uciok"
    GUI -> "isready"
    Adapter -> "readyok"
    GUI -> "position startpos moves e2e4"
    GUI -> "go wtime 300000 btime 300000"
    Adapter -> POST {"fen": ..., "turn": "black", "failed_moves": []}
    Adapter -> "info time 85 pv e7e5"
    Adapter -> "bestmove e7e5"

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from chess_devtools.uci.adapter import UCIAdapter
from chess_devtools.uci.bridge import MoveServiceBridge
from chess_devtools.uci.parser import parse_engine_command
from chess_devtools.uci.protocol import UCIDispatcher
from chess_devtools.uci.serializer import serialize_gui_command

__all__ = [
    'UCIAdapter',
    'MoveServiceBridge',
    'UCIDispatcher',
    'parse_engine_command',
    'serialize_gui_command',
]
