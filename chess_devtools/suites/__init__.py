"""
Position Suites Module

Run standard test positions against any UCI engine and report the results.

Key Components:
    - Bundled suites: Bratko-Kopec, Win at Chess, Colditz, Zugzwang,
      Mate, Advantage
    - run_positions: drive a UCI engine through a list of positions
    - generate_report: markdown summary for CI

Testing Methodology:
    Each position has a known best move. The engine gets a fixed move time
    per position and passes if its bestmove is one of the expected moves.
"""

from chess_devtools.suites.positions import (
    Suite,
    SuitePosition,
    load_suite,
    load_suites,
    select_positions,
)
from chess_devtools.suites.report import generate_report
from chess_devtools.suites.runner import PositionResult, run_positions

__all__ = [
    'Suite',
    'SuitePosition',
    'PositionResult',
    'load_suite',
    'load_suites',
    'select_positions',
    'run_positions',
    'generate_report',
]
