"""
Position Test Suites

Collections of positions with known best moves, used to check that an
engine behind a UCI interface finds them.

Bundled suites:
    bk       Bratko-Kopec (24 positions)
    wac      Win at Chess (300 positions)
    colditz  Colditz (30 positions)
    zpts     Zugzwang (30 positions)
    mt       Mate (4 positions)
    av       Advantage (4 positions)

Data format:
    One position per line in data/<key>.tsv, tab separated:
        id, FEN, best moves (space separated UCI), avoid moves (may be empty)

References:
    - Bratko-Kopec: https://www.chessprogramming.org/Bratko-Kopec_Test
    - WAC: https://www.chessprogramming.org/Win_at_Chess
"""

import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

DATA_DIR = Path(__file__).parent / "data"


@dataclass(frozen=True)
class SuitePosition:
    """
    A test position with expected best move(s).

    Attributes:
        id: Position identifier (e.g., "BK.01" for Bratko-Kopec #1)
        fen: Board position in FEN notation
        best_moves: Acceptable moves (UCI format)
        avoid_moves: Moves that fail the test even if listed as best
    """
    id: str
    fen: str
    best_moves: Tuple[str, ...]
    avoid_moves: Tuple[str, ...] = ()

    def accepts(self, move: str) -> bool:
        """True if move solves this position."""
        if move in self.avoid_moves:
            return False
        return not self.best_moves or move in self.best_moves


@dataclass(frozen=True)
class Suite:
    key: str
    name: str
    comment: str
    positions: Tuple[SuitePosition, ...]


SUITE_INFO: Dict[str, Tuple[str, str]] = {
    "bk": (
        "Bratko-Kopec",
        "See the [Bratko-Kopec test wiki](https://www.chessprogramming.org/Bratko-Kopec_Test).",
    ),
    "wac": (
        "Win at Chess",
        "From Fred Reinfeld's [Win at Chess](https://www.chessprogramming.org/Win_at_Chess).",
    ),
    "colditz": (
        "Colditz",
        "See [forum post](https://www.talkchess.com/forum/viewtopic.php?t=62659).",
    ),
    "zpts": (
        "Zugzwang",
        "[Zugzwang test suite](https://www.stmintz.com/ccc/index.php?id=392369) from 2004",
    ),
    "mt": (
        "Mate",
        "A suite of tests to test mating. Failing to pass these may indicate "
        "something seriously wrong with the engine.",
    ),
    "av": ("Advantage", "A suite of tests to test gaining an advantage."),
}


def parse_position_line(line: str) -> SuitePosition:
    """
    Parse one data line.

    Raises:
        ValueError: If the line does not have the id/fen/best/avoid columns
    """
    fields = line.rstrip("\n").split("\t")
    if len(fields) != 4 or not fields[0] or not fields[1]:
        raise ValueError(f"malformed suite line: {line!r}")
    position_id, fen, best, avoid = fields
    return SuitePosition(
        id=position_id,
        fen=fen,
        best_moves=tuple(best.split()),
        avoid_moves=tuple(avoid.split()),
    )


def load_suite(key: str, data_dir: Path = DATA_DIR) -> Suite:
    """
    Load a bundled suite.

    Args:
        key: Suite key (see SUITE_INFO)
        data_dir: Directory holding <key>.tsv

    Raises:
        KeyError: Unknown suite key
    """
    if key not in SUITE_INFO:
        raise KeyError(f"unknown suite {key!r}; choose from {', '.join(SUITE_INFO)}")

    name, comment = SUITE_INFO[key]
    path = Path(data_dir) / f"{key}.tsv"
    with path.open(encoding="utf-8") as f:
        positions = tuple(parse_position_line(line) for line in f if line.strip())
    return Suite(key=key, name=name, comment=comment, positions=positions)


def load_suites(keys: Optional[Iterable[str]] = None) -> List[Suite]:
    """Load the given suites, or all bundled suites."""
    return [load_suite(key) for key in (keys or SUITE_INFO)]


def select_positions(
    suites: Sequence[Suite],
    match: Sequence[str] = (),
    shuffle: bool = False,
    seed: Optional[int] = None,
) -> List[SuitePosition]:
    """
    Pick the positions to run.

    Args:
        suites: Suites to draw from
        match: Regexes; a position runs if its id matches any (all if empty)
        shuffle: Randomize the order
        seed: Seed for the shuffle, for reproducible runs

    Returns:
        Positions in run order
    """
    patterns = [re.compile(m) for m in match]
    positions = [
        position
        for suite in suites
        for position in suite.positions
        if not patterns or any(p.search(position.id) for p in patterns)
    ]
    if shuffle:
        random.Random(seed).shuffle(positions)
    return positions
