"""
Position test runner CLI.

Runs bundled position suites against a UCI engine and prints a markdown
report on stdout (progress and per-position results go to stderr).

Usage:
    chess-position-tests --engine ./engine [--suite bk --suite wac]
        [--match 'BK\\.0[1-5]'] [--timeout 10000] [--depth 8]
        [--rest 1000] [--shuffle --seed 42] [--output report.md]
"""

import argparse
import logging
import shlex
import sys
from pathlib import Path

import chess.engine

from chess_devtools.suites.positions import SUITE_INFO, load_suites, select_positions
from chess_devtools.suites.report import SuiteSummary, generate_report
from chess_devtools.suites.runner import run_positions


def format_time(seconds: float) -> str:
    """Format time"""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.0f}s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chess-position-tests",
        description="Run position test suites against a UCI engine",
    )
    parser.add_argument(
        "--engine",
        required=True,
        help="Engine command line (e.g. './engine' or 'python -m chess_devtools.uci')",
    )
    parser.add_argument(
        "--suite",
        action="append",
        choices=sorted(SUITE_INFO),
        help="Suite to run; repeat for several (default: all)",
    )
    parser.add_argument(
        "--match",
        "-m",
        action="append",
        default=[],
        help="Only run positions whose id matches this regex",
    )
    parser.add_argument("--timeout", "-t", type=int, default=10000, help="Move time (ms)")
    parser.add_argument("--depth", "-d", type=int, help="Depth to search")
    parser.add_argument("--rest", type=int, default=1000, help="Time (ms) to rest between tests")
    parser.add_argument("--shuffle", action="store_true", help="Shuffle test order")
    parser.add_argument("--seed", type=int, help="Seed for shuffling tests")
    parser.add_argument("--output", "-o", help="Also write the report to this file")
    parser.add_argument("--verbose", action="store_true", help="Log each position")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.timeout <= 0:
        print(f"Error: bad timeout {args.timeout}, should be > 0", file=sys.stderr)
        return 1

    suites = load_suites(args.suite)
    positions = select_positions(suites, match=args.match, shuffle=args.shuffle, seed=args.seed)
    if not positions:
        print("Error: no positions match the given filters", file=sys.stderr)
        return 1

    try:
        results = run_positions(
            shlex.split(args.engine),
            positions,
            movetime_ms=args.timeout,
            depth=args.depth,
            rest_ms=args.rest,
        )
    except KeyboardInterrupt:
        print("\n\nPosition tests interrupted by user", file=sys.stderr)
        return 1
    except (OSError, ValueError, chess.engine.EngineError) as e:
        print(f"Error: cannot run engine {args.engine!r}: {e}", file=sys.stderr)
        return 1

    report = generate_report(suites, results)
    print(report)
    if args.output:
        Path(args.output).write_text(report, encoding="utf-8")

    summary = SuiteSummary.of(results)
    total_time = sum(r.time_taken for r in results)
    print(
        f"{summary.passed}/{summary.total} passed in {format_time(total_time)}",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
