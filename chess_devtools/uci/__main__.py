"""
Main entry point for running the UCI adapter.

Usage:
    python -m chess_devtools.uci [--url URL] [--timeout SECONDS] ...

The move service URL defaults to $MOVE_SERVICE_URL, then
http://localhost:8000/move.
"""

import argparse
import sys

from chess_devtools.uci.adapter import UCIAdapter, setup_logger, setup_wire_logger
from chess_devtools.uci.config import AdapterConfig
from chess_devtools.uci.transport import LineTransport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chess-uci-adapter",
        description="Speak UCI on stdin/stdout on behalf of an HTTP move service",
    )
    parser.add_argument("--url", help="Move service endpoint (default: $MOVE_SERVICE_URL)")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument(
        "--bound-multiplier",
        type=float,
        help="Abandon a move request after timeout * this factor",
    )
    parser.add_argument("--max-attempts", type=int, help="Requests per turn for illegal answers")
    parser.add_argument("--name", help="Engine name sent in 'id name'")
    parser.add_argument("--author", help="Engine author sent in 'id author'")
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Send no bestmove when the move service fails",
    )
    parser.add_argument("--log-file", help="Diagnostic log file ('-' for stderr)")
    parser.add_argument("--wire-log", help="Mirror raw protocol lines to this file")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = AdapterConfig.from_env(
            url=args.url,
            timeout=args.timeout,
            bound_multiplier=args.bound_multiplier,
            max_attempts=args.max_attempts,
            name=args.name,
            author=args.author,
            fallback_on_failure=False if args.no_fallback else None,
            wire_log_file=args.wire_log,
            debug=args.debug or None,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.log_file == "-":
        config.log_file = None
    elif args.log_file:
        config.log_file = args.log_file

    setup_logger(config.log_file, debug=config.debug)
    wire_log = setup_wire_logger(config.wire_log_file) if config.wire_log_file else None

    adapter = UCIAdapter(config, transport=LineTransport(wire_log=wire_log))
    return adapter.run()


if __name__ == "__main__":
    sys.exit(main())
