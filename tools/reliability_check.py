#!/usr/bin/env python3
"""
Move Service Reliability Check

Plays games between two engines and reports how often the move service
answered with an illegal move or timed out.

Usage:
    python tools/reliability_check.py \\
        --engine proto:http,url:http://localhost:8000/move \\
        --engine proto:random -n 5
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from chess_devtools.reliability import main


if __name__ == "__main__":
    sys.exit(main())
