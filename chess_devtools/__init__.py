"""
chess-devtools

Developer utilities around an HTTP chess move service.

## Architecture

1. **uci**: Universal Chess Interface adapter
   - Parses GUI commands and serializes engine replies
   - Tracks the position the GUI has set up
   - Forwards "go" to the move service and converts its answer to
     long algebraic notation

2. **suites**: Position test suites
   - Bratko-Kopec, Win at Chess, Colditz, Zugzwang, Mate, Advantage
   - Runs them against any UCI engine and writes a markdown report

3. **reliability**: Move service fuzzer
   - Plays full games and counts illegal answers and timeouts

4. **rules**: python-chess helpers shared by the above

## Quick Start

### As a UCI Engine

```bash
MOVE_SERVICE_URL=http://localhost:8000/move python -m chess_devtools.uci
```

Then connect with a chess GUI (Arena, CuteChess, etc.)

### Position Tests

```bash
chess-position-tests --engine "python -m chess_devtools.uci" --suite bk
```
"""

__version__ = "0.1.0"
__license__ = "MIT"
