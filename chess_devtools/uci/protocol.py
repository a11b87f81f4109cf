"""
UCI protocol dispatcher.

Maps each parsed engine command to a handler and tracks the adapter
lifecycle:

    BOOT --uci--> READY --quit--> TERMINATED

In BOOT only "uci" and "quit" are accepted. Anything else raises
ProtocolViolation, which the read loop logs and ignores.

Threading:
    - Main thread: reads commands and calls dispatch(), which never blocks
      on the move service
    - Search thread: one SearchTask per "go", waits for the move service
      and emits info/bestmove through the shared emit callback
    - Communication: a threading.Event per task, set by "stop" and "quit";
      end of input lets a running task finish first

The Session is only read and replaced on the main thread. A SearchTask gets
its own board when it is created and never touches the Session.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import chess

from chess_devtools.rules import PositionError, first_legal_move, load_position
from chess_devtools.uci.bridge import MoveServiceBridge
from chess_devtools.uci.errors import BridgeCancelled, BridgeError, ProtocolViolation, UCIError
from chess_devtools.uci.session import (
    Session,
    apply_debug,
    apply_init,
    apply_new_game,
    apply_position,
)
from chess_devtools.uci.types import (
    BestMove,
    Debug,
    Go,
    Id,
    IdKind,
    Info,
    IsReady,
    NO_MOVE,
    NumericInfo,
    NumericInfoKind,
    Option,
    OptionDescriptor,
    OptionType,
    PonderHit,
    PrincipalVariation,
    Quit,
    ReadyOk,
    Register,
    SetOption,
    SetPosition,
    Stop,
    UCIEngineCommand,
    UCIGUICommand,
    Uci,
    UciNewGame,
    UciOk,
    info_string,
)

logger = logging.getLogger(__name__)

OPTION_URL = "MoveServiceUrl"
OPTION_TIMEOUT = "MoveServiceTimeout"
OPTION_ATTEMPTS = "MoveServiceAttempts"

Emit = Callable[[UCIGUICommand], None]


class AdapterState(Enum):
    BOOT = "boot"
    READY = "ready"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class EngineIdentity:
    name: str
    author: str


class SearchTask:
    """
    A single "go": one move-service request on a background thread.

    The task always ends in one of three ways: it emits the service's move,
    it emits a fallback legal move (when the service failed or the search was
    stopped and fallback is enabled), or it logs the failure and emits
    nothing.
    """

    def __init__(
        self,
        board: chess.Board,
        bridge: MoveServiceBridge,
        emit: Emit,
        fallback_on_failure: bool = True,
    ):
        self.board = board
        self.bridge = bridge
        self.emit = emit
        self.fallback_on_failure = fallback_on_failure
        self.cancel_event = threading.Event()
        self.thread = threading.Thread(target=self._run, name="uci-go", daemon=True)

    def start(self):
        self.thread.start()

    def cancel(self):
        self.cancel_event.set()

    def is_alive(self) -> bool:
        return self.thread.is_alive()

    def join(self, timeout: Optional[float] = None):
        self.thread.join(timeout=timeout)

    def _run(self):
        start_time = time.monotonic()
        fen = self.board.fen()
        logger.info(f"Asking move service for {fen}")

        try:
            self.emit(info_string("asking move service"))
            move = self.bridge.request_move(self.board, self.cancel_event)
        except BridgeCancelled:
            logger.info("Move request cancelled")
        except BridgeError as e:
            logger.error(f"Move service failed for {fen}: {e}")
        except UCIError as e:
            # Output is gone; nothing more can be sent for this turn
            logger.error(f"Search task aborted: {e}")
            return
        except Exception as e:
            logger.error(f"Search task error: {e}", exc_info=True)
        else:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            logger.info(f"Move service chose {move} in {elapsed_ms}ms")
            self._send_move(
                Info((NumericInfo(NumericInfoKind.TIME, elapsed_ms), PrincipalVariation((move,)))),
                move,
            )
            return

        self._fallback()

    def _fallback(self):
        if not self.fallback_on_failure:
            logger.warning("No move for this turn; fallback disabled")
            return

        move = first_legal_move(self.board)
        if move is None:
            logger.error("No legal moves available for fallback")
            return

        logger.warning(f"Using fallback move: {move}")
        self._send_move(info_string("move service failed, playing fallback move"), move)

    def _send_move(self, info: Info, move: str):
        try:
            self.emit(info)
            self.emit(BestMove(move))
        except UCIError as e:
            logger.error(f"Could not send bestmove {move}: {e}")


class UCIDispatcher:
    """
    Handles engine commands and owns the adapter Session.

    Attributes:
        identity: Name and author sent in reply to "uci"
        bridge: Move-service client used by "go"
        emit: Callback that writes one GUI command (used by search threads)
        session: Current Session value
        state: Current AdapterState
    """

    def __init__(
        self,
        identity: EngineIdentity,
        bridge: MoveServiceBridge,
        emit: Emit,
        fallback_on_failure: bool = True,
    ):
        self.identity = identity
        self.bridge = bridge
        self.emit = emit
        self.fallback_on_failure = fallback_on_failure

        self.session = Session()
        self.state = AdapterState.BOOT
        self.task: Optional[SearchTask] = None

        self._handlers: Dict[type, Callable[..., List[UCIGUICommand]]] = {
            Uci: self.handle_uci,
            Debug: self.handle_debug,
            IsReady: self.handle_isready,
            SetOption: self.handle_setoption,
            Register: self.handle_register,
            UciNewGame: self.handle_ucinewgame,
            SetPosition: self.handle_position,
            Go: self.handle_go,
            Stop: self.handle_stop,
            PonderHit: self.handle_ponderhit,
            Quit: self.handle_quit,
        }

    @property
    def terminated(self) -> bool:
        return self.state is AdapterState.TERMINATED

    def dispatch(self, command: UCIEngineCommand) -> List[UCIGUICommand]:
        """
        Run the handler for one command.

        Returns:
            Replies to write, in order (possibly none)

        Raises:
            ProtocolViolation: Command not accepted in the current state
        """
        if self.state is AdapterState.TERMINATED:
            raise ProtocolViolation(f"{type(command).__name__} received after quit")
        if self.state is AdapterState.BOOT and not isinstance(command, (Uci, Quit)):
            raise ProtocolViolation(f"{type(command).__name__} received before uci")

        return self._handlers[type(command)](command)

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    def handle_uci(self, command: Uci) -> List[UCIGUICommand]:
        """
        Identify the adapter and advertise its options.

        Response:
            id name <name>
            id author <author>
            option name MoveServiceUrl type string default <url>
            ...
            uciok
        """
        self.session = apply_init(self.session)
        self.state = AdapterState.READY

        replies: List[UCIGUICommand] = [
            Id(IdKind.NAME, self.identity.name),
            Id(IdKind.AUTHOR, self.identity.author),
        ]
        replies += [Option(descriptor) for descriptor in self.advertised_options()]
        replies.append(UciOk())
        return replies

    def handle_debug(self, command: Debug) -> List[UCIGUICommand]:
        self.session = apply_debug(self.session, command.on)
        logger.info(f"Debug mode {'on' if self.session.debug else 'off'}")
        return []

    def handle_isready(self, command: IsReady) -> List[UCIGUICommand]:
        # Answered at once, even with a search running
        return [ReadyOk()]

    def handle_setoption(self, command: SetOption) -> List[UCIGUICommand]:
        self.apply_option(command.name, command.value)
        return []

    def handle_register(self, command: Register) -> List[UCIGUICommand]:
        logger.info("Registration is not required; ignoring register")
        return []

    def handle_ucinewgame(self, command: UciNewGame) -> List[UCIGUICommand]:
        self.cancel_search()
        self.session = apply_new_game(self.session)
        return []

    def handle_position(self, command: SetPosition) -> List[UCIGUICommand]:
        self.session = apply_position(self.session, command.base, command.moves)
        logger.debug(f"Position set: {command.base} moves {' '.join(command.moves)}")
        return []

    def handle_go(self, command: Go) -> List[UCIGUICommand]:
        """
        Start a move-service request for the current position.

        Search limits in the command are logged but not used: the move
        service has no notion of time control. The reply arrives later from
        the search thread.
        """
        self.cancel_search()
        logger.debug(f"go parameters: {command.params}")

        try:
            board = load_position(self.session.base, self.session.moves)
        except PositionError as e:
            logger.error(f"Cannot search, bad position: {e}")
            return []

        if not board.legal_moves:
            logger.info("No legal moves in current position")
            return [BestMove(NO_MOVE)]

        self.task = SearchTask(board, self.bridge, self.emit, self.fallback_on_failure)
        self.task.start()
        return []

    def handle_stop(self, command: Stop) -> List[UCIGUICommand]:
        self.cancel_search()
        return []

    def handle_ponderhit(self, command: PonderHit) -> List[UCIGUICommand]:
        logger.debug("ponderhit ignored; pondering is not supported")
        return []

    def handle_quit(self, command: Quit) -> List[UCIGUICommand]:
        logger.info("Handling: quit")
        # Same as stop: a pending search ends with its fallback bestmove
        self.cancel_search()
        self.state = AdapterState.TERMINATED
        return []

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def wait_for_search(self):
        """Let a running search task finish at end of input, waiting at most the hard bound."""
        task, self.task = self.task, None
        if task is None:
            return

        task.join(timeout=self.bridge.hard_bound)
        if task.is_alive():
            logger.warning("Search task still running at shutdown; abandoning it")
            task.cancel()

    def cancel_search(self):
        """
        Stop the running search task, if any, and wait for it to finish.

        The wait is capped at the bridge's hard bound; a task still running
        after that is abandoned (its thread is a daemon).
        """
        task, self.task = self.task, None
        if task is None or not task.is_alive():
            return

        task.cancel()
        task.join(timeout=self.bridge.hard_bound)
        if task.is_alive():
            logger.warning("Search task did not finish within the hard bound")

    def advertised_options(self) -> List[OptionDescriptor]:
        return [
            OptionDescriptor(OPTION_URL, OptionType.STRING, default=self.bridge.url),
            OptionDescriptor(
                OPTION_TIMEOUT,
                OptionType.SPIN,
                default=str(int(self.bridge.timeout * 1000)),
                min=100,
                max=60000,
            ),
            OptionDescriptor(
                OPTION_ATTEMPTS,
                OptionType.SPIN,
                default=str(self.bridge.max_attempts),
                min=1,
                max=10,
            ),
        ]

    def apply_option(self, name: str, value: Optional[str]):
        """
        Apply a "setoption" to the bridge.

        Option names are matched case-insensitively, as UCI requires.

        Raises:
            ProtocolViolation: Unknown option or invalid value
        """
        descriptors = {d.name.lower(): d for d in self.advertised_options()}
        descriptor = descriptors.get(name.lower())
        if descriptor is None:
            raise ProtocolViolation(f"unknown option {name!r}")

        if descriptor.type is OptionType.SPIN:
            try:
                number = int(value or "")
            except ValueError:
                raise ProtocolViolation(f"option {descriptor.name} expects an integer, got {value!r}")
            if not descriptor.min <= number <= descriptor.max:
                raise ProtocolViolation(
                    f"option {descriptor.name} must be within "
                    f"[{descriptor.min}, {descriptor.max}], got {number}"
                )
            if descriptor.name == OPTION_TIMEOUT:
                self.bridge.timeout = number / 1000
            else:
                self.bridge.max_attempts = number
        else:
            if not value or len(value.split()) != 1 or not value.startswith(("http://", "https://")):
                raise ProtocolViolation(f"option {descriptor.name} needs an http(s) URL, got {value!r}")
            self.bridge.url = value

        logger.info(f"Option {descriptor.name} set to {value}")
