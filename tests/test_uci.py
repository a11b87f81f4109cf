"""
Unit Tests for the UCI adapter

Tests for the adapter as a GUI sees it, focusing on:
    - Transport: line reading, flushed writes, broken streams
    - Read loop: full uci/isready/position/go/quit sessions over StringIO
    - Error handling: malformed lines and out-of-order commands are skipped
    - Configuration: environment, overrides and validation
    - Entry point: argument handling of python -m chess_devtools.uci
"""

import logging
import threading
import time
from io import StringIO
from unittest.mock import MagicMock

import pytest

from chess_devtools.uci.__main__ import main
from chess_devtools.uci.adapter import UCIAdapter, setup_wire_logger
from chess_devtools.uci.bridge import DEFAULT_URL, MoveServiceBridge
from chess_devtools.uci.config import ENV_TIMEOUT, ENV_URL, AdapterConfig
from chess_devtools.uci.errors import TransportError
from chess_devtools.uci.protocol import AdapterState
from chess_devtools.uci.transport import LineTransport
from chess_devtools.uci.types import BestMove, ReadyOk


def answer(text):
    response = MagicMock()
    response.text = text
    return response


@pytest.fixture
def http():
    http = MagicMock()
    http.post.return_value = answer("e5")
    return http


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_URL, raising=False)
    monkeypatch.delenv(ENV_TIMEOUT, raising=False)


@pytest.fixture
def output():
    return StringIO()


def make_adapter(lines, output, http):
    transport = LineTransport(input=StringIO("".join(f"{l}\n" for l in lines)), output=output)
    bridge = MoveServiceBridge(url="http://service/move", timeout=1.0, http=http)
    return UCIAdapter(AdapterConfig(log_file=None), transport=transport, bridge=bridge)


class TestLineTransport:
    def test_lines_strip_terminators(self):
        transport = LineTransport(input=StringIO("uci\r\nisready\n\nquit"), output=StringIO())
        assert list(transport.lines()) == ["uci", "isready", "", "quit"]

    def test_send_writes_one_line(self, output):
        transport = LineTransport(input=StringIO(), output=output)

        transport.send(ReadyOk())
        transport.send(BestMove("e2e4"))

        assert output.getvalue() == "readyok\nbestmove e2e4\n"

    def test_write_to_closed_stream(self):
        closed = StringIO()
        closed.close()
        transport = LineTransport(input=StringIO(), output=closed)

        with pytest.raises(TransportError):
            transport.send(ReadyOk())

    def test_read_from_closed_stream(self):
        closed = StringIO()
        closed.close()
        transport = LineTransport(input=closed, output=StringIO())

        with pytest.raises(TransportError):
            list(transport.lines())

    def test_wire_log(self, tmp_path):
        wire_log = setup_wire_logger(tmp_path / "wire.log")
        transport = LineTransport(input=StringIO("isready\n"), output=StringIO(), wire_log=wire_log)

        list(transport.lines())
        transport.send(ReadyOk())
        for handler in wire_log.handlers:
            handler.flush()

        text = (tmp_path / "wire.log").read_text()
        assert ">>> isready" in text
        assert "<<< readyok" in text


class TestAdapterSession:
    """Complete sessions through the read loop."""

    def test_full_session(self, output, http):
        # Ends at end of input, which lets the search finish
        adapter = make_adapter(
            ["uci", "isready", "position startpos moves e2e4", "go movetime 100"],
            output,
            http,
        )

        assert adapter.run() == 0

        lines = output.getvalue().splitlines()
        assert lines[0] == "id name Gnomes"
        assert lines[1] == "id author Gnomes"
        assert lines[2].startswith("option name MoveServiceUrl type string default http://service/move")
        assert "uciok" in lines
        assert lines.index("readyok") == lines.index("uciok") + 1
        assert lines[-1] == "bestmove e7e5"
        assert any(line.startswith("info time") and line.endswith("pv e7e5") for line in lines)

    def test_go_before_uci_is_ignored(self, output, http):
        adapter = make_adapter(["go", "isready"], output, http)

        adapter.run()

        assert output.getvalue() == ""
        http.post.assert_not_called()
        assert adapter.dispatcher.state is AdapterState.BOOT

    def test_malformed_line_is_logged_and_skipped(self, output, http, caplog):
        adapter = make_adapter(["uci", "bogus command", "isready", "quit"], output, http)

        with caplog.at_level(logging.ERROR, logger="chess_devtools"):
            assert adapter.run() == 0

        assert "bogus" in caplog.text
        assert output.getvalue().splitlines()[-1] == "readyok"
        assert adapter.dispatcher.terminated

    def test_session_unchanged_by_bad_line(self, output, http):
        adapter = make_adapter([], output, http)
        adapter.handle_line("uci")
        session = adapter.dispatcher.session

        adapter.handle_line("position startpos moves e4")

        assert adapter.dispatcher.session == session

    def test_eof_without_quit(self, output, http):
        adapter = make_adapter(["uci", "position startpos moves e2e4", "go"], output, http)

        assert adapter.run() == 0
        assert output.getvalue().splitlines()[-1] == "bestmove e7e5"

    def test_quit_during_hanging_request(self, output, http):
        release = threading.Event()
        http.post.side_effect = lambda *args, **kwargs: (release.wait(5), answer("e5"))[1]
        adapter = make_adapter(["uci", "position startpos moves e2e4", "go", "quit"], output, http)

        start_time = time.monotonic()
        try:
            assert adapter.run() == 0
        finally:
            release.set()

        assert time.monotonic() - start_time < 0.5
        lines = output.getvalue().splitlines()
        assert lines[-1].startswith("bestmove ")
        assert lines[-1] != "bestmove e7e5"

    def test_lines_after_quit_not_read(self, output, http):
        adapter = make_adapter(["uci", "quit", "isready"], output, http)

        adapter.run()

        assert "readyok" not in output.getvalue()

    def test_broken_output_ends_loop(self, http):
        closed = StringIO()
        closed.close()
        adapter = make_adapter(["uci"], closed, http)

        assert adapter.run() == 1

    def test_bridge_closed_on_exit(self, output, http):
        adapter = make_adapter(["quit"], output, http)
        adapter.run()
        http.close.assert_called_once()


class TestAdapterConfig:
    def test_defaults(self):
        config = AdapterConfig()
        assert config.url == DEFAULT_URL
        assert config.name == "Gnomes"
        assert config.fallback_on_failure

    @pytest.mark.parametrize("kwargs", [
        {"url": "localhost:8000"},
        {"timeout": 0},
        {"bound_multiplier": 0.5},
        {"max_attempts": 0},
        {"name": ""},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            AdapterConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv(ENV_URL, "http://robot:9000/move")
        monkeypatch.setenv(ENV_TIMEOUT, "2.5")

        config = AdapterConfig.from_env()

        assert config.url == "http://robot:9000/move"
        assert config.timeout == 2.5

    def test_overrides_win_over_env(self, monkeypatch):
        monkeypatch.setenv(ENV_URL, "http://robot:9000/move")

        config = AdapterConfig.from_env(url="http://cli/move", timeout=None)

        assert config.url == "http://cli/move"
        assert config.timeout == AdapterConfig().timeout

    def test_bad_env_timeout(self, monkeypatch):
        monkeypatch.setenv(ENV_TIMEOUT, "soon")
        with pytest.raises(ValueError):
            AdapterConfig.from_env()


class TestMain:
    def test_invalid_config_exit_code(self, capsys):
        assert main(["--url", "ftp://robot/move"]) == 2
        assert "url" in capsys.readouterr().err

    def test_runs_until_quit(self, monkeypatch, capsys, tmp_path):
        monkeypatch.setattr("sys.stdin", StringIO("uci\nquit\n"))

        assert main(["--name", "Robot", "--log-file", str(tmp_path / "adapter.log")]) == 0

        out = capsys.readouterr().out
        assert "id name Robot" in out
        assert out.rstrip().endswith("uciok")
        assert (tmp_path / "adapter.log").exists()
