"""
Tests for the Freebox Status CLI.

Covers argument parsing and validation, JSON line output, logging setup and
the main entry point with a mocked client.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from unittest.mock import Mock, patch

import pytest

import freebox_status.cli.logging_setup
from freebox_status.adapter import NetDeviceAdapter, NetInterfaceAdapter, PhoneAdapter
from freebox_status.cli.args import create_parser, parse_args, validate_args
from freebox_status.cli.formatters import format_update, print_error_suggestions, print_summary_to_stderr
from freebox_status.cli.logging_setup import setup_logging
from freebox_status.cli.main import build_adapters, main
from freebox_status.models import ChannelUpdate


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch):
    monkeypatch.delenv("FREEBOX_APP_TOKEN", raising=False)
    monkeypatch.setattr(freebox_status.cli.logging_setup, "_logging_configured", False)


@pytest.mark.unit
@pytest.mark.cli
class TestArgs:
    """Argument parsing and validation."""

    def test_defaults(self):
        args = create_parser().parse_args(["--app-token", "t"])

        assert args.host == "mafreebox.freebox.fr"
        assert args.port == 443
        assert args.phone_interval == 2
        assert args.calls_interval == 60
        assert args.lan_interval == 30
        assert args.mac == []
        assert args.ip == []
        assert args.duration == 0

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("FREEBOX_APP_TOKEN", "from-env")

        assert parse_args([]).app_token == "from-env"

    def test_repeatable_things(self):
        args = parse_args(
            ["--app-token", "t", "--mac", "00:24:D4:AA:BB:CC", "--mac", "3C:22:FB:11:22:33", "--ip", "192.168.1.10"]
        )

        assert args.mac == ["00:24:D4:AA:BB:CC", "3C:22:FB:11:22:33"]
        assert args.ip == ["192.168.1.10"]

    def test_missing_token(self):
        with pytest.raises(ValueError, match="app token"):
            parse_args([])

    @pytest.mark.parametrize(
        "extra,message",
        [
            (["--timeout", "0"], "Timeout"),
            (["--workers", "0"], "Workers"),
            (["--retries", "-1"], "Retries"),
            (["--port", "0"], "Port"),
            (["--duration", "-5"], "Duration"),
        ],
    )
    def test_invalid(self, extra, message):
        args = create_parser().parse_args(["--app-token", "t"] + extra)

        with pytest.raises(ValueError, match=message):
            validate_args(args)


@pytest.mark.unit
@pytest.mark.cli
class TestFormatters:
    def test_format_update(self):
        update = ChannelUpdate(
            channel="any.calltimestamp",
            value=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            timestamp=1714564800.0,
        )

        assert format_update("phone", update) == {
            "thing": "phone",
            "channel": "any.calltimestamp",
            "value": "2024-05-01T12:00:00+00:00",
            "timestamp": "2024-05-01T12:00:00+00:00",
        }

    def test_print_summary_to_stderr(self, capsys):
        adapter = Mock(thing_id="phone")
        adapter.state.name = "ONLINE"
        adapter.reason.value = "NONE"
        performance = {
            "operation_breakdown": {
                "phone:phone-state": {"count": 4, "success_rate": 0.75, "avg_time": 0.012},
            }
        }

        print_summary_to_stderr([adapter], 12.3, performance)

        captured = capsys.readouterr()
        assert "FREEBOX STATUS SUMMARY" in captured.err
        assert "phone: ONLINE (NONE)" in captured.err
        assert "phone:phone-state: 4 runs, 75% ok, avg 12ms" in captured.err
        assert captured.out == ""

    def test_print_error_suggestions_normal(self, capsys):
        print_error_suggestions(debug=False)

        assert "Troubleshooting suggestions" in capsys.readouterr().err

    @patch("traceback.print_exc")
    def test_print_error_suggestions_debug(self, mock_traceback):
        print_error_suggestions(debug=True)

        mock_traceback.assert_called_once()


@pytest.mark.unit
@pytest.mark.cli
class TestLoggingSetup:
    def test_info_level(self):
        setup_logging(debug=False)

        assert logging.getLogger().level == logging.INFO

    def test_debug_level(self):
        setup_logging(debug=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("freebox-status").level == logging.DEBUG

    def test_quiet_level(self):
        setup_logging(quiet=True)

        assert logging.getLogger().level == logging.WARNING


@pytest.mark.unit
@pytest.mark.cli
class TestMain:
    """Main entry point with a mocked client."""

    def test_build_adapters(self, scheduler, capsys):
        args = parse_args(["--app-token", "t", "--mac", "00:24:D4:AA:BB:CC", "--ip", "192.168.1.10"])

        adapters = build_adapters(args, scheduler)

        assert [type(a) for a in adapters] == [PhoneAdapter, NetDeviceAdapter, NetInterfaceAdapter]
        assert [a.thing_id for a in adapters] == ["phone", "netdevice:00:24:D4:AA:BB:CC", "netinterface:192.168.1.10"]

        adapters[1].publisher.publish("reachable", True)
        line = json.loads(capsys.readouterr().out)
        assert line["thing"] == "netdevice:00:24:D4:AA:BB:CC"
        assert line["channel"] == "reachable"
        assert line["value"] is True

    def test_no_phone(self, scheduler):
        args = parse_args(["--app-token", "t", "--no-phone", "--ip", "192.168.1.10"])

        assert [a.thing_id for a in build_adapters(args, scheduler)] == ["netinterface:192.168.1.10"]

    @patch("freebox_status.cli.main.time.sleep")
    @patch("freebox_status.cli.main.FreeboxClient")
    def test_main_success(self, mock_client_class, mock_sleep, mock_client):
        mock_client_class.from_config.return_value = mock_client
        stderr_capture = StringIO()

        with patch("sys.stderr", stderr_capture):
            main(["--app-token", "t", "--duration", "5", "--mac", "00:24:D4:AA:BB:CC"])

        mock_client.login.assert_called_once()
        mock_sleep.assert_called_once_with(5)
        config = mock_client_class.from_config.call_args.args[0]
        assert config.app_token == "t"
        assert config.timeout == (3, 10)
        output = stderr_capture.getvalue()
        assert "Freebox Status v" in output
        assert "FREEBOX STATUS SUMMARY" in output
        assert "netdevice:00:24:D4:AA:BB:CC: ONLINE (NONE)" in output

    @patch("freebox_status.cli.main.time.sleep")
    @patch("freebox_status.cli.main.FreeboxClient")
    def test_main_quiet_mode(self, mock_client_class, mock_sleep, mock_client):
        mock_client_class.from_config.return_value = mock_client
        stderr_capture = StringIO()

        with patch("sys.stderr", stderr_capture):
            main(["--app-token", "t", "--duration", "1", "--quiet"])

        assert "FREEBOX STATUS SUMMARY" not in stderr_capture.getvalue()

    def test_main_configuration_error(self):
        stderr_capture = StringIO()

        with patch("sys.stderr", stderr_capture):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 2
        assert "Configuration error" in stderr_capture.getvalue()

    @patch("freebox_status.cli.main.FreeboxClient")
    def test_main_client_error(self, mock_client_class):
        mock_client_class.from_config.side_effect = RuntimeError("boom")
        stderr_capture = StringIO()

        with patch("sys.stderr", stderr_capture):
            with pytest.raises(SystemExit) as exc_info:
                main(["--app-token", "t"])

        assert exc_info.value.code == 1
        assert "boom" in stderr_capture.getvalue()

    @patch("freebox_status.cli.main.time.sleep", side_effect=KeyboardInterrupt)
    @patch("freebox_status.cli.main.FreeboxClient")
    def test_main_keyboard_interrupt(self, mock_client_class, mock_sleep, mock_client):
        mock_client_class.from_config.return_value = mock_client

        with patch("sys.stderr", StringIO()):
            main(["--app-token", "t"])

        mock_client.login.assert_called_once()
