"""Tests for the command line entry point."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flasher.main import _run, build_parser, cli
from flasher.models import DeviceNotFoundError, LocalDevice, ReleaseFailure


class TestBuildParser:
    def test_repeated_device_flags(self):
        args = build_parser().parse_args(["5.8.0", "-d", "a", "--device", "b:boron"])
        assert args.version == "5.8.0"
        assert args.device == ["a", "b:boron"]
        assert args.all_devices is False

    def test_all_devices(self):
        args = build_parser().parse_args(["5.8.0", "--all-devices"])
        assert args.device is None
        assert args.all_devices is True

    def test_version_optional_at_parse_time(self):
        args = build_parser().parse_args(["--all-devices"])
        assert args.version is None


def _mock_app(init_result=None, init_error=None):
    app = MagicMock()
    app.init = AsyncMock(return_value=init_result, side_effect=init_error)
    app.shutdown = AsyncMock()
    app.version = "5.8.0"
    app.release_failures = []
    return app


class TestRun:
    async def test_prints_targets(self, capsys, tmp_path):
        app = _mock_app([LocalDevice(id="aa", platform_id=13)])
        args = build_parser().parse_args(["5.8.0", "-d", "aa"])
        with patch("flasher.main.FlasherConfig"), patch("flasher.main.App", return_value=app):
            assert await _run(args) == 0
        out = capsys.readouterr().out
        assert "aa (boron)" in out
        app.shutdown.assert_awaited_once()

    async def test_reports_release_failures(self, capsys):
        app = _mock_app([LocalDevice(id="aa", platform_id=13)])
        app.release_failures = [ReleaseFailure(device_id="bb", error="usb reset")]
        args = build_parser().parse_args(["5.8.0", "-d", "aa"])
        with patch("flasher.main.FlasherConfig"), patch("flasher.main.App", return_value=app):
            assert await _run(args) == 0
        assert "1 unused device(s) could not be released" in capsys.readouterr().out

    async def test_error_exit_code(self, capsys):
        app = _mock_app(init_error=DeviceNotFoundError("ghost", "Unknown device: ghost"))
        args = build_parser().parse_args(["5.8.0", "-d", "ghost"])
        with patch("flasher.main.FlasherConfig"), patch("flasher.main.App", return_value=app):
            assert await _run(args) == 1
        assert "Error: Unknown device: ghost" in capsys.readouterr().err
        app.shutdown.assert_awaited_once()


class TestCli:
    def test_exit_code_propagated(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["device-os-flasher", "5.8.0", "--all-devices"])
        with patch("flasher.main._run", AsyncMock(return_value=1)):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == 1
