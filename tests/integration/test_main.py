"""Integration tests for the command-line entry point."""
import json
import logging
from unittest.mock import Mock, patch

import cv2
import pytest
import serial

from signmatch.core.entities import EdgeParams
from signmatch.core.logging_config import logging_manager
from signmatch.core.roi import RoiDetector
from signmatch.config.settings import build_config
from signmatch.core.exceptions import WebcamError
from signmatch.main import build_parser, main, run
from signmatch.services.signal_transport import LoggingSignalTransport


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs global handlers; undo that after every test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    logging_manager.shutdown()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def camera(make_disc_frame):
    """Mock capture serving a few disc frames, then failing."""
    cap = Mock()
    cap.isOpened.return_value = True
    cap.read.side_effect = [(True, make_disc_frame()) for _ in range(4)] + [(False, None)]
    with patch('cv2.VideoCapture', return_value=cap):
        yield cap


@pytest.fixture
def disc_settings(tmp_path, make_disc_frame):
    """Settings file whose single template is the disc frame's sign region."""
    frame = make_disc_frame()
    region = RoiDetector(EdgeParams(50, 150, 3), 0.6, 1000)(frame)
    cv2.imwrite(str(tmp_path / "disc.png"), region.box.crop(frame))

    path = tmp_path / "match-settings.json"
    path.write_text(json.dumps({
        "circularity-threshold": 0.6,
        "minimum-roi-area": 1000,
        "vertical-segments": 4,
        "horizontal-segments": 4,
        "counts-for-signal": 1,
        "key_poll_ms": 1,
        "templates": [{"name": "disc", "signal": "D", "image": "disc.png"}],
    }), encoding="utf-8")
    return path


class TestParser:
    """Command-line options."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config == "match-settings.json"
        assert args.dry_run is False
        assert args.headless is False
        assert args.log_level is None

    def test_flags(self):
        args = build_parser().parse_args(["-c", "x.yaml", "--dry-run", "--headless", "--log-level", "DEBUG"])

        assert args.config == "x.yaml"
        assert args.dry_run and args.headless
        assert args.log_level == "DEBUG"


@pytest.mark.integration
class TestMain:
    """Start-up, run and shutdown through main()."""

    def test_dry_run_sends_signal_once(self, disc_settings, camera):
        with patch.object(LoggingSignalTransport, "send", autospec=True) as mock_send:
            code = main(["-c", str(disc_settings), "--dry-run", "--headless"])

        assert code == 0
        assert [c.args[1] for c in mock_send.call_args_list] == ["D"]
        camera.release.assert_called_once()

    def test_serial_port_receives_signal(self, disc_settings, camera):
        port = Mock()
        port.is_open = True
        with patch('serial.Serial', return_value=port):
            code = main(["-c", str(disc_settings), "--headless"])

        assert code == 0
        port.write.assert_called_once_with(b"D\n")
        port.close.assert_called_once()

    def test_malformed_settings_exit_code(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")

        assert main(["-c", str(path), "--dry-run", "--headless"]) == 1

    def test_missing_template_image_exit_code(self, tmp_path, camera):
        path = tmp_path / "match-settings.json"
        path.write_text(json.dumps({
            "templates": [{"name": "stop", "signal": "S", "image": "missing.png"}],
        }), encoding="utf-8")

        assert main(["-c", str(path), "--dry-run", "--headless"]) == 1
        camera.read.assert_not_called()

    def test_camera_failure_exit_code(self, tmp_path):
        cap = Mock()
        cap.isOpened.return_value = False
        with patch('cv2.VideoCapture', return_value=cap):
            code = main(["-c", str(tmp_path / "none.json"), "--dry-run", "--headless"])

        assert code == 1

    def test_serial_failure_exit_code(self, tmp_path, camera):
        with patch('serial.Serial', side_effect=serial.SerialException("no device")):
            code = main(["-c", str(tmp_path / "none.json"), "--headless"])

        assert code == 1
        camera.release.assert_called_once()


@pytest.mark.integration
class TestStartupLogging:
    """Messages produced before the loop starts."""

    def test_settings_warnings_use_configured_format(self, settings_file, capsys):
        path = settings_file({"min_roi_area": "large"})
        cap = Mock()
        cap.isOpened.return_value = False
        with patch('cv2.VideoCapture', return_value=cap):
            main(["-c", str(path), "--dry-run", "--headless"])

        lines = capsys.readouterr().out.splitlines()
        warning = [line for line in lines if "Setting 'min_roi_area' is not an integer" in line]
        assert len(warning) == 1
        assert " - WARNING - [frame -] - " in warning[0]
        assert any("Successfully loaded configuration" in line for line in lines)

    def test_missing_settings_file_is_reported(self, tmp_path, capsys):
        cap = Mock()
        cap.isOpened.return_value = False
        with patch('cv2.VideoCapture', return_value=cap):
            main(["-c", str(tmp_path / "none.json"), "--dry-run", "--headless"])

        assert "does not exist. Using defaults." in capsys.readouterr().out

    def test_empty_template_list_warns(self, caplog):
        cap = Mock()
        cap.isOpened.return_value = False
        with patch('cv2.VideoCapture', return_value=cap), caplog.at_level(logging.WARNING):
            with pytest.raises(WebcamError):
                run(build_config({}), dry_run=True, headless=True)

        assert any("no templates configured" in m for m in caplog.messages)
