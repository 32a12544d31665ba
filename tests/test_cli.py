"""Tests for headtrack CLI argument parsing and commands."""

import json
from unittest.mock import MagicMock, patch

import pytest

from headtrack.cli import _build_parser, _resolve_input, main
from headtrack.cli.track import build_config


class TestCLIParser:
    def test_track_basic(self):
        parser = _build_parser()
        args = parser.parse_args(["track", "--input", "video.mp4"])
        assert args.command == "track"
        assert args.input == "video.mp4"
        assert args.cascade is None
        assert args.config is None
        assert args.max_frames is None
        assert args.resolution == (320, 240)
        assert args.no_smoothing is False
        assert args.fov is None

    def test_track_options(self):
        parser = _build_parser()
        args = parser.parse_args([
            "track", "-i", "0", "--max-frames", "100", "--resolution", "640x480",
            "--no-smoothing", "--calc-angles", "--fov", "55", "-c", "tracker.yaml",
        ])
        assert args.max_frames == 100
        assert args.resolution == (640, 480)
        assert args.no_smoothing is True
        assert args.calc_angles is True
        assert args.fov == 55.0
        assert args.config == "tracker.yaml"

    def test_native_resolution(self):
        parser = _build_parser()
        args = parser.parse_args(["track", "-i", "video.mp4", "--resolution", "native"])
        assert args.resolution is None

    def test_invalid_resolution(self):
        parser = _build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["track", "-i", "video.mp4", "--resolution", "big"])

    def test_track_requires_input(self):
        parser = _build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["track"])

    def test_info_verbose(self):
        parser = _build_parser()
        args = parser.parse_args(["info", "--verbose"])
        assert args.command == "info"
        assert args.verbose is True

    def test_no_command(self):
        parser = _build_parser()
        args = parser.parse_args([])
        assert args.command is None

    def test_resolve_input(self):
        assert _resolve_input("0") == 0
        assert _resolve_input("clip.mp4") == "clip.mp4"


class TestBuildConfig:
    def test_overrides(self, tmp_path):
        config_path = tmp_path / "tracker.yaml"
        config_path.write_text("smoothing_alpha: 0.5\nhead:\n  fov: 60\n")
        args = _build_parser().parse_args([
            "track", "-i", "0", "-c", str(config_path),
            "--no-smoothing", "--calc-angles", "--fov", "45", "--cascade", "faces.json",
        ])

        config = build_config(args)

        assert config.smoothing_alpha == 0.5
        assert config.smoothing is False
        assert config.face.calc_angles is True
        assert config.head.fov == 45.0
        assert config.cascade_path == "faces.json"

    def test_defaults(self):
        args = _build_parser().parse_args(["track", "-i", "0"])
        config = build_config(args)
        assert config.smoothing is True
        assert config.head.fov is None


class TestCLICommands:
    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "headtrack" in capsys.readouterr().out

    def test_info(self, tmp_path, monkeypatch, capsys, cascade_dict):
        monkeypatch.delenv("HEADTRACK_CASCADE", raising=False)
        monkeypatch.setenv("HEADTRACK_MODELS_DIR", str(tmp_path))
        (tmp_path / "facecascade.json").write_text(json.dumps(cascade_dict))

        main(["info", "--verbose"])

        out = capsys.readouterr().out
        assert "Cascade window:   20x20" in out
        assert "Stages:           2" in out
        assert "stage  1:   2 features" in out
        assert "whitebalance" in out
        assert out.index("detection") < out.index("camshift")

    def test_missing_cascade_exits(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("HEADTRACK_CASCADE", raising=False)
        monkeypatch.setenv("HEADTRACK_MODELS_DIR", str(tmp_path))
        with pytest.raises(SystemExit) as exc:
            main(["info"])
        assert exc.value.code == 1
        assert "Cascade model not found" in capsys.readouterr().err

    def test_track(self, tmp_path, capsys, cascade_dict):
        cascade_path = tmp_path / "faces.json"
        cascade_path.write_text(json.dumps(cascade_dict))
        source = MagicMock()
        source.__enter__.return_value = source
        source.read.return_value = None

        with patch("headtrack.cli.track.VideoCaptureSource", return_value=source) as cls:
            main(["track", "-i", "0", "--cascade", str(cascade_path), "--resolution", "native"])

        cls.assert_called_once_with(0, None)
        out = capsys.readouterr().out
        assert "[stopped] Tracking stopped" in out
        assert "Done: 0 frames, field of view not calibrated" in out

    def test_unopenable_input_exits(self, tmp_path, capsys, cascade_dict):
        cascade_path = tmp_path / "faces.json"
        cascade_path.write_text(json.dumps(cascade_dict))
        with patch(
            "headtrack.cli.track.VideoCaptureSource",
            side_effect=IOError("Cannot open video source: missing.mp4"),
        ):
            with pytest.raises(SystemExit) as exc:
                main(["track", "-i", "missing.mp4", "--cascade", str(cascade_path)])
        assert exc.value.code == 1
        assert "Cannot open video source" in capsys.readouterr().err
