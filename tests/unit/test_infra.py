# -*- coding: utf-8 -*-
"""
tests/unit/test_infra.py
Testes para capacidades, probing de mídia, configurações e projeto
"""

import json
import subprocess
import pytest
from pathlib import Path
from unittest.mock import patch

from video_exporter.domain.errors import SourceLoadFailure
from video_exporter.domain.models.overlays import (
    Caption,
    CaptionStyle,
    OverlayList,
    TrailerSlide,
    Watermark,
)
from video_exporter.infra.capabilities import Capabilities, _parse_encoders, probe_capabilities
from video_exporter.infra.logging import get_logger, setup_logging
from video_exporter.infra.media_io import MediaIO
from video_exporter.infra.paths import ffmpeg_bin
from video_exporter.infra.project_io import load_project, save_project
from video_exporter.infra.settings import AppSettings, load_settings

ENCODERS_OUTPUT = """Encoders:
 V..... = Video
 ------
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC
 V....D libvpx-vp9           libvpx VP9 (codec vp9)
 A....D aac                  AAC (Advanced Audio Coding)
"""


class TestCapabilities:
    """Testes para o descritor de capacidades"""

    def test_parse_encoders(self):
        assert _parse_encoders(ENCODERS_OUTPUT) == frozenset({"libx264", "libvpx-vp9", "aac"})

    def test_pick_container(self):
        caps = Capabilities(True, frozenset({"libx264", "aac", "libvpx-vp9", "libopus"}))
        webm_only = Capabilities(True, frozenset({"libvpx-vp9", "libopus"}))
        nothing = Capabilities(True, frozenset({"mpeg4"}))

        assert caps.pick_container(["mp4", "webm"]) == "mp4"
        assert caps.pick_container(["webm", "mp4"]) == "webm"
        assert webm_only.pick_container(["mp4", "webm"]) == "webm"
        assert nothing.pick_container(["mp4", "webm"]) is None
        assert not caps.supports_container("avi")

    @patch("video_exporter.infra.capabilities.subprocess.run")
    def test_probe(self, mock_run):
        mock_run.side_effect = [
            subprocess.CompletedProcess([], 0, ENCODERS_OUTPUT, ""),
            subprocess.CompletedProcess([], 0, " ... drawtext          V->V       Draw text\n", ""),
        ]

        caps = probe_capabilities("ffmpeg")

        assert caps.ffmpeg_available
        assert caps.drawtext
        assert caps.supports_encoder("libx264")

    @patch("video_exporter.infra.capabilities.subprocess.run")
    def test_probe_without_ffmpeg(self, mock_run):
        mock_run.side_effect = FileNotFoundError("ffmpeg")

        caps = probe_capabilities("ffmpeg")

        assert not caps.ffmpeg_available
        assert not caps.drawtext


class TestMediaIO:
    """Testes para o probing com FFprobe"""

    PROBE = {
        "streams": [
            {"codec_type": "video", "width": 1920, "height": 1080, "avg_frame_rate": "30000/1001"},
            {"codec_type": "audio"},
        ],
        "format": {"duration": "12.5"},
    }

    @patch("video_exporter.infra.media_io.subprocess.run")
    def test_load_source(self, mock_run, tmp_path):
        video = tmp_path / "video.mp4"
        video.write_bytes(b"x")
        mock_run.return_value = subprocess.CompletedProcess([], 0, json.dumps(self.PROBE), "")

        source = MediaIO("ffprobe").load_source(video)

        assert source.duration_seconds == 12.5
        assert (source.width, source.height) == (1920, 1080)
        assert source.fps == pytest.approx(29.97, abs=0.01)
        assert source.has_audio

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceLoadFailure):
            MediaIO("ffprobe").load_source(tmp_path / "nada.mp4")

    @patch("video_exporter.infra.media_io.subprocess.run")
    def test_probe_failure(self, mock_run, tmp_path):
        video = tmp_path / "video.mp4"
        video.write_bytes(b"x")
        mock_run.side_effect = subprocess.CalledProcessError(1, "ffprobe")

        with pytest.raises(SourceLoadFailure):
            MediaIO("ffprobe").load_source(video)

    @patch("video_exporter.infra.media_io.subprocess.run")
    def test_no_video_stream(self, mock_run, tmp_path):
        video = tmp_path / "audio.mp4"
        video.write_bytes(b"x")
        data = {"streams": [{"codec_type": "audio"}], "format": {"duration": "3"}}
        mock_run.return_value = subprocess.CompletedProcess([], 0, json.dumps(data), "")

        with pytest.raises(SourceLoadFailure):
            MediaIO("ffprobe").load_source(video)

    def test_parse_rate(self):
        assert MediaIO._parse_rate("25/1") == 25.0
        assert MediaIO._parse_rate("0/0") == 25.0
        assert MediaIO._parse_rate(None) == 25.0


class TestSettings:
    """Testes para as configurações"""

    def test_defaults(self):
        settings = AppSettings()

        assert settings.target_fps == 25.0
        assert settings.reference_resolution == (1280, 720)
        assert settings.preferred_containers == ["mp4", "webm"]

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("VIDEO_EXPORTER_CAPTION_MARGIN", "30")

        assert AppSettings().caption_margin == 30

    def test_load_from_config_json(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"ffmpeg_path": "/opt/ffmpeg", "target_fps": 30}))

        settings = load_settings(config)

        assert settings.ffmpeg_path == "/opt/ffmpeg"
        assert settings.target_fps == 30.0

    def test_configured_binary_wins(self):
        assert ffmpeg_bin("/opt/ffmpeg/bin/ffmpeg") == "/opt/ffmpeg/bin/ffmpeg"


class TestProjectIO:
    """Testes para o arquivo de projeto"""

    def test_load_resolves_relative_paths(self, tmp_path):
        project = tmp_path / "projeto.json"
        project.write_text(
            json.dumps(
                {
                    "source": "video.mp4",
                    "captions": [
                        {"text": "Oi", "start": 1, "duration": 2, "style": {"position": "top-center"}}
                    ],
                    "watermarks": [{"image": "logo.png", "end": 10}],
                    "slides": [{"image": "fim.png", "duration": 3}],
                }
            ),
            encoding="utf-8",
        )

        source, overlays = load_project(project)

        assert source == tmp_path / "video.mp4"
        assert overlays.captions[0].style.position == "top-center"
        assert overlays.watermarks[0].image_path == tmp_path / "logo.png"
        assert overlays.slides[0].duration_seconds == 3.0

    def test_invalid_project(self, tmp_path):
        project = tmp_path / "projeto.json"
        project.write_text(json.dumps({"captions": [{"text": "sem duração"}]}))

        with pytest.raises(ValueError):
            load_project(project)

    def test_watermark_without_end_is_visible(self, tmp_path):
        project = tmp_path / "projeto.json"
        project.write_text(json.dumps({"watermarks": [{"image": "logo.png"}]}))

        _, overlays = load_project(project)
        watermark = overlays.watermarks[0]

        assert watermark.end_seconds is None
        assert watermark.is_active(5.0, source_duration=10.0)
        assert watermark.visible_interval(10.0) == (0.0, 10.0)

    def test_save_and_load(self, tmp_path):
        overlays = OverlayList(
            captions=[Caption("Olá", 0.0, 2.0, CaptionStyle(background_style="none"))],
            watermarks=[Watermark(tmp_path / "logo.png", "bottom-left", 0.5, 1.0, 4.0)],
            slides=[TrailerSlide(tmp_path / "fim.png", 2.0)],
        )
        project = tmp_path / "projeto.json"

        save_project(project, overlays, source=tmp_path / "video.mp4")
        source, loaded = load_project(project)

        assert source == tmp_path / "video.mp4"
        assert loaded == overlays


class TestLogging:
    """Configuração de logging"""

    def test_setup_is_idempotent(self, tmp_path):
        log_file = tmp_path / "export.log"

        setup_logging(str(log_file))
        logger = setup_logging(str(log_file))
        get_logger("Runner").info("comando executado")

        assert len(logger.handlers) == 2
        assert "video_exporter.Runner - INFO - comando executado" in log_file.read_text(encoding="utf-8")
        setup_logging(None)
        assert len(logger.handlers) == 1
