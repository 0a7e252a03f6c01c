# -*- coding: utf-8 -*-
"""
Testes de integração para o backend de filtergraph
"""

import pytest
from pathlib import Path

from PIL import Image

from video_exporter.domain.errors import (
    EncodingEngineFailure,
    FinalizationFailure,
    OverlayAssetLoadFailure,
    UnsupportedCapability,
)
from video_exporter.domain.models.media import CrfQuality, MediaSource
from video_exporter.domain.models.overlays import Caption, OverlayList, TrailerSlide, Watermark
from video_exporter.domain.models.progress import ExportState
from video_exporter.infra.capabilities import Capabilities
from video_exporter.infra.settings import AppSettings
from video_exporter.rendering.cli_builder import CliBuilder
from video_exporter.rendering.filtergraph_backend import FilterGraphBackend
from video_exporter.rendering.graph_builder import FilterGraph, GraphBuilder
from video_exporter.rendering.runner import Progress

QUALITY = CrfQuality(crf=23, preset="medium")


class FakeRunner:
    """Registra os comandos e escreve um arquivo de saída falso"""

    def __init__(self, fail_on: str = None):
        self.commands = []
        self.fail_on = fail_on

    def run(self, cmd, on_progress=None, timeout=None):
        self.commands.append(cmd)
        output = cmd[-1]
        if Path(output).name == self.fail_on:
            raise EncodingEngineFailure(f"falha simulada em {output}")
        if on_progress:
            on_progress(Progress(out_time_us=500_000))
            on_progress(Progress(out_time_us=10_000_000, done=True))
        Path(output).write_bytes(b"fake video " + Path(output).name.encode())


class RecordingContext:
    """ExportContext mínimo que guarda os eventos"""

    def __init__(self, workdir: Path):
        self.workdir = workdir
        self.events = []
        self.warnings = []

    def report(self, phase, fraction, message):
        self.events.append((phase, fraction, message))

    def warn(self, error):
        self.warnings.append(error)

    def check_cancelled(self):
        pass


@pytest.fixture
def source():
    return MediaSource(Path("in.mp4"), 10.0, 1280, 720, fps=30.0, has_audio=True)


@pytest.fixture
def logo(tmp_path):
    path = tmp_path / "logo.png"
    Image.new("RGBA", (40, 20), (255, 255, 255, 255)).save(path)
    return path


def test_graph_builder_empty_overlays(source):
    """Sem overlays não há filtros"""
    graph = GraphBuilder(AppSettings()).build(source, OverlayList())

    assert isinstance(graph, FilterGraph)
    assert graph.is_empty()
    assert graph.output_label is None
    assert graph.inputs == [Path("in.mp4")]


def test_graph_builder_captions_then_watermarks(source):
    """Legendas primeiro, marcas d'água por cima, cada uma com seu input"""
    overlays = OverlayList(
        captions=[Caption("Hi", 2.0, 3.0)],
        watermarks=[
            Watermark(Path("logo.png"), end_seconds=10.0),
            Watermark(Path("late.png"), start_seconds=20.0, end_seconds=30.0),
            Watermark(Path("selo.png"), "bottom-left", end_seconds=5.0),
        ],
    )

    graph = GraphBuilder(AppSettings()).build(source, overlays)

    assert graph.inputs == [Path("in.mp4"), Path("logo.png"), Path("selo.png")]
    assert len(graph.filters) == 3
    assert graph.filters[0].startswith("[0:v]drawtext=")
    assert graph.filters[0].endswith("[captioned]")
    assert graph.filters[1].startswith("[1:v]scale=")
    assert "[captioned][wm_out0_img]overlay=" in graph.filters[1]
    assert "[wm_out0][wm_out2_img]overlay=" in graph.filters[2]
    assert graph.output_label == "wm_out2"


def test_filter_graph_string_conversion():
    """Testa conversão de FilterGraph para string"""
    graph = FilterGraph()
    graph.add_filter("[0:v]drawtext=text=a[captioned]")
    graph.add_filter("[1:v]scale=iw*1:ih*1[w];[captioned][w]overlay=x=0:y=0[wm_out0]")

    assert graph.to_string() == (
        "[0:v]drawtext=text=a[captioned];"
        "[1:v]scale=iw*1:ih*1[w];[captioned][w]overlay=x=0:y=0[wm_out0]"
    )


class TestCliBuilder:
    """Testes para a construção de comandos FFmpeg"""

    def test_main_command(self, source, tmp_path):
        overlays = OverlayList(captions=[Caption("Hi", 2.0, 3.0)])
        graph = GraphBuilder(AppSettings()).build(source, overlays)
        output = tmp_path / "main_output.mp4"

        cmd = CliBuilder("ffmpeg").make_command(graph, output, QUALITY, has_audio=True)

        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-filter_complex") + 1] == graph.to_string()
        assert cmd[cmd.index("-map") + 1] == "[captioned]"
        assert "0:a:0?" in cmd
        assert cmd[cmd.index("-c:v") + 1] == "libx264"
        assert cmd[cmd.index("-crf") + 1] == "23"
        assert cmd[cmd.index("-ar") + 1] == "48000"
        assert cmd[-1] == str(output)

    def test_main_command_without_filters_or_audio(self, source, tmp_path):
        graph = GraphBuilder(AppSettings()).build(source, OverlayList())

        cmd = CliBuilder("ffmpeg").make_command(graph, tmp_path / "out.mp4", QUALITY, has_audio=False)

        assert "-filter_complex" not in cmd
        assert cmd[cmd.index("-map") + 1] == "0:v:0"
        assert "-c:a" not in cmd

    def test_slide_command(self, tmp_path):
        slide = TrailerSlide(Path("fim.png"), 3.0)

        cmd = CliBuilder("ffmpeg").make_slide_command(
            slide, tmp_path / "slide_0.mp4", 1280, 720, 30.0, QUALITY, with_audio=True
        )

        assert cmd[cmd.index("-loop") + 1] == "1"
        assert "anullsrc=channel_layout=stereo:sample_rate=48000" in cmd
        assert "1:a:0" in cmd
        assert cmd.count("3.000") == 3

    def test_concat_manifest(self, tmp_path):
        files = [tmp_path / "main_output.mp4", tmp_path / "slide 0.mp4", tmp_path / "it's.mp4"]

        manifest = CliBuilder.write_concat_manifest(files, tmp_path / "concat_list.txt")
        lines = manifest.read_text(encoding="utf-8").splitlines()

        assert lines[0] == f"file '{files[0].resolve()}'"
        assert lines[1] == f"file '{files[1].resolve()}'"
        assert lines[2].endswith("it'\\''s.mp4'")

    def test_concat_command(self, tmp_path):
        cmd = CliBuilder("ffmpeg").make_concat_command(tmp_path / "concat_list.txt", tmp_path / "output.mp4", QUALITY)

        assert cmd[cmd.index("-f") + 1] == "concat"
        assert cmd[cmd.index("-safe") + 1] == "0"
        assert "0:a:0" in cmd


class TestFilterGraphBackend:
    """Backend completo com o FFmpeg substituído por um runner falso"""

    def backend(self, runner):
        return FilterGraphBackend(AppSettings(ffmpeg_path="ffmpeg"), runner=runner)

    def test_render_without_slides(self, source, logo, tmp_path):
        runner = FakeRunner()
        context = RecordingContext(tmp_path)
        overlays = OverlayList(
            captions=[Caption("Hi", 2.0, 3.0)],
            watermarks=[Watermark(logo, end_seconds=10.0)],
        )

        artifact = self.backend(runner).render(source, overlays, QUALITY, context)

        assert artifact.mime_type == "video/mp4"
        assert artifact.data == b"fake video main_output.mp4"
        assert len(runner.commands) == 1
        phases = [phase for phase, _, _ in context.events]
        assert phases[0] == ExportState.LOADING
        assert phases[-1] == ExportState.FINALIZING
        assert context.events[-1][1] == 1.0

    def test_render_with_slides(self, source, logo, tmp_path):
        runner = FakeRunner()
        context = RecordingContext(tmp_path)
        overlays = OverlayList(
            slides=[TrailerSlide(logo, 3.0), TrailerSlide(logo, 4.0)],
        )

        artifact = self.backend(runner).render(source, overlays, QUALITY, context)

        outputs = [Path(cmd[-1]).name for cmd in runner.commands]
        assert outputs == ["main_output.mp4", "slide_0.mp4", "slide_1.mp4", "output.mp4"]
        assert artifact.data == b"fake video output.mp4"
        manifest = (tmp_path / "concat_list.txt").read_text(encoding="utf-8")
        assert manifest.index("main_output.mp4") < manifest.index("slide_0.mp4") < manifest.index("slide_1.mp4")

        rendering = [f for phase, f, _ in context.events if phase == ExportState.RENDERING]
        assert all(b >= a - 1e-9 for a, b in zip(rendering, rendering[1:]))
        assert max(rendering) == pytest.approx(1.0)

    def test_missing_asset_is_fatal(self, source, tmp_path):
        runner = FakeRunner()
        overlays = OverlayList(watermarks=[Watermark(tmp_path / "nao_existe.png", end_seconds=5.0)])

        with pytest.raises(OverlayAssetLoadFailure):
            self.backend(runner).render(source, overlays, QUALITY, RecordingContext(tmp_path))
        assert runner.commands == []

    def test_concat_failure_is_finalization_failure(self, source, logo, tmp_path):
        runner = FakeRunner(fail_on="output.mp4")
        overlays = OverlayList(slides=[TrailerSlide(logo, 1.0)])

        with pytest.raises(FinalizationFailure):
            self.backend(runner).render(source, overlays, QUALITY, RecordingContext(tmp_path))

    def test_main_render_failure_propagates(self, source, tmp_path):
        runner = FakeRunner(fail_on="main_output.mp4")

        with pytest.raises(EncodingEngineFailure):
            self.backend(runner).render(source, OverlayList(), QUALITY, RecordingContext(tmp_path))

    def test_capabilities(self):
        backend = self.backend(FakeRunner())
        backend.check_capabilities(Capabilities(True, frozenset({"libx264", "aac"})))

        with pytest.raises(UnsupportedCapability):
            backend.check_capabilities(Capabilities(False))
        with pytest.raises(UnsupportedCapability):
            backend.check_capabilities(Capabilities(True, frozenset({"libx264"}), drawtext=False))

    def test_quality_resolution(self):
        backend = self.backend(FakeRunner())

        assert backend.resolve_quality("high") == CrfQuality(crf=18, preset="slow")
        assert backend.resolve_quality(QUALITY) is QUALITY
