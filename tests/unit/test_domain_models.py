# -*- coding: utf-8 -*-
"""
Testes unitários para os modelos de domínio
"""

import pytest
from pathlib import Path

from video_exporter.domain.errors import (
    AudioCaptureFailure,
    EncodingEngineFailure,
    ExportError,
    FilterGraphError,
    OverlayAssetLoadFailure,
)
from video_exporter.domain.models.media import (
    BitrateQuality,
    CrfQuality,
    MediaSource,
    QUALITY_PRESETS,
    get_quality_preset,
)
from video_exporter.domain.models.overlays import (
    Caption,
    CaptionStyle,
    OverlayList,
    TrailerSlide,
    Watermark,
)
from video_exporter.domain.models.progress import ExportState, PHASE_BANDS


def test_media_source_creation():
    """Testa criação da mídia base"""
    source = MediaSource(Path("video.mp4"), 10.0, 1280, 720)

    assert source.duration_seconds == 10.0
    assert source.fps == 25.0
    assert source.has_audio is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"duration_seconds": 0, "width": 1280, "height": 720},
        {"duration_seconds": 5, "width": 0, "height": 720},
        {"duration_seconds": 5, "width": 1280, "height": 720, "fps": 0},
    ],
)
def test_media_source_invalid(kwargs):
    with pytest.raises(ValueError):
        MediaSource(Path("video.mp4"), **kwargs)


def test_caption_style_defaults():
    """Defaults aplicados uma única vez na construção"""
    style = CaptionStyle()

    assert style.font_size == 24
    assert style.text_color == "#FFFFFF"
    assert style.background_style == "adaptive"
    assert style.background_opacity == 0.7
    assert style.position == "bottom-center"
    assert not style.full_width


def test_caption_style_validation():
    with pytest.raises(ValueError):
        CaptionStyle(background_opacity=1.5)
    with pytest.raises(ValueError):
        CaptionStyle(position="middle")
    with pytest.raises(ValueError):
        CaptionStyle(position="custom", custom_x=10)
    with pytest.raises(ValueError):
        CaptionStyle(position="custom", custom_x=10, custom_y=120)


def test_caption_interval_is_half_open():
    caption = Caption("Oi", start_seconds=2.0, duration_seconds=3.0)

    assert caption.end_seconds == 5.0
    assert caption.is_active(2.0)
    assert caption.is_active(4.999)
    assert not caption.is_active(5.0)


def test_caption_visible_interval_clipped():
    """Legenda que passa do fim da mídia é cortada; fora da mídia some"""
    assert Caption("a", 8.0, 5.0).visible_interval(10.0) == (8.0, 10.0)
    assert Caption("b", 12.0, 2.0).visible_interval(10.0) is None


def test_watermark_interval_is_closed():
    watermark = Watermark(Path("logo.png"), start_seconds=0.0, end_seconds=10.0)

    assert watermark.is_active(0.0)
    assert watermark.is_active(10.0)
    assert not watermark.is_active(10.01)


def test_watermark_without_end_lasts_until_source_end():
    watermark = Watermark(Path("logo.png"), start_seconds=2.0)

    assert watermark.end_seconds is None
    assert watermark.visible_interval(10.0) == (2.0, 10.0)
    assert watermark.is_active(5.0)
    assert watermark.is_active(10.0, source_duration=10.0)
    assert not watermark.is_active(10.5, source_duration=10.0)


def test_watermark_never_upscales():
    assert Watermark(Path("logo.png"), scale=2.5).effective_scale == 1.0
    assert Watermark(Path("logo.png"), scale=0.5).effective_scale == 0.5


def test_watermark_validation():
    with pytest.raises(ValueError):
        Watermark(Path("logo.png"), position="center-left")
    with pytest.raises(ValueError):
        Watermark(Path("logo.png"), start_seconds=5, end_seconds=2)
    with pytest.raises(ValueError):
        Watermark(Path("logo.png"), scale=0)


def test_trailer_slide_requires_positive_duration():
    with pytest.raises(ValueError):
        TrailerSlide(Path("fim.png"), 0)


def test_overlay_list_total_duration():
    source = MediaSource(Path("video.mp4"), 10.0, 1280, 720)
    overlays = OverlayList(
        slides=[TrailerSlide(Path("a.png"), 3.0), TrailerSlide(Path("b.png"), 4.0)]
    )

    assert isinstance(overlays.slides, tuple)
    assert overlays.slides_duration == 7.0
    assert overlays.total_duration(source) == 17.0
    assert not overlays.is_empty()
    assert OverlayList().is_empty()


class TestQualityPresets:
    """Testes para as faixas de qualidade"""

    def test_presets_cover_both_backends(self):
        for preset in QUALITY_PRESETS.values():
            assert isinstance(preset.crf, CrfQuality)
            assert isinstance(preset.bitrate, BitrateQuality)

    def test_estimate_size(self):
        assert get_quality_preset("low").estimate_size(1000) == 400
        assert get_quality_preset("balanced").estimate_size(1000) == 700
        assert get_quality_preset("high").estimate_size(1000) == 1200

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            get_quality_preset("ultra")

    def test_crf_args(self):
        args = CrfQuality(crf=28, preset="fast", max_bitrate="1000k").to_args()

        assert args == ["-preset", "fast", "-crf", "28", "-maxrate", "1000k", "-bufsize", "2000k"]

    def test_crf_range(self):
        with pytest.raises(ValueError):
            CrfQuality(crf=60, preset="fast")


class TestErrors:
    """Testes para a taxonomia de erros"""

    def test_fatality(self):
        assert ExportError("x").fatal
        assert OverlayAssetLoadFailure("x").fatal
        assert not AudioCaptureFailure("x").fatal

    def test_filter_graph_error_is_encoding_failure(self):
        error = FilterGraphError("grafo inválido", stderr="boom")

        assert isinstance(error, EncodingEngineFailure)
        assert error.stderr == "boom"
        assert str(error) == "grafo inválido"


def test_phase_bands_are_contiguous():
    phases = [ExportState.LOADING, ExportState.PROCESSING, ExportState.RENDERING, ExportState.FINALIZING]
    for current, following in zip(phases, phases[1:]):
        assert PHASE_BANDS[current][1] == PHASE_BANDS[following][0]
        assert current.order < following.order
    assert PHASE_BANDS[ExportState.FINALIZING][1] == 100.0
