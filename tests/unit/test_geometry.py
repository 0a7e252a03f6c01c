# -*- coding: utf-8 -*-
"""
Testes unitários para a resolução de geometria dos overlays
"""

import pytest

from video_exporter.rendering.geometry import (
    Anchor,
    Placement,
    conservative_scale,
    display_scale,
    fit_inside,
    resolve_placement,
    scaled_font_size,
)


class TestResolvePlacement:
    """Posições nomeadas, custom e full-width"""

    def test_top_right_watermark(self):
        placement = resolve_placement("top-right", None, None, 1280, 720, scale=1.0, kind="watermark")

        assert placement.x == 1264
        assert placement.y == 16
        assert placement.anchor == Anchor(1.0, 0.0)
        assert placement.expressions("overlay_w", "overlay_h") == ("1264-overlay_w", "16")

    def test_bottom_center_caption(self):
        placement = resolve_placement("bottom-center", None, None, 1280, 720, scale=1.0)

        assert placement.expressions("text_w", "text_h") == ("640-text_w*0.5", "696-text_h")

    def test_center_ignores_margin(self):
        placement = resolve_placement("center", None, None, 1280, 720, scale=1.0)

        assert (placement.x, placement.y) == (640, 360)
        assert placement.anchor == Anchor(0.5, 0.5)

    def test_custom_uses_percentages(self):
        placement = resolve_placement("custom", 25, 50, 1000, 800)

        assert (placement.x, placement.y) == (250, 400)
        assert placement.anchor == Anchor(0.5, 0.5)

    def test_custom_is_monotonic(self):
        xs = [resolve_placement("custom", p, 50, 1280, 720).x for p in range(0, 101, 10)]
        ys = [resolve_placement("custom", 50, p, 1280, 720).y for p in range(0, 101, 10)]

        assert xs == sorted(xs)
        assert ys == sorted(ys)
        assert len(set(xs)) == len(xs)

    def test_full_width_ignores_horizontal_axis(self):
        left = resolve_placement("bottom-left", None, None, 1280, 720, full_width=True)
        right = resolve_placement("bottom-right", None, None, 1280, 720, full_width=True)

        assert left == right
        assert left.full_width
        assert left.x == 640
        assert left.y == 696

    def test_is_pure(self):
        args = ("top-left", None, None, 1920, 1080)

        assert resolve_placement(*args, scale=1.5) == resolve_placement(*args, scale=1.5)

    def test_margin_scales_conservatively(self):
        # escala 0.1 é limitada a 0.8 para marcas d'água: margem 16 * 0.8
        placement = resolve_placement("top-left", None, None, 128, 72, scale=0.1, kind="watermark")

        assert placement.x == pytest.approx(12.8)

    def test_explicit_margin(self):
        placement = resolve_placement("top-left", None, None, 1280, 720, scale=1.0, margin=40)

        assert (placement.x, placement.y) == (40, 40)


def test_placement_top_left():
    placement = Placement(1264, 16, Anchor(1.0, 0.0))

    assert placement.top_left(100, 50) == (1164, 16)


def test_conservative_scale_clamps():
    assert conservative_scale(2.0, "caption") == 1.3
    assert conservative_scale(0.1, "caption") == 0.7
    assert conservative_scale(2.0, "watermark") == 1.2
    assert conservative_scale(0.1, "watermark") == 0.8
    assert conservative_scale(None) == 1.0


def test_display_scale():
    assert display_scale(1920, 1080, (1280, 720)) == 1.5
    assert display_scale(640, 480, (1280, 720)) == 0.5


def test_scaled_font_size_limits():
    assert scaled_font_size(24, 1.5) == 31
    assert scaled_font_size(100, 1.0) == 72
    assert scaled_font_size(8, 1.0) == 12


def test_fit_inside_letterbox():
    assert fit_inside(200, 100, 1280, 720) == (0, 40, 1280, 640)
    assert fit_inside(100, 100, 1280, 720) == (280, 0, 720, 720)
