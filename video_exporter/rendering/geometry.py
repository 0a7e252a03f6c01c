# -*- coding: utf-8 -*-
"""
video_exporter/rendering/geometry.py
Resolução de geometria dos overlays (função pura, sem estado)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional

CAPTION_SCALE_RANGE = (0.7, 1.3)
WATERMARK_SCALE_RANGE = (0.8, 1.2)
CAPTION_MARGIN = 24
WATERMARK_MARGIN = 16
MIN_FONT_SIZE = 12
MAX_FONT_SIZE = 72

OverlayKind = Literal["caption", "watermark"]


@dataclass(frozen=True)
class Anchor:
    """Ponto do elemento posicionado em (x, y), em frações da largura/altura"""

    horizontal: float
    vertical: float


TOP_LEFT = Anchor(0.0, 0.0)
TOP_CENTER = Anchor(0.5, 0.0)
TOP_RIGHT = Anchor(1.0, 0.0)
CENTER_LEFT = Anchor(0.0, 0.5)
CENTER = Anchor(0.5, 0.5)
CENTER_RIGHT = Anchor(1.0, 0.5)
BOTTOM_LEFT = Anchor(0.0, 1.0)
BOTTOM_CENTER = Anchor(0.5, 1.0)
BOTTOM_RIGHT = Anchor(1.0, 1.0)


@dataclass(frozen=True)
class Placement:
    """Posição absoluta de um overlay no container"""

    x: float
    y: float
    anchor: Anchor
    full_width: bool = False

    def top_left(self, width: float, height: float) -> tuple[int, int]:
        """Canto superior esquerdo de um elemento de tamanho (width, height)"""
        left = self.x - self.anchor.horizontal * width
        top = self.y - self.anchor.vertical * height
        return int(round(left)), int(round(top))

    def expressions(self, width_sym: str, height_sym: str) -> tuple[str, str]:
        """Expressões FFmpeg para x/y, com o tamanho do elemento simbólico"""
        return (
            _expr(self.x, self.anchor.horizontal, width_sym),
            _expr(self.y, self.anchor.vertical, height_sym),
        )


def _expr(value: float, fraction: float, size_sym: str) -> str:
    base = _fmt(value)
    if fraction == 0.0:
        return base
    if fraction == 1.0:
        return f"{base}-{size_sym}"
    return f"{base}-{size_sym}*{_fmt(fraction)}"


def _fmt(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def conservative_scale(scale: Optional[float], kind: OverlayKind = "caption") -> float:
    """Limita o fator de escala para manter legibilidade"""
    if scale is None:
        return 1.0
    low, high = CAPTION_SCALE_RANGE if kind == "caption" else WATERMARK_SCALE_RANGE
    return clamp(scale, low, high)


def display_scale(width: int, height: int, reference: tuple[int, int]) -> float:
    """Fator de escala do container em relação à resolução de referência"""
    ref_w, ref_h = reference
    return min(width / ref_w, height / ref_h)


def scaled_font_size(font_size: int, scale: Optional[float] = None) -> int:
    """Tamanho de fonte escalado, limitado a [MIN_FONT_SIZE, MAX_FONT_SIZE]"""
    size = int(round(font_size * conservative_scale(scale, "caption")))
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, size))


def scaled_margin(kind: OverlayKind, scale: Optional[float] = None, margin: Optional[int] = None) -> float:
    if margin is None:
        margin = CAPTION_MARGIN if kind == "caption" else WATERMARK_MARGIN
    return margin * conservative_scale(scale, kind)


def resolve_placement(
    position: str,
    custom_x: Optional[float],
    custom_y: Optional[float],
    container_width: float,
    container_height: float,
    scale: Optional[float] = None,
    kind: OverlayKind = "caption",
    full_width: bool = False,
    margin: Optional[int] = None,
) -> Placement:
    """
    Mapeia uma posição (nomeada ou custom) para um ponto absoluto + âncora.

    - Posições nomeadas ficam a uma margem fixa das bordas; "center" ignora margens.
    - "custom" usa percentuais do container e centraliza o elemento no ponto.
    - Legendas full-width ignoram o eixo horizontal: só a zona vertical vale.
    """
    pad = scaled_margin(kind, scale, margin)
    is_custom = position == "custom" and custom_x is not None and custom_y is not None

    if is_custom:
        x = container_width * custom_x / 100.0
        y = container_height * custom_y / 100.0
        v_frac = 0.5
        h_frac = 0.5
    else:
        x, h_frac = _horizontal(position, container_width, pad)
        y, v_frac = _vertical(position, container_height, pad)

    if full_width:
        return Placement(container_width / 2.0, y, Anchor(0.5, v_frac), full_width=True)
    return Placement(x, y, Anchor(h_frac, v_frac))


def _horizontal(position: str, width: float, pad: float) -> tuple[float, float]:
    if position == "center":
        return width / 2.0, 0.5
    if position.endswith("left"):
        return pad, 0.0
    if position.endswith("right"):
        return width - pad, 1.0
    return width / 2.0, 0.5


def _vertical(position: str, height: float, pad: float) -> tuple[float, float]:
    if position.startswith("top"):
        return pad, 0.0
    if position.startswith("bottom"):
        return height - pad, 1.0
    return height / 2.0, 0.5


def fit_inside(width: int, height: int, box_width: int, box_height: int) -> tuple[int, int, int, int]:
    """Encaixa (width, height) centralizado em uma caixa preservando proporção (letterbox)"""
    ratio = min(box_width / width, box_height / height)
    out_w = max(1, int(round(width * ratio)))
    out_h = max(1, int(round(height * ratio)))
    return (box_width - out_w) // 2, (box_height - out_h) // 2, out_w, out_h
