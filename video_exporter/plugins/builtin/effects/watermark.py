# -*- coding: utf-8 -*-
"""
video_exporter/plugins/builtin/effects/watermark.py
Efeito de marca d'água (imagem sobre o vídeo)
"""

from typing import Optional

from ....domain.models.overlays import Watermark
from ....rendering.geometry import resolve_placement


def enable_closed(start: float, end: float) -> str:
    """Predicado start <= t <= end"""
    return f"enable='between(t,{start:.3f},{end:.3f})'"


class WatermarkEffect:
    """Classe para encapsular o efeito de marca d'água."""

    def __init__(
        self,
        watermark: Watermark,
        width: int,
        height: int,
        source_duration: float,
        scale: float = 1.0,
        margin: Optional[int] = None,
    ):
        self.watermark = watermark
        self.width = width
        self.height = height
        self.source_duration = source_duration
        self.scale = scale
        self.margin = margin

    def is_visible(self) -> bool:
        return self.watermark.visible_interval(self.source_duration) is not None

    def build_filter(self, input_label: str, image_label: str, output_label: str) -> str:
        """scale (sem upscaling) seguido de overlay posicionado e com enable"""
        wm = self.watermark
        start, end = wm.visible_interval(self.source_duration)
        factor = f"{wm.effective_scale:.4f}".rstrip("0").rstrip(".")
        scaled_label = f"{output_label}_img"

        placement = resolve_placement(
            wm.position,
            wm.custom_x,
            wm.custom_y,
            self.width,
            self.height,
            scale=self.scale,
            kind="watermark",
            margin=self.margin,
        )
        x, y = placement.expressions("overlay_w", "overlay_h")

        scale_snippet = f"[{image_label}]scale=iw*{factor}:ih*{factor}[{scaled_label}]"
        overlay_snippet = (
            f"[{input_label}][{scaled_label}]overlay=x={x}:y={y}"
            f":{enable_closed(start, end)}[{output_label}]"
        )
        return ";".join([scale_snippet, overlay_snippet])
