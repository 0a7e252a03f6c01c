# -*- coding: utf-8 -*-
"""
video_exporter/plugins/builtin/effects/slide.py
Normalização de um slide final (imagem -> clipe do tamanho da mídia base)
"""


class SlideEffect:
    """Escala e faz letterbox da imagem preservando a proporção"""

    def __init__(self, width: int, height: int, fps: float, background: str = "black"):
        self.width = width
        self.height = height
        self.fps = fps
        self.background = background

    def build_filter(self) -> str:
        w, h = self.width, self.height
        return (
            f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
            f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2:color={self.background},"
            f"setsar=1,fps={self.fps:g},format=yuv420p"
        )
