# -*- coding: utf-8 -*-
"""
video_exporter/domain/models/overlays.py
Modelos de domínio para overlays: legendas, marcas d'água e slides finais
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from .media import MediaSource

CAPTION_POSITIONS = (
    "top-left",
    "top-center",
    "top-right",
    "center-left",
    "center",
    "center-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
    "custom",
)
WATERMARK_POSITIONS = (
    "top-left",
    "top-right",
    "bottom-left",
    "bottom-right",
    "center",
    "custom",
)
BACKGROUND_STYLES = ("none", "adaptive", "full-width")
TEXT_ALIGNS = ("left", "center", "right")


def _check_custom(position: str, custom_x, custom_y):
    if position != "custom":
        return
    if custom_x is None or custom_y is None:
        raise ValueError("Posição 'custom' exige custom_x e custom_y")
    for value in (custom_x, custom_y):
        if not 0 <= value <= 100:
            raise ValueError(f"Coordenada percentual fora de 0-100: {value}")


@dataclass(frozen=True)
class CaptionStyle:
    """Estilo totalmente resolvido de uma legenda"""

    font_size: int = 24
    font_family: str = "Arial"
    text_align: Literal["left", "center", "right"] = "center"
    text_color: str = "#FFFFFF"
    background_style: Literal["none", "adaptive", "full-width"] = "adaptive"
    background_color: str = "#000000"
    background_opacity: float = 0.7
    position: str = "bottom-center"
    custom_x: Optional[float] = None
    custom_y: Optional[float] = None

    def __post_init__(self):
        if self.font_size <= 0:
            raise ValueError(f"Tamanho de fonte inválido: {self.font_size}")
        if self.text_align not in TEXT_ALIGNS:
            raise ValueError(f"Alinhamento desconhecido: {self.text_align}")
        if self.background_style not in BACKGROUND_STYLES:
            raise ValueError(f"Estilo de fundo desconhecido: {self.background_style}")
        if not 0.0 <= self.background_opacity <= 1.0:
            raise ValueError(
                f"Opacidade do fundo fora de [0, 1]: {self.background_opacity}"
            )
        if self.position not in CAPTION_POSITIONS:
            raise ValueError(f"Posição de legenda desconhecida: {self.position}")
        _check_custom(self.position, self.custom_x, self.custom_y)

    @property
    def full_width(self) -> bool:
        return self.background_style == "full-width"


@dataclass(frozen=True)
class Caption:
    """Legenda com intervalo ativo [start, start + duration)"""

    text: str
    start_seconds: float
    duration_seconds: float
    style: CaptionStyle = field(default_factory=CaptionStyle)

    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds

    def visible_interval(self, source_duration: float) -> Optional[tuple[float, float]]:
        """Intervalo limitado à duração da mídia; None se ficar vazio"""
        start = max(0.0, self.start_seconds)
        end = min(self.end_seconds, source_duration)
        if end <= start:
            return None
        return start, end

    def is_active(self, t: float) -> bool:
        return self.start_seconds <= t < self.end_seconds


@dataclass(frozen=True)
class Watermark:
    """Marca d'água (imagem) com intervalo ativo [start, end]"""

    image_path: Path
    position: str = "top-right"
    scale: float = 1.0
    start_seconds: float = 0.0
    # None: até o fim da mídia base
    end_seconds: Optional[float] = None
    custom_x: Optional[float] = None
    custom_y: Optional[float] = None

    def __post_init__(self):
        if self.position not in WATERMARK_POSITIONS:
            raise ValueError(f"Posição de marca d'água desconhecida: {self.position}")
        if self.scale <= 0:
            raise ValueError(f"Escala inválida: {self.scale}")
        if self.end_seconds is not None and self.end_seconds < self.start_seconds:
            raise ValueError("end_seconds anterior a start_seconds")
        _check_custom(self.position, self.custom_x, self.custom_y)

    @property
    def effective_scale(self) -> float:
        """Escala limitada a 100% do original (sem upscaling)"""
        return min(self.scale, 1.0)

    def resolved_end(self, source_duration: float) -> float:
        if self.end_seconds is None:
            return source_duration
        return min(self.end_seconds, source_duration)

    def visible_interval(self, source_duration: float) -> Optional[tuple[float, float]]:
        start = max(0.0, self.start_seconds)
        end = self.resolved_end(source_duration)
        if end < start:
            return None
        return start, end

    def is_active(self, t: float, source_duration: Optional[float] = None) -> bool:
        if self.end_seconds is None:
            end = source_duration if source_duration is not None else float("inf")
        else:
            end = self.end_seconds
        return self.start_seconds <= t <= end


@dataclass(frozen=True)
class TrailerSlide:
    """Imagem estática exibida após o clipe base"""

    image_path: Path
    duration_seconds: float

    def __post_init__(self):
        if self.duration_seconds <= 0:
            raise ValueError(f"Duração de slide inválida: {self.duration_seconds}")


@dataclass(frozen=True)
class OverlayList:
    """Conjunto de overlays de uma exportação"""

    captions: tuple[Caption, ...] = ()
    watermarks: tuple[Watermark, ...] = ()
    slides: tuple[TrailerSlide, ...] = ()

    def __post_init__(self):
        # Aceita listas, guarda tuplas
        object.__setattr__(self, "captions", tuple(self.captions))
        object.__setattr__(self, "watermarks", tuple(self.watermarks))
        object.__setattr__(self, "slides", tuple(self.slides))

    @property
    def slides_duration(self) -> float:
        return sum(slide.duration_seconds for slide in self.slides)

    def total_duration(self, source: MediaSource) -> float:
        """Duração total da composição: clipe base + slides"""
        return source.duration_seconds + self.slides_duration

    def is_empty(self) -> bool:
        return not (self.captions or self.watermarks or self.slides)
