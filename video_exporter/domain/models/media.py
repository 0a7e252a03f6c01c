# -*- coding: utf-8 -*-
"""
video_exporter/domain/models/media.py
Modelos de domínio para a mídia base e perfis de qualidade
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class MediaSource:
    """Clipe base da exportação (imutável depois de carregado)"""

    path: Path
    duration_seconds: float
    width: int
    height: int
    fps: float = 25.0
    has_audio: Optional[bool] = None  # None = desconhecido

    def __post_init__(self):
        if self.duration_seconds <= 0:
            raise ValueError(f"Duração inválida: {self.duration_seconds}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Dimensões inválidas: {self.width}x{self.height}")
        if self.fps <= 0:
            raise ValueError(f"FPS inválido: {self.fps}")


@dataclass(frozen=True)
class CrfQuality:
    """Parâmetros de qualidade do backend de filtergraph"""

    crf: int  # 0-51, menor = melhor
    preset: str  # "ultrafast" | "fast" | "medium" | "slow"
    max_bitrate: Optional[str] = None  # ex: "1000k"
    buffer_size: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.crf <= 51:
            raise ValueError(f"CRF fora do intervalo 0-51: {self.crf}")

    def to_args(self) -> list[str]:
        """Argumentos de codec de vídeo para o FFmpeg"""
        args = ["-preset", self.preset, "-crf", str(self.crf)]
        if self.max_bitrate:
            args.extend(
                ["-maxrate", self.max_bitrate, "-bufsize", self.buffer_size or "2000k"]
            )
        return args


@dataclass(frozen=True)
class BitrateQuality:
    """Parâmetros de qualidade do backend de captura de quadros"""

    video_bitrate: int  # bits/s
    audio_bitrate: int  # bits/s

    def __post_init__(self):
        if self.video_bitrate <= 0 or self.audio_bitrate <= 0:
            raise ValueError("Bitrates devem ser positivos")


QualityProfile = Union[CrfQuality, BitrateQuality]


@dataclass(frozen=True)
class QualityPreset:
    """Faixa de qualidade nomeada, mapeada para os dois backends"""

    name: str
    label: str
    description: str
    crf: CrfQuality
    bitrate: BitrateQuality
    size_multiplier: float

    def estimate_size(self, original_bytes: int) -> int:
        """Estimativa grosseira do tamanho final a partir do arquivo original"""
        return int(original_bytes * self.size_multiplier)


QUALITY_PRESETS = {
    "low": QualityPreset(
        name="low",
        label="Baixa qualidade",
        description="Arquivo pequeno (~50% do original)",
        crf=CrfQuality(crf=28, preset="fast", max_bitrate="1000k", buffer_size="2000k"),
        bitrate=BitrateQuality(video_bitrate=1_000_000, audio_bitrate=96_000),
        size_multiplier=0.4,
    ),
    "balanced": QualityPreset(
        name="balanced",
        label="Equilibrada",
        description="Melhor relação entre qualidade e tamanho",
        crf=CrfQuality(crf=23, preset="medium"),
        bitrate=BitrateQuality(video_bitrate=2_500_000, audio_bitrate=128_000),
        size_multiplier=0.7,
    ),
    "high": QualityPreset(
        name="high",
        label="Alta qualidade",
        description="Qualidade máxima (arquivo pode ficar grande)",
        crf=CrfQuality(crf=18, preset="slow"),
        bitrate=BitrateQuality(video_bitrate=5_000_000, audio_bitrate=192_000),
        size_multiplier=1.2,
    ),
}

DEFAULT_QUALITY = "balanced"


def get_quality_preset(name: str = DEFAULT_QUALITY) -> QualityPreset:
    """Obtém um preset de qualidade pelo nome"""
    try:
        return QUALITY_PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Preset de qualidade desconhecido: {name} "
            f"(disponíveis: {', '.join(QUALITY_PRESETS)})"
        ) from None
