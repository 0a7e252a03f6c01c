# -*- coding: utf-8 -*-
"""
video_exporter/rendering/timeline.py
Segmentação da timeline composta: clipe base seguido dos slides finais
"""

from __future__ import annotations
import math
from bisect import bisect_right
from dataclasses import dataclass
from itertools import accumulate
from typing import Sequence, Union

from ..domain.models.media import MediaSource
from ..domain.models.overlays import OverlayList


@dataclass(frozen=True)
class BaseSegment:
    """Instante dentro do clipe base"""

    local_time: float
    duration: float


@dataclass(frozen=True)
class SlideSegment:
    """Instante dentro de um slide final"""

    index: int
    local_time: float
    duration: float


@dataclass(frozen=True)
class TimelineComplete:
    """Instante além do fim da timeline"""

    overflow: float


Segment = Union[BaseSegment, SlideSegment, TimelineComplete]


class TimelineSegmenter:
    """Mapeia um tempo global para o clipe base ou para (índice, offset) de slide"""

    def __init__(self, base_duration: float, slide_durations: Sequence[float] = ()):
        if base_duration <= 0:
            raise ValueError(f"Duração base inválida: {base_duration}")
        if any(d <= 0 for d in slide_durations):
            raise ValueError("Durações de slide devem ser positivas")
        self.base_duration = float(base_duration)
        self.slide_durations = tuple(float(d) for d in slide_durations)
        # Fins acumulados de cada slide, relativos ao fim do clipe base
        self._slide_ends = tuple(accumulate(self.slide_durations))

    @classmethod
    def for_export(cls, source: MediaSource, overlays: OverlayList) -> "TimelineSegmenter":
        return cls(
            source.duration_seconds,
            [slide.duration_seconds for slide in overlays.slides],
        )

    @property
    def total_duration(self) -> float:
        return self.base_duration + (self._slide_ends[-1] if self._slide_ends else 0.0)

    def slide_start(self, index: int) -> float:
        """Instante global em que o slide `index` começa"""
        previous = self._slide_ends[index - 1] if index > 0 else 0.0
        return self.base_duration + previous

    def locate(self, t: float) -> Segment:
        """
        Intervalos semiabertos [início, início + duração): o instante exato de
        uma fronteira pertence ao próximo slide. O instante final da timeline
        pertence ao último slide.
        """
        if t < 0:
            raise ValueError(f"Tempo negativo: {t}")

        if t < self.base_duration:
            return BaseSegment(local_time=t, duration=self.base_duration)

        if not self._slide_ends:
            return TimelineComplete(overflow=t - self.base_duration)

        offset = t - self.base_duration
        index = bisect_right(self._slide_ends, offset)
        if index >= len(self._slide_ends):
            if offset == self._slide_ends[-1]:
                last = len(self._slide_ends) - 1
                return SlideSegment(
                    index=last,
                    local_time=self.slide_durations[last],
                    duration=self.slide_durations[last],
                )
            return TimelineComplete(overflow=offset - self._slide_ends[-1])

        previous = self._slide_ends[index - 1] if index > 0 else 0.0
        local = offset - previous
        # Arredondamento de ponto flutuante nunca pode escapar do slide
        duration = self.slide_durations[index]
        local = min(max(local, 0.0), math.nextafter(duration, 0.0))
        return SlideSegment(index=index, local_time=local, duration=duration)
