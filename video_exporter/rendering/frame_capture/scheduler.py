# -*- coding: utf-8 -*-
"""
video_exporter/rendering/frame_capture/scheduler.py
Iterador de segmentos temporizados para os slides finais

Não depende de nenhum callback de quadro: o relógio é injetado, o que permite
testar a sequência sem esperar em tempo real.
"""

import math
import time
from dataclasses import dataclass
from typing import Iterator, Protocol, Sequence

from ..timeline import TimelineSegmenter


class Clock(Protocol):
    def now(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Relógio real (monotônico)"""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class VirtualClock:
    """Relógio simulado: sleep apenas avança o tempo"""

    def __init__(self, start: float = 0.0):
        self._now = start
        self.sleeps = []

    def now(self) -> float:
        return self._now

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.sleeps.append(seconds)
            self._now += seconds


def frames_for(duration: float, fps: float) -> int:
    """Quantidade de quadros para segurar `duration` segundos a `fps`"""
    # round() antes do ceil evita 3.0000000001 -> 4 quadros
    return math.ceil(round(duration * fps, 6))


def estimate_total_frames(base_duration: float, slide_durations: Sequence[float], fps: float) -> int:
    return frames_for(base_duration, fps) + sum(frames_for(d, fps) for d in slide_durations)


class FramePacer:
    """Segura cada quadro até o seu instante de apresentação, se ativado"""

    def __init__(self, clock: Clock = None, enabled: bool = False):
        self.clock = clock or SystemClock()
        self.enabled = enabled
        self._origin = None

    def wait(self, presentation_time: float):
        if not self.enabled:
            return
        if self._origin is None:
            self._origin = self.clock.now() - presentation_time
        delay = self._origin + presentation_time - self.clock.now()
        self.clock.sleep(delay)


@dataclass(frozen=True)
class SlideFrame:
    """Um quadro da sequência de slides"""

    index: int
    frame: int  # quadro dentro do slide
    frames: int  # total de quadros do slide
    time: float  # tempo global na timeline composta

    @property
    def is_first(self) -> bool:
        return self.frame == 0


class SlideScheduler:
    """Percorre os slides em ordem, cada um por ceil(duração × fps) quadros"""

    def __init__(
        self,
        segmenter: TimelineSegmenter,
        fps: float,
        pacer: FramePacer = None,
        skip: Sequence[int] = (),
    ):
        self.segmenter = segmenter
        self.fps = fps
        self.pacer = pacer or FramePacer()
        self.skip = frozenset(skip)

    def total_frames(self) -> int:
        return sum(
            frames_for(d, self.fps)
            for i, d in enumerate(self.segmenter.slide_durations)
            if i not in self.skip
        )

    def __iter__(self) -> Iterator[SlideFrame]:
        for index, duration in enumerate(self.segmenter.slide_durations):
            if index in self.skip:
                continue
            start = self.segmenter.slide_start(index)
            count = frames_for(duration, self.fps)
            for n in range(count):
                t = start + n / self.fps
                self.pacer.wait(t)
                yield SlideFrame(index=index, frame=n, frames=count, time=t)
