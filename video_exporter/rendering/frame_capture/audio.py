# -*- coding: utf-8 -*-
"""
video_exporter/rendering/frame_capture/audio.py
Cadeia de aquisição de áudio com fallback ordenado

1. Captura direta do stream de áudio da própria mídia base
2. Derivação pelo grafo secundário (aresample) para um WAV temporário
3. Nenhum dos dois: resultado só com vídeo + aviso não fatal
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from ...domain.errors import AudioCaptureFailure, ExportError
from ...domain.models.media import MediaSource
from ...infra.logging import get_logger
from ...infra.media_io import MediaIO
from ...infra.paths import ffmpeg_bin
from ..runner import Runner


@dataclass(frozen=True)
class AudioTrack:
    """Faixa de áudio pronta para ser anexada ao encoder"""

    path: Path
    stream: str = "a:0"
    method: str = "direct"


class AudioStrategy(Protocol):
    name: str

    def acquire(self, source: MediaSource, workdir: Path) -> Optional[AudioTrack]:
        ...


class DirectAudioCapture:
    """Usa o stream de áudio da mesma mídia que alimenta o vídeo"""

    name = "direct"

    def __init__(self, media_io: MediaIO = None):
        self.media_io = media_io or MediaIO()

    def acquire(self, source: MediaSource, workdir: Path) -> Optional[AudioTrack]:
        has_audio = source.has_audio
        if has_audio is None:
            has_audio = self.media_io.has_audio_stream(source.path)
        if not has_audio:
            return None
        return AudioTrack(path=Path(source.path), stream="a:0", method=self.name)


class ResampledAudioCapture:
    """Extrai o áudio decodificado por um grafo secundário e expõe como WAV"""

    name = "resampled"

    def __init__(
        self,
        runner: Runner = None,
        ffmpeg_path: Optional[str] = None,
        timeout: float = 300,
    ):
        self.runner = runner or Runner()
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def make_command(self, source: MediaSource, output: Path) -> List[str]:
        return [
            ffmpeg_bin(self.ffmpeg_path),
            "-y",
            "-hide_banner",
            "-i",
            str(source.path),
            "-vn",
            "-map",
            "0:a:0",
            "-af",
            "aresample=async=1:first_pts=0",
            "-ac",
            "2",
            "-ar",
            "48000",
            "-c:a",
            "pcm_s16le",
            str(output),
        ]

    def acquire(self, source: MediaSource, workdir: Path) -> Optional[AudioTrack]:
        output = Path(workdir) / "audio_tap.wav"
        self.runner.run(self.make_command(source, output), timeout=self.timeout)
        if not output.is_file() or output.stat().st_size == 0:
            return None
        return AudioTrack(path=output, stream="a:0", method=self.name)


@dataclass(frozen=True)
class AudioResult:
    track: Optional[AudioTrack]
    failure: Optional[AudioCaptureFailure] = None


class AudioAcquisitionChain:
    """Tenta cada estratégia uma única vez, em ordem"""

    def __init__(self, strategies: Sequence[AudioStrategy]):
        self.logger = get_logger("AudioAcquisitionChain")
        self.strategies = list(strategies)

    @classmethod
    def default(cls, media_io: MediaIO = None, runner: Runner = None, ffmpeg_path: Optional[str] = None):
        return cls(
            [
                DirectAudioCapture(media_io),
                ResampledAudioCapture(runner, ffmpeg_path),
            ]
        )

    def acquire(self, source: MediaSource, workdir: Path) -> AudioResult:
        attempts = []
        for strategy in self.strategies:
            try:
                track = strategy.acquire(source, workdir)
            except (ExportError, OSError, subprocess.SubprocessError) as e:
                self.logger.warning("Estratégia de áudio '%s' falhou: %s", strategy.name, e)
                attempts.append(f"{strategy.name}: {e}")
                continue

            if track is not None:
                self.logger.info("Áudio obtido via '%s'", strategy.name)
                return AudioResult(track=track)

            self.logger.info("Estratégia de áudio '%s' não produziu faixa", strategy.name)
            attempts.append(f"{strategy.name}: sem faixa")

        failure = AudioCaptureFailure(
            "Não foi possível obter áudio; exportando só vídeo "
            f"({'; '.join(attempts) or 'nenhuma estratégia'})"
        )
        self.logger.warning(str(failure))
        return AudioResult(track=None, failure=failure)
