# -*- coding: utf-8 -*-
"""
Serviços de mídia/IO para FFprobe
"""

import json
import subprocess
from fractions import Fraction
from pathlib import Path
from typing import Optional, Tuple

from ..domain.errors import SourceLoadFailure
from ..domain.models.media import MediaSource
from .logging import get_logger
from .paths import ffprobe_bin


class MediaIO:
    """Serviços de entrada/saída de mídia"""

    def __init__(self, ffprobe_path: Optional[str] = None, timeout: float = 30):
        self.logger = get_logger("MediaIO")
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    def _probe(self, path: Path, *args: str) -> dict:
        result = subprocess.run(
            [ffprobe_bin(self.ffprobe_path), "-v", "error", *args, "-of", "json", str(path)],
            capture_output=True,
            text=True,
            check=True,
            timeout=self.timeout,
        )
        return json.loads(result.stdout)

    def load_source(self, video_path: Path) -> MediaSource:
        """Abre a mídia base e lê duração, dimensões, fps e presença de áudio"""
        video_path = Path(video_path)
        if not video_path.exists():
            raise SourceLoadFailure(f"Arquivo de mídia não encontrado: {video_path}")

        try:
            data = self._probe(
                video_path,
                "-show_entries",
                "format=duration:stream=codec_type,width,height,avg_frame_rate",
            )
        except (subprocess.SubprocessError, OSError, ValueError) as e:
            raise SourceLoadFailure(
                f"Não foi possível abrir a mídia {video_path}: {e}", cause=e
            ) from e

        streams = data.get("streams", [])
        video = next((s for s in streams if s.get("codec_type") == "video"), None)
        if video is None:
            raise SourceLoadFailure(f"Nenhum stream de vídeo em {video_path}")

        try:
            source = MediaSource(
                path=video_path,
                duration_seconds=float(data["format"]["duration"]),
                width=int(video["width"]),
                height=int(video["height"]),
                fps=self._parse_rate(video.get("avg_frame_rate")),
                has_audio=any(s.get("codec_type") == "audio" for s in streams),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SourceLoadFailure(
                f"Metadados inválidos em {video_path}: {e}", cause=e
            ) from e

        self.logger.debug(
            "Mídia %s: %.2fs %dx%d @ %.2ffps, áudio=%s",
            video_path,
            source.duration_seconds,
            source.width,
            source.height,
            source.fps,
            source.has_audio,
        )
        return source

    def has_audio_stream(self, media_path: Path) -> bool:
        """Verifica se o arquivo possui ao menos um stream de áudio"""
        try:
            data = self._probe(
                media_path, "-select_streams", "a", "-show_entries", "stream=index"
            )
        except (subprocess.SubprocessError, OSError, ValueError) as e:
            self.logger.warning("Erro ao procurar áudio em %s: %s", media_path, e)
            return False
        return bool(data.get("streams"))

    def get_image_size(self, image_path: Path) -> Tuple[int, int]:
        """Obtém dimensões da imagem"""
        data = self._probe(
            image_path, "-select_streams", "v:0", "-show_entries", "stream=width,height"
        )
        stream = data["streams"][0]
        width = int(stream["width"])
        height = int(stream["height"])

        self.logger.debug("Dimensões de %s: %dx%d", image_path, width, height)
        return width, height

    @staticmethod
    def _parse_rate(rate: Optional[str], default: float = 25.0) -> float:
        # avg_frame_rate vem como fração ("30000/1001"); "0/0" quando desconhecido
        try:
            value = float(Fraction(rate))
        except (TypeError, ValueError, ZeroDivisionError):
            return default
        return value if value > 0 else default
