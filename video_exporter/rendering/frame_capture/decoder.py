# -*- coding: utf-8 -*-
"""
video_exporter/rendering/frame_capture/decoder.py
Decodificação da mídia base em quadros RGB via pipe do FFmpeg
"""

import subprocess
from pathlib import Path
from typing import Iterator, List, Optional

from PIL import Image

from ...domain.errors import SourceLoadFailure
from ...infra.logging import get_logger
from ...infra.paths import ffmpeg_bin


class FrameDecoder:
    """Lê quadros rgb24 já escalados para o tamanho de saída, a fps fixa"""

    def __init__(
        self,
        source_path: Path,
        width: int,
        height: int,
        fps: float,
        ffmpeg_path: Optional[str] = None,
    ):
        self.logger = get_logger("FrameDecoder")
        self.source_path = Path(source_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.ffmpeg_path = ffmpeg_path
        self.process: Optional[subprocess.Popen] = None

    @property
    def frame_size(self) -> int:
        return self.width * self.height * 3

    def make_command(self) -> List[str]:
        return [
            ffmpeg_bin(self.ffmpeg_path),
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(self.source_path),
            "-map",
            "0:v:0",
            "-vf",
            f"fps={self.fps:g},scale={self.width}:{self.height}",
            "-f",
            "rawvideo",
            "-pix_fmt",
            "rgb24",
            "pipe:1",
        ]

    def open(self):
        cmd = self.make_command()
        self.logger.info("Abrindo decodificador: %s", " ".join(cmd))
        try:
            self.process = subprocess.Popen(
                cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL
            )
        except OSError as e:
            raise SourceLoadFailure(
                f"Não foi possível decodificar {self.source_path}: {e}", cause=e
            ) from e
        return self

    def frames(self) -> Iterator[Image.Image]:
        """Um quadro por iteração; termina quando o FFmpeg fecha o pipe"""
        if self.process is None:
            self.open()
        produced = 0
        while True:
            data = self.process.stdout.read(self.frame_size)
            if len(data) < self.frame_size:
                break
            produced += 1
            yield Image.frombytes("RGB", (self.width, self.height), data)

        if produced == 0:
            raise SourceLoadFailure(f"Nenhum quadro decodificado de {self.source_path}")

    def close(self):
        if self.process is None:
            return
        if self.process.stdout:
            self.process.stdout.close()
        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
        self.process = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
