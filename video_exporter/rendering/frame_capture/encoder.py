# -*- coding: utf-8 -*-
"""
video_exporter/rendering/frame_capture/encoder.py
Sink de encoder: recebe quadros compostos pelo stdin do FFmpeg
"""

import subprocess
from pathlib import Path
from typing import List, Optional

from PIL import Image

from ...domain.errors import EncodingEngineFailure, UnsupportedCapability
from ...domain.models.media import BitrateQuality
from ...infra.capabilities import CONTAINER_CODECS
from ...infra.logging import get_logger
from ...infra.paths import ffmpeg_bin
from .audio import AudioTrack


class EncoderSink:
    """
    Quadros são empurrados (push) conforme compostos. O pipe do sistema
    operacional limita o buffer: write() bloqueia quando o encoder atrasa.
    """

    def __init__(
        self,
        output_path: Path,
        width: int,
        height: int,
        fps: float,
        quality: BitrateQuality,
        container: str = "mp4",
        audio: Optional[AudioTrack] = None,
        duration: Optional[float] = None,
        ffmpeg_path: Optional[str] = None,
    ):
        if container not in CONTAINER_CODECS:
            raise UnsupportedCapability(f"Contêiner não suportado: {container}")
        self.logger = get_logger("EncoderSink")
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.quality = quality
        self.container = container
        self.audio = audio
        self.duration = duration
        self.ffmpeg_path = ffmpeg_path
        self.frames_written = 0
        self.process: Optional[subprocess.Popen] = None

    @property
    def mime_type(self) -> str:
        return CONTAINER_CODECS[self.container][2]

    def make_command(self) -> List[str]:
        vcodec, acodec, _ = CONTAINER_CODECS[self.container]
        cmd = [
            ffmpeg_bin(self.ffmpeg_path),
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "rawvideo",
            "-pix_fmt",
            "rgb24",
            "-s",
            f"{self.width}x{self.height}",
            "-r",
            f"{self.fps:g}",
            "-i",
            "pipe:0",
        ]
        if self.audio:
            cmd.extend(["-i", str(self.audio.path)])

        cmd.extend(["-map", "0:v:0"])
        if self.audio:
            cmd.extend(["-map", f"1:{self.audio.stream}", "-c:a", acodec])
            cmd.extend(["-b:a", str(self.quality.audio_bitrate)])

        cmd.extend(["-c:v", vcodec, "-pix_fmt", "yuv420p"])
        cmd.extend(["-b:v", str(self.quality.video_bitrate)])
        if self.duration:
            cmd.extend(["-t", f"{self.duration:.3f}"])
        if self.container == "mp4":
            cmd.extend(["-movflags", "+faststart"])
        cmd.append(str(self.output_path))
        return cmd

    def open(self):
        cmd = self.make_command()
        self.logger.info("Abrindo encoder: %s", " ".join(cmd))
        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise EncodingEngineFailure(f"Não foi possível iniciar o encoder: {e}", cause=e) from e
        return self

    def write(self, frame: Image.Image):
        if self.process is None:
            self.open()
        if frame.size != (self.width, self.height):
            frame = frame.resize((self.width, self.height))
        if frame.mode != "RGB":
            frame = frame.convert("RGB")
        try:
            self.process.stdin.write(frame.tobytes())
        except (BrokenPipeError, OSError) as e:
            stderr = self._drain_stderr()
            raise EncodingEngineFailure(
                f"Encoder encerrou inesperadamente: {stderr.strip()[-300:]}",
                stderr=stderr,
                cause=e,
            ) from e
        self.frames_written += 1

    def close(self) -> Path:
        """Fecha o stdin, espera o encoder e devolve o arquivo de saída"""
        if self.process is None:
            self.open()
        process = self.process
        try:
            process.stdin.close()
        except OSError:
            pass
        stderr = self._drain_stderr()
        return_code = process.wait()
        self.process = None
        if return_code != 0:
            self.logger.error("Encoder retornou código %d: %s", return_code, stderr)
            raise EncodingEngineFailure(
                f"Encoder falhou com código {return_code}", stderr=stderr
            )
        self.logger.info(
            "Encoder finalizado: %d quadros em %s", self.frames_written, self.output_path
        )
        return self.output_path

    def abort(self):
        """Descarta a saída parcial"""
        if self.process is None:
            return
        self.logger.warning("Abortando encoder")
        try:
            self.process.stdin.close()
        except OSError:
            pass
        self.process.kill()
        self.process.wait()
        self.process = None
        self.output_path.unlink(missing_ok=True)

    def _drain_stderr(self) -> str:
        if self.process and self.process.stderr:
            return self.process.stderr.read().decode("utf-8", errors="replace")
        return ""
