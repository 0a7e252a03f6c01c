# -*- coding: utf-8 -*-
"""
Construção de comandos FFmpeg a partir do filtergraph
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..domain.models.media import CrfQuality
from ..domain.models.overlays import TrailerSlide
from ..infra.logging import get_logger
from ..infra.paths import ffmpeg_bin
from ..plugins.builtin.effects.slide import SlideEffect
from .graph_builder import FilterGraph

AUDIO_RATE = "48000"
AUDIO_BITRATE = "128k"


class CliBuilder:
    """Constrói comandos FFmpeg do backend de filtergraph"""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        self.logger = get_logger("CliBuilder")
        self.ffmpeg_path = ffmpeg_path

    def _base(self) -> List[str]:
        return [ffmpeg_bin(self.ffmpeg_path), "-y", "-hide_banner"]

    def _video_codec_args(self, quality: CrfQuality) -> List[str]:
        return ["-c:v", "libx264", *quality.to_args(), "-pix_fmt", "yuv420p"]

    def _audio_codec_args(self) -> List[str]:
        # Taxa/canais fixos para que o render principal e os slides concatenem
        return ["-c:a", "aac", "-b:a", AUDIO_BITRATE, "-ar", AUDIO_RATE, "-ac", "2"]

    def make_command(
        self,
        graph: FilterGraph,
        out_path: Path,
        quality: CrfQuality,
        has_audio: bool = True,
    ) -> List[str]:
        """Gera o comando FFmpeg do render principal"""
        self.logger.info("Construindo comando FFmpeg para %d inputs", len(graph.inputs))

        cmd = self._base()
        for input_path in graph.inputs:
            cmd.extend(["-i", str(input_path)])

        if not graph.is_empty():
            cmd.extend(["-filter_complex", graph.to_string()])
            cmd.extend(["-map", f"[{graph.output_label}]"])
        else:
            cmd.extend(["-map", "0:v:0"])

        if has_audio:
            cmd.extend(["-map", "0:a:0?"])
            cmd.extend(self._audio_codec_args())

        cmd.extend(self._video_codec_args(quality))
        cmd.extend(["-movflags", "+faststart"])
        cmd.append(str(out_path))

        self.logger.debug("Comando FFmpeg: %s", " ".join(map(str, cmd)))
        return cmd

    def make_slide_command(
        self,
        slide: TrailerSlide,
        output_path: Path,
        width: int,
        height: int,
        fps: float,
        quality: CrfQuality,
        with_audio: bool = False,
        background: str = "black",
    ) -> List[str]:
        """Cria comando para converter um slide em um clipe de duração fixa"""
        duration = f"{slide.duration_seconds:.3f}"
        self.logger.info(
            "Construindo comando para converter %s em vídeo de %ss",
            Path(slide.image_path).name,
            duration,
        )

        cmd = self._base()
        cmd.extend(["-loop", "1", "-t", duration, "-i", str(slide.image_path)])
        if with_audio:
            # Áudio silencioso para manter o layout de streams igual ao principal
            cmd.extend(
                [
                    "-f",
                    "lavfi",
                    "-t",
                    duration,
                    "-i",
                    f"anullsrc=channel_layout=stereo:sample_rate={AUDIO_RATE}",
                ]
            )

        cmd.extend(["-vf", SlideEffect(width, height, fps, background).build_filter()])
        cmd.extend(["-map", "0:v:0"])
        if with_audio:
            cmd.extend(["-map", "1:a:0"])
            cmd.extend(self._audio_codec_args())

        cmd.extend(self._video_codec_args(quality))
        cmd.extend(["-r", f"{fps:g}", "-t", duration])
        cmd.append(str(output_path))

        self.logger.debug("Comando de conversão: %s", " ".join(map(str, cmd)))
        return cmd

    @staticmethod
    def write_concat_manifest(video_files: Sequence[Path], manifest_path: Path) -> Path:
        """Escreve a lista de arquivos do demuxer concat"""
        lines = []
        for video_file in video_files:
            escaped = str(Path(video_file).resolve()).replace("'", "'\\''")
            lines.append(f"file '{escaped}'")
        manifest_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return manifest_path

    def make_concat_command(
        self,
        manifest_path: Path,
        output_path: Path,
        quality: CrfQuality,
        has_audio: bool = True,
    ) -> List[str]:
        """Cria comando para concatenar o render principal e os slides"""
        self.logger.info("Construindo comando de concatenação: %s", manifest_path)

        cmd = self._base()
        cmd.extend(["-f", "concat", "-safe", "0", "-i", str(manifest_path)])
        cmd.extend(["-map", "0:v:0"])
        if has_audio:
            cmd.extend(["-map", "0:a:0"])
            cmd.extend(self._audio_codec_args())

        # Reencode para garantir timestamps contínuos entre os segmentos
        cmd.extend(self._video_codec_args(quality))
        cmd.extend(["-movflags", "+faststart"])
        cmd.append(str(output_path))

        self.logger.debug("Comando de concatenação: %s", " ".join(map(str, cmd)))
        return cmd
