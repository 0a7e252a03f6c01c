# -*- coding: utf-8 -*-
"""
Descritor explícito das capacidades do ambiente (FFmpeg e encoders)
"""

import subprocess
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from .logging import get_logger
from .paths import ffmpeg_bin

# Contêiner -> (codec de vídeo, codec de áudio, mime type)
CONTAINER_CODECS = {
    "mp4": ("libx264", "aac", "video/mp4"),
    "webm": ("libvpx-vp9", "libopus", "video/webm"),
}


@dataclass(frozen=True)
class Capabilities:
    """O que o ambiente de execução consegue fazer"""

    ffmpeg_available: bool
    encoders: FrozenSet[str] = field(default_factory=frozenset)
    drawtext: bool = True

    def supports_encoder(self, name: str) -> bool:
        return name in self.encoders

    def supports_container(self, container: str) -> bool:
        codecs = CONTAINER_CODECS.get(container)
        if not codecs:
            return False
        vcodec, acodec, _ = codecs
        return self.supports_encoder(vcodec) and self.supports_encoder(acodec)

    def pick_container(self, preferred) -> Optional[str]:
        """Primeiro contêiner preferido que o ambiente consegue codificar"""
        for container in preferred:
            if self.supports_container(container):
                return container
        return None


def _parse_encoders(output: str) -> FrozenSet[str]:
    encoders = set()
    started = False
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("------"):
            started = True
            continue
        if not started or not line:
            continue
        parts = line.split()
        if len(parts) >= 2:
            encoders.add(parts[1])
    return frozenset(encoders)


def probe_capabilities(ffmpeg_path: Optional[str] = None, timeout: float = 15) -> Capabilities:
    """Consulta o FFmpeg uma única vez (fora do caminho quente)"""
    logger = get_logger("Capabilities")
    binary = ffmpeg_bin(ffmpeg_path)
    try:
        encoders = subprocess.run(
            [binary, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
        filters = subprocess.run(
            [binary, "-hide_banner", "-filters"],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except (subprocess.SubprocessError, OSError) as e:
        logger.warning("FFmpeg indisponível (%s): %s", binary, e)
        return Capabilities(ffmpeg_available=False, drawtext=False)

    caps = Capabilities(
        ffmpeg_available=True,
        encoders=_parse_encoders(encoders.stdout),
        drawtext=" drawtext " in filters.stdout,
    )
    logger.info(
        "Capacidades: %d encoders, drawtext=%s", len(caps.encoders), caps.drawtext
    )
    return caps
