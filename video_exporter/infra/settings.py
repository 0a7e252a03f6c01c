# -*- coding: utf-8 -*-
"""
Settings management using pydantic-settings
"""

import json
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """Configurações do motor de exportação"""

    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None

    # Timeouts (segundos) das etapas do FFmpeg
    render_timeout: float = 1800
    slide_timeout: float = 120
    concat_timeout: float = 600

    # Taxa de quadros fixa dos slides e do backend de captura
    target_fps: float = 25.0

    # Geometria: resolução de referência para o fator de escala e margens
    reference_width: int = 1280
    reference_height: int = 720
    caption_margin: int = 24
    watermark_margin: int = 16
    watermark_opacity: float = 0.9
    slide_background: str = "black"

    # Contêineres preferidos do backend de captura, em ordem
    preferred_containers: list[str] = ["mp4", "webm"]
    realtime_pacing: bool = False

    temp_dir: Optional[str] = None
    log_file: str = "video_exporter.log"

    class Config:
        env_prefix = "VIDEO_EXPORTER_"
        env_file = ".env"
        case_sensitive = False

    @property
    def reference_resolution(self) -> tuple[int, int]:
        return self.reference_width, self.reference_height


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    """Carrega as configurações da aplicação"""
    # Primeiro tenta carregar do config.json (compatibilidade)
    config_path = config_path or Path("config.json")
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
        return AppSettings(**config_data)

    # Senão carrega das variáveis de ambiente ou padrões
    return AppSettings()
