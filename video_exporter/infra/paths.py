# -*- coding: utf-8 -*-
"""
Paths utilities for FFmpeg binaries and project structure
"""

import os
import shutil
from pathlib import Path
from typing import Optional


def get_project_root() -> Path:
    """Retorna o diretório raiz do projeto"""
    return Path(__file__).resolve().parents[2]


def _resolve_bin(name: str, configured: Optional[str]) -> str:
    # Prioridade: configuração > binário empacotado > PATH
    if configured:
        return configured
    exe_name = f"{name}.exe" if os.name == "nt" else name
    bundled = get_project_root() / "_internal" / "ffmpeg" / "bin" / exe_name
    if bundled.exists():
        return str(bundled)
    return shutil.which(exe_name) or exe_name


def ffmpeg_bin(configured: Optional[str] = None) -> str:
    """Resolve o caminho para o binário do FFmpeg"""
    return _resolve_bin("ffmpeg", configured)


def ffprobe_bin(configured: Optional[str] = None) -> str:
    """Resolve o caminho para o binário do FFprobe"""
    return _resolve_bin("ffprobe", configured)
