# -*- coding: utf-8 -*-
"""
video_exporter/infra/project_io.py
Leitura e escrita do arquivo de projeto (JSON) usado pela CLI

Formato:
{
  "source": "video.mp4",
  "captions": [{"text": "...", "start": 0, "duration": 2, "style": {...}}],
  "watermarks": [{"image": "logo.png", "position": "top-right", "scale": 1.0,
                  "start": 0, "end": 10}],
  "slides": [{"image": "fim.png", "duration": 3}]
}

Sem "end", a marca d'água fica visível até o fim do vídeo. Caminhos
relativos são resolvidos a partir da pasta do arquivo de projeto.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..domain.models.overlays import Caption, CaptionStyle, OverlayList, TrailerSlide, Watermark
from .logging import get_logger

logger = get_logger("project_io")


def _resolve(base: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else base / path


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _caption(data: Dict[str, Any]) -> Caption:
    return Caption(
        text=data["text"],
        start_seconds=float(data.get("start", 0.0)),
        duration_seconds=float(data["duration"]),
        style=CaptionStyle(**data.get("style", {})),
    )


def _watermark(base: Path, data: Dict[str, Any]) -> Watermark:
    return Watermark(
        image_path=_resolve(base, data["image"]),
        position=data.get("position", "top-right"),
        scale=float(data.get("scale", 1.0)),
        start_seconds=float(data.get("start", 0.0)),
        end_seconds=_optional_float(data.get("end")),
        custom_x=data.get("custom_x"),
        custom_y=data.get("custom_y"),
    )


def _slide(base: Path, data: Dict[str, Any]) -> TrailerSlide:
    return TrailerSlide(
        image_path=_resolve(base, data["image"]),
        duration_seconds=float(data["duration"]),
    )


def load_project(project_path: Path) -> Tuple[Optional[Path], OverlayList]:
    """Carrega (caminho da mídia base, overlays) de um arquivo de projeto"""
    project_path = Path(project_path)
    with open(project_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    base = project_path.parent
    try:
        overlays = OverlayList(
            captions=[_caption(c) for c in data.get("captions", [])],
            watermarks=[_watermark(base, w) for w in data.get("watermarks", [])],
            slides=[_slide(base, s) for s in data.get("slides", [])],
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Projeto inválido em {project_path}: {e}") from e

    source = data.get("source")
    logger.info(
        "Projeto carregado: %s (%d legendas, %d marcas, %d slides)",
        project_path,
        len(overlays.captions),
        len(overlays.watermarks),
        len(overlays.slides),
    )
    return (_resolve(base, source) if source else None), overlays


def save_project(project_path: Path, overlays: OverlayList, source: Optional[Path] = None):
    """Salva overlays no formato lido por load_project"""
    data: Dict[str, Any] = {}
    if source is not None:
        data["source"] = str(source)
    data["captions"] = [
        {
            "text": c.text,
            "start": c.start_seconds,
            "duration": c.duration_seconds,
            "style": asdict(c.style),
        }
        for c in overlays.captions
    ]
    data["watermarks"] = [
        {
            "image": str(w.image_path),
            "position": w.position,
            "scale": w.scale,
            "start": w.start_seconds,
            "end": w.end_seconds,
            "custom_x": w.custom_x,
            "custom_y": w.custom_y,
        }
        for w in overlays.watermarks
    ]
    data["slides"] = [
        {"image": str(s.image_path), "duration": s.duration_seconds}
        for s in overlays.slides
    ]
    with open(project_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
