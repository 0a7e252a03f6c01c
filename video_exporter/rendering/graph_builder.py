# -*- coding: utf-8 -*-
"""
Construção do filtergraph FFmpeg a partir dos overlays
"""

from pathlib import Path
from typing import List, Optional

from ..domain.models.media import MediaSource
from ..domain.models.overlays import OverlayList
from ..infra.logging import get_logger
from ..infra.settings import AppSettings
from ..plugins.builtin.effects.caption import CaptionEffect
from ..plugins.builtin.effects.watermark import WatermarkEffect
from .geometry import display_scale

SOURCE_LABEL = "0:v"


class FilterGraph:
    """Representa um filtergraph FFmpeg"""

    def __init__(self):
        self.filters: List[str] = []
        self.inputs: List[Path] = []
        self.output_label: Optional[str] = None

    def add_input(self, input_path: Path) -> int:
        """Adiciona um input ao comando e devolve seu índice"""
        self.inputs.append(Path(input_path))
        return len(self.inputs) - 1

    def add_filter(self, filter_expr: str):
        """Adiciona um filtro ao graph"""
        self.filters.append(filter_expr)

    def is_empty(self) -> bool:
        return not self.filters

    def to_string(self) -> str:
        """Converte o filtergraph para string FFmpeg"""
        return ";".join(self.filters)


class GraphBuilder:
    """Constrói o filtergraph do render principal

    Ordem fixa: todas as legendas primeiro, marcas d'água por cima, cada uma
    re-rotulando o quadro corrente.
    """

    def __init__(self, settings: AppSettings = None):
        self.logger = get_logger("GraphBuilder")
        self.settings = settings or AppSettings()

    def build(self, source: MediaSource, overlays: OverlayList) -> FilterGraph:
        """Constrói o filtergraph; o input 0 é sempre a mídia base"""
        self.logger.info(
            "Construindo filtergraph: %d legendas, %d marcas d'água",
            len(overlays.captions),
            len(overlays.watermarks),
        )

        graph = FilterGraph()
        graph.add_input(source.path)
        scale = display_scale(
            source.width, source.height, self.settings.reference_resolution
        )
        current = SOURCE_LABEL

        caption_effect = CaptionEffect(
            overlays.captions,
            source.width,
            source.height,
            source.duration_seconds,
            scale=scale,
            margin=self.settings.caption_margin,
        )
        caption_filters = caption_effect.build_filters()
        if caption_filters:
            graph.add_filter(f"[{current}]{','.join(caption_filters)}[captioned]")
            current = "captioned"

        for index, watermark in enumerate(overlays.watermarks):
            effect = WatermarkEffect(
                watermark,
                source.width,
                source.height,
                source.duration_seconds,
                scale=scale,
                margin=self.settings.watermark_margin,
            )
            if not effect.is_visible():
                self.logger.info("Marca d'água %d fora da mídia, ignorada", index)
                continue
            input_idx = graph.add_input(watermark.image_path)
            output_label = f"wm_out{index}"
            graph.add_filter(
                effect.build_filter(current, f"{input_idx}:v", output_label)
            )
            current = output_label

        graph.output_label = None if current == SOURCE_LABEL else current
        self.logger.debug("Filtergraph construído: %s", graph.to_string())
        return graph
