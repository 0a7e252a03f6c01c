# -*- coding: utf-8 -*-
"""
video_exporter/plugins/builtin/effects/caption.py
Efeito para queimar legendas no vídeo usando FFmpeg drawtext
"""

from typing import List, Optional, Sequence, Tuple

from ....domain.errors import FilterGraphError
from ....domain.models.overlays import Caption
from ....rendering.geometry import resolve_placement, scaled_font_size

# Escapes na ordem em que o FFmpeg desfaz: valor de opção, depois filtergraph
OPTION_CHARS = frozenset("\\':")
GRAPH_CHARS = frozenset("\\'[],;")
WHITESPACE = " \n\t\r"


def _escape_option_value(text: str) -> str:
    out = []
    last = len(text) - 1
    for i, ch in enumerate(text):
        if ord(ch) < 32 and ch not in "\n\t":
            raise FilterGraphError(
                f"Caractere de controle não suportado no texto: {ch!r}"
            )
        # O parser de opções descarta espaços nas pontas se não estiverem escapados
        if ch in OPTION_CHARS or (ch in WHITESPACE and i in (0, last)):
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def _escape_graph(value: str) -> str:
    return "".join("\\" + ch if ch in GRAPH_CHARS else ch for ch in value)


def _unescape_once(text: str) -> str:
    out = []
    chars = iter(text)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, None)
            if nxt is None:
                raise FilterGraphError("Barra invertida solta no fim do texto")
            out.append(nxt)
        else:
            out.append(ch)
    return "".join(out)


def escape_filter_text(text: str) -> str:
    """
    Escapa texto livre para o valor de uma opção dentro de -filter_complex.

    O FFmpeg lê esse texto duas vezes: o parser do filtergraph remove um
    nível de barras e o parser de opções do filtro remove o segundo. Por
    isso o escape é feito em duas camadas (reversível).
    """
    return _escape_graph(_escape_option_value(text))


def unescape_filter_text(text: str) -> str:
    """Inverso de escape_filter_text: o texto que o filtro recebe"""
    return _unescape_once(_unescape_once(text))


def ffmpeg_color(color: str, opacity: Optional[float] = None) -> str:
    """Converte '#RRGGBB' ou nome de cor para a sintaxe do FFmpeg"""
    value = color.strip()
    if value.startswith("#"):
        value = "0x" + value[1:]
    if opacity is not None:
        value = f"{value}@{opacity:.2f}"
    return value


def enable_half_open(start: float, end: float) -> str:
    """Predicado start <= t < end"""
    return f"enable='gte(t,{start:.3f})*lt(t,{end:.3f})'"


class CaptionEffect:
    """Efeito para renderizar legendas queimadas no vídeo"""

    def __init__(
        self,
        captions: Sequence[Caption],
        width: int,
        height: int,
        source_duration: float,
        scale: float = 1.0,
        margin: Optional[int] = None,
    ):
        self.captions = list(captions)
        self.width = width
        self.height = height
        self.source_duration = source_duration
        self.scale = scale
        self.margin = margin

    def build_filters(self) -> List[str]:
        """
        Um drawtext por legenda, cada um com enable para o intervalo visível.
        Legendas full-width ganham um drawbox da largura do quadro antes do texto.
        """
        filters = []
        for caption in self.captions:
            interval = caption.visible_interval(self.source_duration)
            if interval is None:
                continue
            filters.extend(self._caption_filters(caption, interval))
        return filters

    def build_filter(self, input_label: str, output_label: str) -> str:
        filters = self.build_filters()
        if not filters:
            return f"[{input_label}]null[{output_label}]"
        return f"[{input_label}]{','.join(filters)}[{output_label}]"

    def font_size(self, caption: Caption) -> int:
        return scaled_font_size(caption.style.font_size, self.scale)

    def _caption_filters(self, caption: Caption, interval: Tuple[float, float]) -> List[str]:
        style = caption.style
        font_size = self.font_size(caption)
        enable = enable_half_open(*interval)
        placement = resolve_placement(
            style.position,
            style.custom_x,
            style.custom_y,
            self.width,
            self.height,
            scale=self.scale,
            kind="caption",
            full_width=style.full_width,
            margin=self.margin,
        )
        x, y = placement.expressions("text_w", "text_h")

        parts = [
            f"text={escape_filter_text(caption.text)}",
            "expansion=none",
            f"fontsize={font_size}",
            f"fontcolor={ffmpeg_color(style.text_color)}",
            f"x={x}",
            f"y={y}",
        ]
        if style.font_family:
            parts.append(f"font={escape_filter_text(style.font_family)}")

        filters = []
        if style.background_style == "adaptive":
            pad = max(8, int(round(10 * self.scale)))
            parts.extend(
                [
                    "box=1",
                    f"boxcolor={ffmpeg_color(style.background_color, style.background_opacity)}",
                    f"boxborderw={pad}",
                ]
            )
        elif style.background_style == "full-width":
            box_h = int(round(font_size * 1.5))
            _, box_y = placement.top_left(self.width, box_h)
            filters.append(
                f"drawbox=x=0:y={box_y}:w=iw:h={box_h}"
                f":color={ffmpeg_color(style.background_color, style.background_opacity)}"
                f":t=fill:{enable}"
            )
        else:
            # Sem fundo: sombra para manter legibilidade
            parts.extend(["shadowcolor=black@0.8", "shadowx=2", "shadowy=2"])

        parts.append(enable)
        filters.append("drawtext=" + ":".join(parts))
        return filters
