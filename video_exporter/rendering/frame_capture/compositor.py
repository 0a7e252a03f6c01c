# -*- coding: utf-8 -*-
"""
video_exporter/rendering/frame_capture/compositor.py
Composição de overlays sobre quadros decodificados (Pillow)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont, UnidentifiedImageError

from ...domain.errors import OverlayAssetLoadFailure
from ...domain.models.overlays import Caption, TrailerSlide, Watermark
from ...infra.logging import get_logger
from ..geometry import (
    conservative_scale,
    fit_inside,
    resolve_placement,
    scaled_font_size,
)

SHADOW_OFFSET = 2


@dataclass
class PreparedWatermark:
    """Marca d'água já carregada, escalada e com opacidade aplicada"""

    watermark: Watermark
    image: Image.Image


def load_image(path: Path, asset) -> Image.Image:
    """Carrega uma imagem de overlay; falhas viram OverlayAssetLoadFailure"""
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGBA")
    except (OSError, UnidentifiedImageError) as e:
        raise OverlayAssetLoadFailure(
            f"Falha ao carregar imagem {path}: {e}", asset=asset, cause=e
        ) from e


class FrameCompositor:
    """Desenha legendas e marcas d'água ativas no instante t sobre um quadro"""

    def __init__(
        self,
        width: int,
        height: int,
        captions: Sequence[Caption],
        watermarks: Sequence[Watermark],
        source_duration: float,
        scale: float = 1.0,
        caption_margin: Optional[int] = None,
        watermark_margin: Optional[int] = None,
        watermark_opacity: float = 0.9,
        slide_background: str = "black",
    ):
        self.logger = get_logger("FrameCompositor")
        self.width = width
        self.height = height
        self.source_duration = source_duration
        self.scale = scale
        self.caption_margin = caption_margin
        self.watermark_margin = watermark_margin
        self.watermark_opacity = watermark_opacity
        self.slide_background = slide_background
        self.captions = [
            c for c in captions if c.visible_interval(source_duration) is not None
        ]
        self.watermarks = list(watermarks)
        self.prepared: List[PreparedWatermark] = []
        self._fonts: Dict[Tuple[str, int], ImageFont.ImageFont] = {}

    def load_assets(self) -> List[OverlayAssetLoadFailure]:
        """
        Pré-carrega as marcas d'água. Uma imagem que falha é descartada e
        devolvida como aviso; as demais seguem normalmente.
        """
        failures = []
        self.prepared = []
        for watermark in self.watermarks:
            if watermark.visible_interval(self.source_duration) is None:
                continue
            try:
                image = load_image(watermark.image_path, watermark)
            except OverlayAssetLoadFailure as e:
                self.logger.warning("Marca d'água ignorada: %s", e)
                failures.append(e)
                continue
            self.prepared.append(PreparedWatermark(watermark, self._prepare(image, watermark)))
        return failures

    def _prepare(self, image: Image.Image, watermark: Watermark) -> Image.Image:
        factor = watermark.effective_scale
        size = (max(1, round(image.width * factor)), max(1, round(image.height * factor)))
        if size != image.size:
            image = image.resize(size, Image.LANCZOS)
        alpha = image.getchannel("A").point(lambda a: int(a * self.watermark_opacity))
        image.putalpha(alpha)
        return image

    # Quadros do clipe base

    def compose(self, frame: Image.Image, t: float) -> Image.Image:
        """Legendas primeiro, marcas d'água por cima (em ordem da lista)"""
        if frame.mode != "RGB":
            frame = frame.convert("RGB")
        if frame.size != (self.width, self.height):
            frame = frame.resize((self.width, self.height))

        active = [c for c in self.captions if c.is_active(t)]
        if active:
            layer = Image.new("RGBA", frame.size, (0, 0, 0, 0))
            draw = ImageDraw.Draw(layer)
            for caption in active:
                self._draw_caption(draw, caption)
            frame.paste(layer, (0, 0), layer)

        for prepared in self.prepared:
            if not prepared.watermark.is_active(t, self.source_duration):
                continue
            wm = prepared.watermark
            placement = resolve_placement(
                wm.position,
                wm.custom_x,
                wm.custom_y,
                self.width,
                self.height,
                scale=self.scale,
                kind="watermark",
                margin=self.watermark_margin,
            )
            image = prepared.image
            frame.paste(image, placement.top_left(image.width, image.height), image)
        return frame

    def font(self, family: str, size: int) -> ImageFont.ImageFont:
        key = (family, size)
        if key not in self._fonts:
            self._fonts[key] = self._load_font(family, size)
        return self._fonts[key]

    def _load_font(self, family: str, size: int):
        for candidate in (family, f"{family}.ttf", f"{family.lower()}.ttf"):
            try:
                return ImageFont.truetype(candidate, size)
            except OSError:
                continue
        self.logger.debug("Fonte '%s' não encontrada, usando a padrão", family)
        return ImageFont.load_default(size=size)

    def _draw_caption(self, draw: ImageDraw.ImageDraw, caption: Caption):
        style = caption.style
        font = self.font(style.font_family, scaled_font_size(style.font_size, self.scale))
        left, top, right, bottom = draw.multiline_textbbox(
            (0, 0), caption.text, font=font, align=style.text_align
        )
        text_w, text_h = right - left, bottom - top

        cscale = conservative_scale(self.scale, "caption")
        pad_x = max(8, round(16 * cscale))
        pad_y = max(4, round(8 * cscale))
        placement = resolve_placement(
            style.position,
            style.custom_x,
            style.custom_y,
            self.width,
            self.height,
            scale=self.scale,
            kind="caption",
            full_width=style.full_width,
            margin=self.caption_margin,
        )
        x, y = placement.top_left(text_w, text_h)

        if style.background_style != "none":
            r, g, b = ImageColor.getrgb(style.background_color)[:3]
            fill = (r, g, b, round(255 * style.background_opacity))
            if style.full_width:
                box = (0, y - pad_y, self.width, y + text_h + pad_y)
            else:
                box = (x - pad_x, y - pad_y, x + text_w + pad_x, y + text_h + pad_y)
            draw.rectangle(box, fill=fill)
        else:
            # Sombra apenas sem fundo, para legibilidade sobre o vídeo
            draw.multiline_text(
                (x - left + SHADOW_OFFSET, y - top + SHADOW_OFFSET),
                caption.text,
                font=font,
                fill=(0, 0, 0, 204),
                align=style.text_align,
            )

        draw.multiline_text(
            (x - left, y - top),
            caption.text,
            font=font,
            fill=ImageColor.getrgb(style.text_color),
            align=style.text_align,
        )

    # Slides finais

    def load_slide(self, slide: TrailerSlide) -> Image.Image:
        """Slide em tela cheia, centralizado com letterbox sobre fundo sólido"""
        image = load_image(slide.image_path, slide)
        canvas = Image.new("RGB", (self.width, self.height), self.slide_background)
        x, y, w, h = fit_inside(image.width, image.height, self.width, self.height)
        resized = image.resize((w, h), Image.LANCZOS)
        canvas.paste(resized, (x, y), resized)
        return canvas
