# -*- coding: utf-8 -*-
"""
video_exporter/rendering/frame_capture/backend.py
Backend de captura de quadros: compõe cada quadro e alimenta o encoder

Falhas de assets de overlay não são fatais aqui: o overlay é pulado e a
renderização continua.
"""

from pathlib import Path
from typing import Callable, Dict, Optional

from PIL import Image

from ...domain.errors import FinalizationFailure, OverlayAssetLoadFailure, UnsupportedCapability
from ...domain.models.media import BitrateQuality, MediaSource, QualityPreset
from ...domain.models.overlays import OverlayList
from ...domain.models.progress import Artifact, ExportState
from ...infra.capabilities import Capabilities
from ...infra.logging import get_logger
from ...infra.media_io import MediaIO
from ...infra.settings import AppSettings
from ..backend import ExportBackend, ExportContext, require
from ..geometry import display_scale
from ..timeline import BaseSegment, TimelineSegmenter
from .audio import AudioAcquisitionChain
from .compositor import FrameCompositor
from .decoder import FrameDecoder
from .encoder import EncoderSink
from .scheduler import Clock, FramePacer, SlideScheduler, estimate_total_frames, frames_for

REPORT_EVERY = 5  # quadros entre eventos de progresso


def even(value: int) -> int:
    """yuv420p exige dimensões pares"""
    return max(2, value - value % 2)


class FrameCaptureBackend(ExportBackend):
    """Renderização quadro a quadro com fps fixa"""

    name = "frame_capture"
    profile_type = BitrateQuality

    def __init__(
        self,
        settings: AppSettings = None,
        container: Optional[str] = None,
        audio_chain: AudioAcquisitionChain = None,
        decoder_factory: Callable[..., FrameDecoder] = FrameDecoder,
        encoder_factory: Callable[..., EncoderSink] = EncoderSink,
        clock: Clock = None,
    ):
        self.logger = get_logger("FrameCaptureBackend")
        self.settings = settings or AppSettings()
        self.container = container
        self.audio_chain = audio_chain or AudioAcquisitionChain.default(
            MediaIO(self.settings.ffprobe_path), ffmpeg_path=self.settings.ffmpeg_path
        )
        self.decoder_factory = decoder_factory
        self.encoder_factory = encoder_factory
        self.clock = clock

    def check_capabilities(self, capabilities: Capabilities) -> None:
        require(capabilities.ffmpeg_available, "FFmpeg não encontrado no ambiente")
        container = capabilities.pick_container(self.settings.preferred_containers)
        if container is None:
            raise UnsupportedCapability(
                "Nenhum contêiner suportado entre "
                f"{', '.join(self.settings.preferred_containers)}"
            )
        self.container = container

    def profile_from_preset(self, preset: QualityPreset) -> BitrateQuality:
        return preset.bitrate

    def render(
        self,
        source: MediaSource,
        overlays: OverlayList,
        quality: BitrateQuality,
        context: ExportContext,
    ) -> Artifact:
        fps = self.settings.target_fps
        width, height = even(source.width), even(source.height)
        segmenter = TimelineSegmenter.for_export(source, overlays)

        context.report(ExportState.LOADING, 0.0, "Pré-carregando imagens...")
        compositor = FrameCompositor(
            width,
            height,
            overlays.captions,
            overlays.watermarks,
            source.duration_seconds,
            scale=display_scale(width, height, self.settings.reference_resolution),
            caption_margin=self.settings.caption_margin,
            watermark_margin=self.settings.watermark_margin,
            watermark_opacity=self.settings.watermark_opacity,
            slide_background=self.settings.slide_background,
        )
        for failure in compositor.load_assets():
            context.warn(failure)
        slide_frames = self._load_slides(compositor, overlays, context)
        context.report(ExportState.LOADING, 0.6, "Obtendo áudio...")

        audio = self.audio_chain.acquire(source, context.workdir)
        if audio.failure:
            context.warn(audio.failure)
        context.report(ExportState.LOADING, 1.0, "Imagens e áudio prontos")
        context.check_cancelled()

        context.report(ExportState.PROCESSING, 0.0, "Preparando encoder...")
        container = self.container or self.settings.preferred_containers[0]
        pacer = FramePacer(self.clock, enabled=self.settings.realtime_pacing)
        scheduler = SlideScheduler(
            segmenter,
            fps,
            pacer=pacer,
            skip=[i for i in range(len(overlays.slides)) if i not in slide_frames],
        )
        total_frames = frames_for(source.duration_seconds, fps) + scheduler.total_frames()
        self.logger.info(
            "Estimativa: %d quadros (%d previstos sem falhas)",
            total_frames,
            estimate_total_frames(source.duration_seconds, segmenter.slide_durations, fps),
        )

        output = Path(context.workdir) / f"output.{container}"
        sink = self.encoder_factory(
            output,
            width,
            height,
            fps,
            quality,
            container=container,
            audio=audio.track,
            duration=source.duration_seconds + sum(
                d for i, d in enumerate(segmenter.slide_durations) if i in slide_frames
            ),
            ffmpeg_path=self.settings.ffmpeg_path,
        )
        decoder = self.decoder_factory(
            source.path, width, height, fps, ffmpeg_path=self.settings.ffmpeg_path
        )
        context.report(ExportState.PROCESSING, 1.0, "Encoder pronto")

        finished = False
        try:
            sink.open()
            rendered = self._render_base(
                decoder, compositor, sink, segmenter, pacer, fps, total_frames, context
            )
            for slide_frame in scheduler:
                sink.write(slide_frames[slide_frame.index])
                rendered += 1
                self._report_frame(context, rendered, total_frames, "Renderizando slides")
                context.check_cancelled()

            context.report(ExportState.RENDERING, 1.0, "Renderização concluída")
            context.report(ExportState.FINALIZING, 0.0, "Finalizando exportação...")
            path = sink.close()
            finished = True
        finally:
            decoder.close()
            if not finished:
                sink.abort()

        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise FinalizationFailure(f"Saída não encontrada: {path}", cause=e) from e
        if not data:
            raise FinalizationFailure(f"Saída vazia: {path}")
        context.report(ExportState.FINALIZING, 1.0, "Exportação concluída!")
        return Artifact(data=data, mime_type=sink.mime_type)

    def _load_slides(
        self, compositor: FrameCompositor, overlays: OverlayList, context: ExportContext
    ) -> Dict[int, Image.Image]:
        """Slides que não carregam são pulados (aviso, não erro)"""
        frames = {}
        for index, slide in enumerate(overlays.slides):
            try:
                frames[index] = compositor.load_slide(slide)
            except OverlayAssetLoadFailure as e:
                self.logger.warning("Slide %d ignorado: %s", index, e)
                context.warn(e)
        return frames

    def _render_base(
        self, decoder, compositor, sink, segmenter, pacer, fps, total_frames, context
    ) -> int:
        rendered = 0
        for n, frame in enumerate(decoder.frames()):
            t = n / fps
            if not isinstance(segmenter.locate(t), BaseSegment):
                break
            pacer.wait(t)
            sink.write(compositor.compose(frame, t))
            rendered += 1
            self._report_frame(context, rendered, total_frames, "Renderizando")
            context.check_cancelled()
        return rendered

    @staticmethod
    def _report_frame(context: ExportContext, rendered: int, total: int, label: str):
        if rendered % REPORT_EVERY and rendered != total:
            return
        fraction = min(1.0, rendered / total) if total else 1.0
        context.report(ExportState.RENDERING, fraction, f"{label}: {fraction:.0%}")
