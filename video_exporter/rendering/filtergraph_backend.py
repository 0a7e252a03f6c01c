# -*- coding: utf-8 -*-
"""
video_exporter/rendering/filtergraph_backend.py
Backend declarativo: filtergraph FFmpeg + clipes de slide + concatenação

Pipeline:
1. Overlays -> GraphBuilder -> FilterGraph
2. FilterGraph -> CliBuilder -> list[str]
3. list[str] -> Runner (render principal)
4. Slides -> um clipe por slide -> manifesto concat -> Runner
"""

from pathlib import Path
from typing import List

from ..domain.errors import (
    EncodingEngineFailure,
    FinalizationFailure,
    OverlayAssetLoadFailure,
)
from ..domain.models.media import CrfQuality, MediaSource, QualityPreset
from ..domain.models.overlays import OverlayList
from ..domain.models.progress import Artifact, ExportState
from ..infra.capabilities import Capabilities
from ..infra.logging import get_logger
from ..infra.media_io import MediaIO
from ..infra.settings import AppSettings
from .backend import ExportBackend, ExportContext, require
from .cli_builder import CliBuilder
from .graph_builder import GraphBuilder
from .runner import Progress, Runner

MIME_TYPE = "video/mp4"


class FilterGraphBackend(ExportBackend):
    """Tudo ou nada: qualquer etapa que falhe aborta a exportação"""

    name = "filtergraph"
    profile_type = CrfQuality

    def __init__(
        self,
        settings: AppSettings = None,
        runner: Runner = None,
        media_io: MediaIO = None,
    ):
        self.logger = get_logger("FilterGraphBackend")
        self.settings = settings or AppSettings()
        self.graph_builder = GraphBuilder(self.settings)
        self.cli_builder = CliBuilder(self.settings.ffmpeg_path)
        self.runner = runner or Runner()
        self.media_io = media_io or MediaIO(self.settings.ffprobe_path)

    def check_capabilities(self, capabilities: Capabilities) -> None:
        require(capabilities.ffmpeg_available, "FFmpeg não encontrado no ambiente")
        require(capabilities.supports_encoder("libx264"), "Encoder libx264 indisponível")
        require(capabilities.drawtext, "Filtro drawtext indisponível no FFmpeg")

    def profile_from_preset(self, preset: QualityPreset) -> CrfQuality:
        return preset.crf

    def render(
        self,
        source: MediaSource,
        overlays: OverlayList,
        quality: CrfQuality,
        context: ExportContext,
    ) -> Artifact:
        context.report(ExportState.LOADING, 0.0, "Verificando arquivos...")
        self._check_assets(overlays)
        has_audio = source.has_audio
        if has_audio is None:
            has_audio = self.media_io.has_audio_stream(source.path)
        context.report(ExportState.LOADING, 1.0, "Arquivos prontos")

        context.report(ExportState.PROCESSING, 0.0, "Criando filtros...")
        graph = self.graph_builder.build(source, overlays)
        context.report(ExportState.PROCESSING, 1.0, "Filtros criados")
        context.check_cancelled()

        # Pesos de progresso proporcionais à duração de cada etapa
        total = overlays.total_duration(source)
        main_weight = source.duration_seconds / total
        workdir = context.workdir

        main_output = workdir / "main_output.mp4"
        cmd = self.cli_builder.make_command(graph, main_output, quality, has_audio)
        context.report(ExportState.RENDERING, 0.0, "Renderizando vídeo principal...")
        self.runner.run(
            cmd,
            on_progress=self._stage_progress(
                context, source.duration_seconds, 0.0, main_weight, "Renderizando vídeo"
            ),
            timeout=self.settings.render_timeout,
        )
        context.check_cancelled()

        if not overlays.slides:
            context.report(ExportState.RENDERING, 1.0, "Renderização concluída")
            return self._finalize(main_output, context)

        slide_files = self._render_slides(
            source, overlays, quality, has_audio, main_weight, context
        )
        context.report(ExportState.RENDERING, 1.0, "Slides criados")

        context.report(ExportState.FINALIZING, 0.0, "Juntando vídeos...")
        final_output = workdir / "output.mp4"
        manifest = self.cli_builder.write_concat_manifest(
            [main_output, *slide_files], workdir / "concat_list.txt"
        )
        cmd = self.cli_builder.make_concat_command(
            manifest, final_output, quality, has_audio
        )
        try:
            self.runner.run(
                cmd,
                on_progress=self._stage_progress(
                    context, total, 0.0, 0.8, "Juntando vídeos", ExportState.FINALIZING
                ),
                timeout=self.settings.concat_timeout,
            )
        except EncodingEngineFailure as e:
            raise FinalizationFailure(f"Falha ao concatenar: {e}", cause=e) from e

        return self._finalize(final_output, context)

    def _check_assets(self, overlays: OverlayList):
        """Assets ausentes são fatais neste backend"""
        for watermark in overlays.watermarks:
            if not Path(watermark.image_path).is_file():
                raise OverlayAssetLoadFailure(
                    f"Imagem de marca d'água não encontrada: {watermark.image_path}",
                    asset=watermark,
                )
        for slide in overlays.slides:
            if not Path(slide.image_path).is_file():
                raise OverlayAssetLoadFailure(
                    f"Imagem de slide não encontrada: {slide.image_path}",
                    asset=slide,
                )

    def _render_slides(
        self,
        source: MediaSource,
        overlays: OverlayList,
        quality: CrfQuality,
        has_audio: bool,
        offset: float,
        context: ExportContext,
    ) -> List[Path]:
        slide_files = []
        total = overlays.total_duration(source)
        done = offset
        for index, slide in enumerate(overlays.slides):
            output = context.workdir / f"slide_{index}.mp4"
            cmd = self.cli_builder.make_slide_command(
                slide,
                output,
                source.width,
                source.height,
                source.fps,
                quality,
                with_audio=has_audio,
                background=self.settings.slide_background,
            )
            weight = slide.duration_seconds / total
            context.report(
                ExportState.RENDERING,
                done,
                f"Criando slide {index + 1} de {len(overlays.slides)}...",
            )
            self.runner.run(
                cmd,
                on_progress=self._stage_progress(
                    context, slide.duration_seconds, done, weight, "Criando slides"
                ),
                timeout=self.settings.slide_timeout,
            )
            context.check_cancelled()
            done += weight
            slide_files.append(output)
        return slide_files

    def _finalize(self, output: Path, context: ExportContext) -> Artifact:
        context.report(ExportState.FINALIZING, 0.9, "Finalizando exportação...")
        try:
            data = output.read_bytes()
        except OSError as e:
            raise FinalizationFailure(f"Saída não encontrada: {output}", cause=e) from e
        if not data:
            raise FinalizationFailure(f"Saída vazia: {output}")
        context.report(ExportState.FINALIZING, 1.0, "Exportação concluída!")
        return Artifact(data=data, mime_type=MIME_TYPE)

    @staticmethod
    def _stage_progress(
        context: ExportContext,
        stage_duration: float,
        start: float,
        weight: float,
        label: str,
        phase: ExportState = ExportState.RENDERING,
    ):
        def on_progress(progress: Progress):
            local = min(1.0, progress.out_time_seconds / stage_duration)
            context.report(phase, start + local * weight, f"{label}: {local:.0%}")

        return on_progress
