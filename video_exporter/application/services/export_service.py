# -*- coding: utf-8 -*-
"""
video_exporter/application/services/export_service.py
Orquestração de exportação: sessão, máquina de estados e progresso global
"""

import shutil
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional

from ...domain.errors import (
    EncodingEngineFailure,
    ExportCancelled,
    ExportError,
    ExportInProgress,
    UnsupportedCapability,
)
from ...domain.models.media import MediaSource
from ...domain.models.overlays import OverlayList
from ...domain.models.progress import (
    PHASE_BANDS,
    Artifact,
    ExportProgress,
    ExportState,
)
from ...infra.capabilities import Capabilities, probe_capabilities
from ...infra.logging import get_logger
from ...infra.settings import AppSettings
from ...rendering.backend import ExportBackend, QualityInput
from ...rendering.filtergraph_backend import FilterGraphBackend
from ...rendering.frame_capture.backend import FrameCaptureBackend

ProgressCallback = Callable[[ExportProgress], None]

BACKENDS = {
    FilterGraphBackend.name: FilterGraphBackend,
    FrameCaptureBackend.name: FrameCaptureBackend,
}


def format_time(seconds: float) -> str:
    """Formata segundos como MM:SS ou HH:MM:SS"""
    total = max(0, int(round(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def select_backend(
    name: Optional[str], capabilities: Capabilities, settings: AppSettings = None
) -> ExportBackend:
    """
    Escolhe o backend pelo nome, ou o primeiro que o ambiente suporta.
    Não há fallback silencioso: um backend pedido e não suportado é erro.
    """
    if name is not None:
        if name not in BACKENDS:
            raise ValueError(f"Backend desconhecido: {name}")
        backend = BACKENDS[name](settings)
        backend.check_capabilities(capabilities)
        return backend

    reasons = []
    for backend_cls in BACKENDS.values():
        backend = backend_cls(settings)
        try:
            backend.check_capabilities(capabilities)
        except UnsupportedCapability as e:
            reasons.append(f"{backend.name}: {e}")
            continue
        return backend
    raise UnsupportedCapability("Nenhum backend disponível (" + "; ".join(reasons) + ")")


class ExportSession:
    """Estado de uma única chamada a export()"""

    def __init__(
        self,
        on_progress: Optional[ProgressCallback] = None,
        temp_dir: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = get_logger("ExportSession")
        self.state = ExportState.IDLE
        self.percent = 0.0
        self.progress: Optional[ExportProgress] = None
        self.warnings: List[ExportError] = []
        self.on_progress = on_progress
        self.workdir = Path(tempfile.mkdtemp(prefix="video_export_", dir=temp_dir))
        self._cancel = threading.Event()
        self._clock = clock
        self._started = clock()

    # Contrato ExportContext

    def report(self, phase: ExportState, fraction: float, message: str) -> None:
        """Mapeia o progresso local da fase para a faixa global; nunca regride"""
        if self.state.is_terminal:
            return
        if phase.order < self.state.order:
            # Fase atrasada: só a mensagem é aproveitada
            self._emit(self.state, self.percent, message)
            return
        start, end = PHASE_BANDS[phase]
        fraction = max(0.0, min(1.0, fraction))
        percent = max(self.percent, start + (end - start) * fraction)
        self._emit(phase, percent, message)

    def warn(self, error: ExportError) -> None:
        self.logger.warning("Aviso de exportação: %s", error)
        self.warnings.append(error)

    def check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise ExportCancelled("Exportação cancelada")

    # Controle

    def cancel(self):
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def complete(self):
        self._emit(ExportState.COMPLETE, 100.0, "Exportação concluída!")

    def fail(self, error: ExportError):
        self._emit(ExportState.FAILED, self.percent, f"Erro: {error}")

    def eta(self, percent: float) -> Optional[float]:
        if percent <= 0 or percent >= 100:
            return None
        elapsed = self._clock() - self._started
        return elapsed * (100.0 - percent) / percent

    def cleanup(self):
        shutil.rmtree(self.workdir, ignore_errors=True)

    def snapshot(self) -> Optional[ExportProgress]:
        return self.progress

    def _emit(self, phase: ExportState, percent: float, message: str):
        if phase != self.state:
            self.logger.info("Estado: %s -> %s", self.state.value, phase.value)
        self.state = phase
        self.percent = percent
        eta = self.eta(percent)
        if eta is not None:
            message = f"{message} (restante ~{format_time(eta)})"
        self.progress = ExportProgress(phase, round(percent, 2), message, eta)
        if self.on_progress:
            self.on_progress(self.progress)


class ExportOrchestrator:
    """Coordena uma exportação por vez sobre o backend escolhido"""

    def __init__(
        self,
        backend: ExportBackend = None,
        capabilities: Capabilities = None,
        settings: AppSettings = None,
        backend_name: Optional[str] = None,
    ):
        self.logger = get_logger("ExportOrchestrator")
        self.settings = settings or AppSettings()
        self._backend = backend
        self._capabilities = capabilities
        self._backend_name = backend_name
        self._lock = threading.Lock()
        self.session: Optional[ExportSession] = None
        if backend is not None and capabilities is not None:
            backend.check_capabilities(capabilities)

    @property
    def backend(self) -> ExportBackend:
        if self._backend is None:
            capabilities = self._capabilities or probe_capabilities(self.settings.ffmpeg_path)
            self._backend = select_backend(self._backend_name, capabilities, self.settings)
            self.logger.info("Backend selecionado: %s", self._backend.name)
        return self._backend

    def export(
        self,
        source: MediaSource,
        overlays: OverlayList,
        quality: QualityInput = "balanced",
        on_progress: Optional[ProgressCallback] = None,
    ) -> Artifact:
        if not self._lock.acquire(blocking=False):
            raise ExportInProgress("Já existe uma exportação em andamento")
        try:
            return self._export(source, overlays, quality, on_progress)
        finally:
            self._lock.release()

    def cancel(self):
        """Pede o cancelamento da exportação corrente (se houver)"""
        if self.session is not None:
            self.session.cancel()

    def _export(self, source, overlays, quality, on_progress) -> Artifact:
        session = ExportSession(on_progress, temp_dir=self.settings.temp_dir)
        self.session = session
        self.logger.info(
            "Iniciando exportação: fonte=%s, duração=%.2fs, legendas=%d, "
            "marcas=%d, slides=%d",
            source.path,
            source.duration_seconds,
            len(overlays.captions),
            len(overlays.watermarks),
            len(overlays.slides),
        )
        try:
            backend = self.backend
            profile = backend.resolve_quality(quality)
            session.report(ExportState.LOADING, 0.0, "Iniciando exportação...")
            artifact = backend.render(source, overlays, profile, session)
            session.check_cancelled()
        except ExportError as e:
            self.logger.error("Exportação falhou: %s", e)
            session.fail(e)
            raise
        except Exception as e:
            self.logger.exception("Erro inesperado durante a exportação")
            error = EncodingEngineFailure(f"Erro inesperado: {e}", cause=e)
            session.fail(error)
            raise error from e
        finally:
            session.cleanup()

        session.complete()
        warnings = tuple(str(w) for w in session.warnings)
        self.logger.info(
            "Exportação concluída: %d bytes, %s, %d aviso(s)",
            artifact.size,
            artifact.mime_type,
            len(warnings),
        )
        return Artifact(artifact.data, artifact.mime_type, warnings)
