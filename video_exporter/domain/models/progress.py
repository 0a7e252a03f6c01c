# -*- coding: utf-8 -*-
"""
video_exporter/domain/models/progress.py
Estado, progresso e artefato de uma sessão de exportação
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ExportState(Enum):
    """Máquina de estados da sessão"""

    IDLE = "idle"
    LOADING = "loading"
    PROCESSING = "processing"
    RENDERING = "rendering"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def order(self) -> int:
        return _STATE_ORDER[self]

    @property
    def is_terminal(self) -> bool:
        return self in (ExportState.COMPLETE, ExportState.FAILED)


_STATE_ORDER = {
    ExportState.IDLE: 0,
    ExportState.LOADING: 1,
    ExportState.PROCESSING: 2,
    ExportState.RENDERING: 3,
    ExportState.FINALIZING: 4,
    ExportState.COMPLETE: 5,
    ExportState.FAILED: 6,
}

# Faixas globais de percentual por fase (início, fim)
PHASE_BANDS = {
    ExportState.LOADING: (0.0, 10.0),
    ExportState.PROCESSING: (10.0, 20.0),
    ExportState.RENDERING: (20.0, 90.0),
    ExportState.FINALIZING: (90.0, 100.0),
    ExportState.COMPLETE: (100.0, 100.0),
}

PROGRESS_PHASES = tuple(PHASE_BANDS)


@dataclass(frozen=True)
class ExportProgress:
    """Evento de progresso entregue ao chamador"""

    phase: ExportState
    percent: float
    message: str
    eta_seconds: Optional[float] = None


@dataclass(frozen=True)
class Artifact:
    """Resultado da exportação"""

    data: bytes
    mime_type: str
    warnings: tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.data)
