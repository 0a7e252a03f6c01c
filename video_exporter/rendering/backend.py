# -*- coding: utf-8 -*-
"""
Contrato comum dos backends de exportação
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol, Union

from ..domain.errors import ExportError, UnsupportedCapability
from ..domain.models.media import (
    MediaSource,
    QualityPreset,
    QualityProfile,
    get_quality_preset,
)
from ..domain.models.overlays import OverlayList
from ..domain.models.progress import Artifact, ExportState
from ..infra.capabilities import Capabilities


class ExportContext(Protocol):
    """O que a sessão de exportação oferece a um backend"""

    workdir: Path

    def report(self, phase: ExportState, fraction: float, message: str) -> None:
        """Progresso local da fase (0.0 - 1.0)"""
        ...

    def warn(self, error: ExportError) -> None:
        """Registra um erro não fatal"""
        ...

    def check_cancelled(self) -> None:
        """Levanta ExportCancelled se o chamador cancelou"""
        ...


QualityInput = Union[str, QualityPreset, QualityProfile]


class ExportBackend(ABC):
    """Classe base para estratégias de exportação."""

    name: str
    profile_type: type

    @abstractmethod
    def render(
        self,
        source: MediaSource,
        overlays: OverlayList,
        quality: QualityProfile,
        context: ExportContext,
    ) -> Artifact:
        """Produz o artefato final"""

    @abstractmethod
    def check_capabilities(self, capabilities: Capabilities) -> None:
        """Levanta UnsupportedCapability se o ambiente não atende o backend"""

    @abstractmethod
    def profile_from_preset(self, preset: QualityPreset) -> QualityProfile:
        """Parâmetros do preset para este backend"""

    def resolve_quality(self, quality: QualityInput) -> QualityProfile:
        if isinstance(quality, str):
            quality = get_quality_preset(quality)
        if isinstance(quality, QualityPreset):
            return self.profile_from_preset(quality)
        if not isinstance(quality, self.profile_type):
            raise ValueError(
                f"Backend '{self.name}' espera {self.profile_type.__name__}, "
                f"recebeu {type(quality).__name__}"
            )
        return quality


def require(condition: bool, message: str):
    if not condition:
        raise UnsupportedCapability(message)
