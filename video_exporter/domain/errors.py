# -*- coding: utf-8 -*-
"""
video_exporter/domain/errors.py
Taxonomia de erros do motor de exportação
"""


class ExportError(Exception):
    """Erro base de exportação"""

    fatal = True

    def __init__(self, message: str, *, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class UnsupportedCapability(ExportError):
    """Capacidade de captura/codificação indisponível no ambiente"""


class SourceLoadFailure(ExportError):
    """Mídia base não pôde ser aberta ou decodificada"""


class OverlayAssetLoadFailure(ExportError):
    """Imagem de um overlay não pôde ser carregada

    Não fatal no backend de captura de quadros, fatal no backend de filtergraph.
    """

    def __init__(self, message: str, *, asset=None, cause: Exception = None):
        super().__init__(message, cause=cause)
        self.asset = asset


class AudioCaptureFailure(ExportError):
    """Todas as estratégias de aquisição de áudio falharam"""

    fatal = False


class EncodingEngineFailure(ExportError):
    """O encoder/transcodificador rejeitou a entrada ou falhou"""

    def __init__(self, message: str, *, stderr: str = "", cause: Exception = None):
        super().__init__(message, cause=cause)
        self.stderr = stderr


class FilterGraphError(EncodingEngineFailure):
    """Filtergraph inválido (ex.: texto que não pode ser escapado)"""


class FinalizationFailure(ExportError):
    """Montagem do artefato final falhou após a renderização"""


class ExportCancelled(ExportError):
    """Exportação cancelada pelo chamador; saída parcial descartada"""


class ExportInProgress(ExportError):
    """Já existe uma exportação em andamento neste orquestrador"""
