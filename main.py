"""
main.py: Interface CLI do motor de exportação
"""

import argparse
import logging
import sys
from pathlib import Path

from video_exporter.application.services.export_service import (
    BACKENDS,
    ExportOrchestrator,
    format_time,
)
from video_exporter.domain.errors import ExportError
from video_exporter.domain.models.media import QUALITY_PRESETS, DEFAULT_QUALITY
from video_exporter.domain.models.overlays import OverlayList
from video_exporter.infra.logging import setup_logging
from video_exporter.infra.media_io import MediaIO
from video_exporter.infra.project_io import load_project
from video_exporter.infra.settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exporta um vídeo com legendas, marcas d'água e slides finais usando FFmpeg."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Exporta um vídeo")
    export.add_argument("--source", help="Vídeo base (sobrepõe o do projeto)")
    export.add_argument("--project", help="Arquivo de projeto JSON com os overlays")
    export.add_argument("--output", required=True, help="Arquivo de saída do vídeo")
    export.add_argument(
        "--backend",
        choices=sorted(BACKENDS),
        default=None,
        help="Backend de exportação (padrão: primeiro suportado)",
    )
    export.add_argument(
        "--quality",
        choices=list(QUALITY_PRESETS),
        default=DEFAULT_QUALITY,
        help=f"Qualidade de exportação (padrão: {DEFAULT_QUALITY})",
    )
    export.add_argument("--config", help="Arquivo config.json")
    export.add_argument("--log-file", default=None, help="Arquivo de log")
    export.add_argument("--verbose", action="store_true", help="Log em nível DEBUG")
    return parser


def print_progress(progress):
    print(f"\r[{progress.percent:5.1f}%] {progress.message}", end="", flush=True)


def run_export(args) -> int:
    settings = load_settings(Path(args.config) if args.config else None)
    setup_logging(
        args.log_file or settings.log_file,
        logging.DEBUG if args.verbose else logging.INFO,
    )

    source_path = Path(args.source) if args.source else None
    overlays = OverlayList()
    try:
        if args.project:
            project_source, overlays = load_project(Path(args.project))
            source_path = source_path or project_source
        if source_path is None:
            print("❌ Informe --source ou um projeto com 'source'")
            return 1

        source = MediaIO(settings.ffprobe_path).load_source(source_path.resolve())
        orchestrator = ExportOrchestrator(settings=settings, backend_name=args.backend)
        artifact = orchestrator.export(
            source, overlays, args.quality, on_progress=print_progress
        )
    except (OSError, ValueError) as e:
        print(f"❌ Entrada inválida: {e}")
        return 1
    except ExportError as e:
        print(f"\n❌ Erro na exportação: {e}")
        return 1
    print()

    output = Path(args.output).resolve()
    output.write_bytes(artifact.data)
    for warning in artifact.warnings:
        print(f"⚠️  {warning}")
    print(
        f"✅ Vídeo exportado: {output} ({artifact.size} bytes, {artifact.mime_type}, "
        f"duração {format_time(overlays.total_duration(source))})"
    )
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "export":
        return run_export(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
