# -*- coding: utf-8 -*-
"""
Configuração de logging do motor de exportação
"""

import logging
import sys
from typing import Optional

ROOT_LOGGER = "video_exporter"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_file: Optional[str] = "video_exporter.log",
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> logging.Logger:
    """
    Configura o logger do pacote: arquivo (se informado) no nível pedido e
    console só com avisos e erros. Chamadas repetidas trocam os handlers em
    vez de duplicá-los.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    # O Pillow loga cada chunk de PNG em DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger filho de video_exporter (ex.: video_exporter.Runner)"""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
