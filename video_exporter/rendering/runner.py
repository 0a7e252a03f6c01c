# -*- coding: utf-8 -*-
"""
Execução de comandos FFmpeg com progresso
"""

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..domain.errors import EncodingEngineFailure
from ..infra.logging import get_logger


@dataclass(frozen=True)
class Progress:
    """Representa o progresso reportado pelo FFmpeg (-progress pipe:1)"""

    out_time_us: int  # o FFmpeg chama de out_time_ms, mas são microssegundos
    speed: Optional[float] = None
    frame: Optional[int] = None
    fps: Optional[float] = None
    bitrate: Optional[str] = None
    done: bool = False

    @property
    def out_time_seconds(self) -> float:
        return self.out_time_us / 1_000_000.0


class Runner:
    """Executa comandos FFmpeg com monitoramento de progresso"""

    def __init__(self):
        self.logger = get_logger("Runner")

    def run(
        self,
        cmd: list[str],
        on_progress: Callable[[Progress], None] = None,
        timeout: Optional[float] = 300,
    ) -> subprocess.CompletedProcess:
        """Executa comando FFmpeg com callback de progresso e timeout"""
        self.logger.info("Executando comando FFmpeg: %s", " ".join(map(str, cmd)))

        # Configurações específicas para Windows
        kwargs = {}
        if os.name == "nt":
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP

        try:
            if not on_progress:
                result = subprocess.run(
                    cmd, capture_output=True, text=True, timeout=timeout, **kwargs
                )
                self._check(cmd, result.returncode, result.stderr)
                return result

            return self._run_with_progress(cmd, on_progress, timeout, kwargs)

        except subprocess.TimeoutExpired as e:
            self.logger.error("Timeout após %ss: %s", timeout, " ".join(map(str, cmd)))
            raise EncodingEngineFailure(
                f"Comando FFmpeg excedeu timeout de {timeout}s", cause=e
            ) from e
        except OSError as e:
            self.logger.error("Não foi possível executar o FFmpeg: %s", e)
            raise EncodingEngineFailure(
                f"Erro na execução do FFmpeg: {e}", cause=e
            ) from e

    def _run_with_progress(self, cmd, on_progress, timeout, kwargs):
        cmd_with_progress = cmd[:1] + ["-progress", "pipe:1", "-nostats", "-loglevel", "error"] + cmd[1:]
        process = subprocess.Popen(
            cmd_with_progress,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            **kwargs,
        )

        stdout_lines = []
        start_time = time.monotonic()
        block = {}

        # stderr é lido só no final; o FFmpeg escreve pouco nele com -nostats
        for line in process.stdout:
            if timeout and (time.monotonic() - start_time) > timeout:
                self._terminate(process)
                raise subprocess.TimeoutExpired(cmd_with_progress, timeout)

            line = line.strip()
            stdout_lines.append(line)
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            block[key] = value
            if key == "progress":
                progress = self._parse_progress_block(block)
                block = {}
                if progress:
                    on_progress(progress)

        remaining = None
        if timeout:
            remaining = max(1.0, timeout - (time.monotonic() - start_time))
        try:
            stderr = process.stderr.read() if process.stderr else ""
            return_code = process.wait(timeout=remaining)
        except subprocess.TimeoutExpired:
            self._terminate(process)
            raise

        self._check(cmd, return_code, stderr)
        return subprocess.CompletedProcess(
            args=cmd,
            returncode=return_code,
            stdout="\n".join(stdout_lines),
            stderr=stderr,
        )

    def _terminate(self, process: subprocess.Popen):
        self.logger.error("Terminando processo FFmpeg")
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.logger.error("Processo não terminou graciosamente, forçando...")
            process.kill()
            process.wait()

    def _check(self, cmd, return_code: int, stderr: str):
        if return_code == 0:
            self.logger.info("Comando FFmpeg finalizado com sucesso.")
            return
        self.logger.error(
            "Comando FFmpeg retornou código %d. Stderr: %s", return_code, stderr
        )
        tail = (stderr or "").strip().splitlines()[-5:]
        raise EncodingEngineFailure(
            f"FFmpeg falhou com código {return_code}: {' | '.join(tail)}",
            stderr=stderr or "",
        )

    def _parse_progress_block(self, data: dict) -> Optional[Progress]:
        """Parseia um bloco key=value do -progress do FFmpeg"""
        raw_time = data.get("out_time_us") or data.get("out_time_ms")
        if raw_time is None:
            return None

        try:
            out_time = max(0, int(raw_time))
            speed = data.get("speed", "").rstrip("x")
            return Progress(
                out_time_us=out_time,
                speed=float(speed) if speed and speed != "N/A" else None,
                frame=int(data["frame"]) if "frame" in data else None,
                fps=float(data["fps"]) if "fps" in data else None,
                bitrate=data.get("bitrate"),
                done=data.get("progress") == "end",
            )
        except (ValueError, KeyError):
            return None
