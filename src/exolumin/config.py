"""Configuracoes globais, caminhos padrao e selecao do backend de inferencia."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .utils.paths import ProjectPaths, default_paths


@dataclass(frozen=True)
class ProjectConfig:
    paths: ProjectPaths
    model_path: Optional[Path] = None
    api_url: Optional[str] = None
    request_timeout: float = 30.0
    input_width: Optional[int] = None
    trace_seed: int = 42


def _env_str(var_name: str) -> Optional[str]:
    value = os.environ.get(var_name, "").strip()
    return value or None


def load_config() -> ProjectConfig:
    """
    Retorna a configuracao padrao com diretorios ja criados.

    Variaveis de ambiente reconhecidas:
    - EXOLUMIN_MODEL: checkpoint torch (.pt/.pth/.ts) ou estimador joblib (.joblib/.pkl)
    - EXOLUMIN_API_URL: endpoint remoto que recebe {"features": [...]}
    - EXOLUMIN_TIMEOUT: timeout das chamadas HTTP, em segundos
    - EXOLUMIN_INPUT_WIDTH: largura de entrada declarada do endpoint remoto
    """
    paths = default_paths().ensure()
    model = _env_str("EXOLUMIN_MODEL")
    timeout = _env_str("EXOLUMIN_TIMEOUT")
    width = _env_str("EXOLUMIN_INPUT_WIDTH")
    return ProjectConfig(
        paths=paths,
        model_path=Path(model) if model else None,
        api_url=_env_str("EXOLUMIN_API_URL"),
        request_timeout=float(timeout) if timeout else 30.0,
        input_width=int(width) if width else None,
    )


__all__ = ["ProjectConfig", "load_config"]
