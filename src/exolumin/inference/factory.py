"""Escolhe o backend de inferencia a partir da configuracao do projeto."""
from __future__ import annotations

from pathlib import Path

from ..config import ProjectConfig
from ..errors import ConfigurationError
from .base import LazySessionBackend

TORCH_SUFFIXES = (".pt", ".pth", ".ts", ".jit")
ESTIMATOR_SUFFIXES = (".joblib", ".pkl")


def backend_for_model(path: Path | str) -> LazySessionBackend:
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix in TORCH_SUFFIXES:
        from .torch_backend import TorchBackend

        return TorchBackend(p)
    if suffix in ESTIMATOR_SUFFIXES:
        from .estimator_backend import EstimatorBackend

        return EstimatorBackend(p)
    raise ConfigurationError(f"Formato de modelo nao suportado: {p.name} (use {TORCH_SUFFIXES + ESTIMATOR_SUFFIXES})")


def backend_from_config(cfg: ProjectConfig) -> LazySessionBackend:
    """API remota tem prioridade; senao usa o arquivo de modelo local."""
    if cfg.api_url:
        from .http_backend import HttpBackend

        return HttpBackend(cfg.api_url, timeout=cfg.request_timeout, input_width=cfg.input_width)
    if cfg.model_path is not None:
        return backend_for_model(cfg.model_path)
    raise ConfigurationError("Nenhum backend configurado: defina EXOLUMIN_API_URL ou EXOLUMIN_MODEL.")


__all__ = ["backend_for_model", "backend_from_config"]
