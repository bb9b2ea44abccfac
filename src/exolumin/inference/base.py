"""Capacidade de inferencia consumida pelo pipeline e sessao preguicosa compartilhada."""
from __future__ import annotations

import threading
from typing import Any, Optional, Protocol, runtime_checkable

import numpy as np

from ..errors import BackendError, MalformedOutputError, NotInitializedError, TransportFailureError
from ..utils.logging import info


@runtime_checkable
class InferenceBackend(Protocol):
    def initialize(self) -> None: ...

    def expected_input_width(self) -> Optional[int]: ...

    def run(self, features: np.ndarray) -> np.ndarray: ...


TRANSIENT_ERRORS = (ConnectionError, TimeoutError)


def wrap_failure(action: str, exc: Exception) -> BackendError:
    """Falha fora da taxonomia -> TransportFailureError; so erros de rede/timeout sao retentaveis."""
    return TransportFailureError(f"{action}: {exc}", retryable=isinstance(exc, TRANSIENT_ERRORS))


def as_raw_output(values: Any) -> np.ndarray:
    """Converte a saida do modelo em array float64; lixo vira MalformedOutputError."""
    try:
        out = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise MalformedOutputError(f"Saida do modelo nao numerica: {exc}") from exc
    if out.ndim == 0:
        out = out.reshape(1)
    return out


class LazySessionBackend:
    """
    Backend com sessao criada uma unica vez, sob demanda.

    `initialize()` e idempotente e protegido por lock: chamadas concorrentes
    esperam a primeira criacao em vez de abrir sessoes duplicadas.
    Subclasses implementam `_create_session`, `_width_of` e `_forward`.
    """

    name = "backend"

    def __init__(self) -> None:
        self._session: Any = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._session is not None

    def initialize(self) -> None:
        if self._session is not None:
            return
        with self._lock:
            if self._session is not None:
                return
            try:
                session = self._create_session()
            except BackendError:
                raise
            except Exception as exc:
                raise wrap_failure(f"Falha ao inicializar {self.name}", exc) from exc
            self._session = session
            info(f"{self.name} inicializado (largura de entrada={self._width_of(session)})")

    def expected_input_width(self) -> Optional[int]:
        if self._session is None:
            return None
        return self._width_of(self._session)

    def run(self, features: np.ndarray) -> np.ndarray:
        if self._session is None:
            raise NotInitializedError(f"{self.name} nao inicializado; chame initialize() antes de run().")
        x = np.asarray(features, dtype=np.float64).ravel()
        try:
            raw = self._forward(self._session, x)
        except BackendError:
            raise
        except Exception as exc:
            raise wrap_failure(f"Falha na execucao de {self.name}", exc) from exc
        return as_raw_output(raw)

    def close(self) -> None:
        with self._lock:
            session, self._session = self._session, None
        if session is not None and hasattr(session, "close"):
            session.close()

    # ---------- ganchos ----------
    def _create_session(self) -> Any:
        raise NotImplementedError

    def _width_of(self, session: Any) -> Optional[int]:
        return None

    def _forward(self, session: Any, features: np.ndarray) -> Any:
        raise NotImplementedError


__all__ = ["InferenceBackend", "LazySessionBackend", "as_raw_output", "wrap_failure"]
