"""Backend remoto: POST {"features": [...]} para um endpoint de predicao."""
from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import requests

from ..errors import MalformedOutputError, TransportFailureError
from .base import LazySessionBackend

# ordem de preferencia das chaves na resposta JSON
RESPONSE_KEYS = ("probabilities", "logits", "output", "probability", "prediction")


def extract_output(payload: Any) -> Any:
    """Pega a primeira chave conhecida da resposta; sem valor padrao inventado."""
    if isinstance(payload, (list, int, float)) and not isinstance(payload, bool):
        return payload
    if not isinstance(payload, dict):
        raise MalformedOutputError(f"Resposta JSON inesperada: {type(payload).__name__}")
    for key in RESPONSE_KEYS:
        if key in payload and payload[key] is not None:
            return payload[key]
    raise MalformedOutputError(f"Resposta sem nenhuma das chaves {list(RESPONSE_KEYS)}: {sorted(payload)}")


class HttpBackend(LazySessionBackend):
    name = "HttpBackend"

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        input_width: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__()
        self.url = url
        self.timeout = timeout
        self.input_width = input_width
        self.headers = {"Content-Type": "application/json", **(headers or {})}

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(self.headers)
        return session

    def _width_of(self, session: requests.Session) -> Optional[int]:
        return self.input_width

    def _forward(self, session: requests.Session, features: np.ndarray) -> Any:
        try:
            r = session.post(self.url, json={"features": features.tolist()}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportFailureError(f"Falha ao conectar no modelo remoto ({self.url}): {exc}") from exc
        if not r.ok:
            retryable = r.status_code >= 500 or r.status_code == 429
            raise TransportFailureError(
                f"Erro da API de predicao: HTTP {r.status_code}", retryable=retryable, status=r.status_code
            )
        try:
            payload = r.json()
        except ValueError as exc:
            raise MalformedOutputError(f"Resposta nao e JSON valido: {exc}") from exc
        return extract_output(payload)


__all__ = ["HttpBackend", "extract_output", "RESPONSE_KEYS"]
