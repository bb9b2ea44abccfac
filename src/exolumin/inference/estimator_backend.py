"""Backend local para estimadores scikit-learn (objeto em memoria ou arquivo joblib)."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import joblib
import numpy as np

from ..errors import MalformedOutputError
from .base import LazySessionBackend


class EstimatorBackend(LazySessionBackend):
    """
    Usa `predict_proba` quando existe (vetor de probabilidades por classe),
    senao `decision_function` (logit) e, por ultimo, `predict`.
    """

    name = "EstimatorBackend"

    def __init__(self, source: Union[Path, str, Any]) -> None:
        super().__init__()
        self.source = source

    def _create_session(self) -> Any:
        if isinstance(self.source, (str, Path)):
            path = Path(self.source)
            if not path.exists():
                raise FileNotFoundError(f"Modelo nao encontrado: {path}")
            model = joblib.load(path)
            # pacotes salvos como {"model": ...} tambem sao aceitos
            if isinstance(model, dict) and "model" in model:
                model = model["model"]
            return model
        return self.source

    def _width_of(self, session: Any) -> Optional[int]:
        width = getattr(session, "n_features_in_", None)
        return int(width) if width is not None else None

    def _forward(self, session: Any, features: np.ndarray) -> np.ndarray:
        vec = features.reshape(1, -1)
        if hasattr(session, "predict_proba"):
            return np.asarray(session.predict_proba(vec))[0]
        if hasattr(session, "decision_function"):
            return np.atleast_1d(np.asarray(session.decision_function(vec))[0])
        if hasattr(session, "predict"):
            # rotulos textuais ("CONFIRMED") viram MalformedOutputError em as_raw_output
            return np.atleast_1d(np.asarray(session.predict(vec))[0])
        raise MalformedOutputError(f"Estimador {type(session).__name__} nao expoe predict_proba/decision_function/predict.")


__all__ = ["EstimatorBackend"]
