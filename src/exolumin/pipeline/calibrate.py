"""
Calibracao da saida bruta do modelo para uma probabilidade em [0,1].

A convencao da saida (score ja limitado, logit, par de probabilidades ou
vetor multiclasse) nunca e declarada pelo backend: ela e inferida apenas pelo
tamanho do vetor e pelas faixas dos valores. Tudo aqui e deterministico.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from ..errors import NonFiniteResultError, UnrecognizedOutputShapeError

PAIR_SUM_TOL = 1e-3
POSITIVE_INDEX = 1
HIGH_THRESHOLD = 0.8
MEDIUM_THRESHOLD = 0.5


class OutputKind(str, Enum):
    BOUNDED_SCORE = "bounded_score"
    LOGIT = "logit"
    PROBABILITY_PAIR = "probability_pair"
    LOGIT_PAIR = "logit_pair"
    MULTICLASS_LOGITS = "multiclass_logits"


class ConfidenceLabel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class Prediction:
    probability: float
    label: ConfidenceLabel
    is_positive: bool

    @classmethod
    def from_probability(cls, probability: float) -> "Prediction":
        p = float(probability)
        if not math.isfinite(p) or not 0.0 <= p <= 1.0:
            raise NonFiniteResultError(f"Probabilidade fora de [0,1]: {p}")
        return cls(probability=p, label=confidence_label(p), is_positive=p > MEDIUM_THRESHOLD)


def confidence_label(probability: float) -> ConfidenceLabel:
    if probability >= HIGH_THRESHOLD:
        return ConfidenceLabel.HIGH
    if probability >= MEDIUM_THRESHOLD:
        return ConfidenceLabel.MEDIUM
    return ConfidenceLabel.LOW


# ---------- Transformacoes numericas ----------
def logistic(v: float) -> float:
    # forma que nunca calcula exp de argumento positivo
    if v >= 0:
        return 1.0 / (1.0 + math.exp(-v))
    if v < 0:
        z = math.exp(v)
        return z / (1.0 + z)
    return math.nan


def softmax(logits: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", over="ignore"):
        z = logits - logits.max()
        e = np.exp(z)
        return e / e.sum()


def _in_unit(v: float) -> bool:
    return 0.0 <= v <= 1.0


def _as_vector(raw) -> np.ndarray:
    out = np.asarray(raw, dtype=np.float64)
    if out.size == 0:
        raise UnrecognizedOutputShapeError("Saida do modelo vazia.")
    out = np.squeeze(out)
    if out.ndim == 0:
        return out.reshape(1)
    if out.ndim > 1:
        raise UnrecognizedOutputShapeError(f"Saida com formato {out.shape}; esperado vetor 1-D (lote de 1).")
    return out


# ---------- Decisao por formato ----------
def classify_output(raw) -> OutputKind:
    x = _as_vector(raw)
    if x.size == 1:
        return OutputKind.BOUNDED_SCORE if _in_unit(float(x[0])) else OutputKind.LOGIT
    if x.size == 2:
        a, b = float(x[0]), float(x[1])
        if _in_unit(a) and _in_unit(b) and abs(a + b - 1.0) < PAIR_SUM_TOL:
            return OutputKind.PROBABILITY_PAIR
        return OutputKind.LOGIT_PAIR
    return OutputKind.MULTICLASS_LOGITS


def calibrate_with_kind(raw, positive_index: Optional[int] = POSITIVE_INDEX) -> Tuple[float, OutputKind]:
    x = _as_vector(raw)
    kind = classify_output(x)
    if kind is OutputKind.BOUNDED_SCORE:
        p = float(x[0])
    elif kind is OutputKind.LOGIT:
        p = logistic(float(x[0]))
    elif kind is OutputKind.PROBABILITY_PAIR:
        p = float(x[1])
    elif kind is OutputKind.LOGIT_PAIR:
        p = float(softmax(x)[1])
    else:
        probs = softmax(x)
        if positive_index is None:
            p = float(probs.max())
        elif 0 <= positive_index < probs.size:
            p = float(probs[positive_index])
        else:
            raise UnrecognizedOutputShapeError(
                f"Indice da classe positiva {positive_index} fora da saida com {probs.size} classes."
            )

    if not math.isfinite(p):
        raise NonFiniteResultError(f"Probabilidade nao finita ({kind.value}) a partir da saida {x.tolist()}")
    return min(1.0, max(0.0, p)), kind


def calibrate(raw, positive_index: Optional[int] = POSITIVE_INDEX) -> float:
    """Reduz a saida bruta do backend a uma probabilidade em [0,1]."""
    return calibrate_with_kind(raw, positive_index=positive_index)[0]


def make_prediction(raw, positive_index: Optional[int] = POSITIVE_INDEX) -> Prediction:
    return Prediction.from_probability(calibrate(raw, positive_index=positive_index))


__all__ = [
    "OutputKind",
    "ConfidenceLabel",
    "Prediction",
    "confidence_label",
    "logistic",
    "softmax",
    "classify_output",
    "calibrate_with_kind",
    "calibrate",
    "make_prediction",
]
