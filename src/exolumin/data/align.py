"""Ajuste do vetor de features a largura de entrada declarada pelo backend."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import AlignmentWarning, MalformedOutputError, RowSchemaMismatchError
from ..utils.logging import warn


@dataclass(frozen=True)
class AlignedFeatures:
    values: np.ndarray
    warning: Optional[AlignmentWarning] = None


def align_features(vector: np.ndarray, width: Optional[int], log: bool = True) -> AlignedFeatures:
    """
    Trunca, completa com zeros a direita ou repassa o vetor sem alteracao.

    Nenhuma normalizacao e aplicada aqui: escala e responsabilidade do modelo.
    Truncar muda o significado das posicoes, por isso vira aviso no log.
    """
    x = np.asarray(vector, dtype=np.float64).ravel()
    if not np.all(np.isfinite(x)):
        raise RowSchemaMismatchError(0, "vetor de features contem valores nao finitos")
    if width is None or width == x.size:
        return AlignedFeatures(values=x)
    if width <= 0:
        raise MalformedOutputError(f"Largura de entrada invalida declarada pelo backend: {width}")

    if width < x.size:
        note = AlignmentWarning(kind="truncated", from_width=int(x.size), to_width=int(width))
        out = x[:width].copy()
    else:
        note = AlignmentWarning(kind="padded", from_width=int(x.size), to_width=int(width))
        out = np.pad(x, (0, width - x.size), mode="constant", constant_values=0.0)
    if log:
        warn(str(note))
    return AlignedFeatures(values=out, warning=note)


__all__ = ["AlignedFeatures", "align_features"]
