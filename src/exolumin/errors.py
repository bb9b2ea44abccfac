"""Taxonomia fechada de falhas do pipeline de inferencia."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


class ExoluminError(Exception):
    """Base de todas as falhas tipadas do pacote."""


# ---------- Configuracao ----------
class ConfigurationError(ExoluminError, ValueError):
    """Combinacao de opcoes invalida (backend ausente, formato de modelo desconhecido...)."""


# ---------- Ingestao ----------
class IngestionError(ExoluminError, ValueError):
    pass


class EmptyInputError(IngestionError):
    def __init__(self, msg: str = "Arquivo CSV vazio.") -> None:
        super().__init__(msg)


class MissingColumnsError(IngestionError):
    def __init__(self, names: Sequence[str]) -> None:
        self.names: List[str] = list(names)
        super().__init__(f"Colunas obrigatorias ausentes: {', '.join(self.names)}")


@dataclass(frozen=True)
class RowError:
    """Linha rejeitada durante a leitura (indice 0-based dentro do texto)."""

    row_index: int
    reason: str

    def __str__(self) -> str:
        return f"linha {self.row_index}: {self.reason}"


class RowSchemaMismatchError(IngestionError):
    def __init__(self, row_index: int, reason: str) -> None:
        self.row_index = row_index
        self.reason = reason
        super().__init__(f"linha {row_index}: {reason}")


class NoValidRowsError(IngestionError):
    def __init__(self, row_errors: Sequence[RowError] = ()) -> None:
        self.row_errors: List[RowError] = list(row_errors)
        detail = f" ({len(self.row_errors)} linha(s) rejeitada(s); primeira: {self.row_errors[0]})" if self.row_errors else ""
        super().__init__(f"Nenhuma linha valida no CSV{detail}.")


class EncodingError(IngestionError):
    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        super().__init__(f"Arquivo nao e {encoding} valido.")


# ---------- Alinhamento (nao fatal) ----------
@dataclass(frozen=True)
class AlignmentWarning:
    kind: str  # "truncated" | "padded"
    from_width: int
    to_width: int

    def __str__(self) -> str:
        if self.kind == "truncated":
            return f"vetor truncado de {self.from_width} para {self.to_width} posicoes"
        return f"vetor completado com zeros de {self.from_width} para {self.to_width} posicoes"


# ---------- Backend ----------
class BackendError(ExoluminError, RuntimeError):
    retryable = False


class NotInitializedError(BackendError):
    def __init__(self, msg: str = "Backend de inferencia nao inicializado.") -> None:
        super().__init__(msg)


class TransportFailureError(BackendError):
    """Falha de transporte/execucao; o chamador decide se tenta de novo."""

    def __init__(self, msg: str, retryable: bool = True, status: Optional[int] = None) -> None:
        super().__init__(msg)
        self.retryable = retryable
        self.status = status


class MalformedOutputError(BackendError):
    pass


# ---------- Calibracao ----------
class CalibrationError(ExoluminError, ArithmeticError):
    pass


class NonFiniteResultError(CalibrationError):
    pass


class UnrecognizedOutputShapeError(CalibrationError):
    pass


__all__ = [
    "ExoluminError",
    "ConfigurationError",
    "IngestionError",
    "EncodingError",
    "EmptyInputError",
    "MissingColumnsError",
    "RowError",
    "RowSchemaMismatchError",
    "NoValidRowsError",
    "AlignmentWarning",
    "BackendError",
    "NotInitializedError",
    "TransportFailureError",
    "MalformedOutputError",
    "CalibrationError",
    "NonFiniteResultError",
    "UnrecognizedOutputShapeError",
]
