"""Leitura de registros KOI (CSV enviado ou formulario manual) para vetores de features."""
from __future__ import annotations

import csv
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import (
    EmptyInputError,
    EncodingError,
    MissingColumnsError,
    NoValidRowsError,
    RowError,
    RowSchemaMismatchError,
)
from ..schema import FLAG_POSITIONS, KOI_FEATURES, N_FEATURES, is_flag
from ..utils.logging import info, warn


@dataclass
class IngestResult:
    """Vetores aceitos (ordem do schema) + linhas rejeitadas."""

    vectors: List[np.ndarray]
    row_indices: List[int]
    rejected: List[RowError] = field(default_factory=list)
    has_header: bool = False

    @property
    def n_accepted(self) -> int:
        return len(self.vectors)

    @property
    def n_rejected(self) -> int:
        return len(self.rejected)

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame(np.vstack(self.vectors), columns=list(KOI_FEATURES))
        df.insert(0, "row_index", self.row_indices)
        return df


# ---------- Helpers de parsing ----------
def _split_line(line: str) -> List[str]:
    row = next(csv.reader([line]), [])
    return [tok.strip() for tok in row]


def _to_float(token: str) -> float:
    # float() aceita "1_000"; no CSV isso e erro de digitacao, nao numero
    if "_" in token:
        raise ValueError(f"separador '_' nao permitido: {token!r}")
    return float(token)


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _looks_like_header(tokens: Sequence[str]) -> bool:
    # celulas vazias nao decidem: uma linha de dados com campo em branco continua sendo dado
    return any(tok and not _is_number(tok) for tok in tokens)


def _parse_value(token: str, name: str, row_index: int) -> float:
    if token == "":
        raise RowSchemaMismatchError(row_index, f"valor vazio em {name}")
    try:
        value = _to_float(token)
    except ValueError:
        raise RowSchemaMismatchError(row_index, f"valor nao numerico em {name}: {token!r}") from None
    if not math.isfinite(value):
        raise RowSchemaMismatchError(row_index, f"valor nao finito em {name}: {token!r}")
    return value


def _check_flags(values: np.ndarray, row_index: int) -> None:
    for pos in FLAG_POSITIONS:
        if values[pos] not in (0.0, 1.0):
            name = KOI_FEATURES[pos]
            raise RowSchemaMismatchError(row_index, f"flag {name} fora de {{0,1}}: {values[pos]:g}")


def _resolve_header(tokens: Sequence[str]) -> Tuple[List[int], int]:
    """Posicoes das 17 colunas do schema dentro do header (case-insensitive)."""
    index: Dict[str, int] = {}
    for i, tok in enumerate(tokens):
        index.setdefault(tok.lower(), i)
    missing = [name for name in KOI_FEATURES if name not in index]
    if missing:
        raise MissingColumnsError(missing)
    return [index[name] for name in KOI_FEATURES], len(tokens)


def parse_row(tokens: Sequence[str], positions: Sequence[int], width: int, row_index: int) -> np.ndarray:
    """Converte uma linha em vetor float64 na ordem do schema; rejeita em vez de completar."""
    if len(tokens) != width:
        raise RowSchemaMismatchError(row_index, f"esperadas {width} colunas, encontradas {len(tokens)}")
    values = np.array(
        [_parse_value(tokens[pos], KOI_FEATURES[k], row_index) for k, pos in enumerate(positions)],
        dtype=np.float64,
    )
    _check_flags(values, row_index)
    return values


# ---------- API publica ----------
def ingest_csv_text(text: Union[str, bytes]) -> IngestResult:
    """
    Le um CSV KOI com header opcional.

    Se a primeira linha nao vazia tiver qualquer token nao numerico ela e tratada
    como header e precisa conter as 17 colunas do schema (em qualquer ordem).
    Linhas invalidas sao rejeitadas e reportadas; a leitura falha apenas se
    nenhuma linha sobreviver.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise EncodingError("UTF-8") from None
    text = text.lstrip("\ufeff")
    lines = text.splitlines()
    numbered = [(i, line) for i, line in enumerate(lines) if line.strip()]
    if not numbered:
        raise EmptyInputError()

    _, first_line = numbered[0]
    first_tokens = _split_line(first_line)
    has_header = _looks_like_header(first_tokens)
    if has_header:
        positions, width = _resolve_header(first_tokens)
        data_lines = numbered[1:]
    else:
        positions, width = list(range(N_FEATURES)), N_FEATURES
        data_lines = numbered

    vectors: List[np.ndarray] = []
    row_indices: List[int] = []
    rejected: List[RowError] = []
    for row_index, line in data_lines:
        try:
            vectors.append(parse_row(_split_line(line), positions, width, row_index))
            row_indices.append(row_index)
        except RowSchemaMismatchError as exc:
            rejected.append(RowError(exc.row_index, exc.reason))

    if not vectors:
        raise NoValidRowsError(rejected)
    if rejected:
        warn(f"{len(rejected)} linha(s) rejeitada(s); primeira: {rejected[0]}")
    info(f"CSV lido: {len(vectors)} linha(s) aceita(s), header={'sim' if has_header else 'nao'}")
    return IngestResult(vectors=vectors, row_indices=row_indices, rejected=rejected, has_header=has_header)


def ingest_csv_file(path: Path | str) -> IngestResult:
    return ingest_csv_text(Path(path).read_bytes())


def ingest_manual(record: Mapping[str, Optional[str]]) -> np.ndarray:
    """Valida o formulario manual: 17 campos presentes, flags inteiras 0/1, demais floats."""
    tokens = {name: "" if record.get(name) is None else str(record.get(name)).strip() for name in KOI_FEATURES}
    missing = [name for name, token in tokens.items() if not token]
    if missing:
        raise RowSchemaMismatchError(0, f"campos ausentes: {', '.join(missing)}")

    values: List[float] = []
    for name in KOI_FEATURES:
        token = tokens[name]
        if is_flag(name):
            try:
                if "_" in token:
                    raise ValueError(token)
                flag = int(token)
            except ValueError:
                raise RowSchemaMismatchError(0, f"flag {name} precisa ser inteiro 0 ou 1: {token!r}") from None
            if flag not in (0, 1):
                raise RowSchemaMismatchError(0, f"flag {name} fora de {{0,1}}: {flag}")
            values.append(float(flag))
        else:
            values.append(_parse_value(token, name, 0))
    return np.array(values, dtype=np.float64)


__all__ = ["IngestResult", "parse_row", "ingest_csv_text", "ingest_csv_file", "ingest_manual"]
