"""Contrato de colunas KOI consumido pelo backend de inferencia."""
from __future__ import annotations

from typing import Dict, Tuple

# ordem fixa: faz parte do contrato com o modelo
KOI_FEATURES: Tuple[str, ...] = (
    "koi_score",
    "koi_fpflag_nt",
    "koi_fpflag_ss",
    "koi_fpflag_co",
    "koi_fpflag_ec",
    "koi_period",
    "koi_time0bk",
    "koi_impact",
    "koi_duration",
    "koi_depth",
    "koi_prad",
    "koi_teq",
    "koi_insol",
    "koi_model_snr",
    "koi_steff",
    "koi_slogg",
    "koi_srad",
)

FLAG_FEATURES: Tuple[str, ...] = (
    "koi_fpflag_nt",
    "koi_fpflag_ss",
    "koi_fpflag_co",
    "koi_fpflag_ec",
)

N_FEATURES = len(KOI_FEATURES)
FLAG_POSITIONS: Tuple[int, ...] = tuple(KOI_FEATURES.index(name) for name in FLAG_FEATURES)
FEATURE_INDEX: Dict[str, int] = {name: i for i, name in enumerate(KOI_FEATURES)}

# exemplo do formulario manual (Kepler-like, transito claro)
SAMPLE_RECORD: Dict[str, str] = {
    "koi_score": "0.87",
    "koi_fpflag_nt": "0",
    "koi_fpflag_ss": "0",
    "koi_fpflag_co": "0",
    "koi_fpflag_ec": "0",
    "koi_period": "3.5224",
    "koi_time0bk": "131.51200",
    "koi_impact": "0.146",
    "koi_duration": "2.87",
    "koi_depth": "1215.0",
    "koi_prad": "2.26",
    "koi_teq": "1244",
    "koi_insol": "121.7",
    "koi_model_snr": "35.8",
    "koi_steff": "5777",
    "koi_slogg": "4.438",
    "koi_srad": "1.0",
}


def is_flag(name: str) -> bool:
    return name in FLAG_FEATURES


__all__ = [
    "KOI_FEATURES",
    "FLAG_FEATURES",
    "N_FEATURES",
    "FLAG_POSITIONS",
    "FEATURE_INDEX",
    "SAMPLE_RECORD",
    "is_flag",
]
