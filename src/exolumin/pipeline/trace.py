"""Curva de luz ilustrativa para revisao humana (nao entra no calculo da probabilidade)."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from ..schema import FEATURE_INDEX  # noqa: E402
from ..utils.randomness import build_rng  # noqa: E402
from .calibrate import Prediction  # noqa: E402

VARIABILITY_AMPLITUDE = 5e-4
NOISE_SIGMA = 2e-4


def make_trace(
    features: np.ndarray,
    n_points: int = 100,
    step_hours: float = 0.5,
    seed: Optional[int] = 42,
) -> pd.DataFrame:
    """
    Gera (time, brightness) com baseline quase plana, ruido com seed e transitos
    em caixa de profundidade koi_depth (ppm) e largura koi_duration (h) a cada
    koi_period dias, com fase dada por koi_time0bk.
    """
    x = np.asarray(features, dtype=np.float64).ravel()
    period_h = x[FEATURE_INDEX["koi_period"]] * 24.0
    duration_h = max(0.0, x[FEATURE_INDEX["koi_duration"]])
    depth = max(0.0, x[FEATURE_INDEX["koi_depth"]]) * 1e-6
    epoch_h = x[FEATURE_INDEX["koi_time0bk"]] * 24.0

    rng = build_rng(seed)
    time = np.arange(n_points, dtype=np.float64) * step_hours
    brightness = 1.0 + VARIABILITY_AMPLITUDE * np.sin(0.3 * np.arange(n_points))
    brightness += rng.normal(0.0, NOISE_SIGMA, size=n_points)

    if period_h > 0 and duration_h > 0 and depth > 0:
        phase = np.mod(time - epoch_h + period_h / 2.0, period_h) - period_h / 2.0
        in_transit = np.abs(phase) <= duration_h / 2.0
        brightness[in_transit] -= depth

    return pd.DataFrame({"time": time, "brightness": brightness})


def plot_trace(trace: pd.DataFrame, out_path: Path, title: str = "") -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(8, 3.5))
    ax.plot(trace["time"], trace["brightness"], color="tab:blue", linewidth=1.5)
    ax.set_xlabel("Tempo (horas)")
    ax.set_ylabel("Brilho relativo")
    if title:
        ax.set_title(title)
    ax.grid(alpha=0.3, linestyle="--")
    plt.tight_layout()
    fig.savefig(out_path, dpi=120)
    plt.close(fig)
    return out_path


def to_presentation(prediction: Prediction, trace: pd.DataFrame) -> Dict[str, Any]:
    """Formato consumido pela tela de resultados."""
    return {
        "probability": prediction.probability,
        "isExoplanet": prediction.is_positive,
        "confidence": prediction.label.value,
        "lightCurveData": [
            {"time": float(t), "brightness": float(b)} for t, b in zip(trace["time"], trace["brightness"])
        ],
    }


__all__ = ["make_trace", "plot_trace", "to_presentation"]
