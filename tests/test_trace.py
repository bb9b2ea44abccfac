from pathlib import Path

import numpy as np

from exolumin.pipeline import trace
from exolumin.pipeline.calibrate import Prediction
from exolumin.schema import FEATURE_INDEX


def _with(sample_vector, **fields):
    x = sample_vector.copy()
    for name, value in fields.items():
        x[FEATURE_INDEX[name]] = value
    return x


def test_trace_has_box_dips_at_epoch(sample_vector):
    """Periodo de 1 dia, epoca em 0.5 dia: transitos centrados em 12h e 36h."""
    x = _with(sample_vector, koi_period=1.0, koi_time0bk=0.5, koi_duration=2.0, koi_depth=5000.0)
    df = trace.make_trace(x)
    assert list(df.columns) == ["time", "brightness"]
    assert len(df) == 100

    in_transit = (np.abs(df["time"] - 12.0) <= 1.0) | (np.abs(df["time"] - 36.0) <= 1.0)
    assert in_transit.sum() == 10
    assert df.loc[in_transit, "brightness"].max() < 1.0 - 0.003
    assert np.allclose(df.loc[~in_transit, "brightness"], 1.0, atol=2e-3)


def test_trace_is_deterministic_for_a_seed(sample_vector):
    a = trace.make_trace(sample_vector, seed=7)
    b = trace.make_trace(sample_vector, seed=7)
    np.testing.assert_array_equal(a["brightness"], b["brightness"])


def test_zero_depth_means_no_dip(sample_vector):
    df = trace.make_trace(_with(sample_vector, koi_depth=0.0, koi_period=0.5))
    assert np.allclose(df["brightness"], 1.0, atol=2e-3)


def test_plot_and_presentation(tmp_path: Path, sample_vector):
    df = trace.make_trace(sample_vector)
    out = trace.plot_trace(df, tmp_path / "figs" / "lc.png", title="teste")
    assert out.exists() and out.stat().st_size > 0

    payload = trace.to_presentation(Prediction.from_probability(0.42), df)
    assert payload["confidence"] == "Low"
    assert payload["isExoplanet"] is False
    assert payload["lightCurveData"][0] == {"time": 0.0, "brightness": float(df["brightness"][0])}
