import threading
import time

import joblib
import numpy as np
import pytest
import requests
import torch
from sklearn.linear_model import LogisticRegression
from sklearn.svm import LinearSVC

from exolumin.config import ProjectConfig
from exolumin.errors import (
    BackendError,
    ConfigurationError,
    MalformedOutputError,
    NotInitializedError,
    TransportFailureError,
)
from exolumin.inference.base import InferenceBackend, LazySessionBackend
from exolumin.inference.estimator_backend import EstimatorBackend
from exolumin.inference.factory import backend_for_model, backend_from_config
from exolumin.inference.http_backend import HttpBackend
from exolumin.inference.torch_backend import TorchBackend
from exolumin.models import mlp
from exolumin.utils.paths import default_paths
from exolumin.utils.randomness import build_rng, seed_torch


def _toy_xy(n=40, width=17):
    rng = build_rng(0)
    X = rng.normal(size=(n, width))
    y = (X[:, 0] > 0).astype(int)
    return X, y


# ---------- Sessao preguicosa ----------
class _SlowBackend(LazySessionBackend):
    name = "SlowBackend"

    def __init__(self):
        super().__init__()
        self.created = 0

    def _create_session(self):
        self.created += 1
        time.sleep(0.05)
        return object()

    def _forward(self, session, features):
        return [features.sum()]


def test_lazy_session_is_created_once_under_concurrency():
    backend = _SlowBackend()
    threads = [threading.Thread(target=backend.initialize) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    backend.initialize()
    assert backend.created == 1
    assert isinstance(backend, InferenceBackend)


def test_run_before_initialize_fails():
    backend = _SlowBackend()
    assert backend.expected_input_width() is None
    with pytest.raises(NotInitializedError):
        backend.run(np.zeros(17))


@pytest.mark.parametrize(
    "exc,retryable",
    [(RuntimeError("boom"), False), (ConnectionError("reset"), True), (TimeoutError("lento"), True)],
)
def test_unexpected_exception_in_forward_becomes_transport_failure(exc, retryable):
    class Broken(_SlowBackend):
        def _forward(self, session, features):
            raise exc

    backend = Broken()
    backend.initialize()
    with pytest.raises(TransportFailureError) as err:
        backend.run(np.zeros(17))
    assert err.value.retryable is retryable


# ---------- Torch ----------
def test_torch_backend_with_module(sample_vector):
    seed_torch(0)
    model = mlp.build_model(n_outputs=2)
    backend = TorchBackend(model, device="cpu")
    backend.initialize()
    assert backend.expected_input_width() == 17
    out = backend.run(sample_vector)
    assert out.shape == (2,)
    assert np.all(np.isfinite(out))
    np.testing.assert_array_equal(out, backend.run(sample_vector))


def test_torch_backend_from_checkpoint(tmp_path):
    seed_torch(0)
    model = mlp.build_model(in_features=20, hidden=16, n_outputs=1)
    ckpt = tmp_path / "mlp.pt"
    torch.save({"model": model.state_dict(), "in_features": 20, "hidden": 16, "n_outputs": 1}, ckpt)

    backend = TorchBackend(ckpt, device="cpu")
    backend.initialize()
    assert backend.expected_input_width() == 20
    assert backend.run(np.zeros(20)).shape == (1,)


def test_torch_backend_missing_checkpoint(tmp_path):
    backend = TorchBackend(tmp_path / "nope.pt", device="cpu")
    with pytest.raises(BackendError) as exc:
        backend.initialize()
    assert not backend.initialized
    assert exc.value.retryable is False


# ---------- scikit-learn ----------
def test_estimator_backend_predict_proba(tmp_path, sample_vector):
    X, y = _toy_xy()
    clf = LogisticRegression(max_iter=500).fit(X, y)
    path = tmp_path / "clf.joblib"
    joblib.dump(clf, path)

    backend = EstimatorBackend(path)
    backend.initialize()
    assert backend.expected_input_width() == 17
    out = backend.run(sample_vector)
    assert out.shape == (2,)
    assert out.sum() == pytest.approx(1.0)


def test_estimator_backend_decision_function_only(sample_vector):
    X, y = _toy_xy()
    svc = LinearSVC().fit(X, y)
    backend = EstimatorBackend(svc)
    backend.initialize()
    out = backend.run(sample_vector)
    assert out.shape == (1,)


def test_estimator_backend_accepts_packed_dict(tmp_path):
    X, y = _toy_xy(width=5)
    path = tmp_path / "pack.joblib"
    joblib.dump({"model": LogisticRegression().fit(X, y), "features": list("abcde")}, path)
    backend = EstimatorBackend(path)
    backend.initialize()
    assert backend.expected_input_width() == 5


# ---------- HTTP ----------
class _FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


def _patch_post(monkeypatch, response=None, exc=None):
    sent = {}

    def fake_post(self, url, json=None, timeout=None):
        sent.update(url=url, json=json, timeout=timeout)
        if exc is not None:
            raise exc
        return response

    monkeypatch.setattr(requests.Session, "post", fake_post)
    return sent


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"probability": 0.91}, [0.91]),
        ({"logits": [0.1, 2.0], "probability": 0.4}, [0.1, 2.0]),
        ({"prediction": [[0.2, 0.8]]}, [[0.2, 0.8]]),
        ([1.5], [1.5]),
    ],
)
def test_http_backend_reads_known_keys(monkeypatch, sample_vector, payload, expected):
    sent = _patch_post(monkeypatch, _FakeResponse(payload=payload))
    backend = HttpBackend("http://model.local/predict", timeout=5.0, input_width=17)
    backend.initialize()
    out = backend.run(sample_vector)
    np.testing.assert_allclose(out, np.asarray(expected, dtype=float))
    assert sent["json"] == {"features": sample_vector.tolist()}
    assert sent["timeout"] == 5.0
    assert backend.expected_input_width() == 17


@pytest.mark.parametrize("status,retryable", [(503, True), (429, True), (400, False)])
def test_http_error_status_is_transport_failure(monkeypatch, sample_vector, status, retryable):
    _patch_post(monkeypatch, _FakeResponse(status_code=status))
    backend = HttpBackend("http://model.local/predict")
    backend.initialize()
    with pytest.raises(TransportFailureError) as exc:
        backend.run(sample_vector)
    assert exc.value.status == status
    assert exc.value.retryable is retryable


def test_http_connection_error(monkeypatch, sample_vector):
    _patch_post(monkeypatch, exc=requests.ConnectionError("refused"))
    backend = HttpBackend("http://model.local/predict")
    backend.initialize()
    with pytest.raises(TransportFailureError):
        backend.run(sample_vector)


@pytest.mark.parametrize(
    "response",
    [_FakeResponse(bad_json=True), _FakeResponse(payload={"status": "ok"}), _FakeResponse(payload={"probability": "high"})],
)
def test_http_malformed_body(monkeypatch, sample_vector, response):
    _patch_post(monkeypatch, response)
    backend = HttpBackend("http://model.local/predict")
    backend.initialize()
    with pytest.raises(MalformedOutputError):
        backend.run(sample_vector)


def test_http_close_drops_session(monkeypatch):
    backend = HttpBackend("http://model.local/predict")
    backend.initialize()
    assert backend.initialized
    backend.close()
    assert not backend.initialized


# ---------- Fabrica ----------
def test_backend_for_model_by_suffix(tmp_path):
    assert isinstance(backend_for_model(tmp_path / "m.pt"), TorchBackend)
    assert isinstance(backend_for_model(tmp_path / "m.joblib"), EstimatorBackend)
    with pytest.raises(ValueError):
        backend_for_model(tmp_path / "m.onnx")


def test_backend_from_config_prefers_api(tmp_path):
    paths = default_paths(tmp_path)
    cfg = ProjectConfig(paths=paths, model_path=tmp_path / "m.pt", api_url="http://x/predict", input_width=12)
    backend = backend_from_config(cfg)
    assert isinstance(backend, HttpBackend)
    assert backend.input_width == 12
    assert isinstance(backend_from_config(ProjectConfig(paths=paths, model_path=tmp_path / "m.pt")), TorchBackend)
    with pytest.raises(ValueError):
        backend_from_config(ProjectConfig(paths=paths))


def test_factory_errors_are_configuration_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        backend_for_model(tmp_path / "m.onnx")
    with pytest.raises(ConfigurationError):
        backend_from_config(ProjectConfig(paths=default_paths(tmp_path)))


# ---------- TorchScript e falhas deterministicas ----------
def test_torchscript_file_reports_first_linear_width(tmp_path):
    seed_torch(0)
    scripted = torch.jit.script(torch.nn.Sequential(torch.nn.Linear(12, 4), torch.nn.ReLU(), torch.nn.Linear(4, 2)))
    path = tmp_path / "model.ts"
    scripted.save(str(path))

    backend = TorchBackend(path, device="cpu")
    backend.initialize()
    assert backend.expected_input_width() == 12
    assert backend.run(np.zeros(12)).shape == (2,)


class _LabelOnlyEstimator:
    n_features_in_ = 17

    def predict(self, X):
        return np.array(["CONFIRMED"] * len(X))


def test_estimator_with_text_labels_is_malformed_output(sample_vector):
    backend = EstimatorBackend(_LabelOnlyEstimator())
    backend.initialize()
    with pytest.raises(MalformedOutputError) as exc:
        backend.run(sample_vector)
    assert exc.value.retryable is False


def test_missing_estimator_file_is_not_retryable(tmp_path):
    backend = EstimatorBackend(tmp_path / "nope.joblib")
    with pytest.raises(TransportFailureError) as exc:
        backend.initialize()
    assert exc.value.retryable is False
