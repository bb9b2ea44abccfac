import sys
from pathlib import Path

import numpy as np
import pytest

# Adiciona src/ ao sys.path para importacao do pacote exolumin.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from exolumin.errors import NotInitializedError  # noqa: E402
from exolumin.schema import KOI_FEATURES, SAMPLE_RECORD  # noqa: E402


class FakeBackend:
    """Backend em memoria: devolve uma saida fixa e registra os vetores recebidos."""

    def __init__(self, output=(0.3, 0.7), width=None, error=None):
        self.output = output
        self.width = width
        self.error = error
        self.initialized = False
        self.calls = []

    def initialize(self):
        self.initialized = True

    def expected_input_width(self):
        return self.width

    def run(self, features):
        if not self.initialized:
            raise NotInitializedError()
        self.calls.append(np.array(features))
        if self.error is not None:
            raise self.error
        return np.asarray(self.output, dtype=float)


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def sample_record():
    return dict(SAMPLE_RECORD)


@pytest.fixture
def sample_vector():
    return np.array([float(SAMPLE_RECORD[name]) for name in KOI_FEATURES])


@pytest.fixture
def sample_row():
    return ",".join(SAMPLE_RECORD[name] for name in KOI_FEATURES)
