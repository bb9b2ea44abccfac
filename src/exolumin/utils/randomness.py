"""Helpers para reprodutibilidade."""
from __future__ import annotations

from typing import Optional

import numpy as np


def build_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Retorna um gerador numpy ja configurado."""
    return np.random.default_rng(seed)


def seed_torch(seed: int = 42) -> None:
    """Fixa a seed do torch para construir modelos de forma reprodutivel."""
    import torch

    torch.manual_seed(seed)
