"""MLP simples para classificar candidatos KOI a partir das 17 features tabulares."""
from __future__ import annotations

import torch
import torch.nn as nn

from ..schema import N_FEATURES


class DenseBlock(nn.Module):
    def __init__(self, in_features: int, out_features: int, dropout: float = 0.1):
        super().__init__()
        self.net = nn.Sequential(
            nn.Linear(in_features, out_features),
            nn.BatchNorm1d(out_features),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout),
        )

    def forward(self, x):  # type: ignore[override]
        return self.net(x)


class KOIClassifierMLP(nn.Module):
    """Saida com `n_outputs` logits: 1 (BCE) ou 2 (softmax FP/planeta)."""

    def __init__(self, in_features: int = N_FEATURES, hidden: int = 64, n_outputs: int = 1):
        super().__init__()
        self.in_features = in_features
        self.features = nn.Sequential(
            DenseBlock(in_features, hidden, dropout=0.2),
            DenseBlock(hidden, hidden // 2, dropout=0.1),
        )
        self.classifier = nn.Linear(hidden // 2, n_outputs)

    def forward(self, x):  # type: ignore[override]
        x = self.features(x)
        return self.classifier(x)


def build_model(in_features: int = N_FEATURES, hidden: int = 64, n_outputs: int = 1) -> KOIClassifierMLP:
    return KOIClassifierMLP(in_features=in_features, hidden=hidden, n_outputs=n_outputs)


def load_checkpoint(path, map_location="cpu") -> KOIClassifierMLP:
    """Carrega checkpoint no formato {"model": state_dict, "in_features", "hidden", "n_outputs"}."""
    ckpt = torch.load(path, map_location=map_location)
    model = build_model(
        in_features=int(ckpt.get("in_features", N_FEATURES)),
        hidden=int(ckpt.get("hidden", 64)),
        n_outputs=int(ckpt.get("n_outputs", 1)),
    )
    model.load_state_dict(ckpt["model"])
    return model


__all__ = ["KOIClassifierMLP", "build_model", "load_checkpoint"]
