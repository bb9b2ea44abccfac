"""Backend local com torch: checkpoint do MLP, arquivo TorchScript ou nn.Module ja montado."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import torch
import torch.nn as nn

from ..models.mlp import load_checkpoint
from .base import LazySessionBackend

TORCHSCRIPT_SUFFIXES = (".ts", ".jit")


def first_linear_width(module: nn.Module) -> Optional[int]:
    """Largura de entrada = in_features da primeira camada Linear encontrada."""
    for layer in module.modules():
        # modulos TorchScript carregados do disco guardam o tipo em original_name
        if isinstance(layer, nn.Linear) or getattr(layer, "original_name", "") == "Linear":
            return int(layer.in_features)
    width = getattr(module, "in_features", None)
    return int(width) if isinstance(width, int) else None


class TorchBackend(LazySessionBackend):
    name = "TorchBackend"

    def __init__(self, source: Union[Path, str, nn.Module], device: Optional[str] = None) -> None:
        super().__init__()
        self.source = source
        self.device = torch.device(device or ("cuda" if torch.cuda.is_available() else "cpu"))

    def _create_session(self) -> nn.Module:
        if isinstance(self.source, nn.Module):
            model = self.source
        else:
            path = Path(self.source)
            if not path.exists():
                raise FileNotFoundError(f"Checkpoint nao encontrado: {path}")
            if path.suffix in TORCHSCRIPT_SUFFIXES:
                model = torch.jit.load(str(path), map_location=self.device)
            else:
                model = load_checkpoint(path, map_location=self.device)
        model = model.to(self.device)
        model.eval()
        return model

    def _width_of(self, session: nn.Module) -> Optional[int]:
        return first_linear_width(session)

    def _forward(self, session: nn.Module, features: np.ndarray) -> np.ndarray:
        x = torch.from_numpy(features.astype(np.float32)).unsqueeze(0).to(self.device)
        with torch.no_grad():
            logits = session(x)
        return logits.detach().cpu().numpy().astype(np.float64).ravel()


__all__ = ["TorchBackend", "first_linear_width"]
