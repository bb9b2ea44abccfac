"""
Gerenciamento simples de caminhos do projeto.

Os caminhos podem ser sobrescritos por variaveis de ambiente:
- EXOLUMIN_ROOT
- EXOLUMIN_DATA
- EXOLUMIN_ARTIFACTS
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class ProjectPaths:
    """Colecao de caminhos canonicos usados na inferencia."""

    root: Path
    data_root: Path
    artifacts: Path
    models: Path
    reports: Path
    figures: Path

    def ensure(self) -> "ProjectPaths":
        """Garante que os diretorios principais existam."""
        ensure_dirs((self.data_root, self.artifacts, self.models, self.reports, self.figures))
        return self


def _env_path(var_name: str, default: Path) -> Path:
    return Path(os.environ.get(var_name, default))


def default_paths(root: Path | None = None) -> ProjectPaths:
    """Constroi os caminhos com base na raiz do repo (ou variavel de ambiente)."""
    repo_root = Path(_env_path("EXOLUMIN_ROOT", root or Path(__file__).resolve().parents[3])).resolve()
    data_root = _env_path("EXOLUMIN_DATA", repo_root / "data").resolve()
    artifacts = _env_path("EXOLUMIN_ARTIFACTS", repo_root / "artifacts").resolve()
    return ProjectPaths(
        root=repo_root,
        data_root=data_root,
        artifacts=artifacts,
        models=artifacts / "models",
        reports=artifacts / "reports",
        figures=artifacts / "figures",
    )


def ensure_dirs(paths: Iterable[Path]) -> None:
    """Cria diretorios informados, se necessario."""
    for p in paths:
        p.mkdir(parents=True, exist_ok=True)
