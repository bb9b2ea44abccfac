"""Pipeline de predicao: ingestao -> alinhamento -> backend -> calibracao."""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from ..config import ProjectConfig, load_config
from ..data.align import align_features
from ..data.ingest import IngestResult, ingest_csv_file, ingest_csv_text, ingest_manual
from ..errors import AlignmentWarning, ConfigurationError, ExoluminError, RowError
from ..inference.base import InferenceBackend
from ..inference.factory import backend_from_config
from ..schema import SAMPLE_RECORD
from ..utils.logging import error, info, warn
from ..utils.paths import ensure_dirs
from .calibrate import POSITIVE_INDEX, OutputKind, Prediction, calibrate_with_kind
from .trace import make_trace, plot_trace, to_presentation


@dataclass(frozen=True)
class ScoredVector:
    prediction: Prediction
    kind: OutputKind
    alignment: Optional[AlignmentWarning] = None


@dataclass
class BatchPrediction:
    frame: pd.DataFrame
    rejected: List[RowError] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        proba = self.frame["proba_pos"]
        return {
            "rows": int(len(self.frame)),
            "rejected": len(self.rejected),
            "positives": int(self.frame["is_positive"].sum()),
            "mean_proba": float(proba.mean()) if len(proba) else float("nan"),
            "rejected_rows": [{"row_index": e.row_index, "reason": e.reason} for e in self.rejected],
        }


class ExoplanetPipeline:
    """
    Encadeia as quatro etapas para um backend recebido pronto (nunca criado aqui).

    Erros de ingestao acontecem antes de qualquer chamada ao backend; erros de
    backend e de calibracao sobem para o chamador sem valor substituto.
    """

    def __init__(self, backend: InferenceBackend, positive_index: Optional[int] = POSITIVE_INDEX) -> None:
        self.backend = backend
        self.positive_index = positive_index

    def score(self, vector: np.ndarray, log_alignment: bool = True) -> ScoredVector:
        self.backend.initialize()
        aligned = align_features(vector, self.backend.expected_input_width(), log=log_alignment)
        raw = self.backend.run(aligned.values)
        probability, kind = calibrate_with_kind(raw, positive_index=self.positive_index)
        return ScoredVector(Prediction.from_probability(probability), kind, aligned.warning)

    def predict_vector(self, vector: np.ndarray) -> Prediction:
        return self.score(vector).prediction

    def predict_manual(self, record: Mapping[str, Optional[str]]) -> Prediction:
        return self.predict_vector(ingest_manual(record))

    def _predict_batch(self, ingested: IngestResult, progress: bool = False) -> BatchPrediction:
        df = ingested.to_frame()
        probas, labels, positives, kinds, alignments = [], [], [], [], []
        notes: List[AlignmentWarning] = []
        for vec in tqdm(ingested.vectors, desc="Predict", leave=False, disable=not progress):
            # aviso de alinhamento sai uma vez por lote, nao por linha
            scored = self.score(vec, log_alignment=False)
            probas.append(scored.prediction.probability)
            labels.append(scored.prediction.label.value)
            positives.append(scored.prediction.is_positive)
            kinds.append(scored.kind.value)
            alignments.append(scored.alignment.kind if scored.alignment else "")
            if scored.alignment is not None:
                notes.append(scored.alignment)
        if notes:
            warn(f"{notes[0]} ({len(notes)} linha(s))")
        df["proba_pos"] = probas
        df["confidence"] = labels
        df["is_positive"] = positives
        df["output_kind"] = kinds
        df["alignment"] = alignments
        return BatchPrediction(frame=df, rejected=list(ingested.rejected))

    def predict_csv_text(self, text: str | bytes, progress: bool = False) -> BatchPrediction:
        return self._predict_batch(ingest_csv_text(text), progress=progress)

    def predict_csv_file(self, path: Path | str, progress: bool = False) -> BatchPrediction:
        return self._predict_batch(ingest_csv_file(path), progress=progress)


def write_predictions(batch: BatchPrediction, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    batch.frame.to_csv(out_path, index=False)
    summary = batch.summary()
    summary["out"] = str(out_path)
    with open(out_path.with_suffix(".summary.json"), "w") as f:
        json.dump(summary, f, indent=2)
    info(json.dumps({k: v for k, v in summary.items() if k != "rejected_rows"}))
    return out_path


@dataclass
class PredictConfig:
    csv_path: Optional[Path] = None
    manual: Optional[Dict[str, str]] = None
    out_path: Path = Path("preds.csv")
    figure_dir: Optional[Path] = None
    progress: bool = False


def run_predict(
    cfg: PredictConfig,
    backend: Optional[InferenceBackend] = None,
    project: ProjectConfig | None = None,
) -> Dict[str, Any]:
    """API funcional: CSV em lote ou registro manual unico (com curva ilustrativa)."""
    if (cfg.csv_path is None) == (cfg.manual is None):
        raise ConfigurationError("Informe exatamente uma entrada: CSV ou registro manual.")
    project = project or load_config()
    backend = backend or backend_from_config(project)
    pipeline = ExoplanetPipeline(backend)

    if cfg.csv_path is not None:
        batch = pipeline.predict_csv_file(cfg.csv_path, progress=cfg.progress)
        out = write_predictions(batch, cfg.out_path)
        return {"summary": batch.summary(), "preds_path": str(out)}

    vector = ingest_manual(cfg.manual or {})
    prediction = pipeline.predict_vector(vector)
    trace = make_trace(vector, seed=project.trace_seed)
    result: Dict[str, Any] = to_presentation(prediction, trace)
    if cfg.figure_dir is not None:
        ensure_dirs([cfg.figure_dir])
        fig_path = plot_trace(
            trace,
            cfg.figure_dir / "lightcurve.png",
            title=f"P(exoplaneta) = {prediction.probability:.3f} ({prediction.label.value})",
        )
        result["figure"] = str(fig_path)
    info(f"Probabilidade={prediction.probability:.4f} confianca={prediction.label.value} positivo={prediction.is_positive}")
    return result


def _parse_manual(pairs: List[str]) -> Dict[str, str]:
    record: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise SystemExit(f"Campo manual invalido (use nome=valor): {pair!r}")
        key, value = pair.split("=", 1)
        record[key.strip()] = value.strip()
    return record


def cli(args=None) -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Probabilidade calibrada de exoplaneta para candidatos KOI.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--csv", default="", help="CSV com as 17 colunas KOI (header opcional)")
    src.add_argument("--manual", nargs="+", metavar="NOME=VALOR", help="Registro unico, ex.: koi_score=0.87 ...")
    src.add_argument("--sample", action="store_true", help="Usa o registro de exemplo do formulario")
    parser.add_argument("--model", default="", help="Checkpoint torch ou estimador joblib (sobrescreve EXOLUMIN_MODEL)")
    parser.add_argument("--api-url", default="", help="Endpoint remoto (sobrescreve EXOLUMIN_API_URL)")
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--out", default="", help="CSV de saida (default=artifacts/reports/preds.csv)")
    parser.add_argument("--figure-dir", default="", help="Salva a curva ilustrativa (modo manual)")
    parser.add_argument("--progress", action="store_true")
    ns = parser.parse_args(args=args)

    project = load_config()
    overrides: Dict[str, Any] = {}
    if ns.model:
        overrides["model_path"] = Path(ns.model)
    if ns.api_url:
        overrides["api_url"] = ns.api_url
    if ns.timeout is not None:
        overrides["request_timeout"] = ns.timeout
    if overrides:
        project = replace(project, **overrides)

    manual = dict(SAMPLE_RECORD) if ns.sample else (_parse_manual(ns.manual) if ns.manual else None)
    cfg = PredictConfig(
        csv_path=Path(ns.csv) if ns.csv else None,
        manual=manual,
        out_path=Path(ns.out) if ns.out else project.paths.reports / "preds.csv",
        figure_dir=Path(ns.figure_dir) if ns.figure_dir else None,
        progress=ns.progress,
    )
    result = run_predict(cfg, project=project)
    if manual is not None:
        print(json.dumps({k: v for k, v in result.items() if k != "lightCurveData"}, indent=2))


def main(args=None) -> int:
    """Ponto de entrada do console: erros conhecidos viram mensagem e codigo 1."""
    try:
        cli(args)
    except ExoluminError as exc:
        retry = " (tente novamente)" if getattr(exc, "retryable", False) else ""
        error(f"{type(exc).__name__}: {exc}{retry}")
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as exc:
        print(f"[ERRO] {exc}", file=sys.stderr)
        sys.exit(1)
