from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict

import mlflow

if TYPE_CHECKING:
    from ballcapture.search.direct_policy_search import DirectPolicySearch, IterationResult


def iteration_metrics(result: "IterationResult") -> Dict[str, float]:
    """Flatten an iteration result into scalar metrics; undefined averages are dropped."""
    metrics = {
        "best_score": result.best_score,
        "elite_mean_score": result.elite_mean_score,
        "optimization/bad_states": float(result.optimization.n_bad_states),
        "optimization/bad_state_ratio": result.optimization.bad_state_ratio,
        "test/bad_states": float(result.test.n_bad_states),
        "test/bad_state_ratio": result.test.bad_state_ratio,
        "perf/iteration_sec": result.seconds,
    }
    if not math.isnan(result.optimization.average_score):
        metrics["optimization/average_score"] = result.optimization.average_score
    if not math.isnan(result.test.average_score):
        metrics["test/average_score"] = result.test.average_score
    return metrics


class MLflowIterationLogger:
    """`DirectPolicySearch.run` callback mirroring each iteration to the active MLflow run."""

    def __init__(self, log_checkpoints: bool = True, artifact_path: str = "checkpoints"):
        self.log_checkpoints = log_checkpoints
        self.artifact_path = artifact_path

    def __call__(self, dps: "DirectPolicySearch", result: "IterationResult") -> None:
        mlflow.log_metrics(iteration_metrics(result), step=int(result.iteration))
        mlflow.log_metric(
            "perf/total_computation_min", dps.total_computation_time / 60.0, step=int(result.iteration)
        )
        if self.log_checkpoints and result.checkpoint_path is not None:
            mlflow.log_artifact(str(result.checkpoint_path), artifact_path=self.artifact_path)
