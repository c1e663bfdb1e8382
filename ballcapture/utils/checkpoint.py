"""
Checkpoint persistence for the direct policy search.

Checkpoints are gzip-compressed pickles of a versioned snapshot record that is
kept separate from the runtime objects. A snapshot is written to a temp file
in the destination directory and renamed over the target, so readers only
ever see a complete file. Loading validates the schema version and, when
asked, the basis function and discrete action counts before anything is
resumed.
"""

from __future__ import annotations

import gzip
import logging
import os
import pickle
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class CheckpointError(RuntimeError):
    """A checkpoint could not be written, read, or does not match expectations."""


class CheckpointVersionError(CheckpointError):
    pass


@dataclass
class DirectPolicySearchSnapshot:
    config: Dict[str, Any]
    params: Dict[str, Any]
    centers_means: np.ndarray
    centers_stds: np.ndarray
    radii_means: np.ndarray
    radii_stds: np.ndarray
    bernoulli_means: np.ndarray
    basis_centers: np.ndarray
    basis_radii: np.ndarray
    basis_actions: np.ndarray
    total_iterations: int
    total_computation_time: float
    # [optimization set, performance test set]
    average_scores: np.ndarray
    n_bad_states: np.ndarray
    initial_states: np.ndarray
    performance_states: np.ndarray
    rng_state: Dict[str, Any] = field(default_factory=dict)
    schema_version: int = SCHEMA_VERSION

    @property
    def n_basis_functions(self) -> int:
        return int(self.basis_centers.shape[0])

    @property
    def n_discrete_actions(self) -> int:
        return int(self.config["n_discrete_actions"])


def checkpoint_filename(n_basis_functions: int, n_samples: int, iteration: int) -> str:
    return f"{n_basis_functions}_{n_samples}_{iteration}.pkl.gz"


def save_snapshot(snapshot: DirectPolicySearchSnapshot, path: str | Path) -> Path:
    """Atomically write `snapshot` to `path`. Raises CheckpointError on I/O failure."""
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp_name = tmp.name
            with gzip.GzipFile(fileobj=tmp, mode="wb") as gz:
                pickle.dump(snapshot, gz, protocol=pickle.HIGHEST_PROTOCOL)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except (OSError, pickle.PicklingError) as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise CheckpointError(f"Failed to save checkpoint to '{path}'") from exc
    return path


def load_snapshot(
    path: str | Path,
    expected_basis_functions: Optional[int] = None,
    expected_discrete_actions: Optional[int] = None,
) -> DirectPolicySearchSnapshot:
    """Read and validate a snapshot. Every failure raises CheckpointError."""
    path = Path(path)
    try:
        with gzip.open(path, "rb") as gz:
            snapshot = pickle.load(gz)
    except FileNotFoundError as exc:
        raise CheckpointError(f"Checkpoint '{path}' does not exist") from exc
    except (OSError, EOFError, pickle.UnpicklingError, AttributeError, ImportError) as exc:
        raise CheckpointError(f"Checkpoint '{path}' is corrupt or unreadable") from exc

    if not isinstance(snapshot, DirectPolicySearchSnapshot):
        raise CheckpointError(
            f"Checkpoint '{path}' holds a {type(snapshot).__name__}, not a search snapshot"
        )
    version = getattr(snapshot, "schema_version", None)
    if version != SCHEMA_VERSION:
        raise CheckpointVersionError(
            f"Checkpoint '{path}' has schema version {version}, expected {SCHEMA_VERSION}"
        )
    if expected_basis_functions is not None and snapshot.n_basis_functions != expected_basis_functions:
        raise CheckpointError(
            f"Checkpoint '{path}' has {snapshot.n_basis_functions} basis functions, "
            f"expected {expected_basis_functions}"
        )
    if expected_discrete_actions is not None and snapshot.n_discrete_actions != expected_discrete_actions:
        raise CheckpointError(
            f"Checkpoint '{path}' has {snapshot.n_discrete_actions} discrete actions, "
            f"expected {expected_discrete_actions}"
        )
    logger.info("Loaded checkpoint %s (iteration %d)", path, snapshot.total_iterations)
    return snapshot
