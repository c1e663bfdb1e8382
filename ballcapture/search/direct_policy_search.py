# direct_policy_search.py
"""
Direct policy search for the ball capture problem.

The policy is a bank of Gaussian radial basis functions, each voting for one
discrete action. Their centers, radii and action assignments are optimized
with the cross-entropy method: sample a population of parameter sets, score
each by its mean discounted return over a fixed set of initial states, keep
the elite fraction and refit the sampling distribution on it.

Reference: L. Busoniu, D. Ernst, R. Babuska and B. De Schutter,
"Policy search with cross-entropy optimization of basis functions".
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ballcapture.envs.ball_capture_mdp import BallCaptureMDP
from ballcapture.envs.core.actions import Action
from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.state import (
    STATE_DIMENSIONS,
    State,
    optimization_states,
    performance_test_states,
)
from ballcapture.policies.radial_basis import RadialGaussian
from ballcapture.policies.rbf_policy import RBFPolicy
from ballcapture.search.distribution import (
    DEFAULT_MAX_SAMPLING_RETRIES,
    Population,
    SamplingDistribution,
)
from ballcapture.search.scoring import (
    mean_rollout_return,
    score_population,
    score_population_parallel,
)
from ballcapture.utils.checkpoint import (
    CheckpointError,
    DirectPolicySearchSnapshot,
    checkpoint_filename,
    load_snapshot,
    save_snapshot,
)
from ballcapture.utils.stats import bits_to_int_array, make_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceReport:
    """Average return over the non-negative states of a state set.

    States whose rollout return is negative are counted as bad and left out
    of the average. When every state is bad the average is NaN.
    """

    average_score: float
    n_bad_states: int
    n_states: int

    @property
    def bad_state_ratio(self) -> float:
        return self.n_bad_states / self.n_states if self.n_states else 0.0

    @property
    def all_bad(self) -> bool:
        return self.n_states > 0 and self.n_bad_states == self.n_states


@dataclass(frozen=True)
class IterationResult:
    iteration: int
    best_score: float
    elite_mean_score: float
    n_elites: int
    optimization: PerformanceReport
    test: PerformanceReport
    seconds: float
    checkpoint_path: Optional[Path] = None


def n_elite_samples(elite_fraction: float, n_samples: int) -> int:
    # rounding first keeps float noise (0.07 * 100 == 7.000000000000001) out of ceil
    return int(math.ceil(round(elite_fraction * n_samples, 9)))


def select_elites(scores: Sequence[float], n_elites: int) -> List[int]:
    """
    Indices of the `n_elites` best samples.

    Samples are grouped in buckets by score. Buckets are visited from the
    highest score down and each one is drained like a stack (last inserted
    first) before moving to the next, so the order is fully deterministic.
    """
    if not 0 < n_elites <= len(scores):
        raise ValueError(f"Cannot select {n_elites} elites out of {len(scores)} samples")

    buckets: Dict[float, List[int]] = {}
    for idx, score in enumerate(scores):
        buckets.setdefault(float(score), []).append(idx)

    elites: List[int] = []
    for score in sorted(buckets, reverse=True):
        bucket = buckets[score]
        while bucket and len(elites) < n_elites:
            elites.append(bucket.pop())
        if len(elites) == n_elites:
            break
    return elites


def _states_to_array(states: Sequence[State]) -> np.ndarray:
    out = np.empty((len(states), STATE_DIMENSIONS + 1), dtype=np.float64)
    for i, s in enumerate(states):
        out[i, :STATE_DIMENSIONS] = s.as_array()
        out[i, STATE_DIMENSIONS] = float(s.terminal)
    return out


def _states_from_array(values: np.ndarray) -> List[State]:
    return [State.from_array(row[:STATE_DIMENSIONS], terminal=bool(row[STATE_DIMENSIONS])) for row in values]


class DirectPolicySearch:
    """Cross-entropy optimizer of an `RBFPolicy`; also usable as the policy itself."""

    def __init__(
        self,
        n_basis_functions: int,
        n_samples: int,
        elite_fraction: float = 0.05,
        n_iterations: int = 50,
        optimization_horizon: int = 30,
        performance_horizon: int = 100,
        params: SoccerParams = DEFAULT_PARAMS,
        seed: Optional[int] = None,
        initial_states: Optional[Sequence[State]] = None,
        performance_states: Optional[Sequence[State]] = None,
        n_workers: int = 1,
        max_sampling_retries: int = DEFAULT_MAX_SAMPLING_RETRIES,
        checkpoint_dir: Optional[str | Path] = None,
        progress: bool = True,
    ):
        if n_basis_functions < 1:
            raise ValueError(f"n_basis_functions must be positive, got {n_basis_functions}")
        if n_samples < 1:
            raise ValueError(f"n_samples must be positive, got {n_samples}")
        if not 0.0 < elite_fraction <= 1.0:
            raise ValueError(f"elite_fraction must be in (0, 1], got {elite_fraction}")
        if optimization_horizon < 1 or performance_horizon < 1:
            raise ValueError("Trajectory horizons must be at least one step")

        self.params = params
        self.mdp = BallCaptureMDP(params)
        self.n_basis_functions = int(n_basis_functions)
        self.n_samples = int(n_samples)
        self.elite_fraction = float(elite_fraction)
        self.n_iterations = int(n_iterations)
        self.optimization_horizon = int(optimization_horizon)
        self.performance_horizon = int(performance_horizon)
        self.n_workers = max(1, int(n_workers))
        self.max_sampling_retries = int(max_sampling_retries)
        self.checkpoint_dir = Path(checkpoint_dir) if checkpoint_dir is not None else None
        self.progress = progress
        self.rng = make_rng(seed)

        self.n_discrete_actions = params.n_discrete_actions
        self.n_bits = params.n_selector_bits

        self.initial_states = list(initial_states) if initial_states is not None else optimization_states()
        self.performance_states = (
            list(performance_states) if performance_states is not None else performance_test_states()
        )
        if not self.initial_states or not self.performance_states:
            raise ValueError("Both evaluation state sets must be non-empty")

        self.distribution = SamplingDistribution.initial(
            self.n_basis_functions, self.n_bits, params, self.rng
        )
        self.basis_functions = [
            RadialGaussian(
                self.n_discrete_actions - 1 - (i % self.n_discrete_actions),
                centers=self.distribution.centers_means[i],
                radii=self.distribution.radii_means[i],
            )
            for i in range(self.n_basis_functions)
        ]
        self.policy = RBFPolicy(self.basis_functions, params)

        self.total_iterations = 0
        self.total_computation_time = 0.0
        self.optimization_performance = PerformanceReport(0.0, 0, len(self.initial_states))
        self.test_performance = PerformanceReport(0.0, 0, len(self.performance_states))

    # ------------------------------------------------------------------ policy

    def choose_action(self, state: State) -> Action:
        return self.policy.choose_action(state)

    # ---------------------------------------------------------------- one round

    @property
    def n_elite_samples(self) -> int:
        return n_elite_samples(self.elite_fraction, self.n_samples)

    def sample_population(self) -> Population:
        return self.distribution.sample(
            self.rng,
            self.n_samples,
            self.n_discrete_actions,
            self.params,
            self.max_sampling_retries,
        )

    def score_samples(self, population: Population) -> np.ndarray:
        if self.n_workers > 1:
            return score_population_parallel(
                self.params,
                population,
                self.initial_states,
                self.optimization_horizon,
                self.n_workers,
                progress=self.progress,
            )
        return score_population(
            self.mdp,
            self.policy,
            population,
            self.initial_states,
            self.optimization_horizon,
            progress=self.progress,
        )

    def most_likely_actions(self, fallback: np.ndarray) -> np.ndarray:
        """Decode each selector's most likely bits; out-of-menu codes use `fallback`."""
        actions = bits_to_int_array(self.distribution.bernoulli_means > 0.5)
        return np.where(actions < self.n_discrete_actions, actions, fallback)

    def apply_distribution_means(self, fallback_actions: Optional[np.ndarray] = None) -> None:
        """Load the distribution means into the live basis functions."""
        if fallback_actions is None:
            fallback_actions = np.array([bf.action_id for bf in self.basis_functions])
        self.policy.load_parameters(
            self.distribution.centers_means,
            self.distribution.radii_means,
            self.most_likely_actions(fallback_actions),
        )

    def compute_performance(self, states: Sequence[State]) -> PerformanceReport:
        n_bad = 0
        total = 0.0
        for s in states:
            score = self.mdp.rollout(s, self, self.performance_horizon)
            if score < 0.0:
                n_bad += 1
            else:
                total += score
        n_good = len(states) - n_bad
        average = total / n_good if n_good else float("nan")
        return PerformanceReport(average, n_bad, len(states))

    def run_iteration(self) -> IterationResult:
        start = time.perf_counter()
        iteration = self.total_iterations + 1
        logger.info("Iteration %d starting", iteration)

        population = self.sample_population()
        scores = self.score_samples(population)
        elites = select_elites(scores, self.n_elite_samples)
        elite_scores = scores[elites]

        self.distribution = self.distribution.refit(population.subset(elites))
        self.apply_distribution_means(fallback_actions=population.actions[elites[0]])

        self.optimization_performance = self.compute_performance(self.initial_states)
        self.test_performance = self.compute_performance(self.performance_states)
        for label, report in (
            ("optimization", self.optimization_performance),
            ("performance test", self.test_performance),
        ):
            if report.all_bad:
                logger.warning(
                    "Every %s state scored negative at iteration %d; average is undefined",
                    label,
                    iteration,
                )

        self.total_iterations = iteration
        seconds = time.perf_counter() - start
        self.total_computation_time += seconds

        checkpoint_path = self.save_checkpoint() if self.checkpoint_dir is not None else None

        result = IterationResult(
            iteration=iteration,
            best_score=float(elite_scores[0]),
            elite_mean_score=float(np.mean(elite_scores)),
            n_elites=len(elites),
            optimization=self.optimization_performance,
            test=self.test_performance,
            seconds=seconds,
            checkpoint_path=checkpoint_path,
        )
        logger.info(
            "Iteration %d done in %.1fs: best=%.3f elite_mean=%.3f "
            "performance=%.3f ; %.3f bad_states=%d ; %d",
            iteration,
            seconds,
            result.best_score,
            result.elite_mean_score,
            self.optimization_performance.average_score,
            self.test_performance.average_score,
            self.optimization_performance.n_bad_states,
            self.test_performance.n_bad_states,
        )
        return result

    def run(
        self,
        n_iterations: Optional[int] = None,
        on_iteration: Optional[Callable[["DirectPolicySearch", IterationResult], None]] = None,
    ) -> List[IterationResult]:
        """Run `n_iterations` rounds, or whatever is left of the iteration budget."""
        if n_iterations is None:
            n_iterations = max(0, self.n_iterations - self.total_iterations)
        logger.info("Starting direct policy search\n%s", self.describe())
        results = []
        for _ in range(n_iterations):
            result = self.run_iteration()
            results.append(result)
            if on_iteration is not None:
                on_iteration(self, result)
        return results

    # -------------------------------------------------------------- persistence

    def config(self) -> Dict[str, object]:
        return {
            "n_basis_functions": self.n_basis_functions,
            "n_samples": self.n_samples,
            "elite_fraction": self.elite_fraction,
            "n_iterations": self.n_iterations,
            "optimization_horizon": self.optimization_horizon,
            "performance_horizon": self.performance_horizon,
            "max_sampling_retries": self.max_sampling_retries,
            "n_discrete_actions": self.n_discrete_actions,
            "n_bits": self.n_bits,
        }

    def to_snapshot(self) -> DirectPolicySearchSnapshot:
        d = self.distribution
        return DirectPolicySearchSnapshot(
            config=self.config(),
            params=asdict(self.params),
            centers_means=d.centers_means.copy(),
            centers_stds=d.centers_stds.copy(),
            radii_means=d.radii_means.copy(),
            radii_stds=d.radii_stds.copy(),
            bernoulli_means=d.bernoulli_means.copy(),
            basis_centers=self.policy.centers.copy(),
            basis_radii=self.policy.radii.copy(),
            basis_actions=self.policy.actions.copy(),
            total_iterations=self.total_iterations,
            total_computation_time=self.total_computation_time,
            average_scores=np.array(
                [self.optimization_performance.average_score, self.test_performance.average_score]
            ),
            n_bad_states=np.array(
                [self.optimization_performance.n_bad_states, self.test_performance.n_bad_states]
            ),
            initial_states=_states_to_array(self.initial_states),
            performance_states=_states_to_array(self.performance_states),
            rng_state=self.rng.bit_generator.state,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: DirectPolicySearchSnapshot,
        n_workers: int = 1,
        checkpoint_dir: Optional[str | Path] = None,
        progress: bool = True,
    ) -> "DirectPolicySearch":
        config = snapshot.config
        try:
            params = SoccerParams(**snapshot.params)
            dps = cls(
                n_basis_functions=int(config["n_basis_functions"]),
                n_samples=int(config["n_samples"]),
                elite_fraction=float(config["elite_fraction"]),
                n_iterations=int(config["n_iterations"]),
                optimization_horizon=int(config["optimization_horizon"]),
                performance_horizon=int(config["performance_horizon"]),
                params=params,
                initial_states=_states_from_array(snapshot.initial_states),
                performance_states=_states_from_array(snapshot.performance_states),
                n_workers=n_workers,
                max_sampling_retries=int(config["max_sampling_retries"]),
                checkpoint_dir=checkpoint_dir,
                progress=progress,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointError("Snapshot configuration is incomplete or invalid") from exc

        basis_shape = (dps.n_basis_functions, STATE_DIMENSIONS)
        expected_shapes = {
            "centers_means": basis_shape,
            "centers_stds": basis_shape,
            "radii_means": basis_shape,
            "radii_stds": basis_shape,
            "bernoulli_means": (dps.n_basis_functions, dps.n_bits),
            "basis_centers": basis_shape,
            "basis_radii": basis_shape,
            "basis_actions": (dps.n_basis_functions,),
            "average_scores": (2,),
            "n_bad_states": (2,),
        }
        for name, shape in expected_shapes.items():
            actual = np.shape(getattr(snapshot, name))
            if actual != shape:
                raise CheckpointError(f"Snapshot field '{name}' has shape {actual}, expected {shape}")
        if snapshot.n_discrete_actions != dps.n_discrete_actions:
            raise CheckpointError(
                f"Snapshot was taken with {snapshot.n_discrete_actions} discrete actions, "
                f"its params describe {dps.n_discrete_actions}"
            )

        dps.distribution = SamplingDistribution(
            centers_means=snapshot.centers_means.copy(),
            centers_stds=snapshot.centers_stds.copy(),
            radii_means=snapshot.radii_means.copy(),
            radii_stds=snapshot.radii_stds.copy(),
            bernoulli_means=snapshot.bernoulli_means.copy(),
        )
        try:
            dps.policy.load_parameters(snapshot.basis_centers, snapshot.basis_radii, snapshot.basis_actions)
        except ValueError as exc:
            raise CheckpointError("Snapshot basis function parameters are invalid") from exc
        dps.total_iterations = int(snapshot.total_iterations)
        dps.total_computation_time = float(snapshot.total_computation_time)
        dps.optimization_performance = PerformanceReport(
            float(snapshot.average_scores[0]), int(snapshot.n_bad_states[0]), len(dps.initial_states)
        )
        dps.test_performance = PerformanceReport(
            float(snapshot.average_scores[1]), int(snapshot.n_bad_states[1]), len(dps.performance_states)
        )
        if snapshot.rng_state:
            dps.rng.bit_generator.state = snapshot.rng_state
        return dps

    def checkpoint_path(self, directory: Optional[str | Path] = None) -> Path:
        directory = Path(directory) if directory is not None else (self.checkpoint_dir or Path("."))
        return directory / checkpoint_filename(self.n_basis_functions, self.n_samples, self.total_iterations)

    def save(self, path: str | Path) -> Path:
        """Write a checkpoint; raises CheckpointError on failure."""
        return save_snapshot(self.to_snapshot(), path)

    def save_checkpoint(self) -> Optional[Path]:
        """Write the per-iteration checkpoint. Failures are logged and training goes on."""
        path = self.checkpoint_path()
        try:
            saved = self.save(path)
        except CheckpointError:
            logger.exception("Checkpoint write failed; continuing in memory")
            return None
        logger.info("Checkpoint saved to %s", saved)
        return saved

    @classmethod
    def load(
        cls,
        path: str | Path,
        expected_basis_functions: Optional[int] = None,
        expected_discrete_actions: Optional[int] = None,
        **kwargs,
    ) -> "DirectPolicySearch":
        """Resume from a checkpoint. Missing, corrupt or mismatched files raise CheckpointError."""
        snapshot = load_snapshot(path, expected_basis_functions, expected_discrete_actions)
        dps = cls.from_snapshot(snapshot, **kwargs)
        logger.info("Resumed direct policy search\n%s", dps.describe())
        return dps

    # ---------------------------------------------------------------- reporting

    def describe(self) -> str:
        lines = [
            f"Nb of samples: {self.n_samples}",
            f"Nb of basis functions: {self.n_basis_functions}",
            f"Nb of discrete actions: {self.n_discrete_actions}",
            f"Nb of initial states: {len(self.initial_states)}",
            f"Nb of performance test states: {len(self.performance_states)}",
            "Performance scores: "
            f"{self.optimization_performance.average_score:.3f} ; {self.test_performance.average_score:.3f}",
            "Nb of bad states: "
            f"{self.optimization_performance.n_bad_states} ; {self.test_performance.n_bad_states}",
            f"Total number of iterations completed so far: {self.total_iterations}",
            f"Total computation time so far (min): {self.total_computation_time / 60.0:.2f}",
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.describe()

    def evaluate(self, states: Optional[Sequence[State]] = None, horizon: Optional[int] = None) -> float:
        """Mean discounted return of the live policy over `states` (optimization set by default)."""
        states = self.initial_states if states is None else states
        horizon = self.optimization_horizon if horizon is None else horizon
        return mean_rollout_return(self.mdp, self, states, horizon)
