from __future__ import annotations

import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor
from typing import List, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from ballcapture.envs.ball_capture_mdp import BallCaptureMDP
from ballcapture.envs.core.params import SoccerParams
from ballcapture.envs.core.state import State
from ballcapture.policies.radial_basis import RadialGaussian
from ballcapture.policies.rbf_policy import RBFPolicy
from ballcapture.search.distribution import Population


def mean_rollout_return(
    mdp: BallCaptureMDP,
    policy,
    states: Sequence[State],
    horizon: int,
) -> float:
    score = 0.0
    for s in states:
        score += mdp.rollout(s, policy, horizon) / len(states)
    return score


def score_member(
    mdp: BallCaptureMDP,
    policy: RBFPolicy,
    centers: np.ndarray,
    radii: np.ndarray,
    actions: np.ndarray,
    states: Sequence[State],
    horizon: int,
) -> float:
    """Load one sampled parameter set into `policy` (in place) and score it."""
    policy.load_parameters(centers, radii, actions)
    return mean_rollout_return(mdp, policy, states, horizon)


def score_population(
    mdp: BallCaptureMDP,
    policy: RBFPolicy,
    population: Population,
    states: Sequence[State],
    horizon: int,
    progress: bool = False,
) -> np.ndarray:
    scores = np.empty(len(population), dtype=np.float64)
    for i in tqdm(range(len(population)), desc="Scoring samples", disable=not progress, leave=False):
        scores[i] = score_member(mdp, policy, *population.member(i), states, horizon)
    return scores


# Worker-local storage (each process has its own copy)
_worker_state = {}


def _init_scoring_worker(params: SoccerParams, states: List[State], horizon: int):
    """Give each worker process its own MDP, state set and basis function bank."""
    global _worker_state
    _worker_state = {
        "mdp": BallCaptureMDP(params),
        "states": states,
        "horizon": horizon,
        "policy": None,
    }


def _score_batch_worker(batch: Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]) -> List[Tuple[int, float]]:
    indices, centers, radii, actions = batch
    mdp = _worker_state["mdp"]
    policy = _worker_state["policy"]
    if policy is None or len(policy.basis_functions) != centers.shape[1]:
        bank = [RadialGaussian(int(a)) for a in actions[0]]
        policy = RBFPolicy(bank, mdp.params)
        _worker_state["policy"] = policy

    results = []
    for row, idx in enumerate(indices):
        score = score_member(
            mdp,
            policy,
            centers[row],
            radii[row],
            actions[row],
            _worker_state["states"],
            _worker_state["horizon"],
        )
        results.append((int(idx), score))
    return results


def score_population_parallel(
    params: SoccerParams,
    population: Population,
    states: Sequence[State],
    horizon: int,
    num_workers: int,
    progress: bool = False,
) -> np.ndarray:
    """
    Score every population member across worker processes.

    Results are written back by sample index, so the outcome (and the
    elite tie-break built on it) is identical to `score_population`.
    """
    n_samples = len(population)
    num_workers = max(1, min(num_workers, n_samples))
    batch_size = (n_samples + num_workers - 1) // num_workers
    batches = []
    for start in range(0, n_samples, batch_size):
        idx = np.arange(start, min(start + batch_size, n_samples))
        batches.append((idx, population.centers[idx], population.radii[idx], population.actions[idx]))

    scores = np.empty(n_samples, dtype=np.float64)
    ctx = mp.get_context("spawn")
    with ProcessPoolExecutor(
        max_workers=num_workers,
        mp_context=ctx,
        initializer=_init_scoring_worker,
        initargs=(params, list(states), horizon),
    ) as executor:
        for batch_results in tqdm(
            executor.map(_score_batch_worker, batches),
            total=len(batches),
            desc="Scoring batches",
            disable=not progress,
            leave=False,
        ):
            for idx, score in batch_results:
                scores[idx] = score
    return scores
