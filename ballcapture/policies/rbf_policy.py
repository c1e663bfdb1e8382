from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ballcapture.envs.core.actions import Action
from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.state import STATE_DIMENSIONS, State
from ballcapture.policies.radial_basis import MIN_RADIUS, RadialGaussian


class RBFPolicy:
    """
    Greedy policy over a bank of radial basis functions.

    Centers and radii are stacked into `(n_basis, 7)` arrays owned by the
    policy; each `RadialGaussian` in the bank is rebound to a view of its row,
    so in-place updates through either side stay in sync. The action each
    basis function votes for is an index vector, and per-action scores are a
    weighted `bincount` over it.
    """

    def __init__(self, basis_functions: Sequence[RadialGaussian], params: SoccerParams = DEFAULT_PARAMS):
        self.params = params
        self.n_actions = params.n_discrete_actions
        self.basis_functions = list(basis_functions)
        n_basis = len(self.basis_functions)
        self.centers = np.zeros((n_basis, STATE_DIMENSIONS), dtype=np.float64)
        self.radii = np.ones((n_basis, STATE_DIMENSIONS), dtype=np.float64)
        self.actions = np.zeros(n_basis, dtype=np.int64)
        for i, bf in enumerate(self.basis_functions):
            self.centers[i] = bf.centers
            self.radii[i] = bf.radii
            bf.centers = self.centers[i]
            bf.radii = self.radii[i]
        self.rebuild_partition()

    def rebuild_partition(self) -> None:
        """Re-read the action id of every basis function into the index vector."""
        actions = np.array([int(bf.action_id) for bf in self.basis_functions], dtype=np.int64)
        invalid = np.flatnonzero((actions < 0) | (actions >= self.n_actions))
        if invalid.size:
            idx = int(invalid[0])
            raise ValueError(
                f"Basis function {idx} votes for action {actions[idx]}, "
                f"menu has {self.n_actions} actions"
            )
        self.actions = actions

    @property
    def partition(self) -> List[List[int]]:
        """Basis function indices grouped by the action they vote for."""
        return [np.flatnonzero(self.actions == a).tolist() for a in range(self.n_actions)]

    def assign_actions(self, action_ids: Sequence[int]) -> None:
        if len(action_ids) != len(self.basis_functions):
            raise ValueError(
                f"Got {len(action_ids)} action ids for {len(self.basis_functions)} basis functions"
            )
        for bf, action_id in zip(self.basis_functions, action_ids):
            bf.action_id = int(action_id)
        self.rebuild_partition()

    def load_parameters(self, centers: np.ndarray, radii: np.ndarray, action_ids: Sequence[int]) -> None:
        """Overwrite every basis function in place, then rebuild the partition."""
        centers = np.asarray(centers, dtype=np.float64)
        radii = np.asarray(radii, dtype=np.float64)
        if centers.shape != self.centers.shape or radii.shape != self.radii.shape:
            raise ValueError(
                f"Expected centers and radii of shape {self.centers.shape}, "
                f"got {centers.shape} and {radii.shape}"
            )
        if np.any(radii <= MIN_RADIUS):
            raise ValueError(f"Radii must exceed {MIN_RADIUS}")
        self.centers[...] = centers
        self.radii[...] = radii
        self.assign_actions(action_ids)

    def basis_scores(self, state: State) -> np.ndarray:
        z = (state.as_array() - self.centers) / self.radii
        return np.exp(-np.einsum("ij,ij->i", z, z))

    def action_scores(self, state: State) -> np.ndarray:
        """Summed basis score per action; actions without basis functions score 0."""
        return np.bincount(self.actions, weights=self.basis_scores(state), minlength=self.n_actions)

    def choose_action_index(self, state: State) -> int:
        # argmax returns the first maximum: ties go to the lowest action index
        return int(np.argmax(self.action_scores(state)))

    def choose_action(self, state: State) -> Action:
        return Action.from_index(self.choose_action_index(state), self.params)
