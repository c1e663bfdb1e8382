from __future__ import annotations

from typing import Sequence

import numpy as np

from ballcapture.envs.core.state import STATE_DIMENSIONS, State

MIN_RADIUS = 1e-4


class RadialGaussian:
    """
    Gaussian radial basis function over the 7-dimensional state, tagged with
    the discrete action it votes for.

    score(s) = exp(-sum_k ((s_k - c_k) / r_k) ** 2)

    Centers and radii are rewritten in place by the search every iteration.
    """

    __slots__ = ("centers", "radii", "action_id")

    def __init__(
        self,
        action_id: int,
        centers: Sequence[float] | None = None,
        radii: Sequence[float] | None = None,
    ):
        self.action_id = int(action_id)
        self.centers = np.zeros(STATE_DIMENSIONS, dtype=np.float64)
        self.radii = np.ones(STATE_DIMENSIONS, dtype=np.float64)
        if centers is not None:
            self.set_centers(centers)
        if radii is not None:
            self.set_radii(radii)

    def set_centers(self, centers: Sequence[float]) -> None:
        values = np.asarray(centers, dtype=np.float64)
        if values.shape != (STATE_DIMENSIONS,):
            raise ValueError(f"Expected {STATE_DIMENSIONS} centers, got shape {values.shape}")
        self.centers[:] = values

    def set_radii(self, radii: Sequence[float]) -> None:
        values = np.asarray(radii, dtype=np.float64)
        if values.shape != (STATE_DIMENSIONS,):
            raise ValueError(f"Expected {STATE_DIMENSIONS} radii, got shape {values.shape}")
        if np.any(values <= MIN_RADIUS):
            raise ValueError(f"Radii must exceed {MIN_RADIUS}, got {values.tolist()}")
        self.radii[:] = values

    def score_array(self, x: np.ndarray) -> float:
        z = (x - self.centers) / self.radii
        return float(np.exp(-np.dot(z, z)))

    def score(self, state: State) -> float:
        return self.score_array(state.as_array())

    def __repr__(self) -> str:
        return (
            f"RadialGaussian(action_id={self.action_id}, "
            f"centers={np.round(self.centers, 3).tolist()}, radii={np.round(self.radii, 3).tolist()})"
        )
