"""
Sampling distribution of the cross-entropy search.

Every basis function owns, per state dimension, a Gaussian over its center
and another over its radius, plus one Bernoulli per action-selector bit.
Samples falling outside the physical domain are redrawn (rejection sampling,
never clamping); the number of redraw rounds is bounded so a distribution
that collapsed outside the valid region fails loudly instead of spinning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

import numpy as np

from ballcapture.envs.core.params import SoccerParams
from ballcapture.envs.core.state import STATE_DIMENSIONS
from ballcapture.policies.radial_basis import MIN_RADIUS
from ballcapture.utils.stats import bits_to_int_array, mean, next_bernoulli, next_gaussian, std_dev

DEFAULT_MAX_SAMPLING_RETRIES = 1000


class SamplingError(RuntimeError):
    """The distribution keeps producing invalid samples; treat as a configuration error."""


def center_bounds(params: SoccerParams) -> Tuple[np.ndarray, np.ndarray]:
    """Inclusive physical range of each state dimension."""
    low = np.array([0.0, -180.0, 0.0, -180.0, -180.0, 0.0, -180.0])
    high = np.array(
        [
            params.ball_speed_max,
            180.0,
            params.player_speed_max,
            180.0,
            180.0,
            params.max_distance,
            180.0,
        ]
    )
    return low, high


def _rejection_sample(
    draw: Callable[[np.ndarray], np.ndarray],
    is_valid: Callable[[np.ndarray], np.ndarray],
    shape: Tuple[int, ...],
    max_retries: int,
    label: str,
) -> np.ndarray:
    samples = np.empty(shape, dtype=np.float64)
    samples[...] = draw(np.ones(shape, dtype=bool)).reshape(shape)
    invalid = ~is_valid(samples)
    retries = 0
    while invalid.any():
        if retries >= max_retries:
            raise SamplingError(
                f"{label}: {int(invalid.sum())} entries still invalid after {max_retries} redraws"
            )
        samples[invalid] = draw(invalid)
        invalid = ~is_valid(samples)
        retries += 1
    return samples


@dataclass
class Population:
    """One round of sampled policy parameters, indexed [sample, basis, ...]."""

    centers: np.ndarray
    radii: np.ndarray
    bits: np.ndarray
    actions: np.ndarray

    def __len__(self) -> int:
        return int(self.centers.shape[0])

    def member(self, i: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.centers[i], self.radii[i], self.actions[i]

    def subset(self, indices: Sequence[int]) -> "Population":
        idx = np.asarray(indices, dtype=np.int64)
        return Population(self.centers[idx], self.radii[idx], self.bits[idx], self.actions[idx])


@dataclass
class SamplingDistribution:
    centers_means: np.ndarray
    centers_stds: np.ndarray
    radii_means: np.ndarray
    radii_stds: np.ndarray
    bernoulli_means: np.ndarray

    @property
    def n_basis_functions(self) -> int:
        return int(self.centers_means.shape[0])

    @property
    def n_bits(self) -> int:
        return int(self.bernoulli_means.shape[1])

    @classmethod
    def initial(
        cls,
        n_basis_functions: int,
        n_bits: int,
        params: SoccerParams,
        rng: np.random.Generator,
    ) -> "SamplingDistribution":
        low, high = center_bounds(params)
        speed_and_distance = np.array(
            [params.ball_speed_max, 180.0, params.player_speed_max, 180.0, 180.0, params.max_distance, 180.0]
        ) / 2.0
        radius_spread = np.array(
            [params.ball_speed_max, 180.0, params.player_speed_max, 180.0, 180.0, 180.0, 180.0]
        ) / 2.0
        shape = (n_basis_functions, STATE_DIMENSIONS)
        return cls(
            centers_means=rng.uniform(low, high, size=shape),
            centers_stds=np.broadcast_to(speed_and_distance, shape).copy(),
            radii_means=np.broadcast_to(speed_and_distance, shape).copy(),
            radii_stds=np.broadcast_to(radius_spread, shape).copy(),
            bernoulli_means=np.full((n_basis_functions, n_bits), 0.5),
        )

    def sample(
        self,
        rng: np.random.Generator,
        n_samples: int,
        n_actions: int,
        params: SoccerParams,
        max_retries: int = DEFAULT_MAX_SAMPLING_RETRIES,
    ) -> Population:
        low, high = center_bounds(params)
        shape = (n_samples,) + self.centers_means.shape

        c_mean = np.broadcast_to(self.centers_means, shape)
        c_std = np.broadcast_to(self.centers_stds, shape)
        centers = _rejection_sample(
            lambda mask: next_gaussian(rng, c_mean[mask], c_std[mask]),
            lambda x: (x >= low) & (x <= high),
            shape,
            max_retries,
            "centers",
        )

        r_mean = np.broadcast_to(self.radii_means, shape)
        r_std = np.broadcast_to(self.radii_stds, shape)
        radii = _rejection_sample(
            lambda mask: next_gaussian(rng, r_mean[mask], r_std[mask]),
            lambda x: x > MIN_RADIUS,
            shape,
            max_retries,
            "radii",
        )

        bits_shape = (n_samples,) + self.bernoulli_means.shape
        p = np.broadcast_to(self.bernoulli_means, bits_shape)
        bits = next_bernoulli(rng, p)
        actions = bits_to_int_array(bits)
        invalid = actions >= n_actions
        retries = 0
        while invalid.any():
            if retries >= max_retries:
                raise SamplingError(
                    f"action bits: {int(invalid.sum())} selectors still decode past "
                    f"{n_actions - 1} after {max_retries} redraws"
                )
            # redraw the whole bit vector of every out-of-menu selector
            bits[invalid] = next_bernoulli(rng, p[invalid])
            actions = bits_to_int_array(bits)
            invalid = actions >= n_actions
            retries += 1

        return Population(centers=centers, radii=radii, bits=bits, actions=actions)

    def refit(self, elites: Population) -> "SamplingDistribution":
        """Maximum-likelihood refit on the elite samples; returns a new distribution."""
        if len(elites) == 0:
            raise ValueError("Cannot refit a distribution on zero elite samples")
        return SamplingDistribution(
            centers_means=mean(elites.centers, axis=0),
            centers_stds=std_dev(elites.centers, axis=0),
            radii_means=mean(elites.radii, axis=0),
            radii_stds=std_dev(elites.radii, axis=0),
            bernoulli_means=mean(elites.bits.astype(np.float64), axis=0),
        )
