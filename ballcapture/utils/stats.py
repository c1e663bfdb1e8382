"""Random sampling and summary statistics used by the cross-entropy search."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def make_rng(seed: int | None = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def next_gaussian(rng: np.random.Generator, mean, std_dev, size=None):
    """Draw from N(mean, std_dev); a zero std-dev returns the mean."""
    return rng.normal(mean, np.maximum(std_dev, 0.0), size=size)


def next_bernoulli(rng: np.random.Generator, p, size=None):
    """Draw boolean Bernoulli outcomes with success probability `p`."""
    return rng.random(size=size if size is not None else np.shape(p)) < p


def bits_to_int(bits: Sequence[bool]) -> int:
    """Decode a bit vector to an integer, first bit most significant."""
    value = 0
    for bit in bits:
        value = (value << 1) | int(bool(bit))
    return value


def bits_to_int_array(bits: np.ndarray) -> np.ndarray:
    """Vectorized `bits_to_int` over the last axis of a boolean array."""
    n_bits = bits.shape[-1]
    weights = 1 << np.arange(n_bits - 1, -1, -1, dtype=np.int64)
    return (bits.astype(np.int64) * weights).sum(axis=-1)


def n_selector_bits(n_choices: int) -> int:
    """Number of bits needed to encode `n_choices` distinct values."""
    if n_choices < 1:
        raise ValueError(f"n_choices must be positive, got {n_choices}")
    return max(1, int(math.ceil(math.log2(n_choices))))


def mean(values, axis=None):
    return np.mean(np.asarray(values, dtype=np.float64), axis=axis)


def std_dev(values, axis=None):
    """Population standard deviation (divides by n)."""
    return np.std(np.asarray(values, dtype=np.float64), axis=axis)
