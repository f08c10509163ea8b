"""
Utility functions shared by the samplers and solvers.
"""

import numpy as np
from typing import Optional, Union

from .errors import PreconditionViolation

SeedType = Optional[Union[int, np.random.Generator]]


def resolve_rng(seed: SeedType = None) -> np.random.Generator:
    """
    Turn a seed argument into a random generator.

    Parameters
    ----------
    seed : int, np.random.Generator or None
        An integer seed, an existing generator (returned unchanged), or
        None for a generator seeded from fresh OS entropy.

    Returns
    -------
    np.random.Generator
    """
    return np.random.default_rng(seed)


def check_reseedable(seed: Optional[int]) -> Optional[int]:
    """
    Validate a seed that is replayed at the start of every call.

    A Generator carries state between calls and cannot be replayed, so
    only an integer or None is accepted.
    """
    if isinstance(seed, np.random.Generator):
        raise PreconditionViolation(
            "this sampler re-seeds on every call; pass an integer seed or None, not a Generator"
        )
    return seed


def check_positive_measure(measure: float, what: str = "domain") -> float:
    """
    Validate that a volume or area can be used as a density normalizer.

    Parameters
    ----------
    measure : float
        Volume or surface area.
    what : str, optional
        Name of the region, used in the error message.

    Returns
    -------
    float
        The measure as a Python float.

    Raises
    ------
    PreconditionViolation
        If the measure is not finite or not strictly positive.
    """
    measure = float(measure)
    if not np.isfinite(measure) or measure <= 0.0:
        raise PreconditionViolation(
            f"{what} must have a finite, positive measure, got {measure}"
        )
    return measure


def check_number_of_points(number_of_points: int) -> int:
    """Validate a requested sample count (0 is allowed)."""
    number_of_points = int(number_of_points)
    if number_of_points < 0:
        raise PreconditionViolation(
            f"number_of_points must be non-negative, got {number_of_points}"
        )
    return number_of_points


def cumulative_weights(weights: np.ndarray) -> np.ndarray:
    """
    Compute the prefix sums of a weight vector.

    Parameters
    ----------
    weights : np.ndarray
        Non-negative, finite weights of shape (n,).

    Returns
    -------
    np.ndarray
        Non-decreasing array c with c[i] = weights[0] + ... + weights[i].
    """
    weights = np.asarray(weights, dtype=np.float64)
    if weights.ndim != 1:
        raise PreconditionViolation(f"weights must be 1D, got shape {weights.shape}")
    if not np.all(np.isfinite(weights)) or np.any(weights < 0):
        raise PreconditionViolation("weights must be finite and non-negative")
    return np.cumsum(weights)


def lower_bound(prefix_sums: np.ndarray, value: Union[float, np.ndarray]):
    """
    Find the index of the first prefix sum that is >= value.

    This is the classic binary search over a cumulative table: an exact
    match returns its own index and a value falling between two entries
    returns the insertion point, i.e. the index of the bin containing it.
    Results are clipped to the last index so that a draw equal to the
    total lands in the last bin.

    Parameters
    ----------
    prefix_sums : np.ndarray
        Non-decreasing array of shape (n,), n >= 1.
    value : float or np.ndarray
        Value(s) to locate.

    Returns
    -------
    int or np.ndarray
        Bin index (or indices, if value is an array).

    Examples
    --------
    >>> lower_bound(np.array([1.0, 3.0, 6.0]), 3.0)
    1
    >>> lower_bound(np.array([1.0, 3.0, 6.0]), 3.5)
    2
    """
    prefix_sums = np.asarray(prefix_sums, dtype=np.float64)
    if prefix_sums.size == 0:
        raise PreconditionViolation("cannot search an empty cumulative table")

    index = np.searchsorted(prefix_sums, value, side="left")
    index = np.minimum(index, prefix_sums.size - 1)
    if np.ndim(index) == 0:
        return int(index)
    return index


def weighted_choice(
    weights: np.ndarray,
    size: int,
    rng: np.random.Generator
) -> np.ndarray:
    """
    Draw indices with probability proportional to the given weights.

    Parameters
    ----------
    weights : np.ndarray
        Non-negative weights of shape (n,) with a positive sum.
    size : int
        Number of indices to draw.
    rng : np.random.Generator
        Random source.

    Returns
    -------
    np.ndarray
        Integer array of shape (size,).
    """
    table = cumulative_weights(weights)
    total = check_positive_measure(table[-1] if table.size else 0.0, "weight table")
    draws = rng.random(size) * total
    return np.asarray(lower_bound(table, draws), dtype=np.int64)
