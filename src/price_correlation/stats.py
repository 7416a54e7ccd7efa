# ABOUTME: Sample statistics over ordered price sequences.
# ABOUTME: Mean, sample covariance, sample standard deviation and Pearson correlation.

import numpy as np


class InvalidInput(ValueError):
    """Raised when a sequence is too short, mismatched, or not numeric."""


def as_series(values) -> np.ndarray:
    """Convert an ordered sequence of prices to a 1-D float64 array."""
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Values must be real numbers: {e}") from e
    if arr.ndim != 1:
        raise InvalidInput(f"Expected a one-dimensional sequence, got {arr.ndim} dimensions")
    return arr


def mean(x) -> float:
    """Arithmetic mean. Requires at least one observation."""
    arr = as_series(x)
    if len(arr) == 0:
        raise InvalidInput("Need at least 1 value for mean")
    return float(arr.sum() / len(arr))


def sample_covariance(x, y) -> float:
    """Unbiased covariance with an (n - 1) divisor.

    Both sequences must have the same length n >= 2.
    """
    xa = as_series(x)
    ya = as_series(y)
    if len(xa) != len(ya):
        raise InvalidInput(f"Length mismatch: {len(xa)} vs {len(ya)}")
    n = len(xa)
    if n < 2:
        raise InvalidInput(f"Need at least 2 values for covariance, got {n}")

    # Elementwise products commute, so cov(x, y) and cov(y, x) sum identical terms
    deviations = (xa - xa.sum() / n) * (ya - ya.sum() / n)
    return float(deviations.sum() / (n - 1))


def sample_std_dev(x) -> float:
    """Sample standard deviation, sqrt of the (n - 1) variance."""
    return float(np.sqrt(sample_covariance(x, x)))


def pearson_correlation(x, y) -> float:
    """Pearson correlation coefficient of two equal-length sequences.

    Zero variance on either side is not guarded here: the result is nan or
    +/-inf following IEEE division. Callers decide what to do with it.
    """
    cov = np.float64(sample_covariance(x, y))
    std_x = np.float64(sample_std_dev(x))
    std_y = np.float64(sample_std_dev(y))
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(cov / (std_x * std_y))
