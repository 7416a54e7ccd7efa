# ABOUTME: Builds the pairwise Pearson correlation matrix for a list of assets.
# ABOUTME: Guards empty, mismatched and zero-variance pairs with a fallback sentinel.

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from price_correlation.stats import InvalidInput, as_series, pearson_correlation

logger = logging.getLogger(__name__)

# Emitted for pairs whose correlation is undefined. Not a real zero correlation.
FALLBACK_SENTINEL = 0.0


@dataclass(frozen=True)
class CorrelationMatrix:
    """Square matrix of correlations; row i / column j is symbols[i] vs symbols[j].

    fallbacks holds (i, j, reason) for every entry that received the sentinel.
    """

    symbols: tuple[str, ...]
    values: tuple[tuple[float, ...], ...]
    fallbacks: tuple[tuple[int, int, str], ...] = ()

    @property
    def size(self) -> int:
        return len(self.symbols)

    def __getitem__(self, index: tuple[int, int]) -> float:
        i, j = index
        return self.values[i][j]

    def to_rows(self) -> list[list[float]]:
        return [list(row) for row in self.values]

    def to_dict(self, decimals: int = 4) -> dict:
        """Nested {symbol: {symbol: value}} dict. Duplicate symbols collapse."""
        result = {}
        for sym1, row in zip(self.symbols, self.values):
            result[sym1] = {sym2: round(value, decimals) for sym2, value in zip(self.symbols, row)}
        return result

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_rows(), index=list(self.symbols), columns=list(self.symbols))

    def degenerate_pairs(self) -> list[dict]:
        """Fallback entries on or above the diagonal, labelled by symbol."""
        return [
            {"pair": [self.symbols[i], self.symbols[j]], "reason": reason}
            for i, j, reason in self.fallbacks
            if i <= j
        ]


def degenerate_reason(x, y) -> str | None:
    """Name why a pair cannot be correlated by length alone, or None."""
    if len(x) == 0 or len(y) == 0:
        return "empty"
    if len(x) != len(y):
        return "length_mismatch"
    return None


def _is_constant(x: np.ndarray) -> bool:
    # Exact comparison: a rounded mean can leave tiny nonzero deviations
    return bool(np.all(x == x[0]))


def pair_correlation(x: np.ndarray, y: np.ndarray) -> tuple[float, str | None]:
    """Correlation for one pair plus the reason it fell back, if it did."""
    reason = degenerate_reason(x, y)
    if reason:
        return FALLBACK_SENTINEL, reason
    if len(x) < 2:
        return FALLBACK_SENTINEL, "insufficient_data"
    if _is_constant(x) or _is_constant(y):
        return FALLBACK_SENTINEL, "zero_variance"

    try:
        corr = pearson_correlation(x, y)
    except InvalidInput:
        return FALLBACK_SENTINEL, "insufficient_data"

    if not math.isfinite(corr):
        return FALLBACK_SENTINEL, "non_finite"

    return min(1.0, max(-1.0, corr)), None


def _validate_symbols(symbols) -> tuple[str, ...]:
    if isinstance(symbols, (str, bytes)) or not isinstance(symbols, Sequence):
        raise InvalidInput(f"Asset list must be an ordered sequence, got {type(symbols).__name__}")
    if len(symbols) == 0:
        raise InvalidInput("Asset list must not be empty")
    for symbol in symbols:
        if not isinstance(symbol, str):
            raise InvalidInput(f"Asset identifiers must be strings, got {symbol!r}")
    return tuple(symbols)


def _load_series(symbols: tuple[str, ...], series: Mapping) -> dict[str, np.ndarray]:
    """Convert each referenced series once; unusable ones become empty."""
    arrays = {}
    for symbol in dict.fromkeys(symbols):
        try:
            arrays[symbol] = as_series(series.get(symbol, []))
        except InvalidInput as e:
            logger.warning("Series for %s is not usable: %s", symbol, e)
            arrays[symbol] = np.empty(0)
    return arrays


def build_correlation_matrix(symbols: Sequence[str], series: Mapping) -> CorrelationMatrix:
    """Correlate every ordered pair of assets in symbols.

    Missing, empty or mismatched series, single observations and zero-variance
    series all yield FALLBACK_SENTINEL for the affected entries. Raises
    InvalidInput only for an invalid asset list or series mapping, before any
    pair is computed.
    """
    labels = _validate_symbols(symbols)
    if not isinstance(series, Mapping):
        raise InvalidInput(f"Series must be a mapping, got {type(series).__name__}")

    arrays = _load_series(labels, series)

    rows = []
    fallbacks = []
    for i, sym1 in enumerate(labels):
        row = []
        for j, sym2 in enumerate(labels):
            value, reason = pair_correlation(arrays[sym1], arrays[sym2])
            if reason:
                logger.debug("Fallback for %s/%s: %s", sym1, sym2, reason)
                fallbacks.append((i, j, reason))
            row.append(value)
        rows.append(tuple(row))

    return CorrelationMatrix(symbols=labels, values=tuple(rows), fallbacks=tuple(fallbacks))
