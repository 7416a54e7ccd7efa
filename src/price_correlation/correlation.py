# ABOUTME: Computes price correlation matrices between multiple symbols.
# ABOUTME: Pulls series from Yahoo Finance or the exchange service and feeds the matrix builder.

import asyncio
from collections.abc import Mapping

import pandas as pd

from price_correlation.exchange import (
    DEFAULT_BASE_URL,
    DEFAULT_MINUTES,
    DEFAULT_TIMEOUT,
    ExchangeError,
    fetch_price_series_async,
    get_stocks,
    validate_minutes,
)
from price_correlation.heatmap import heatmap_cells
from price_correlation.history import get_close_series
from price_correlation.matrix import CorrelationMatrix, build_correlation_matrix
from price_correlation.utils import safe_value


def correlation_result(
    matrix: CorrelationMatrix, series: Mapping, decimals: int = 4, include_cells: bool = False
) -> dict:
    """Serialize a matrix and its inputs into a tool response."""
    result = {
        "symbols": list(matrix.symbols),
        "correlation_matrix": matrix.to_dict(decimals),
        "matrix": [[safe_value(round(v, decimals)) for v in row] for row in matrix.values],
        "observations": {sym: len(series.get(sym, [])) for sym in matrix.symbols},
        "degenerate_pairs": matrix.degenerate_pairs(),
    }
    if include_cells:
        result["cells"] = heatmap_cells(matrix)
    return result


def compute_correlation(symbols: list[str], period: str = "3mo", interval: str = "1d") -> dict:
    """Compute correlation matrix between multiple symbols from Yahoo closes.

    Closes are joined on date and only dates every symbol traded on are kept.
    """
    if len(symbols) < 2:
        return {"error": "Need at least 2 symbols for correlation"}

    prices = {}
    for symbol in symbols:
        closes = get_close_series(symbol, period=period, interval=interval)
        if not closes.empty:
            prices[symbol.upper()] = closes

    if len(prices) < 2:
        return {"error": "Need at least 2 valid symbols with data for correlation"}

    aligned = pd.DataFrame(prices).dropna()
    if aligned.empty:
        return {"error": "No overlapping dates between symbols"}

    series = {sym: aligned[sym].tolist() for sym in aligned.columns}
    matrix = build_correlation_matrix(list(series.keys()), series)
    return {
        **correlation_result(matrix, series),
        "period": period,
        "interval": interval,
        "history_lengths": {sym: len(closes) for sym, closes in prices.items()},
        "start": aligned.index[0].strftime("%Y-%m-%d"),
        "end": aligned.index[-1].strftime("%Y-%m-%d"),
    }


async def compute_exchange_correlation(
    tickers: list[str] | None = None,
    minutes: int = DEFAULT_MINUTES,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    include_cells: bool = False,
) -> dict:
    """Correlate exchange service price histories over the last `minutes` minutes.

    Uses every listed stock when tickers is None. Tickers without data stay in
    the matrix with sentinel entries.
    """
    try:
        validate_minutes(minutes)
        if tickers is None:
            stocks = await asyncio.to_thread(get_stocks, base_url, timeout)
            tickers = list(stocks.values())
        series = await fetch_price_series_async(tickers, minutes, base_url, timeout)
        matrix = build_correlation_matrix(tickers, series)
    except (ExchangeError, ValueError) as e:
        return {"error": str(e)}

    return {
        **correlation_result(matrix, series, include_cells=include_cells),
        "minutes": minutes,
        "source": "exchange",
    }
