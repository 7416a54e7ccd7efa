#!/usr/bin/env python3
# ABOUTME: MCP server providing price correlation tools.
# ABOUTME: Exposes stock listing, price history, correlation matrix, and heatmap tools.

import asyncio
import os
import sys

# Ensure unbuffered output for MCP protocol (equivalent to python -u)
os.environ["PYTHONUNBUFFERED"] = "1"
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(write_through=True)
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(write_through=True)

from mcp.server.fastmcp import FastMCP

from price_correlation.correlation import compute_correlation, compute_exchange_correlation
from price_correlation.exchange import (
    DEFAULT_MINUTES,
    ExchangeError,
    extract_prices,
    get_price_history,
    get_stocks,
)
from price_correlation.history import get_history, summarize_prices
from price_correlation.utils import parse_symbols

# Create MCP server
mcp = FastMCP("price-correlation")


# ============================================================================
# EXCHANGE SERVICE TOOLS
# ============================================================================


@mcp.tool()
async def stock_list() -> dict:
    """List stocks available on the exchange service as {company name: ticker}."""
    try:
        stocks = await asyncio.to_thread(get_stocks)
    except ExchangeError as e:
        return {"error": str(e)}
    return {"count": len(stocks), "stocks": stocks}


@mcp.tool()
async def exchange_price_history(ticker: str, minutes: int = DEFAULT_MINUTES) -> dict:
    """Get price observations from the exchange service with their average.

    Args:
        ticker: Ticker symbol listed by stock_list
        minutes: Lookback window in minutes (1-120)
    """
    try:
        observations = await asyncio.to_thread(get_price_history, ticker.upper(), minutes)
    except (ExchangeError, ValueError) as e:
        return {"error": str(e)}

    return {
        "ticker": ticker.upper(),
        "minutes": minutes,
        "count": len(observations),
        "data": observations,
        "summary": summarize_prices(extract_prices(observations)),
    }


@mcp.tool()
async def exchange_correlation(symbols: str = "", minutes: int = DEFAULT_MINUTES) -> dict:
    """Compute the Pearson correlation matrix of exchange price histories.

    Args:
        symbols: Comma-separated tickers; empty means every listed stock
        minutes: Lookback window in minutes (1-120)
    """
    tickers = parse_symbols(symbols) or None
    return await compute_exchange_correlation(tickers, minutes)


@mcp.tool()
async def correlation_heatmap(symbols: str = "", minutes: int = DEFAULT_MINUTES) -> dict:
    """Correlation matrix plus per-cell colors and labels for a heatmap.

    Colors run from red at -1 through white to green at +1.

    Args:
        symbols: Comma-separated tickers; empty means every listed stock
        minutes: Lookback window in minutes (1-120)
    """
    tickers = parse_symbols(symbols) or None
    return await compute_exchange_correlation(tickers, minutes, include_cells=True)


# ============================================================================
# YAHOO FINANCE TOOLS
# ============================================================================


@mcp.tool()
def price_history(
    symbol: str,
    period: str = "1mo",
    interval: str = "1d",
) -> dict:
    """Get historical OHLCV price data.

    Args:
        symbol: Ticker symbol
        period: Time period (1d, 5d, 1mo, 3mo, 6mo, 1y, 2y, 5y, 10y, ytd, max)
        interval: Data interval (1m, 2m, 5m, 15m, 30m, 60m, 90m, 1h, 1d, 5d, 1wk, 1mo)
    """
    return get_history(symbol.upper(), period, interval)


@mcp.tool()
def price_correlation(symbols: str, period: str = "3mo") -> dict:
    """Compute price correlation matrix between multiple symbols.

    Useful for portfolio diversification analysis.

    Args:
        symbols: Comma-separated ticker symbols (minimum 2)
        period: Historical period (1mo, 3mo, 6mo, 1y)
    """
    return compute_correlation(parse_symbols(symbols), period)


def main():
    mcp.run()


if __name__ == "__main__":
    main()
