# ABOUTME: Fetches historical price data from Yahoo Finance.
# ABOUTME: Returns OHLCV rows, date-indexed close series for correlation, and price summaries.

import logging

import pandas as pd
import yfinance as yf

from price_correlation.stats import mean

logger = logging.getLogger(__name__)

INTRADAY_INTERVALS = ["1m", "2m", "5m", "15m", "30m", "60m", "90m", "1h"]


def get_history(symbol: str, period: str = "1mo", interval: str = "1d") -> dict:
    """Fetch historical price data."""
    ticker = yf.Ticker(symbol)

    try:
        df = ticker.history(period=period, interval=interval)
    except Exception as e:
        return {"error": f"Failed to fetch history: {e}"}

    if df.empty:
        return {"error": f"No history data for {symbol}"}

    date_format = "%Y-%m-%d %H:%M:%S" if interval in INTRADAY_INTERVALS else "%Y-%m-%d"
    data = []
    for date, row in df.iterrows():
        data.append(
            {
                "date": date.strftime(date_format),
                "open": round(row["Open"], 2),
                "high": round(row["High"], 2),
                "low": round(row["Low"], 2),
                "close": round(row["Close"], 2),
                "volume": int(row["Volume"]),
            }
        )

    return {
        "symbol": symbol.upper(),
        "period": period,
        "interval": interval,
        "count": len(data),
        "data": data,
        "summary": summarize_prices([row["close"] for row in data]),
    }


def get_close_series(symbol: str, period: str = "3mo", interval: str = "1d") -> pd.Series:
    """Closing prices indexed by date; empty when Yahoo has nothing."""
    try:
        df = yf.Ticker(symbol).history(period=period, interval=interval)
    except Exception as e:
        logger.warning("Failed to fetch closes for %s: %s", symbol, e)
        return pd.Series(dtype=float)

    if df.empty:
        return pd.Series(dtype=float)
    return df["Close"].dropna().astype(float)


def summarize_prices(prices: list[float]) -> dict:
    """Count, average, first and last price of a series."""
    if not prices:
        return {"count": 0, "average": None, "first": None, "last": None}
    return {
        "count": len(prices),
        "average": round(mean(prices), 4),
        "first": prices[0],
        "last": prices[-1],
    }
