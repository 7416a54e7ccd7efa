# ABOUTME: Client for the stock exchange evaluation service price API.
# ABOUTME: Lists tradable stocks and fetches per-ticker price history, one request per ticker.

import asyncio
import json
import logging
import os

import requests

from price_correlation.utils import env_float, fetch_with_timeout

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get("STOCK_EXCHANGE_URL", "http://localhost:3000")
DEFAULT_TIMEOUT = env_float("STOCK_EXCHANGE_TIMEOUT_S", 10.0)

# Lookback window bounds in minutes
MIN_MINUTES = 1
MAX_MINUTES = 120
DEFAULT_MINUTES = 30


class ExchangeError(Exception):
    """Base exception for exchange service errors."""


class ExchangeTimeoutError(ExchangeError):
    """Raised when the exchange service does not answer in time."""


class ExchangeUnavailableError(ExchangeError):
    """Raised when the exchange service cannot be reached."""


def _get_json(path: str, base_url: str, timeout: float, params: dict | None = None):
    url = f"{base_url.rstrip('/')}{path}"
    try:
        response = requests.get(url, params=params, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise ExchangeTimeoutError(f"Request to {url} timed out after {timeout}s") from e
    except requests.exceptions.ConnectionError as e:
        raise ExchangeUnavailableError(f"Could not connect to exchange at {base_url}: {e}") from e
    except requests.exceptions.RequestException as e:
        raise ExchangeError(f"Request to {url} failed: {e}") from e

    if response.status_code != 200:
        raise ExchangeError(f"HTTP {response.status_code} from {url}: {response.text}")

    try:
        return response.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise ExchangeError(f"Invalid JSON from {url}: {response.text}") from e


def validate_minutes(minutes: int) -> int:
    if not MIN_MINUTES <= minutes <= MAX_MINUTES:
        raise ValueError(f"minutes must be between {MIN_MINUTES} and {MAX_MINUTES}, got {minutes}")
    return minutes


def get_stocks(base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT) -> dict[str, str]:
    """Fetch the tradable stocks as {company name: ticker}."""
    data = _get_json("/evaluation-service/stocks", base_url, timeout)
    stocks = data.get("stocks") if isinstance(data, dict) else None
    if not isinstance(stocks, dict):
        raise ExchangeError(f"Missing 'stocks' field in: {data}")
    return stocks


def get_price_history(
    ticker: str,
    minutes: int = DEFAULT_MINUTES,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict]:
    """Fetch price observations for the last `minutes` minutes, oldest first.

    Each observation is {"price": float, "lastUpdatedAt": timestamp}.
    """
    validate_minutes(minutes)
    data = _get_json(
        f"/evaluation-service/stocks/{ticker}", base_url, timeout, params={"minutes": minutes}
    )

    # A single latest-price payload comes back wrapped in {"stock": {...}}
    if isinstance(data, dict):
        data = [data.get("stock", data)]
    if not isinstance(data, list):
        raise ExchangeError(f"Unexpected price history payload for {ticker}: {data}")
    return data


def extract_prices(observations: list[dict]) -> list[float]:
    """Keep only the price of each observation, in order.

    Observations without a price are dropped with a warning, which shortens
    the series.
    """
    prices = [float(obs["price"]) for obs in observations if obs.get("price") is not None]
    dropped = len(observations) - len(prices)
    if dropped:
        logger.warning("Dropped %d of %d observations without a price", dropped, len(observations))
    return prices


async def fetch_price_series_async(
    tickers: list[str],
    minutes: int = DEFAULT_MINUTES,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, list[float]]:
    """Fetch price series for all tickers concurrently.

    A ticker whose request fails maps to an empty list.
    """
    validate_minutes(minutes)
    unique = list(dict.fromkeys(tickers))

    async def fetch_one(ticker: str) -> list[float]:
        observations = await asyncio.to_thread(get_price_history, ticker, minutes, base_url, timeout)
        return extract_prices(observations)

    results = await asyncio.gather(
        *(fetch_with_timeout(fetch_one(t), timeout=timeout, default=None) for t in unique)
    )

    series = {}
    for ticker, prices in zip(unique, results):
        if prices is None:
            logger.warning("No price history for %s, treating as empty", ticker)
            prices = []
        series[ticker] = prices
    return series


def fetch_price_series(
    tickers: list[str],
    minutes: int = DEFAULT_MINUTES,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, list[float]]:
    """Blocking wrapper around fetch_price_series_async."""
    return asyncio.run(fetch_price_series_async(tickers, minutes, base_url, timeout))
