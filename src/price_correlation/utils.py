# ABOUTME: Shared helpers for price retrieval and correlation output.
# ABOUTME: Includes JSON-safe value conversion, symbol parsing, env config and async timeouts.

import asyncio
import logging
import math
import os

import pandas as pd

logger = logging.getLogger(__name__)


def safe_value(val):
    """Convert pandas/numpy types to JSON-serializable types; NaN becomes None."""
    if val is None:
        return None
    if isinstance(val, float) and not math.isfinite(val):
        return None
    if pd.isna(val):
        return None
    if hasattr(val, "item"):
        return val.item()
    return val


def parse_symbols(symbols: str) -> list[str]:
    """Split a comma-separated symbol string into upper-case tickers."""
    return [s.strip().upper() for s in symbols.split(",") if s.strip()]


def env_float(name: str, default: float) -> float:
    """Read a float setting from the environment, falling back on bad values."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


async def fetch_with_timeout(coro, timeout: float, default=None):
    """Run coroutine with timeout, return default if timeout or error."""
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Timed out after %ss", timeout)
        return default
    except Exception as e:
        logger.warning("Fetch failed: %s", e)
        return default
