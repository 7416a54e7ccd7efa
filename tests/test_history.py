# ABOUTME: Tests for the Yahoo Finance price history module with a mocked Ticker.
# ABOUTME: Validates OHLCV rows, close series extraction, and price summaries.

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest

from price_correlation.history import get_close_series, get_history, summarize_prices

MODULE = "price_correlation.history"


def make_ohlcv(closes, freq="D"):
    index = pd.date_range("2025-01-02 09:30", periods=len(closes), freq=freq)
    closes = np.array(closes, dtype=float)
    return pd.DataFrame(
        {
            "Open": closes - 0.5,
            "High": closes + 1.0,
            "Low": closes - 1.0,
            "Close": closes,
            "Volume": np.full(len(closes), 1000),
        },
        index=index,
    )


def mock_ticker(df=None, error=None):
    ticker = MagicMock()
    if error is not None:
        ticker.history.side_effect = error
    else:
        ticker.history.return_value = df
    return ticker


class TestGetHistory:
    """Tests for get_history."""

    @patch(f"{MODULE}.yf.Ticker")
    def test_ohlcv_fields(self, MockTicker):
        MockTicker.return_value = mock_ticker(make_ohlcv([100.0, 101.0, 102.0]))

        result = get_history("aapl", period="5d")

        assert result["symbol"] == "AAPL"
        assert result["period"] == "5d"
        assert result["interval"] == "1d"
        assert result["count"] == 3
        for row in result["data"]:
            for field in ["date", "open", "high", "low", "close", "volume"]:
                assert field in row, f"Missing field: {field}"
            assert row["high"] >= row["low"]

    @patch(f"{MODULE}.yf.Ticker")
    def test_daily_date_format(self, MockTicker):
        MockTicker.return_value = mock_ticker(make_ohlcv([100.0]))
        result = get_history("AAPL")
        assert result["data"][0]["date"] == "2025-01-02"

    @patch(f"{MODULE}.yf.Ticker")
    def test_intraday_date_format(self, MockTicker):
        MockTicker.return_value = mock_ticker(make_ohlcv([100.0, 100.2], freq="h"))
        result = get_history("AAPL", period="1d", interval="1h")
        assert result["data"][0]["date"] == "2025-01-02 09:30:00"

    @patch(f"{MODULE}.yf.Ticker")
    def test_summary_included(self, MockTicker):
        MockTicker.return_value = mock_ticker(make_ohlcv([10.0, 20.0, 30.0]))
        result = get_history("AAPL")
        assert result["summary"]["average"] == pytest.approx(20.0)
        assert result["summary"]["count"] == 3

    @patch(f"{MODULE}.yf.Ticker")
    def test_empty_history(self, MockTicker):
        MockTicker.return_value = mock_ticker(pd.DataFrame())
        result = get_history("INVALIDXYZ123")
        assert "error" in result

    @patch(f"{MODULE}.yf.Ticker")
    def test_fetch_failure(self, MockTicker):
        MockTicker.return_value = mock_ticker(error=RuntimeError("network down"))
        result = get_history("AAPL")
        assert "network down" in result["error"]


class TestGetCloseSeries:
    """Tests for get_close_series."""

    @patch(f"{MODULE}.yf.Ticker")
    def test_returns_closes_in_order(self, MockTicker):
        df = make_ohlcv([3.0, 1.0, 2.0])
        MockTicker.return_value = mock_ticker(df)
        closes = get_close_series("AAPL")
        assert closes.tolist() == [3.0, 1.0, 2.0]
        assert list(closes.index) == list(df.index)

    @patch(f"{MODULE}.yf.Ticker")
    def test_drops_missing_closes_with_their_dates(self, MockTicker):
        df = make_ohlcv([1.0, 2.0, 3.0])
        df.loc[df.index[1], "Close"] = np.nan
        MockTicker.return_value = mock_ticker(df)
        closes = get_close_series("AAPL")
        assert closes.tolist() == [1.0, 3.0]
        assert list(closes.index) == [df.index[0], df.index[2]]

    @patch(f"{MODULE}.yf.Ticker")
    def test_passes_period_and_interval(self, MockTicker):
        ticker = mock_ticker(make_ohlcv([1.0]))
        MockTicker.return_value = ticker
        get_close_series("AAPL", period="6mo", interval="1wk")
        ticker.history.assert_called_once_with(period="6mo", interval="1wk")

    @patch(f"{MODULE}.yf.Ticker")
    def test_empty_returns_empty_series(self, MockTicker):
        MockTicker.return_value = mock_ticker(pd.DataFrame())
        closes = get_close_series("INVALIDXYZ123")
        assert isinstance(closes, pd.Series)
        assert closes.empty

    @patch(f"{MODULE}.yf.Ticker")
    def test_failure_returns_empty_series(self, MockTicker, caplog):
        MockTicker.return_value = mock_ticker(error=RuntimeError("boom"))
        assert get_close_series("AAPL").empty
        assert "AAPL" in caplog.text


class TestSummarizePrices:
    """Tests for summarize_prices."""

    def test_basic(self):
        result = summarize_prices([231.95, 232.40, 233.10])
        assert result["count"] == 3
        assert result["average"] == pytest.approx(232.4833, abs=1e-4)
        assert result["first"] == 231.95
        assert result["last"] == 233.10

    def test_empty(self):
        assert summarize_prices([]) == {"count": 0, "average": None, "first": None, "last": None}
