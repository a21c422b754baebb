"""RSI (Relative Strength Index) oscillator implementation."""

from typing import Sequence, Union

import pandas as pd

NEUTRAL_RSI = 50.0


def calculate_rsi(
    closes: Union[pd.Series, Sequence[float]], period: int = 14
) -> float:
    """
    Calculate a simple-average RSI over the latest closing prices.

    Uses plain averages of the most recent `period` price changes rather
    than Wilder's smoothing:
    - RSI < 30: Oversold
    - RSI > 70: Overbought

    Args:
        closes: Closing prices, oldest first
        period: Number of price changes in the lookback window

    Returns:
        RSI value in [0, 100]. 50 when there are fewer than period + 1
        prices, 100 when the window has no losses.
    """
    close = pd.Series(closes, dtype="float64").reset_index(drop=True)

    if period < 1 or len(close) < period + 1:
        return NEUTRAL_RSI

    deltas = close.iloc[-(period + 1):].diff().dropna()

    gains = deltas.clip(lower=0).sum()
    losses = -deltas.clip(upper=0).sum()

    avg_gain = gains / period
    avg_loss = losses / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100 - (100 / (1 + rs)))
