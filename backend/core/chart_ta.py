# backend/core/chart_ta.py
# Purpose: Classic TA indicators over a chronological candle series.
# Every indicator returns None when the series is too short; nothing here raises.
from __future__ import annotations

import math
from typing import List, Optional, Sequence

from pydantic import Field

from backend.core.models import EngineModel


class MACDResult(EngineModel):
    macd: float
    signal: float
    histogram: float


class BollingerResult(EngineModel):
    upper: float
    middle: float
    lower: float
    percent_b: float


class StochRSIResult(EngineModel):
    k: float
    d: float
    signal: str


class ADXResult(EngineModel):
    adx: float
    plus_di: float = Field(alias="plusDI")
    minus_di: float = Field(alias="minusDI")
    trend: str


class SupportResistance(EngineModel):
    support: float
    resistance: float


def _mean(xs: Sequence[float]) -> float:
    return sum(xs) / len(xs)


def rsi(closes: Sequence[float], period: int = 14) -> Optional[float]:
    """Wilder RSI. Needs period + 1 closes; 100 when there were no losses."""
    if len(closes) < period + 1:
        return None

    gains, losses = [], []
    for prev, cur in zip(closes, closes[1:]):
        change = cur - prev
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    for g, l in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + g) / period
        avg_loss = (avg_loss * (period - 1) + l) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


def ema(values: Sequence[float], period: int) -> List[float]:
    """EMA seeded with the SMA of the first ``period`` values (fewer if the series is shorter)."""
    if not values:
        return []
    k = 2 / (period + 1)
    seed = values[:period]
    out = [sum(seed) / len(seed)]
    for v in values[period:]:
        out.append((v - out[-1]) * k + out[-1])
    return out


def macd(closes: Sequence[float], fast: int = 12, slow: int = 26, signal: int = 9) -> Optional[MACDResult]:
    if len(closes) < slow:
        return None
    ema_fast = ema(closes, fast)
    ema_slow = ema(closes, slow)
    if not ema_fast or not ema_slow:
        return None

    # the fast series starts earlier; align both on the slow series' tail
    offset = len(ema_fast) - len(ema_slow)
    line = [ema_fast[i + offset] - ema_slow[i] for i in range(len(ema_slow))]
    if len(line) < signal:
        return None

    signal_line = ema(line, signal)
    m, s = line[-1], signal_line[-1]
    return MACDResult(macd=m, signal=s, histogram=m - s)


def bollinger(closes: Sequence[float], period: int = 20, width: float = 2) -> Optional[BollingerResult]:
    if len(closes) < period:
        return None
    window = closes[-period:]
    middle = _mean(window)
    std = math.sqrt(sum((c - middle) ** 2 for c in window) / period)
    upper, lower = middle + width * std, middle - width * std
    current = closes[-1]
    percent_b = (current - lower) / (upper - lower) * 100 if upper != lower else 50.0
    return BollingerResult(upper=upper, middle=middle, lower=lower, percent_b=percent_b)


def stoch_rsi_signal(k: float, d: float) -> str:
    if k > 80 and d > 80:
        return "Overbought"
    if k < 20 and d < 20:
        return "Oversold"
    if k > d:
        return "Bullish"
    if k < d:
        return "Bearish"
    return "Neutral"


def stoch_rsi(closes: Sequence[float], rsi_period: int = 14, stoch_period: int = 14,
              k_period: int = 3, d_period: int = 3) -> Optional[StochRSIResult]:
    if len(closes) < rsi_period + stoch_period + k_period + d_period:
        return None

    # one RSI per window of rsi_period + 1 closes
    rsi_values = []
    for end in range(rsi_period + 1, len(closes) + 1):
        value = rsi(closes[end - rsi_period - 1:end], rsi_period)
        if value is not None:
            rsi_values.append(value)
    if len(rsi_values) < stoch_period:
        return None

    stoch = []
    for end in range(stoch_period, len(rsi_values) + 1):
        window = rsi_values[end - stoch_period:end]
        lo, hi = min(window), max(window)
        stoch.append((rsi_values[end - 1] - lo) / (hi - lo) * 100 if hi != lo else 50.0)
    if len(stoch) < k_period + d_period:
        return None

    k_values = [_mean(stoch[end - k_period:end]) for end in range(k_period, len(stoch) + 1)]
    if len(k_values) < d_period:
        return None

    k = k_values[-1]
    d = _mean(k_values[-d_period:])
    return StochRSIResult(k=k, d=d, signal=stoch_rsi_signal(k, d))


def adx_trend(value: float) -> str:
    if value < 20:
        return "Weak/No Trend"
    if value < 40:
        return "Moderate Trend"
    if value < 60:
        return "Strong Trend"
    return "Very Strong Trend"


def adx(highs: Sequence[float], lows: Sequence[float], closes: Sequence[float],
        period: int = 14) -> Optional[ADXResult]:
    if min(len(highs), len(lows), len(closes)) < period * 2:
        return None

    trs, plus_dms, minus_dms = [], [], []
    for i in range(1, len(highs)):
        high, low = highs[i], lows[i]
        prev_high, prev_low, prev_close = highs[i - 1], lows[i - 1], closes[i - 1]
        trs.append(max(high - low, abs(high - prev_close), abs(low - prev_close)))
        up, down = high - prev_high, prev_low - low
        plus_dms.append(max(up, 0.0) if up > down else 0.0)
        minus_dms.append(max(down, 0.0) if down > up else 0.0)

    if len(trs) < period:
        return None

    # Wilder running sums
    atr = sum(trs[:period])
    s_plus = sum(plus_dms[:period])
    s_minus = sum(minus_dms[:period])

    def di(dm: float, tr: float) -> float:
        return dm / tr * 100 if tr != 0 else 0.0

    dxs = []
    for i in range(period, len(trs)):
        atr = atr - atr / period + trs[i]
        s_plus = s_plus - s_plus / period + plus_dms[i]
        s_minus = s_minus - s_minus / period + minus_dms[i]
        p, m = di(s_plus, atr), di(s_minus, atr)
        dxs.append(abs(p - m) / (p + m) * 100 if p + m != 0 else 0.0)

    if len(dxs) < period:
        return None

    value = _mean(dxs[:period])
    for dx in dxs[period:]:
        value = (value * (period - 1) + dx) / period

    return ADXResult(adx=value, plus_di=di(s_plus, atr), minus_di=di(s_minus, atr), trend=adx_trend(value))


def support_resistance(highs: Sequence[float], lows: Sequence[float],
                       closes: Sequence[float]) -> Optional[SupportResistance]:
    """Lowest swing low and highest swing high; None when they overlap."""
    if min(len(highs), len(lows), len(closes)) < 10:
        return None

    supports = [lows[i] for i in range(1, len(lows) - 1) if lows[i] < lows[i - 1] and lows[i] < lows[i + 1]]
    resistances = [highs[i] for i in range(1, len(highs) - 1)
                   if highs[i] > highs[i - 1] and highs[i] > highs[i + 1]]
    if not supports:
        supports = list(closes[-5:])
    if not resistances:
        resistances = list(closes[-5:])

    supports = [x for x in supports if math.isfinite(x)]
    resistances = [x for x in resistances if math.isfinite(x)]
    if not supports or not resistances:
        return None

    support, resistance = min(supports), max(resistances)
    if support >= resistance:
        return None
    return SupportResistance(support=support, resistance=resistance)
