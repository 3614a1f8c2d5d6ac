# backend/core/technical.py
# Purpose: Market-health indicators derived from one MarketSnapshot.
# Weights and thresholds are part of the output contract; keep them bit-for-bit.
from __future__ import annotations

import math
from typing import Sequence, Tuple

from backend.core.models import MarketSnapshot, TechnicalReport

# 5m / 1h / 6h / 24h, favouring the 6h window (sums to 1.0)
WINDOW_WEIGHTS = (0.1, 0.25, 0.35, 0.3)

# Ordered (exclusive lower bound, label) tables; first bound exceeded wins.
Scale = Tuple[Tuple[Tuple[float, str], ...], str]

MOMENTUM_SCALE: Scale = (((5, "Strong Bullish"), (2, "Bullish"), (-2, "Neutral"), (-5, "Bearish")), "Strong Bearish")
VOLATILITY_SCALE: Scale = (((10, "Extreme"), (5, "High"), (2, "Moderate")), "Low")
PRESSURE_SCALE: Scale = (
    ((1.5, "Strong Buy Pressure"), (1.1, "Buy Pressure"), (0.9, "Balanced"), (0.6, "Sell Pressure")),
    "Strong Sell Pressure",
)
VELOCITY_SCALE: Scale = (
    ((3, "Accelerating Up"), (1, "Gaining Momentum"), (-1, "Stable"), (-3, "Losing Momentum")),
    "Accelerating Down",
)
COMPRESSION_SCALE: Scale = (((2, "Extremely Volatile"), (1.5, "High Volatility"), (0.8, "Moderate")), "Low Volatility")
CONSISTENCY_SCALE: Scale = (((70, "Very Steady"), (50, "Steady"), (30, "Moderate")), "Erratic")
LIQUIDITY_STABILITY_SCALE: Scale = (
    ((5, "High Risk - Extreme Volume"), (3, "Moderate Risk"), (1, "Healthy Activity")),
    "Low Activity",
)
TXN_FREQUENCY_SCALE: Scale = (((100, "Very High"), (50, "High"), (20, "Moderate")), "Low")
TRADE_SIZE_SCALE: Scale = (
    ((10000, "Large Whale Activity"), (5000, "Medium-Large Trades"), (1000, "Medium Trades")),
    "Small Trades",
)

PRICE_IMPACT_SIZES = (100, 500, 1000)


def classify(value: float, scale: Scale) -> str:
    bands, floor = scale
    for bound, label in bands:
        if value > bound:
            return label
    return floor


def _deltas(s: MarketSnapshot) -> Tuple[float, float, float, float]:
    pc = s.price_change
    return pc.m5, pc.h1, pc.h6, pc.h24


def _weighted(values: Sequence[float]) -> float:
    return sum(v * w for v, w in zip(values, WINDOW_WEIGHTS))


def momentum_score(s: MarketSnapshot) -> float:
    return _weighted(_deltas(s))


def recent_volume_ratio(s: MarketSnapshot) -> float:
    """1h volume against the average hourly volume of the last 24h (1 when no 24h volume)."""
    v = s.volume_usd
    return v.h1 / (v.h24 / 24) if v.h24 > 0 else 1.0


def volatility_index(s: MarketSnapshot) -> float:
    price_volatility = _weighted([abs(d) for d in _deltas(s)])
    return price_volatility * (1 + (recent_volume_ratio(s) - 1) * 0.5)


def buy_sell_ratio(buys: int, sells: int) -> float:
    return buys / sells if sells > 0 else 0.0


def buy_sell_ratios(s: MarketSnapshot) -> Tuple[float, float, float]:
    """(24h, 1h, average of both)."""
    t = s.tx_counts
    r24 = buy_sell_ratio(t.h24.buys, t.h24.sells)
    r1 = buy_sell_ratio(t.h1.buys, t.h1.sells)
    return r24, r1, (r24 + r1) / 2


def velocity(s: MarketSnapshot) -> float:
    m5, h1, h6, h24 = _deltas(s)
    return (m5 + h1) / 2 - (h6 + h24) / 2


def price_range_compression(s: MarketSnapshot) -> float:
    m5, _, _, h24 = _deltas(s)
    return abs(m5) / abs(h24) if abs(h24) > 0 else 1.0


def volume_consistency(s: MarketSnapshot) -> float:
    # Each window is extrapolated to a 24h basis by a fixed multiplier rather than
    # compared on overlapping windows; spiky tokens read as less consistent.
    v = s.volume_usd
    extrapolated = [x for x in (v.m5 * 288, v.h1 * 24, v.h6 * 4, v.h24) if x > 0]
    if not extrapolated:
        return 0.0
    mean = sum(extrapolated) / len(extrapolated)
    if mean <= 0:
        return 0.0
    variance = sum((x - mean) ** 2 for x in extrapolated) / len(extrapolated)
    return (1 - math.sqrt(variance) / mean) * 100


def volume_liquidity_ratio(s: MarketSnapshot) -> float:
    return s.volume_usd.h24 / s.liquidity_usd if s.liquidity_usd > 0 else 0.0


def txn_frequency_1h(s: MarketSnapshot) -> int:
    return s.tx_counts.h1.total


def avg_trade_size(s: MarketSnapshot) -> float:
    n = s.tx_counts.h24.total
    return s.volume_usd.h24 / n if n > 0 else 0.0


def price_impact(buy_usd: float, liquidity_usd: float) -> float:
    """Percent of the pool a buy of ``buy_usd`` represents, capped at 100 (100 for an empty pool)."""
    if liquidity_usd <= 0:
        return 100.0
    return min(100.0, buy_usd / liquidity_usd * 100)


def compute_technical(s: MarketSnapshot) -> TechnicalReport:
    momentum = momentum_score(s)
    vol_index = volatility_index(s)
    r24, r1, avg_ratio = buy_sell_ratios(s)
    vel = velocity(s)
    compression = price_range_compression(s)
    consistency = volume_consistency(s)
    vl_ratio = volume_liquidity_ratio(s)
    freq = txn_frequency_1h(s)
    trade_size = avg_trade_size(s)
    impacts = [price_impact(size, s.liquidity_usd) for size in PRICE_IMPACT_SIZES]

    return TechnicalReport(
        momentum_score=momentum,
        momentum_label=classify(momentum, MOMENTUM_SCALE),
        volatility_index=vol_index,
        volatility_label=classify(vol_index, VOLATILITY_SCALE),
        recent_volume_ratio=recent_volume_ratio(s),
        price_range_compression=compression,
        compression_label=classify(compression, COMPRESSION_SCALE),
        buy_sell_ratio24h=r24,
        buy_sell_ratio1h=r1,
        avg_buy_sell_ratio=avg_ratio,
        pressure_label=classify(avg_ratio, PRESSURE_SCALE),
        velocity=vel,
        velocity_label=classify(vel, VELOCITY_SCALE),
        volume_consistency=consistency,
        consistency_label=classify(consistency, CONSISTENCY_SCALE),
        volume_liquidity_ratio=vl_ratio,
        liquidity_stability_label=classify(vl_ratio, LIQUIDITY_STABILITY_SCALE),
        txn_frequency1h=freq,
        txn_frequency_label=classify(freq, TXN_FREQUENCY_SCALE),
        avg_trade_size=trade_size,
        trade_size_label=classify(trade_size, TRADE_SIZE_SCALE),
        price_impact100=impacts[0],
        price_impact500=impacts[1],
        price_impact1000=impacts[2],
    )
