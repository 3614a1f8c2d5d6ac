# backend/core/chart_analysis.py
# Purpose: Compose the chart-analysis result (indicators + price action +
# order flow + recommendation) from candles and the token's market data.
from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

from backend.core import chart_ta
from backend.core.models import Candle, HoneypotFinding, MarketSnapshot, PairInfo

MIN_CANDLES = 26


class InsufficientCandlesError(RuntimeError):
    pass


def round_half_up(value: float, places: int = 0):
    """
    Round ties away from zero on the exact binary value, so 12.5 -> 13 and
    -0.125 -> -0.13 while 1.005 (really 1.00499...) -> 1.0. ``places=0`` returns an int.
    """
    if not math.isfinite(value):
        return value
    q = Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return int(q) if places == 0 else float(q)


def format_price(price: Optional[float]) -> Optional[float]:
    """Round by magnitude so micro-cap prices keep their significant digits."""
    if price is None or price != price:
        return None
    if price == 0:
        return 0.0
    if price < 0.0001:
        return round_half_up(price, 10)
    if price < 0.01:
        return round_half_up(price, 8)
    if price < 1:
        return round_half_up(price, 6)
    if price < 100:
        return round_half_up(price, 4)
    return round_half_up(price, 2)


def price_scale_factor(closes: Sequence[float], price_usd: float) -> float:
    """OHLCV from ratio-quoted pools comes back as ~1.0 pair ratios; scale those up to USD.

    Only ever scales up (factor > 2), never down.
    """
    avg = sum(closes) / len(closes) if closes else 0.0
    actual = price_usd or avg
    raw = actual / avg if avg != 0 else 1.0
    return raw if raw > 2 else 1.0


def rsi_signal(value: float) -> str:
    if value > 70:
        return "Overbought"
    if value < 30:
        return "Oversold"
    return "Bullish" if value > 50 else "Bearish"


def adx_signal(value: float) -> str:
    if value > 50:
        return "Very Strong"
    if value > 25:
        return "Strong"
    if value > 20:
        return "Moderate"
    return "Weak"


def histogram_bias(h: float) -> str:
    if h > 0:
        return "Bullish"
    if h < 0:
        return "Bearish"
    return "Neutral"


def trend_of(avg_momentum: float) -> tuple:
    """(trend, strength) from the mean of the four price deltas."""
    if avg_momentum > 10:
        return "Strong Bullish", "Strong"
    if avg_momentum > 3:
        return "Bullish", "Moderate"
    if avg_momentum < -10:
        return "Strong Bearish", "Strong"
    if avg_momentum < -3:
        return "Bearish", "Moderate"
    return "Neutral", "Weak"


def volume_signal(volume_24h: float, liquidity_usd: float) -> str:
    ratio = volume_24h / liquidity_usd if volume_24h and liquidity_usd > 0 else 0.0
    if ratio > 2:
        return "Very High"
    if ratio > 1:
        return "High"
    if ratio < 0.1:
        return "Low"
    return "Normal"


def buy_pressure(buys: int, sells: int) -> float:
    return buys / (buys + sells) * 100 if buys and sells else 50.0


def recommend(rsi: Optional[float], macd: Optional[chart_ta.MACDResult],
              avg_momentum: float, vol_signal: str, liquidity_usd: float) -> Dict[str, Any]:
    reasoning: List[str] = []
    if rsi is not None:
        if rsi > 70:
            reasoning.append("RSI overbought - potential pullback")
        elif rsi < 30:
            reasoning.append("RSI oversold - potential bounce")
    if macd is not None:
        if macd.histogram > 0:
            reasoning.append("MACD bullish crossover")
        elif macd.histogram < 0:
            reasoning.append("MACD bearish crossover")
    if avg_momentum > 5:
        reasoning.append("Strong momentum")
    elif avg_momentum < -5:
        reasoning.append("Weak momentum")
    if liquidity_usd and liquidity_usd < 10000:
        reasoning.append("Low liquidity warning")

    action, confidence = "Hold", "Medium"
    if rsi is not None and rsi < 30 and macd is not None and macd.histogram > 0:
        action, confidence = "Buy", "High"
    elif rsi is not None and rsi > 70 and macd is not None and macd.histogram < 0:
        action, confidence = "Sell", "High"
    elif avg_momentum > 10 and vol_signal == "High":
        action, confidence = "Buy", "Medium"
    elif avg_momentum < -10:
        action, confidence = "Sell", "Medium"

    return {"action": action, "confidence": confidence, "reasoning": reasoning}


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _scaled(value: Optional[float], factor: float) -> Optional[float]:
    return format_price(value * factor) if value else None


def build_chart_analysis(
    candles: Sequence[Candle],
    pair: PairInfo,
    snapshot: MarketSnapshot,
    security: HoneypotFinding,
    timeframe: str = "1h",
) -> Dict[str, Any]:
    """Raises InsufficientCandlesError with fewer than 26 candles."""
    if len(candles) < MIN_CANDLES:
        raise InsufficientCandlesError(
            f"Could not get enough OHLCV data for technical analysis. "
            f"Only {len(candles)} candles available, need at least {MIN_CANDLES}."
        )

    closes = [c.close for c in candles]
    highs = [c.high for c in candles]
    lows = [c.low for c in candles]

    factor = price_scale_factor(closes, snapshot.price_usd)

    rsi = chart_ta.rsi(closes)
    macd = chart_ta.macd(closes)
    bands = chart_ta.bollinger(closes)
    stoch = chart_ta.stoch_rsi(closes)
    adx = chart_ta.adx(highs, lows, closes)
    levels = chart_ta.support_resistance(highs, lows, closes)

    pc = snapshot.price_change
    avg_momentum = (pc.m5 + pc.h1 + pc.h6 + pc.h24) / 4
    trend, strength = trend_of(avg_momentum)
    vol24 = snapshot.volume_usd.h24
    vol_signal = volume_signal(vol24, snapshot.liquidity_usd)
    buys, sells = snapshot.tx_counts.h24.buys, snapshot.tx_counts.h24.sells

    return {
        "tokenName": pair.base_name or "Unknown",
        "tokenSymbol": pair.base_symbol or "???",
        "tokenAddress": pair.base_address,
        "logo": pair.image_url,
        "priceUsd": snapshot.price_usd,
        "priceChange24h": pc.h24,
        "marketCap": pair.market_cap,
        "dataSource": "GeckoTerminal OHLCV",
        "dataQuality": "real",
        "timeframe": timeframe,
        "candleInfo": {
            "count": len(candles),
            "periodHours": round_half_up((candles[-1].timestamp - candles[0].timestamp) / 3600),
            "firstCandle": _iso(candles[0].timestamp),
            "lastCandle": _iso(candles[-1].timestamp),
        },
        "priceScaleFactor": round_half_up(factor, 4),
        "technicalIndicators": {
            "rsi": {
                "value": round_half_up(rsi, 2),
                "period": 14,
                "timeframe": timeframe,
                "signal": rsi_signal(rsi),
            } if rsi is not None else None,
            "macd": {
                "macd": format_price(macd.macd * factor),
                "signal": format_price(macd.signal * factor),
                "histogram": format_price(macd.histogram * factor),
                "periods": "12/26/9",
                "timeframe": timeframe,
                "interpretation": histogram_bias(macd.histogram),
            } if macd else None,
            "bollingerBands": {
                "upper": _scaled(bands.upper, factor),
                "middle": _scaled(bands.middle, factor),
                "lower": _scaled(bands.lower, factor),
                "percentB": round_half_up(bands.percent_b),
                "period": 20,
                "timeframe": timeframe,
            } if bands else None,
            "stochRSI": {
                "k": round_half_up(stoch.k, 2),
                "d": round_half_up(stoch.d, 2),
                "signal": stoch.signal,
                "timeframe": timeframe,
            } if stoch else None,
            "adx": {
                "value": round_half_up(adx.adx, 2),
                "plusDI": round_half_up(adx.plus_di, 2),
                "minusDI": round_half_up(adx.minus_di, 2),
                "signal": adx_signal(adx.adx),
                "trend": adx.trend,
            } if adx else None,
        },
        "priceAction": {
            "trend": trend,
            "trendStrength": strength,
            "momentum": {"m5": pc.m5, "h1": pc.h1, "h6": pc.h6, "h24": pc.h24},
            "support": _scaled(levels.support, factor) if levels else None,
            "resistance": _scaled(levels.resistance, factor) if levels else None,
        },
        "volumeAnalysis": {
            "volume24h": vol24,
            "liquidity": snapshot.liquidity_usd,
            "signal": vol_signal,
        },
        "orderFlow": {
            "buys": buys,
            "sells": sells,
            "buyPressure": buy_pressure(buys, sells),
        },
        "recommendation": recommend(rsi, macd, avg_momentum, vol_signal, snapshot.liquidity_usd),
        "security": {
            "isHoneypot": security.is_honeypot,
            "verified": security.verified,
            "buyTax": security.buy_tax,
            "sellTax": security.sell_tax,
        },
    }
