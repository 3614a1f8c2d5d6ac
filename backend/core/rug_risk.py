# backend/core/rug_risk.py
# Purpose: Catastrophic-drop detection with recovery indicators.
from __future__ import annotations

from typing import List

from backend.core.models import MarketSnapshot, Recovery, RugRiskResult
from backend.core.technical import buy_sell_ratios

DROP_24H_PCT = -80
DROP_6H_PCT = -70
DROP_1H_PCT = -50
LOW_FDV_USD = 20000


def format_usd(num: float) -> str:
    if num >= 1_000_000:
        return f"${num / 1_000_000:.2f}M"
    if num >= 1000:
        return f"${num / 1000:.2f}K"
    return f"${num:.2f}"


def is_triggered(s: MarketSnapshot) -> bool:
    return s.price_change.h24 < DROP_24H_PCT or s.price_change.h6 < DROP_6H_PCT


def recovery_indicators(s: MarketSnapshot) -> List[str]:
    pc, v = s.price_change, s.volume_usd
    r24, r1, _ = buy_sell_ratios(s)
    avg_hourly = v.h24 / 24

    out = []
    if pc.m5 > 0 and pc.h1 < pc.h6:
        out.append("Recent price stabilization detected")
    if r1 > r24 and r1 > 0.9:
        out.append("Buy pressure returning in recent hour")
    if v.h1 > avg_hourly * 1.5:
        out.append("Volume increasing - potential accumulation")
    return out


def assess_rug_risk(s: MarketSnapshot) -> RugRiskResult:
    """All-clear result unless the 24h or 6h window shows a catastrophic drop.

    Severity starts at ``high`` (``critical`` for a micro-cap fdv) and can only
    escalate to ``critical`` when nothing points to a recovery.
    """
    if not is_triggered(s):
        return RugRiskResult()

    pc, v = s.price_change, s.volume_usd
    r24, r1, _ = buy_sell_ratios(s)
    flags: List[str] = []

    if pc.h24 < DROP_24H_PCT:
        flags.append(f"Catastrophic 24h drop: {pc.h24:.1f}%")
    if pc.h6 < DROP_6H_PCT:
        flags.append(f"Severe 6h drop: {pc.h6:.1f}%")
    if pc.h1 < DROP_1H_PCT:
        flags.append(f"Sharp 1h drop: {pc.h1:.1f}%")

    if 0 < s.fdv < LOW_FDV_USD:
        flags.append(f"Extremely low market cap: {format_usd(s.fdv)}")
        severity = "critical"
    else:
        severity = "high"

    if r24 < 0.7 or r1 < 0.6:
        flags.append(f"Heavy sell pressure (ratio: {r24:.2f})")

    indicators = recovery_indicators(s)
    all_negative = pc.m5 < 0 and pc.h1 < 0 and pc.h6 < 0 and pc.h24 < 0
    volume_declining = v.h1 < (v.h24 / 24) * 0.5

    if all_negative and volume_declining and not indicators:
        severity = "critical"
        flags.append("No recovery signs - token may be dead")
        possible = False
    else:
        # ambiguous (no indicators, not clearly dead) stays pessimistic
        possible = bool(indicators)

    return RugRiskResult(
        is_high_risk=True,
        severity=severity,
        flags=tuple(flags),
        recovery=Recovery(possible=possible, indicators=tuple(indicators)),
    )
