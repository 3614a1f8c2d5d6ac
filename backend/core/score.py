# backend/core/score.py
from __future__ import annotations
from typing import List, Tuple

from backend.core.models import HoneypotFinding, RiskAssessment, RugRiskResult

LEVEL_BANDS: Tuple[Tuple[int, str], ...] = ((80, "low"), (60, "moderate"), (40, "elevated"))


def risk_level(score: int) -> str:
    for floor, level in LEVEL_BANDS:
        if score >= floor:
            return level
    return "high"


def liquidity_status(liquidity_usd: float) -> str:
    if liquidity_usd > 50_000:
        return "locked"
    if liquidity_usd > 10_000:
        return "partial"
    return "unlocked"


def score_risk(
    *,
    honeypot: HoneypotFinding,
    liquidity_usd: float,
    owner_renounced: bool,
    age_days: float,
    volume_24h_usd: float,
    rug: RugRiskResult,
) -> RiskAssessment:
    """Start at 100 and deduct, in fixed order, for every risk that applies."""
    score = 100
    flags: List[str] = []

    # Honeypot / cannot sell / confiscatory sell tax
    if honeypot.is_honeypot:
        score -= 50
        flags.append(honeypot.reason or "Honeypot detected")

    # Liquidity
    status = liquidity_status(liquidity_usd)
    if status == "partial":
        score -= 15
        flags.append("Moderate liquidity detected")
    elif status == "unlocked":
        score -= 30
        flags.append("Low liquidity - high risk")

    # Ownership
    if not owner_renounced:
        score -= 15
        flags.append("Ownership not renounced")

    # Age (unknown age = 0, no penalty)
    if 0 < age_days < 3:
        score -= 10
        flags.append("Very young token (< 3 days old)")
    elif 0 < age_days < 7:
        score -= 5
        flags.append("Young token (< 1 week old)")

    # Volume
    if volume_24h_usd < 1000:
        score -= 5
        flags.append("Low 24h trading volume")

    # Rug / dump pattern
    if rug.is_high_risk:
        if rug.severity == "critical":
            score -= 60
            flags.append("CRITICAL: Rug/dump pattern detected - token may be dead")
        elif rug.severity == "high":
            score -= 40
            flags.append("HIGH RISK: Sharp drop detected - potential rug")
        if not rug.recovery.possible:
            score -= 20
            flags.append("No recovery signs - avoid")

    score = max(0, min(100, score))
    return RiskAssessment(
        score=score,
        level=risk_level(score),
        flags=tuple(flags),
        liquidity_status=status,
        liquidity_usd=liquidity_usd,
        token_age_days=age_days,
    )
