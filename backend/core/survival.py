# backend/core/survival.py
# Purpose: Age-bucketed survival score for freshly launched tokens.
# Starts at 50, accumulates signed adjustments, clamps to [0, 100].
from __future__ import annotations

from typing import List, Tuple

from backend.core.models import MarketSnapshot, SocialPresence, SurvivalAnalysis
from backend.core.technical import buy_sell_ratio, momentum_score, recent_volume_ratio

BASE_SCORE = 50

PROBABILITY_BANDS: Tuple[Tuple[int, str], ...] = (
    (80, "Very High"),
    (60, "High"),
    (40, "Moderate"),
    (20, "Low"),
)

REC_ACTIVE = ("ACTIVE OPPORTUNITY - Token in prime 0-24h window with strong momentum. "
              "High risk but potential for gains. Use tight stop losses.")
REC_AVOID = "AVOID - Token showing dump signals in critical first 24h. Likely pump-and-dump."
REC_MONITOR = ("MONITOR - Token in early phase. Wait for clearer momentum signals "
               "or pass 24h mark to assess survival.")
REC_SURVIVOR = ("SURVIVOR - Token passed 24h with strong metrics. "
                "Reduced risk but monitor for momentum maintenance.")
REC_DYING = ("DYING - Token past 24h but losing momentum/volume. "
             "Typical death pattern for failed launches. Avoid or exit.")
REC_ESTABLISHED = ("ESTABLISHED - Token survived multiple days with solid fundamentals. "
                   "Can potentially reach new ATHs with volume.")
REC_STRUGGLING = ("STRUGGLING - Token survived but showing weakness. "
                  "Needs volume/momentum catalyst for new ATHs.")
REC_DEAD = "DEAD/DYING - Token past initial period but metrics suggest project abandonment. Avoid."


def survival_probability(score: int) -> str:
    for floor, label in PROBABILITY_BANDS:
        if score >= floor:
            return label
    return "Very Low"


def _recommend(age_days: float, passed24h: bool, score: int,
               momentum: float, bsr24: float, vol24: float) -> str:
    if not passed24h:
        if momentum > 5 and bsr24 > 1.2 and vol24 > 10000:
            return REC_ACTIVE
        if momentum < -10 or bsr24 < 0.7:
            return REC_AVOID
        return REC_MONITOR
    if age_days < 2:
        return REC_SURVIVOR if score >= 60 else REC_DYING
    if score >= 70:
        return REC_ESTABLISHED
    if score >= 40:
        return REC_STRUGGLING
    return REC_DEAD


def analyze_survival(s: MarketSnapshot, age_days: float, social: SocialPresence) -> SurvivalAnalysis:
    momentum = momentum_score(s)
    bsr24 = buy_sell_ratio(s.tx_counts.h24.buys, s.tx_counts.h24.sells)
    pc, v = s.price_change, s.volume_usd
    past_day = age_days > 1

    score = BASE_SCORE
    positives: List[str] = []
    risks: List[str] = []

    # age bucket
    if age_days < 1:
        score += 10
        positives.append("Within 24h launch window - prime momentum phase")
        risks.append("Still in high-risk initial period - watch for dump signals")
    elif age_days < 2:
        positives.append("Passed 24h mark - survived initial pump phase")
        if momentum > 0 and bsr24 > 1.0:
            score += 25
            positives.append("Still maintaining momentum post-24h - rare survivor")
        else:
            score -= 15
            risks.append("Lost momentum after 24h - typical death pattern")
    elif age_days < 7:
        score += 20
        positives.append("Survived multiple days - strong validation signal")
    else:
        score += 30
        positives.append("Established token beyond 1 week - proven longevity")

    # volume trend
    volume_trend = recent_volume_ratio(s)
    if past_day:
        if volume_trend > 1.5 and v.h24 > 5000:
            score += 20
            positives.append("Volume surging post-24h - strong survival signal")
        elif volume_trend < 0.3 or v.h24 < 1000:
            score -= 25
            risks.append("Volume dying post-24h - token losing interest")
        elif volume_trend < 0.7:
            score -= 10
            risks.append("Volume declining - concerning trend")
    elif v.h24 > 10000:
        score += 15
        positives.append("Strong initial volume - high interest")

    if past_day:
        if momentum > 5:
            score += 20
            positives.append("Strong bullish momentum - capable of new ATHs")
        elif momentum < -5:
            score -= 20
            risks.append("Bearish momentum - unlikely to recover")
        elif momentum < 0:
            score -= 10
            risks.append("Negative momentum - needs reversal")

    if bsr24 > 1.3:
        score += 15
        positives.append("Strong buy pressure - demand building")
    elif bsr24 < 0.7:
        score -= 15
        risks.append("Heavy selling - weak demand")

    if s.liquidity_usd > 50000:
        score += 10
        positives.append("Strong liquidity - less rug risk")
    elif s.liquidity_usd < 10000:
        score -= 15
        risks.append("Low liquidity - high rug risk")

    if past_day:
        stabilizing = abs(pc.h1) < 20 and momentum > -5
        climbing = pc.h24 > 0 and pc.h6 > 0
        if stabilizing and climbing:
            score += 15
            positives.append("Stabilizing with upward bias - ideal post-launch pattern")
        elif abs(pc.h24) > 80:
            score -= 15
            risks.append("Extreme volatility - unstable price action")

    if social.has_website and social.has_socials and social.has_enhanced_info:
        score += 10
        positives.append("Full social presence - legitimate project")
    elif not social.has_website and not social.has_socials:
        score -= 10
        risks.append("No social presence - potential scam")

    score = max(0, min(100, score))
    return SurvivalAnalysis(
        token_age_days=age_days,
        age_in_hours=age_days * 24,
        passed24h=past_day,
        survival_score=score,
        survival_probability=survival_probability(score),
        risks=tuple(risks),
        positive_indicators=tuple(positives),
        recommendation=_recommend(age_days, past_day, score, momentum, bsr24, v.h24),
    )
