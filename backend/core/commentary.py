# backend/core/commentary.py
# Purpose: Map the engine's numeric outputs to sentiment, recommendation,
# scenario and the prose views.
#
# Every table below is an ordered decision list: rows are evaluated top-down
# and the FIRST matching predicate wins. Rows are not independent rules;
# reordering them changes the output.
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Tuple, TypeVar

from backend.core.models import (
    Commentary, HoneypotFinding, RiskAssessment, RugRiskResult, SurvivalAnalysis, TechnicalReport,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Signals:
    """Everything the selectors read, gathered once per request."""
    honeypot: HoneypotFinding
    risk: RiskAssessment
    rug: RugRiskResult
    survival: SurvivalAnalysis
    tech: TechnicalReport
    age_days: float

    @property
    def momentum(self) -> float:
        return self.tech.momentum_score

    @property
    def bsr24(self) -> float:
        return self.tech.buy_sell_ratio24h

    @property
    def is_meme(self) -> bool:
        return self.age_days < 7

    @property
    def rug_dead(self) -> bool:
        return self.rug.is_high_risk and not self.rug.recovery.possible

    @property
    def rug_recovering(self) -> bool:
        return self.rug.is_high_risk and self.rug.recovery.possible

    @property
    def sentiment_score(self) -> float:
        return self.momentum * 0.6 + (self.tech.avg_buy_sell_ratio - 1) * 20


Rule = Tuple[Callable[[Signals], bool], T]


def first_match(rules: Sequence[Rule], x: Signals, default: T) -> T:
    for predicate, outcome in rules:
        if predicate(x):
            return outcome
    return default


def _meme_buy(x: Signals) -> bool:
    return (x.momentum > 5 and x.bsr24 > 1.1 and x.risk.score >= 60
            and not x.rug.is_high_risk and x.survival.survival_score >= 50)


def _meme_hold(x: Signals) -> bool:
    stabilized = x.age_days > 1 and x.tech.volume_consistency > 25
    return x.momentum > 0 and x.bsr24 > 0.9 and x.risk.score >= 50 and stabilized


def _meme_avoid(x: Signals) -> bool:
    return (x.risk.score < 40 or x.momentum < -10 or x.bsr24 < 0.7
            or x.survival.survival_score < 30)


# (recommendation, detail). The detail for a critical rug depends on recovery,
# so that row is split in two.
RECOMMENDATION_RULES: Tuple[Rule, ...] = (
    (lambda x: x.honeypot.is_honeypot,
     ("Avoid", "Token flagged as honeypot or has suspicious contract code. Do not buy.")),
    (lambda x: not x.survival.passed24h and x.survival.survival_score < 30,
     ("Wait", "Token is less than 24 hours old and showing weak survival signals. Most tokens die in "
              "this period - wait for 24h+ and monitor volume/price stability before considering entry.")),
    (lambda x: not x.survival.passed24h,
     ("Research", "Token under 24 hours old but showing some positive signals. High risk period - only "
                  "enter with tight stop losses and accept that most tokens die within 24h.")),
    (lambda x: x.rug.is_high_risk and x.rug.severity == "critical" and x.rug.recovery.possible,
     ("Avoid", "Severe dump detected but showing early recovery signs. Extreme risk - only for "
               "experienced traders with strict stop losses.")),
    (lambda x: x.rug.is_high_risk and x.rug.severity == "critical",
     ("Avoid", "Token has crashed with no recovery signs. Likely rugged or dead. Do not buy.")),
    (lambda x: x.rug.is_high_risk and x.rug.severity == "high",
     ("Avoid", "Sharp price drop indicates potential rug or major dump. Wait for clear recovery signals.")),
    # meme branch (< 1 week)
    (lambda x: x.is_meme and _meme_buy(x),
     ("Buy", "Strong bullish momentum with healthy buy pressure. Token passed 24h survival period "
             "with favorable metrics.")),
    (lambda x: x.is_meme and _meme_hold(x),
     ("Hold", "Positive momentum developing. Token showing signs of stabilization after launch phase.")),
    (lambda x: x.is_meme and _meme_avoid(x),
     ("Avoid", "Negative momentum and risk factors outweigh potential upside. Token may be dying.")),
    (lambda x: x.is_meme,
     ("Research", "Mixed signals. High volatility expected for new launch. Watch for clear trend formation.")),
    # established branch
    (lambda x: x.risk.score >= 70 and x.momentum > 2 and x.tech.volatility_index < 8,
     ("Buy", "Strong fundamentals with bullish momentum support entry opportunities.")),
    (lambda x: x.risk.score >= 50 and x.momentum > -2,
     ("Hold", "Decent fundamentals with mixed momentum. Monitor for clearer signals.")),
)
RECOMMENDATION_DEFAULT = ("Sell", "Risk factors and negative momentum suggest defensive positioning.")

SENTIMENT_RULES: Tuple[Rule, ...] = (
    (lambda x: x.honeypot.is_honeypot or x.rug_dead,
     ("Bearish", "Critical risk factors override all technical signals.")),
    (lambda x: x.rug_recovering,
     ("Bearish", "Severe downside pressure with early recovery attempts.")),
    (lambda x: x.sentiment_score > 5,
     ("Bullish", "Strong upward momentum with healthy buy pressure supporting continuation.")),
    (lambda x: x.sentiment_score > 2,
     ("Bullish", "Positive momentum developing with buyers stepping in at key levels.")),
    (lambda x: x.sentiment_score > -2,
     ("Neutral", "Balanced forces between buyers and sellers awaiting directional catalyst.")),
    (lambda x: x.sentiment_score > -5,
     ("Bearish", "Downward pressure building as sellers overwhelm demand zones.")),
)
SENTIMENT_DEFAULT = ("Bearish", "Heavy distribution pattern with sustained selling pressure across timeframes.")

SCENARIOS = {
    "Buy": ("Accumulate / Enter",
            "Favorable setup with momentum confirmation supports gradual position building."),
    "Sell": ("Avoid / Exit", "Risk-reward unfavorable; capital better deployed elsewhere."),
    "Avoid": ("Avoid / Exit", "Risk-reward unfavorable; capital better deployed elsewhere."),
    "Hold": ("Hold / Monitor", "Maintain position and watch for momentum shifts or trend confirmation."),
}
SCENARIO_DEFAULT = ("Watchlist / Research",
                    "Monitor for improved momentum or reduced volatility before considering entry.")


def select_recommendation(x: Signals) -> Tuple[str, str]:
    return first_match(RECOMMENDATION_RULES, x, RECOMMENDATION_DEFAULT)


def select_sentiment(x: Signals) -> Tuple[str, str]:
    return first_match(SENTIMENT_RULES, x, SENTIMENT_DEFAULT)


def select_scenario(recommendation: str) -> Tuple[str, str]:
    return SCENARIOS.get(recommendation, SCENARIO_DEFAULT)


# ---------- prose ----------

def technical_view(t: TechnicalReport) -> str:
    if t.velocity > 3:
        outlook = "continuation potential as accumulation phase develops"
    elif t.velocity < -3:
        outlook = "breakdown risk as distribution patterns emerge"
    else:
        outlook = "consolidation dynamics requiring catalyst for directional clarity"

    if t.avg_buy_sell_ratio > 1.3:
        flow = "indicating institutional or whale accumulation patterns"
    elif t.avg_buy_sell_ratio < 0.7:
        flow = "reflecting risk-off sentiment and potential capitulation"
    else:
        flow = "suggesting equilibrium between buyers and sellers"

    if t.volatility_index > 10:
        regime = "warranting heightened risk management protocols"
    elif t.volatility_index > 5:
        regime = "requiring active monitoring of position sizes"
    else:
        regime = "supporting confidence in technical pattern reliability"

    return (
        f"Market structure exhibits {t.momentum_label.lower()} characteristics across multiple timeframes, "
        f"with {t.velocity_label.lower()} price action suggesting {outlook}. "
        f"Order flow analysis reveals {t.pressure_label.lower()}, {flow}. "
        f"The prevailing volatility regime classifies as {t.volatility_label.lower()}, {regime}."
    )


OVERALL_HEADLINES: Tuple[Rule, ...] = (
    (lambda x: x.honeypot.is_honeypot,
     "🚨 CRITICAL: Contract analysis confirms honeypot characteristics - token cannot be safely "
     "traded regardless of other metrics."),
    (lambda x: x.rug_dead,
     "🚨 CRITICAL: Token has experienced catastrophic price collapse with no recovery indicators - "
     "characteristic of rug pulls or complete project abandonment. All metrics suggest token is dead."),
    (lambda x: x.rug_recovering,
     "⚠️ WARNING: Severe price dump detected. While early recovery signs exist, this exhibits classic "
     "post-rug volatility. Only suitable for high-risk traders with disciplined exit strategies."),
)

LIQUIDITY_LINES = {
    "locked": "Liquidity infrastructure demonstrates institutional-grade depth, enabling seamless "
              "execution across position sizes.",
    "partial": "Liquidity depth sits at moderate levels; execution quality degrades materially on larger "
               "orders requiring staged entry strategies.",
}
LIQUIDITY_DEFAULT = ("Liquidity environment presents significant constraints; price impact on modest orders "
                     "creates unfavorable risk-reward dynamics.")

VOLUME_LINES: Tuple[Tuple[float, str], ...] = (
    (5, "Volume significantly exceeding liquidity pools raises red flags for potential manipulation or "
        "coordinated pump activity."),
    (3, "Healthy volume-to-liquidity dynamics validate genuine market interest and organic price "
        "discovery mechanisms."),
    (1, "Moderate trading activity relative to available liquidity suggests organic participant "
        "engagement without manipulation concerns."),
)
VOLUME_DEFAULT = ("Subdued volume relative to liquidity depth may indicate waning interest or project "
                  "dormancy requiring catalyst identification.")


def _age_line(age_days: float) -> str:
    if 0 < age_days < 3:
        return ("As a sub-three-day launch, fundamental validation remains absent while volatility persists "
                "at extreme levels characteristic of speculative meme token price discovery.")
    if 3 <= age_days < 7:
        return (f"Recent launch dynamics ({age_days:.1f}-day history) necessitate observation for post-pump "
                "stabilization and sideways-climbing consolidation patterns that distinguish sustainable "
                "projects from pump-and-dump schemes.")
    return "Sufficient price history exists for statistical pattern recognition and technical framework application."


def overall_view(x: Signals) -> str:
    headline = first_match(
        OVERALL_HEADLINES, x,
        f"Risk architecture places this asset in the {x.risk.level} category for sophisticated traders "
        f"operating with disciplined frameworks.",
    )
    liquidity = LIQUIDITY_LINES.get(x.risk.liquidity_status, LIQUIDITY_DEFAULT)
    ratio = x.tech.volume_liquidity_ratio
    volume = next((line for bound, line in VOLUME_LINES if ratio > bound), VOLUME_DEFAULT)
    return " ".join((headline, liquidity, _age_line(x.age_days), volume))


def build_commentary(
    *,
    honeypot: HoneypotFinding,
    risk: RiskAssessment,
    rug: RugRiskResult,
    survival: SurvivalAnalysis,
    tech: TechnicalReport,
    age_days: float,
) -> Commentary:
    x = Signals(honeypot=honeypot, risk=risk, rug=rug, survival=survival, tech=tech, age_days=age_days)
    recommendation, recommendation_detail = select_recommendation(x)
    sentiment, sentiment_detail = select_sentiment(x)
    scenario, scenario_detail = select_scenario(recommendation)
    return Commentary(
        technical_view=technical_view(tech),
        overall_view=overall_view(x),
        sentiment=sentiment,
        sentiment_detail=sentiment_detail,
        recommendation=recommendation,
        recommendation_detail=recommendation_detail,
        scenario=scenario,
        scenario_detail=scenario_detail,
    )
