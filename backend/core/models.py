# backend/core/models.py
# Purpose: Request-scoped value objects passed through the scoring engine.
# Everything is frozen once built; serialisation uses camelCase keys.
from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt

Severity = Literal["low", "medium", "high", "critical"]
RiskLevel = Literal["low", "moderate", "elevated", "high"]
LiquidityStatus = Literal["locked", "partial", "unlocked", "unknown"]
SurvivalProbability = Literal["Very Low", "Low", "Moderate", "High", "Very High"]
Sentiment = Literal["Bullish", "Bearish", "Neutral"]
Recommendation = Literal["Buy", "Hold", "Research", "Wait", "Sell", "Avoid"]


def to_camel(name: str) -> str:
    # "buy_sell_ratio24h" -> "buySellRatio24h" (digits keep the following letter lowercase)
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class EngineModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------- market snapshot ----------

class Windowed(EngineModel):
    """One value per DexScreener timeframe."""
    m5: float = 0.0
    h1: float = 0.0
    h6: float = 0.0
    h24: float = 0.0


class VolumeWindows(Windowed):
    m5: NonNegativeFloat = 0.0
    h1: NonNegativeFloat = 0.0
    h6: NonNegativeFloat = 0.0
    h24: NonNegativeFloat = 0.0


class TxCount(EngineModel):
    buys: NonNegativeInt = 0
    sells: NonNegativeInt = 0

    @property
    def total(self) -> int:
        return self.buys + self.sells


class TxCounts(EngineModel):
    m5: TxCount = Field(default_factory=TxCount)
    h1: TxCount = Field(default_factory=TxCount)
    h6: TxCount = Field(default_factory=TxCount)
    h24: TxCount = Field(default_factory=TxCount)


class MarketSnapshot(EngineModel):
    price_usd: NonNegativeFloat = 0.0
    price_change: Windowed = Field(default_factory=Windowed)
    volume_usd: VolumeWindows = Field(default_factory=VolumeWindows)
    liquidity_usd: NonNegativeFloat = 0.0
    fdv: NonNegativeFloat = 0.0
    tx_counts: TxCounts = Field(default_factory=TxCounts)
    pair_created_at_ms: NonNegativeInt = 0


class SocialLink(EngineModel):
    platform: str
    handle: str = ""


class PairInfo(EngineModel):
    pair_address: str = ""
    dex_name: str = "Unknown DEX"
    chain_id: str = ""
    base_name: Optional[str] = None
    base_symbol: Optional[str] = None
    base_address: Optional[str] = None
    market_cap: NonNegativeFloat = 0.0
    image_url: Optional[str] = None
    websites: Tuple[str, ...] = ()
    socials: Tuple[SocialLink, ...] = ()


class SocialPresence(EngineModel):
    has_website: bool = False
    has_socials: bool = False
    has_enhanced_info: bool = False


# ---------- identity + security ----------

class TokenIdentity(EngineModel):
    name: str = "Unknown Token"
    symbol: str = "UNKNOWN"
    decimals: int = 18
    owner_address: Optional[str] = None
    is_owner_renounced: bool = True


class HoneypotFinding(EngineModel):
    is_honeypot: bool = False
    can_sell: bool = True
    reason: Optional[str] = None
    verified: bool = False
    buy_tax: Optional[float] = None
    sell_tax: Optional[float] = None


# ---------- engine outputs ----------

class TechnicalReport(EngineModel):
    momentum_score: float
    momentum_label: str
    volatility_index: float
    volatility_label: str
    recent_volume_ratio: float
    price_range_compression: float
    compression_label: str
    buy_sell_ratio24h: float
    buy_sell_ratio1h: float
    avg_buy_sell_ratio: float
    pressure_label: str
    velocity: float
    velocity_label: str
    volume_consistency: float
    consistency_label: str
    volume_liquidity_ratio: float
    liquidity_stability_label: str
    txn_frequency1h: int
    txn_frequency_label: str
    avg_trade_size: float
    trade_size_label: str
    price_impact100: float
    price_impact500: float
    price_impact1000: float


class Recovery(EngineModel):
    possible: bool = True
    indicators: Tuple[str, ...] = ()


class RugRiskResult(EngineModel):
    is_high_risk: bool = False
    severity: Severity = "low"
    flags: Tuple[str, ...] = ()
    recovery: Recovery = Field(default_factory=Recovery)


class SurvivalAnalysis(EngineModel):
    token_age_days: float
    age_in_hours: float
    passed24h: bool
    survival_score: int = Field(ge=0, le=100)
    survival_probability: SurvivalProbability
    risks: Tuple[str, ...] = ()
    positive_indicators: Tuple[str, ...] = ()
    recommendation: str


class RiskAssessment(EngineModel):
    score: int = Field(ge=0, le=100)
    level: RiskLevel
    flags: Tuple[str, ...] = ()
    liquidity_status: LiquidityStatus = "unknown"
    liquidity_usd: float = 0.0
    token_age_days: float = 0.0


class Commentary(EngineModel):
    technical_view: str
    overall_view: str
    sentiment: Sentiment
    sentiment_detail: str
    recommendation: Recommendation
    recommendation_detail: str
    scenario: str
    scenario_detail: str


class Candle(EngineModel):
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
