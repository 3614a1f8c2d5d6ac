# backend/core/schemas.py
# Purpose: Explicit schemas for the upstream payloads (DexScreener, GoPlus,
# GeckoTerminal). Loose/missing/non-numeric fields are defaulted here so the
# rest of the engine never sees a partial shape.
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _num(v: Any) -> float:
    """DexScreener sends numbers as strings, numbers or null. Anything unusable -> 0."""
    if v is None or isinstance(v, bool):
        return 0.0
    try:
        f = float(v)
    except (TypeError, ValueError):
        return 0.0
    return f if f == f and f not in (float("inf"), float("-inf")) else 0.0


def _count(v: Any) -> int:
    return max(0, int(_num(v)))


class _Upstream(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------- DexScreener ----------

class DexWindows(_Upstream):
    m5: float = 0.0
    h1: float = 0.0
    h6: float = 0.0
    h24: float = 0.0

    @field_validator("m5", "h1", "h6", "h24", mode="before")
    @classmethod
    def _coerce(cls, v):
        return _num(v)


class DexTxn(_Upstream):
    buys: int = 0
    sells: int = 0

    @field_validator("buys", "sells", mode="before")
    @classmethod
    def _coerce(cls, v):
        return _count(v)


class DexTxns(_Upstream):
    m5: DexTxn = Field(default_factory=DexTxn)
    h1: DexTxn = Field(default_factory=DexTxn)
    h6: DexTxn = Field(default_factory=DexTxn)
    h24: DexTxn = Field(default_factory=DexTxn)

    @field_validator("m5", "h1", "h6", "h24", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if isinstance(v, dict) else {}


class DexLiquidity(_Upstream):
    usd: float = 0.0

    @field_validator("usd", mode="before")
    @classmethod
    def _coerce(cls, v):
        return _num(v)


class DexToken(_Upstream):
    address: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None


class DexInfo(_Upstream):
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    websites: List[Any] = Field(default_factory=list)
    socials: List[Any] = Field(default_factory=list)

    @field_validator("websites", "socials", mode="before")
    @classmethod
    def _listify(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("image_url", mode="before")
    @classmethod
    def _str_or_none(cls, v):
        return v if isinstance(v, str) else None


class DexPair(_Upstream):
    chain_id: str = Field(default="", alias="chainId")
    dex_id: Optional[str] = Field(default=None, alias="dexId")
    pair_address: str = Field(default="", alias="pairAddress")
    base_token: DexToken = Field(default_factory=DexToken, alias="baseToken")
    quote_token: DexToken = Field(default_factory=DexToken, alias="quoteToken")
    price_usd: float = Field(default=0.0, alias="priceUsd")
    price_change: DexWindows = Field(default_factory=DexWindows, alias="priceChange")
    volume: DexWindows = Field(default_factory=DexWindows)
    txns: DexTxns = Field(default_factory=DexTxns)
    liquidity: DexLiquidity = Field(default_factory=DexLiquidity)
    fdv: float = 0.0
    market_cap: float = Field(default=0.0, alias="marketCap")
    pair_created_at: int = Field(default=0, alias="pairCreatedAt")
    info: Optional[DexInfo] = None

    @field_validator("info", mode="before")
    @classmethod
    def _dict_or_none(cls, v):
        return v if isinstance(v, (dict, DexInfo)) else None

    @field_validator("price_usd", "fdv", "market_cap", mode="before")
    @classmethod
    def _coerce_num(cls, v):
        return _num(v)

    @field_validator("pair_created_at", mode="before")
    @classmethod
    def _coerce_ts(cls, v):
        return _count(v)

    @field_validator("price_change", "volume", "txns", "liquidity", "base_token", "quote_token", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if isinstance(v, dict) else {}

    @field_validator("chain_id", "pair_address", mode="before")
    @classmethod
    def _none_to_blank(cls, v):
        return v if isinstance(v, str) else ""


class DexTokenPairs(_Upstream):
    pairs: List[DexPair] = Field(default_factory=list)

    @field_validator("pairs", mode="before")
    @classmethod
    def _listify(cls, v):
        return v if isinstance(v, list) else []


class DexLink(_Upstream):
    type: Optional[str] = None
    label: Optional[str] = None
    url: Optional[str] = None


class TokenProfile(_Upstream):
    chain_id: str = Field(default="", alias="chainId")
    token_address: str = Field(default="", alias="tokenAddress")
    url: Optional[str] = None
    icon: Optional[str] = None
    header: Optional[str] = None
    description: Optional[str] = None
    links: List[DexLink] = Field(default_factory=list)

    @property
    def has_enhanced_info(self) -> bool:
        return bool(self.description or self.icon)


class TokenBoost(_Upstream):
    chain_id: str = Field(default="", alias="chainId")
    token_address: str = Field(default="", alias="tokenAddress")
    amount: float = 0.0
    total_amount: float = Field(default=0.0, alias="totalAmount")

    @field_validator("amount", "total_amount", mode="before")
    @classmethod
    def _coerce(cls, v):
        return _num(v)


# ---------- GoPlus ----------

class GoPlusToken(_Upstream):
    """Flags arrive as "0"/"1" strings, taxes as fractional strings ("0.05" = 5%)."""
    is_honeypot: Optional[str] = None
    cannot_sell_all: Optional[str] = None
    buy_tax: Optional[str] = None
    sell_tax: Optional[str] = None
    is_open_source: Optional[str] = None
    is_proxy: Optional[str] = None
    owner_address: Optional[str] = None
    creator_address: Optional[str] = None
    holder_count: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, v):
        return None if v is None else str(v)


class GoPlusResponse(_Upstream):
    code: Optional[int] = None
    message: Optional[str] = None
    result: dict = Field(default_factory=dict)

    @field_validator("result", mode="before")
    @classmethod
    def _dictify(cls, v):
        return v if isinstance(v, dict) else {}

    def for_token(self, address: str) -> Optional[GoPlusToken]:
        raw = self.result.get(address.lower())
        return GoPlusToken.model_validate(raw) if isinstance(raw, dict) else None


# ---------- GeckoTerminal ----------

class GeckoOhlcvAttributes(_Upstream):
    ohlcv_list: List[List[Any]] = Field(default_factory=list)

    @field_validator("ohlcv_list", mode="before")
    @classmethod
    def _listify(cls, v):
        return [row for row in v if isinstance(row, (list, tuple))] if isinstance(v, list) else []


class GeckoOhlcvData(_Upstream):
    attributes: GeckoOhlcvAttributes = Field(default_factory=GeckoOhlcvAttributes)

    @field_validator("attributes", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if isinstance(v, dict) else {}


class GeckoOhlcvResponse(_Upstream):
    data: GeckoOhlcvData = Field(default_factory=GeckoOhlcvData)

    @field_validator("data", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if isinstance(v, dict) else {}
