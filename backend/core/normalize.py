# backend/core/normalize.py
# Purpose: Map validated upstream payloads onto the engine's value objects.
from __future__ import annotations

from typing import Iterable, List, Optional

from backend.core.models import (
    MarketSnapshot, PairInfo, SocialLink, SocialPresence, TxCount, TxCounts, VolumeWindows, Windowed,
)
from backend.core.schemas import DexPair, TokenBoost, TokenProfile

MS_PER_DAY = 1000 * 60 * 60 * 24


def select_best_pair(pairs: Iterable[DexPair], chain_id: str = "bsc") -> Optional[DexPair]:
    """Deepest-liquidity pair on ``chain_id``; any chain's deepest pair when none is listed there."""
    pairs = list(pairs)
    if not pairs:
        return None
    on_chain = [p for p in pairs if p.chain_id == chain_id]
    pool = on_chain or pairs
    # stable sort keeps upstream order on ties
    return sorted(pool, key=lambda p: p.liquidity.usd, reverse=True)[0]


def build_snapshot(pair: Optional[DexPair]) -> MarketSnapshot:
    """Zeroed snapshot when no pair is listed."""
    if pair is None:
        return MarketSnapshot()

    def txn(w: str) -> TxCount:
        t = getattr(pair.txns, w)
        return TxCount(buys=t.buys, sells=t.sells)

    return MarketSnapshot(
        price_usd=max(0.0, pair.price_usd),
        price_change=Windowed(
            m5=pair.price_change.m5,
            h1=pair.price_change.h1,
            h6=pair.price_change.h6,
            h24=pair.price_change.h24,
        ),
        volume_usd=VolumeWindows(
            m5=max(0.0, pair.volume.m5),
            h1=max(0.0, pair.volume.h1),
            h6=max(0.0, pair.volume.h6),
            h24=max(0.0, pair.volume.h24),
        ),
        liquidity_usd=max(0.0, pair.liquidity.usd),
        fdv=max(0.0, pair.fdv),
        tx_counts=TxCounts(m5=txn("m5"), h1=txn("h1"), h6=txn("h6"), h24=txn("h24")),
        pair_created_at_ms=pair.pair_created_at,
    )


def _text(v) -> str:
    return v.strip() if isinstance(v, str) else ""


def _websites(raw: List) -> List[str]:
    """URLs from plain strings or {"url": ...} entries; anything else is skipped."""
    out = []
    for w in raw:
        url = _text(w.get("url")) if isinstance(w, dict) else _text(w)
        if url:
            out.append(url)
    return out


def _socials(raw: List) -> List[SocialLink]:
    """Entries without a string platform are skipped; a non-string handle becomes ""."""
    out = []
    for s in raw:
        if not isinstance(s, dict):
            continue
        platform = _text(s.get("type")) or _text(s.get("platform"))
        if not platform:
            continue
        out.append(SocialLink(platform=platform, handle=_text(s.get("url")) or _text(s.get("handle"))))
    return out


def build_pair_info(pair: Optional[DexPair]) -> PairInfo:
    if pair is None:
        return PairInfo()
    info = pair.info
    return PairInfo(
        pair_address=pair.pair_address,
        dex_name=pair.dex_id or "PancakeSwap",
        chain_id=pair.chain_id,
        base_name=pair.base_token.name,
        base_symbol=pair.base_token.symbol,
        base_address=pair.base_token.address,
        market_cap=max(0.0, pair.market_cap or pair.fdv),
        image_url=info.image_url if info else None,
        websites=tuple(_websites(info.websites)) if info else (),
        socials=tuple(_socials(info.socials)) if info else (),
    )


def find_profile(profiles: Iterable[TokenProfile], address: str, chain_id: str = "bsc") -> Optional[TokenProfile]:
    addr = address.lower()
    return next((p for p in profiles if p.token_address.lower() == addr and p.chain_id == chain_id), None)


def find_boost(boosts: Iterable[TokenBoost], address: str, chain_id: str = "bsc") -> Optional[TokenBoost]:
    addr = address.lower()
    return next((b for b in boosts if b.token_address.lower() == addr and b.chain_id == chain_id), None)


def build_social_presence(pair_info: PairInfo, profile: Optional[TokenProfile]) -> SocialPresence:
    return SocialPresence(
        has_website=len(pair_info.websites) > 0,
        has_socials=len(pair_info.socials) > 0,
        has_enhanced_info=bool(profile and profile.has_enhanced_info),
    )


def token_age_days(snapshot: MarketSnapshot, now_ms: int) -> float:
    """0 when the pair creation time is unknown."""
    if snapshot.pair_created_at_ms <= 0:
        return 0.0
    return (now_ms - snapshot.pair_created_at_ms) / MS_PER_DAY
