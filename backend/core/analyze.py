# backend/core/analyze.py
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Any, Optional, List

print("[ANALYZE] Module import start")

from backend.core.chart_analysis import MIN_CANDLES, InsufficientCandlesError, build_chart_analysis
from backend.core.commentary import build_commentary
from backend.core.models import (
    Commentary, HoneypotFinding, MarketSnapshot, PairInfo, RiskAssessment, RugRiskResult,
    SocialPresence, SurvivalAnalysis, TechnicalReport, TokenIdentity,
)
from backend.core.normalize import (
    build_pair_info, build_snapshot, build_social_presence, find_boost, find_profile,
    select_best_pair, token_age_days,
)
from backend.core.rug_risk import assess_rug_risk
from backend.core.schemas import TokenBoost, TokenProfile
from backend.core.score import score_risk
from backend.core.survival import analyze_survival
from backend.core.technical import compute_technical
from backend.utils.addr import normalize_bsc_address
from backend.utils.dexscreener import fetch_latest_boosts, fetch_latest_profiles, fetch_token_pairs
from backend.utils.geckoterminal import fetch_ohlcv, timeframe_for_days
from backend.utils.honeypot import check_honeypot
from backend.utils.identity import read_identity
from backend.utils.upstream import Fetched, fetch_or_default

print("[ANALYZE] Imports OK")

CHAIN = "bsc"
CHART_LOOKBACK_DAYS = 14


@dataclass(frozen=True)
class EngineResult:
    snapshot: MarketSnapshot
    technical: TechnicalReport
    rug: RugRiskResult
    survival: SurvivalAnalysis
    risk: RiskAssessment
    commentary: Commentary


def run_engine(
    snapshot: MarketSnapshot,
    identity: TokenIdentity,
    honeypot: HoneypotFinding,
    social: SocialPresence,
    age_days: float,
) -> EngineResult:
    """One pass through the scoring engine. Pure: same inputs, same outputs."""
    tech = compute_technical(snapshot)
    rug = assess_rug_risk(snapshot)
    survival = analyze_survival(snapshot, age_days, social)
    risk = score_risk(
        honeypot=honeypot,
        liquidity_usd=snapshot.liquidity_usd,
        owner_renounced=identity.is_owner_renounced,
        age_days=age_days,
        volume_24h_usd=snapshot.volume_usd.h24,
        rug=rug,
    )
    commentary = build_commentary(
        honeypot=honeypot, risk=risk, rug=rug, survival=survival, tech=tech, age_days=age_days,
    )
    return EngineResult(snapshot, tech, rug, survival, risk, commentary)


# ---------- response composition ----------

def _txns(t) -> Dict[str, int]:
    return {"buys": t.buys, "sells": t.sells}


def _market(s: MarketSnapshot, pair: PairInfo) -> Dict[str, Any]:
    pc, v, tx = s.price_change, s.volume_usd, s.tx_counts
    return {
        "pairAddress": pair.pair_address,
        "dexName": pair.dex_name,
        "priceUsd": s.price_usd,
        "priceChange24hPct": pc.h24,
        "priceChange6hPct": pc.h6,
        "priceChange1hPct": pc.h1,
        "priceChange5mPct": pc.m5,
        "volume24hUsd": v.h24,
        "volume6hUsd": v.h6,
        "volume1hUsd": v.h1,
        "volume5mUsd": v.m5,
        "liquidityUsd": s.liquidity_usd,
        "fdv": s.fdv,
        "marketCap": pair.market_cap,
        "pairCreatedAt": s.pair_created_at_ms,
        "txns24h": _txns(tx.h24),
        "txns6h": _txns(tx.h6),
        "txns1h": _txns(tx.h1),
        "txns5m": _txns(tx.m5),
    }


def _technical(t: TechnicalReport, s: MarketSnapshot) -> Dict[str, Any]:
    pc = s.price_change
    return {
        "momentum": {
            "score": t.momentum_score,
            "label": t.momentum_label,
            "priceChange5m": pc.m5,
            "priceChange1h": pc.h1,
            "priceChange6h": pc.h6,
            "priceChange24h": pc.h24,
        },
        "volatility": {
            "index": t.volatility_index,
            "label": t.volatility_label,
            "recentVolumeRatio": t.recent_volume_ratio,
            "priceRangeCompression": t.price_range_compression,
            "compressionLabel": t.compression_label,
        },
        "pressure": {
            "buySellRatio24h": t.buy_sell_ratio24h,
            "buySellRatio1h": t.buy_sell_ratio1h,
            "avgBuySellRatio": t.avg_buy_sell_ratio,
            "label": t.pressure_label,
        },
        "velocity": {"value": t.velocity, "label": t.velocity_label},
        "marketHealth": {
            "volumeConsistency": t.volume_consistency,
            "consistencyLabel": t.consistency_label,
            "volumeLiquidityRatio": t.volume_liquidity_ratio,
            "liquidityStabilityLabel": t.liquidity_stability_label,
            "txnFrequency1h": t.txn_frequency1h,
            "txnFrequencyLabel": t.txn_frequency_label,
            "avgTradeSize": t.avg_trade_size,
            "tradeSizeLabel": t.trade_size_label,
        },
    }


def _profile(p: Optional[TokenProfile]) -> Optional[Dict[str, Any]]:
    if p is None:
        return None
    return {
        "description": p.description,
        "icon": p.icon,
        "header": p.header,
        "links": [link.model_dump() for link in p.links],
        "hasEnhancedInfo": p.has_enhanced_info,
    }


def _socials(pair: PairInfo) -> Dict[str, Any]:
    platforms = [s.to_dict() for s in pair.socials]
    has_twitter = any(
        "twitter" in s.platform.lower() or s.platform.lower() == "x" or "telegram" in s.platform.lower()
        for s in pair.socials
    )
    return {
        "websites": list(pair.websites),
        "platforms": platforms,
        "hasWebsite": bool(pair.websites),
        "hasTwitter": has_twitter,
    }


def _boost(b: Optional[TokenBoost]) -> Optional[Dict[str, float]]:
    return {"active": b.amount, "total": b.total_amount} if b else None


def compose_response(
    address: str,
    identity: TokenIdentity,
    honeypot: HoneypotFinding,
    pair: PairInfo,
    profile: Optional[TokenProfile],
    boost: Optional[TokenBoost],
    out: EngineResult,
    sources: Dict[str, Fetched],
) -> Dict[str, Any]:
    t = out.technical
    return {
        "address": address,
        "chain": CHAIN,
        "token": identity.to_dict(),
        "profile": _profile(profile),
        "socials": _socials(pair),
        "boost": _boost(boost),
        "honeypot": honeypot.to_dict(),
        "risk": {
            "score": out.risk.score,
            "level": out.risk.level,
            "flags": list(out.risk.flags),
            "liquidity": {"status": out.risk.liquidity_status, "usd": out.risk.liquidity_usd},
            "tokenAgeDays": out.risk.token_age_days,
        },
        "market": _market(out.snapshot, pair),
        "priceImpact": {"buy100": t.price_impact100, "buy500": t.price_impact500, "buy1000": t.price_impact1000},
        "technical": _technical(t, out.snapshot),
        "commentary": out.commentary.to_dict(),
        "rugRisk": out.rug.to_dict(),
        "survivalAnalysis": out.survival.to_dict(),
        "dataSources": {name: {"ok": f.ok, "error": f.error} for name, f in sources.items()},
    }


# ---------- entry points ----------

def analyze_token(
    token_address: str, now_ms: Optional[int] = None, max_qps: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Full token report. ``max_qps`` caps this call's own upstream request rate
    (batch scans); it never changes the rate other requests get.
    """
    print(f"[ANALYZE] analyze_token start addr={token_address} max_qps={max_qps}")

    # 1) Validate address (ValueError -> 400 at the edge)
    try:
        token = normalize_bsc_address(token_address)
        print(f"[ANALYZE] Address normalized: {token}")
    except ValueError as e:
        print(f"[ANALYZE] Address normalize FAIL: {e}")
        raise

    now_ms = int(time.time() * 1000) if now_ms is None else now_ms

    # 2) Fan out collaborators; each degrades to its documented default
    with ThreadPoolExecutor(max_workers=5) as ex:
        futs = {
            "identity": ex.submit(fetch_or_default, "IDENTITY", lambda: read_identity(token), TokenIdentity()),
            "security": ex.submit(fetch_or_default, "HONEYPOT", lambda: check_honeypot(token, max_qps=max_qps),
                                  HoneypotFinding()),
            "pairs": ex.submit(fetch_or_default, "DEXSCREENER", lambda: fetch_token_pairs(token, max_qps=max_qps), []),
            "profiles": ex.submit(fetch_or_default, "PROFILES", lambda: fetch_latest_profiles(max_qps=max_qps), []),
            "boosts": ex.submit(fetch_or_default, "BOOSTS", lambda: fetch_latest_boosts(max_qps=max_qps), []),
        }
        sources: Dict[str, Fetched] = {name: f.result() for name, f in futs.items()}
    degraded = [name for name, f in sources.items() if not f.ok]
    print(f"[ANALYZE] Collaborators done. degraded={degraded or 'none'}")

    # 3) Normalize
    best = select_best_pair(sources["pairs"].value, CHAIN)
    snapshot = build_snapshot(best)
    pair = build_pair_info(best)
    profile = find_profile(sources["profiles"].value, token, CHAIN)
    boost = find_boost(sources["boosts"].value, token, CHAIN)
    social = build_social_presence(pair, profile)
    age_days = token_age_days(snapshot, now_ms)
    print(f"[ANALYZE] Snapshot OK: pair={pair.pair_address or '-'} liq={snapshot.liquidity_usd:.0f} age={age_days:.2f}d")

    # 4) Engine
    identity: TokenIdentity = sources["identity"].value
    honeypot: HoneypotFinding = sources["security"].value
    out = run_engine(snapshot, identity, honeypot, social, age_days)
    print(f"[ANALYZE] Engine OK: risk={out.risk.score} ({out.risk.level}) "
          f"rec={out.commentary.recommendation} survival={out.survival.survival_score}")

    result = compose_response(token, identity, honeypot, pair, profile, boost, out, sources)
    print(f"[ANALYZE] analyze_token done addr={token} score={out.risk.score}")
    return result


def get_chart_analysis(token_address: str, days: int = CHART_LOOKBACK_DAYS) -> Dict[str, Any]:
    """
    Chart TA for the deepest BSC pool. Raises ValueError on a bad address and
    InsufficientCandlesError when no pool or not enough candle history is available.
    """
    print(f"[ANALYZE] get_chart_analysis start addr={token_address} days={days}")
    token = normalize_bsc_address(token_address)

    with ThreadPoolExecutor(max_workers=2) as ex:
        pairs_f = ex.submit(fetch_or_default, "DEXSCREENER", lambda: fetch_token_pairs(token), [])
        sec_f = ex.submit(fetch_or_default, "HONEYPOT", lambda: check_honeypot(token), HoneypotFinding())
        pairs: Fetched = pairs_f.result()
        security: Fetched = sec_f.result()

    bsc_pairs: List = [p for p in pairs.value if p.chain_id == CHAIN]
    if not bsc_pairs:
        reason = pairs.error or ("No BSC trading pairs found" if pairs.value else "Token not found on DexScreener")
        raise InsufficientCandlesError(f"Could not get enough OHLCV data for technical analysis. {reason}")

    best = select_best_pair(bsc_pairs, CHAIN)
    timeframe, aggregate, label = timeframe_for_days(days)
    ohlcv = fetch_or_default(
        "GECKOTERMINAL", lambda: fetch_ohlcv(best.pair_address, timeframe, aggregate), [],
    )
    if ohlcv.error or len(ohlcv.value) < MIN_CANDLES:
        detail = ohlcv.error or f"Only {len(ohlcv.value)} candles available, need at least {MIN_CANDLES}."
        print(f"[ANALYZE] Chart FAIL: {detail}")
        raise InsufficientCandlesError(f"Could not get enough OHLCV data for technical analysis. {detail}")

    out = build_chart_analysis(ohlcv.value, build_pair_info(best), build_snapshot(best), security.value, label)
    print(f"[ANALYZE] Chart OK: candles={len(ohlcv.value)} action={out['recommendation']['action']}")
    return out
