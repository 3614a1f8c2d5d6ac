import pytest

from backend.core import analyze as analyze_mod
from backend.core.models import (
    HoneypotFinding, MarketSnapshot, SocialPresence, TokenIdentity, TxCount, TxCounts, VolumeWindows, Windowed,
)
from backend.core.schemas import DexPair, TokenBoost, TokenProfile

DAY_MS = 86_400_000
NOW_MS = 1_700_000_000_000
TOKEN = "0x1111111111111111111111111111111111111111"


def make_snapshot(
    m5=0.0, h1=0.0, h6=0.0, h24=0.0,
    vol=(0.0, 0.0, 0.0, 0.0),
    liquidity=0.0,
    fdv=0.0,
    tx24=(0, 0),
    tx1=(0, 0),
    price=1.0,
    age_days=None,
):
    created = int(NOW_MS - age_days * DAY_MS) if age_days is not None else 0
    return MarketSnapshot(
        price_usd=price,
        price_change=Windowed(m5=m5, h1=h1, h6=h6, h24=h24),
        volume_usd=VolumeWindows(m5=vol[0], h1=vol[1], h6=vol[2], h24=vol[3]),
        liquidity_usd=liquidity,
        fdv=fdv,
        tx_counts=TxCounts(h24=TxCount(buys=tx24[0], sells=tx24[1]), h1=TxCount(buys=tx1[0], sells=tx1[1])),
        pair_created_at_ms=created,
    )


@pytest.fixture
def snap():
    return make_snapshot


@pytest.fixture
def safe_token():
    return TokenIdentity(name="Safe", symbol="SAFE", owner_address=None, is_owner_renounced=True)


@pytest.fixture
def clean_honeypot():
    return HoneypotFinding(verified=True, buy_tax=0.0, sell_tax=0.0)


@pytest.fixture
def full_socials():
    return SocialPresence(has_website=True, has_socials=True, has_enhanced_info=True)


@pytest.fixture
def no_socials():
    return SocialPresence()


def dex_pair(deltas=(0, 0, 0, 0), liquidity=100_000, volume24=50_000, fdv=1_000_000, age_days=60,
             txns24=(50, 50), txns1=(5, 5), volume1h=None, chain="bsc", pair_address="0xpool", info=None):
    m5, h1, h6, h24 = deltas
    volume1h = volume24 / 24 if volume1h is None else volume1h
    return DexPair.model_validate({
        "chainId": chain,
        "dexId": "pancakeswap",
        "pairAddress": pair_address,
        "baseToken": {"address": TOKEN, "name": "Safe", "symbol": "SAFE"},
        "priceUsd": "0.5",
        "priceChange": {"m5": m5, "h1": h1, "h6": h6, "h24": h24},
        "volume": {"m5": volume24 / 288, "h1": volume1h, "h6": volume24 / 4, "h24": volume24},
        "txns": {"h24": {"buys": txns24[0], "sells": txns24[1]}, "h1": {"buys": txns1[0], "sells": txns1[1]}},
        "liquidity": {"usd": liquidity},
        "fdv": fdv,
        "pairCreatedAt": NOW_MS - int(age_days * DAY_MS),
        "info": info if info is not None else {
            "websites": [{"url": "https://safe.io"}], "socials": [{"type": "twitter", "url": "https://x.com/s"}],
        },
    })


@pytest.fixture
def upstream(monkeypatch):
    """Patch every collaborator; tests tweak the returned dict before calling analyze_token."""
    state = {
        "identity": TokenIdentity(name="Safe", symbol="SAFE", is_owner_renounced=True),
        "security": HoneypotFinding(verified=True, buy_tax=0.0, sell_tax=0.0),
        "pairs": [dex_pair()],
        "profiles": [TokenProfile.model_validate({"chainId": "bsc", "tokenAddress": TOKEN, "description": "Safe"})],
        "boosts": [TokenBoost.model_validate({"chainId": "bsc", "tokenAddress": TOKEN, "amount": 10,
                                              "totalAmount": 50})],
        "ohlcv": [],
    }

    def answer(key):
        def fn(*args, **kwargs):
            v = state[key]
            if isinstance(v, Exception):
                raise v
            return v
        return fn

    monkeypatch.setattr(analyze_mod, "read_identity", answer("identity"))
    monkeypatch.setattr(analyze_mod, "check_honeypot", answer("security"))
    monkeypatch.setattr(analyze_mod, "fetch_token_pairs", answer("pairs"))
    monkeypatch.setattr(analyze_mod, "fetch_latest_profiles", answer("profiles"))
    monkeypatch.setattr(analyze_mod, "fetch_latest_boosts", answer("boosts"))
    monkeypatch.setattr(analyze_mod, "fetch_ohlcv", answer("ohlcv"))
    return state
