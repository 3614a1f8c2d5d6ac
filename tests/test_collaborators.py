import pytest
from web3 import Web3

from backend.core.schemas import GoPlusToken
from backend.utils import dexscreener, geckoterminal, honeypot, identity
from backend.utils.ratelimit import UpstreamError
from tests.conftest import TOKEN


# ---------- GoPlus ----------

@pytest.mark.parametrize("raw,pct", [("0.05", 5.0), ("0", 0.0), ("1", 100.0), ("12", 12.0), ("", None), (None, None),
                                     ("n/a", None)])
def test_tax_pct(raw, pct):
    assert honeypot._tax_pct(raw) == pct


def test_clean_goplus_record():
    f = honeypot.finding_from_goplus(GoPlusToken(is_honeypot="0", cannot_sell_all="0", buy_tax="0.01", sell_tax="0.02"))
    assert f.verified
    assert not f.is_honeypot
    assert f.can_sell
    assert (f.buy_tax, f.sell_tax) == (1.0, 2.0)
    assert f.reason is None


@pytest.mark.parametrize("fields,reason,can_sell", [
    ({"is_honeypot": "1"}, "Token flagged as honeypot", True),
    ({"cannot_sell_all": "1"}, "Token cannot be sold", False),
    ({"sell_tax": "1"}, "Token cannot be sold", False),
    ({"sell_tax": "0.6"}, "Extremely high sell tax: 60.0%", True),
])
def test_goplus_honeypot_reasons(fields, reason, can_sell):
    f = honeypot.finding_from_goplus(GoPlusToken(**fields))
    assert f.is_honeypot
    assert f.reason == reason
    assert f.can_sell is can_sell


def test_sell_tax_at_threshold_is_not_honeypot():
    assert not honeypot.finding_from_goplus(GoPlusToken(sell_tax="0.5")).is_honeypot


def test_check_honeypot(monkeypatch):
    seen = {}

    def fake_get(host, url, params=None, **kw):
        seen.update(host=host, url=url, params=params)
        return {"code": 1, "result": {TOKEN.lower(): {"is_honeypot": "0", "buy_tax": "0", "sell_tax": "0.03"}}}

    monkeypatch.setattr(honeypot, "http_get_json", fake_get)
    f = honeypot.check_honeypot(TOKEN)
    assert f.sell_tax == 3.0
    assert seen["host"] == "goplus"
    assert seen["url"].endswith("/token_security/56")
    assert seen["params"] == {"contract_addresses": TOKEN}


def test_check_honeypot_unknown_token(monkeypatch):
    monkeypatch.setattr(honeypot, "http_get_json", lambda *a, **kw: {"code": 1, "result": {}})
    with pytest.raises(ValueError, match="not found"):
        honeypot.check_honeypot(TOKEN)


# ---------- on-chain identity ----------

@pytest.fixture
def w3():
    return Web3()


def _word(n: int) -> bytes:
    return n.to_bytes(32, "big")


def test_read_identity_decodes_each_getter(monkeypatch, w3):
    answers = {
        "name()": w3.codec.encode(["string"], ["Safe Token"]),
        "symbol()": b"SAFE".ljust(32, b"\x00"),
        "decimals()": _word(9),
        "owner()": bytes(12) + bytes.fromhex("dead".rjust(40, "0")),
    }
    monkeypatch.setattr(identity, "_eth_call", lambda w, addr, sig: answers[sig])
    ident = identity.read_identity(TOKEN, w3=w3)
    assert ident.name == "Safe Token"
    assert ident.symbol == "SAFE"
    assert ident.decimals == 9
    assert ident.owner_address.lower() == "0x000000000000000000000000000000000000dead"
    assert ident.is_owner_renounced


def test_read_identity_defaults_missing_getters(monkeypatch, w3):
    owner = "0x" + "42" * 20
    answers = {"name()": None, "symbol()": None, "decimals()": _word(10 ** 6),
               "owner()": bytes(12) + bytes.fromhex(owner[2:])}
    monkeypatch.setattr(identity, "_eth_call", lambda w, addr, sig: answers[sig])
    ident = identity.read_identity(TOKEN, w3=w3)
    assert (ident.name, ident.symbol, ident.decimals) == ("Unknown Token", "UNKNOWN", 18)
    assert ident.owner_address.lower() == owner
    assert not ident.is_owner_renounced


def test_read_identity_raises_when_rpc_is_silent(monkeypatch, w3):
    monkeypatch.setattr(identity, "_eth_call", lambda w, addr, sig: None)
    with pytest.raises(UpstreamError):
        identity.read_identity(TOKEN, w3=w3)


@pytest.mark.parametrize("owner,renounced", [
    (None, True),
    ("0x0000000000000000000000000000000000000000", True),
    ("0x000000000000000000000000000000000000dEaD", True),
    ("0x" + "42" * 20, False),
])
def test_is_renounced(owner, renounced):
    assert identity.is_renounced(owner) is renounced


def test_decode_text_strips_control_bytes(w3):
    assert identity._decode_text(w3, b"AB\x01C".ljust(32, b"\x00")) == "ABC"
    assert identity._decode_text(w3, b"\x00" * 32) is None
    assert identity._decode_text(w3, b"short") is None


# ---------- GeckoTerminal ----------

@pytest.mark.parametrize("days,expected", [
    (1, ("minute", 15, "15m")), (3, ("minute", 15, "15m")), (14, ("hour", 1, "1h")), (30, ("hour", 4, "4h")),
])
def test_timeframe_for_days(days, expected):
    assert geckoterminal.timeframe_for_days(days) == expected


def test_fetch_ohlcv_sorts_and_drops_bad_rows(monkeypatch):
    seen = {}

    def fake_get(host, url, params=None, headers=None, **kw):
        seen.update(url=url, params=params, headers=headers)
        return {"data": {"attributes": {"ohlcv_list": [
            [3, 1, 2, 0.5, 1.5, 10],
            [1, "1", "1", "1", "1", None],
            [2, "x", 1, 1, None],
            [4, 1, 1, 1],
            "junk",
        ]}}}

    monkeypatch.setattr(geckoterminal, "http_get_json", fake_get)
    candles = geckoterminal.fetch_ohlcv("0xpool", "hour", 1)
    assert [c.timestamp for c in candles] == [1, 3]
    assert candles[0].volume == 0.0
    assert candles[1].close == 1.5
    assert seen["url"].endswith("/networks/bsc/pools/0xpool/ohlcv/hour")
    assert seen["params"]["currency"] == "usd"
    assert seen["headers"] == geckoterminal.HEADERS


def test_fetch_ohlcv_empty_payload(monkeypatch):
    monkeypatch.setattr(geckoterminal, "http_get_json", lambda *a, **kw: {"data": None})
    assert geckoterminal.fetch_ohlcv("0xpool") == []


# ---------- DexScreener ----------

def test_fetch_token_pairs(monkeypatch):
    monkeypatch.setattr(dexscreener, "http_get_json",
                        lambda *a, **kw: {"pairs": [{"chainId": "bsc", "pairAddress": "0xp", "liquidity": {"usd": 5}}]})
    pairs = dexscreener.fetch_token_pairs(TOKEN)
    assert [p.pair_address for p in pairs] == ["0xp"]


def test_fetch_token_pairs_unlisted(monkeypatch):
    monkeypatch.setattr(dexscreener, "http_get_json", lambda *a, **kw: {"schemaVersion": "1.0.0", "pairs": None})
    assert dexscreener.fetch_token_pairs(TOKEN) == []


def test_latest_profiles_are_cached(monkeypatch):
    calls = []

    def fake_get(host, url, **kw):
        calls.append(url)
        return [{"chainId": "bsc", "tokenAddress": TOKEN, "description": "hi"}, "junk"]

    monkeypatch.setattr(dexscreener, "http_get_json", fake_get)
    dexscreener.fetch_latest_profiles.cache_clear()
    try:
        first = dexscreener.fetch_latest_profiles()
        second = dexscreener.fetch_latest_profiles()
    finally:
        dexscreener.fetch_latest_profiles.cache_clear()
    assert len(calls) == 1
    assert first is second
    assert first[0].has_enhanced_info
