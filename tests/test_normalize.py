import pytest

from backend.core import normalize as n
from backend.core.schemas import DexPair, DexTokenPairs, GoPlusResponse, TokenProfile
from tests.conftest import DAY_MS, NOW_MS, TOKEN


def _pair(chain="bsc", liquidity=1000, **extra):
    raw = {"chainId": chain, "pairAddress": f"0xpair-{chain}-{liquidity}", "liquidity": {"usd": liquidity}}
    raw.update(extra)
    return DexPair.model_validate(raw)


def test_schema_coerces_loose_numbers():
    p = DexPair.model_validate({
        "chainId": "bsc",
        "priceUsd": "0.0012",
        "priceChange": {"m5": "1.5", "h1": None, "h6": "nan", "h24": -3},
        "volume": None,
        "txns": {"h24": {"buys": "12", "sells": None}, "h1": None},
        "liquidity": {"usd": "abc"},
        "fdv": None,
        "pairCreatedAt": "1699990000000",
        "info": {"websites": "not-a-list", "socials": [{"type": "twitter", "url": "https://x.com/t"}]},
    })
    assert p.price_usd == pytest.approx(0.0012)
    assert (p.price_change.m5, p.price_change.h1, p.price_change.h6, p.price_change.h24) == (1.5, 0.0, 0.0, -3.0)
    assert p.volume.h24 == 0.0
    assert (p.txns.h24.buys, p.txns.h24.sells, p.txns.h1.buys) == (12, 0, 0)
    assert p.liquidity.usd == 0.0
    assert p.fdv == 0.0
    assert p.pair_created_at == 1_699_990_000_000
    assert p.info.websites == []


def test_token_pairs_tolerates_null_list():
    assert DexTokenPairs.model_validate({"pairs": None}).pairs == []


def test_best_pair_prefers_bsc_then_liquidity():
    pairs = [_pair("ethereum", 9e6), _pair("bsc", 1000), _pair("bsc", 5000), _pair("bsc", 5000, dexId="second")]
    best = n.select_best_pair(pairs, "bsc")
    assert best.liquidity.usd == 5000
    assert best.dex_id is None


def test_best_pair_falls_back_to_any_chain():
    assert n.select_best_pair([_pair("base", 10), _pair("ethereum", 20)]).chain_id == "ethereum"
    assert n.select_best_pair([]) is None


def test_zero_snapshot_without_pair():
    s = n.build_snapshot(None)
    assert s.liquidity_usd == 0.0
    assert s.price_change.h24 == 0.0
    assert s.tx_counts.h24.total == 0
    assert n.token_age_days(s, NOW_MS) == 0.0
    info = n.build_pair_info(None)
    assert info.dex_name == "Unknown DEX"
    assert info.websites == ()


def test_snapshot_from_pair():
    p = _pair("bsc", 25_000, priceUsd="2", fdv="150000", pairCreatedAt=NOW_MS - 3 * DAY_MS,
              volume={"h24": 4000, "h1": "100"}, txns={"h24": {"buys": 8, "sells": 4}})
    s = n.build_snapshot(p)
    assert s.price_usd == 2.0
    assert s.liquidity_usd == 25_000
    assert s.fdv == 150_000
    assert s.volume_usd.h1 == 100.0
    assert s.tx_counts.h24.buys == 8
    assert n.token_age_days(s, NOW_MS) == pytest.approx(3.0)


def test_pair_info_collects_links():
    p = _pair("bsc", 1, dexId="pancakeswap", marketCap=None, fdv=321,
              baseToken={"address": TOKEN, "name": "Safe", "symbol": "SAFE"},
              info={"imageUrl": "https://img", "websites": [{"url": "https://safe.io"}, {"label": "x"}, "https://b.io"],
                    "socials": [{"type": "telegram", "url": "https://t.me/safe"}, {"url": "orphan"}, "junk"]})
    info = n.build_pair_info(p)
    assert info.dex_name == "pancakeswap"
    assert info.market_cap == 321
    assert info.base_symbol == "SAFE"
    assert info.websites == ("https://safe.io", "https://b.io")
    assert [s.platform for s in info.socials] == ["telegram"]
    presence = n.build_social_presence(info, None)
    assert (presence.has_website, presence.has_socials, presence.has_enhanced_info) == (True, True, False)


def test_pair_info_skips_non_string_links():
    p = _pair("bsc", 1, info={"imageUrl": {"src": "x"}, "websites": [{"url": 42}, 3.5, " https://ok.io "],
                              "socials": [{"type": 5, "url": "https://t"}, {"platform": "x", "handle": 9},
                                          {"type": None, "platform": ["twitter"]}]})
    info = n.build_pair_info(p)
    assert info.image_url is None
    assert info.websites == ("https://ok.io",)
    assert [(s.platform, s.handle) for s in info.socials] == [("x", "")]


def test_non_object_info_is_dropped():
    assert _pair("bsc", 1, info="broken").info is None
    assert n.build_pair_info(_pair("bsc", 1, info=[1, 2])).socials == ()

def test_find_profile_matches_chain_and_case():
    profiles = [
        TokenProfile.model_validate({"chainId": "ethereum", "tokenAddress": TOKEN, "description": "eth"}),
        TokenProfile.model_validate({"chainId": "bsc", "tokenAddress": TOKEN.upper().replace("0X", "0x"),
                                     "icon": "https://icon"}),
    ]
    found = n.find_profile(profiles, TOKEN)
    assert found.icon == "https://icon"
    assert found.has_enhanced_info
    assert n.find_profile(profiles, "0x" + "2" * 40) is None


def test_goplus_lookup_is_case_insensitive():
    resp = GoPlusResponse.model_validate({"code": 1, "result": {TOKEN.lower(): {"is_honeypot": 1, "sell_tax": 0.1}}})
    tok = resp.for_token(TOKEN.upper().replace("0X", "0x"))
    assert tok.is_honeypot == "1"
    assert tok.sell_tax == "0.1"
    assert GoPlusResponse.model_validate({"result": None}).for_token(TOKEN) is None
