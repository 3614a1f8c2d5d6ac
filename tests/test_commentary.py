from backend.core import commentary as c
from backend.core.analyze import run_engine
from backend.core.models import HoneypotFinding, TokenIdentity


def _run(snapshot, age, honeypot=None, identity=None, social=None):
    from backend.core.models import SocialPresence

    return run_engine(
        snapshot,
        identity or TokenIdentity(),
        honeypot or HoneypotFinding(verified=True, buy_tax=0.0, sell_tax=0.0),
        social or SocialPresence(),
        age,
    )


def test_first_match_falls_back_to_default():
    assert c.first_match((), None, "fallback") == "fallback"
    rules = ((lambda x: False, "a"), (lambda x: True, "b"), (lambda x: True, "c"))
    assert c.first_match(rules, None, "z") == "b"


def test_honeypot_overrides_everything(snap):
    hp = HoneypotFinding(is_honeypot=True, can_sell=False, reason="Token cannot be sold", verified=True)
    out = _run(snap(10, 10, 10, 10, liquidity=500_000, vol=(0, 0, 0, 90_000), tx24=(50, 10)), 60, honeypot=hp)
    com = out.commentary
    assert com.recommendation == "Avoid"
    assert com.sentiment == "Bearish"
    assert com.scenario == "Avoid / Exit"
    assert com.overall_view.startswith("🚨 CRITICAL: Contract analysis confirms honeypot")


def test_weak_first_day_waits(snap):
    out = _run(snap(), 0.5)
    assert out.survival.survival_score < 30
    assert out.commentary.recommendation == "Wait"
    assert out.commentary.scenario == "Watchlist / Research"


def test_promising_first_day_is_research(snap, full_socials):
    out = _run(snap(liquidity=100_000), 0.5, social=full_socials)
    assert out.survival.survival_score >= 30
    assert out.commentary.recommendation == "Research"


def test_established_flat_token_holds(snap, safe_token, clean_honeypot):
    s = snap(liquidity=100_000, vol=(0, 2000, 12_000, 50_000), tx24=(10, 10), tx1=(10, 10))
    out = _run(s, 60, honeypot=clean_honeypot, identity=safe_token)
    assert out.risk.score >= 80
    assert out.technical.momentum_label == "Neutral"
    assert out.commentary.recommendation in {"Hold", "Buy"}
    assert out.commentary.sentiment == "Neutral"
    assert out.commentary.scenario == "Hold / Monitor"


def test_meme_token_with_momentum_buys(snap, safe_token):
    s = snap(10, 10, 10, 10, liquidity=100_000, vol=(0, 2500, 0, 50_000), tx24=(30, 10), tx1=(30, 10))
    out = _run(s, 3, identity=safe_token)
    assert out.commentary.recommendation == "Buy"
    assert out.commentary.sentiment == "Bullish"
    assert out.commentary.scenario == "Accumulate / Enter"


def test_weak_established_token_sells(snap):
    owned = TokenIdentity(owner_address="0x2222222222222222222222222222222222222222", is_owner_renounced=False)
    out = _run(snap(-5, -5, -5, -5, liquidity=5_000, tx24=(5, 10), tx1=(5, 10)), 60, identity=owned)
    assert out.commentary.recommendation == "Sell"
    assert out.commentary.sentiment == "Bearish"
    assert out.commentary.scenario == "Avoid / Exit"


def test_dead_rug_is_avoid_with_critical_view(snap, safe_token):
    s = snap(m5=-5, h1=-10, h6=-75, h24=-85, fdv=15_000, liquidity=5_000, vol=(0, 10, 0, 2400), tx24=(1, 5))
    out = _run(s, 10, identity=safe_token)
    assert out.commentary.recommendation == "Avoid"
    assert "no recovery signs" in out.commentary.recommendation_detail
    assert out.commentary.sentiment_detail == "Critical risk factors override all technical signals."
    assert "catastrophic price collapse" in out.commentary.overall_view


def test_technical_view_mentions_labels(snap):
    out = _run(snap(6, 6, 0, 0, tx24=(20, 10), tx1=(20, 10)), 30)
    view = out.commentary.technical_view
    assert out.technical.velocity_label.lower() in view
    assert "continuation potential" in view
    assert "whale accumulation" in view


def test_commentary_serialises_camel_case(snap):
    d = _run(snap(), 30).commentary.to_dict()
    assert set(d) == {
        "technicalView", "overallView", "sentiment", "sentimentDetail",
        "recommendation", "recommendationDetail", "scenario", "scenarioDetail",
    }
