import pytest

from backend.core import survival as sv


@pytest.mark.parametrize("score,label", [
    (100, "Very High"), (80, "Very High"), (79, "High"), (60, "High"), (59, "Moderate"),
    (40, "Moderate"), (39, "Low"), (20, "Low"), (19, "Very Low"), (0, "Very Low"),
])
def test_probability_bands(score, label):
    assert sv.survival_probability(score) == label


def test_fresh_launch_with_strong_momentum_is_active(snap, no_socials):
    s = snap(8, 8, 8, 8, vol=(0, 0, 0, 20_000), tx24=(14, 10), liquidity=60_000)
    res = sv.analyze_survival(s, 0.5, no_socials)
    assert res.passed24h is False
    assert res.age_in_hours == pytest.approx(12.0)
    assert res.recommendation == sv.REC_ACTIVE
    assert res.recommendation.startswith("ACTIVE OPPORTUNITY")
    assert "Within 24h launch window - prime momentum phase" in res.positive_indicators
    assert "Strong initial volume - high interest" in res.positive_indicators


def test_fresh_launch_dumping_is_avoid(snap, no_socials):
    res = sv.analyze_survival(snap(-15, -15, -15, -15, tx24=(10, 10)), 0.5, no_socials)
    assert res.recommendation == sv.REC_AVOID


def test_fresh_launch_without_signal_is_monitor(snap, no_socials):
    res = sv.analyze_survival(snap(tx24=(10, 10)), 0.5, no_socials)
    assert res.recommendation == sv.REC_MONITOR


def test_score_clamps_at_100(snap, full_socials):
    s = snap(10, 10, 10, 10, vol=(0, 1000, 0, 12_000), tx24=(20, 10), liquidity=100_000)
    res = sv.analyze_survival(s, 30, full_socials)
    assert res.survival_score == 100
    assert res.survival_probability == "Very High"
    assert res.recommendation == sv.REC_ESTABLISHED
    assert res.risks == ()


def test_score_clamps_at_zero(snap, no_socials):
    res = sv.analyze_survival(snap(-20, -20, -20, -20), 1.5, no_socials)
    assert res.survival_score == 0
    assert res.survival_probability == "Very Low"
    assert res.recommendation == sv.REC_DYING
    assert "Lost momentum after 24h - typical death pattern" in res.risks
    assert "Volume dying post-24h - token losing interest" in res.risks


def test_day_two_survivor(snap, no_socials):
    s = snap(3, 3, 3, 3, vol=(0, 1000, 0, 12_000), tx24=(20, 10), liquidity=60_000)
    res = sv.analyze_survival(s, 1.5, no_socials)
    assert "Still maintaining momentum post-24h - rare survivor" in res.positive_indicators
    assert res.survival_score >= 60
    assert res.recommendation == sv.REC_SURVIVOR


def test_abandoned_token_is_dead(snap, no_socials):
    res = sv.analyze_survival(snap(-20, -20, -20, -20), 10, no_socials)
    assert res.survival_score < 40
    assert res.recommendation == sv.REC_DEAD


def test_struggling_band(snap, no_socials):
    # 50 + 30 (age) - 15 (liquidity) - 10 (socials) = 55, everything else neutral
    s = snap(tx24=(10, 10), vol=(0, 100, 0, 2400))
    res = sv.analyze_survival(s, 10, no_socials)
    assert res.survival_score == 55
    assert res.recommendation == sv.REC_STRUGGLING


def test_extreme_swing_penalised_after_first_day(snap, no_socials):
    res = sv.analyze_survival(snap(0, 30, -10, 90, tx24=(10, 10)), 5, no_socials)
    assert "Extreme volatility - unstable price action" in res.risks
