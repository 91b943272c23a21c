# tests/test_recommendations.py
import pytest

from backend.lib.tariff_engine import recommendations as rec
from backend.lib.tariff_engine.recommendations import generate_recommendations, personalized_tips


def test_zero_usage_gets_starter_list():
    assert generate_recommendations(0, 10) == list(rec.STARTER_RECOMMENDATIONS)
    assert len(generate_recommendations(0, 100)) == 3


def test_high_usage_low_efficiency_fills_cap():
    tips = generate_recommendations(400, 30)
    assert tips == [rec.HIGH_USAGE[0], rec.HIGH_USAGE[1], rec.LOW_EFFICIENCY[0], rec.LOW_EFFICIENCY[1]]
    assert rec.MONITOR not in tips


def test_moderate_usage_fair_efficiency():
    assert generate_recommendations(200, 60) == [
        rec.MODERATE_USAGE, rec.FAIR_EFFICIENCY[0], rec.FAIR_EFFICIENCY[1], rec.MONITOR,
    ]


def test_good_usage_high_efficiency():
    assert generate_recommendations(100, 90) == [rec.GOOD_USAGE, rec.MONITOR]


@pytest.mark.parametrize("usage, first", [
    (150, rec.GOOD_USAGE),
    (150.5, rec.MODERATE_USAGE),
    (300, rec.MODERATE_USAGE),
    (301, rec.HIGH_USAGE[0]),
])
def test_usage_bucket_edges(usage, first):
    assert generate_recommendations(usage, 90)[0] == first


@pytest.mark.parametrize("efficiency, expected", [
    (49, rec.LOW_EFFICIENCY[0]),
    (50, rec.FAIR_EFFICIENCY[0]),
    (74, rec.FAIR_EFFICIENCY[0]),
    (75, rec.MONITOR),
])
def test_efficiency_bucket_edges(efficiency, expected):
    assert generate_recommendations(100, efficiency)[1] == expected


@pytest.mark.parametrize("usage", [1, 120, 180, 250, 350, 1000])
@pytest.mark.parametrize("efficiency", [0, 40, 60, 80, 100])
def test_never_more_than_four(usage, efficiency):
    assert 1 <= len(generate_recommendations(usage, efficiency)) <= rec.MAX_RECOMMENDATIONS


def test_tips_for_new_user():
    tips = personalized_tips(0)
    assert [t.id for t in tips] == ["start", "1", "2", "3"]


def test_tips_for_heavy_user():
    tips = personalized_tips(350)
    assert tips[0].id == "high-usage"
    assert tips[0].priority == "Critical"
    assert len(tips) == 7
    assert all(t.priority == "High" for t in tips if t.id in ("1", "2", "4", "6"))


def test_tip_priorities_follow_usage():
    tips = {t.id: t for t in personalized_tips(120)}
    assert tips["1"].priority == "High"
    assert tips["2"].priority == "Medium"
    assert tips["4"].priority == "Low"
