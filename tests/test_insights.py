"""Tests for budget framing, price feedback and savings milestones."""

from __future__ import annotations

import random
from datetime import datetime, timedelta

import pytest

from closetbook.ledger import insights
from closetbook.ledger.models import Category, ItemStatus, RollingPeriod, Settings

from .conftest import NOW, make_item


def test_budget_standing_prefers_net_profit() -> None:
    assert insights.budget_standing(net=-50.0, saved=2050.0) is insights.BudgetStanding.NET_PROFIT
    assert insights.budget_standing(net=100.0, saved=400.0) is insights.BudgetStanding.UNDER_BUDGET
    assert insights.budget_standing(net=600.0, saved=-100.0) is insights.BudgetStanding.OVER_BUDGET
    assert insights.budget_standing(net=500.0, saved=0.0) is insights.BudgetStanding.ON_BUDGET


def test_budget_report_over_budget() -> None:
    items = [make_item(price=2500.0, purchased=NOW - timedelta(days=3))]

    report = insights.budget_report(items, Settings(), RollingPeriod.MONTH, NOW)

    assert report.spent == 2500.0
    assert report.saved == -500.0
    assert report.count == 1
    assert report.standing is insights.BudgetStanding.OVER_BUDGET
    assert "Over budget" in report.message


def test_budget_report_net_profit_from_resale() -> None:
    sold = make_item(
        price=900.0,
        purchased=datetime(2025, 1, 1),
        status=ItemStatus.SOLD,
        sold_price=700.0,
        sold_date=NOW - timedelta(days=1),
    )
    cheap = make_item(price=100.0, purchased=NOW - timedelta(days=1))

    report = insights.budget_report([sold, cheap], Settings(), RollingPeriod.WEEK, NOW)

    assert report.net == -600.0
    assert report.standing is insights.BudgetStanding.NET_PROFIT


@pytest.mark.parametrize(
    ("price", "baseline", "expected"),
    [
        (300.0, 0.0, insights.PriceVerdict.FIRST_PURCHASE),
        (99.0, 100.0, insights.PriceVerdict.GOOD_VALUE),
        (100.0, 100.0, insights.PriceVerdict.NEUTRAL),
        (200.0, 100.0, insights.PriceVerdict.NEUTRAL),
        (201.0, 100.0, insights.PriceVerdict.LUXURY),
    ],
)
def test_evaluate_price(price: float, baseline: float, expected: insights.PriceVerdict) -> None:
    assert insights.evaluate_price(price, baseline) is expected


def test_assess_purchase_warns_on_expensive_and_occasion_wear() -> None:
    items = [make_item(price=100.0)]

    cheap = insights.assess_purchase(items, Category.TOP, 80.0)
    occasion = insights.assess_purchase(
        items, Category.OCCASION, 1200.0, rng=random.Random(1)
    )

    assert cheap.verdict is insights.PriceVerdict.GOOD_VALUE
    assert cheap.warnings == []
    assert occasion.verdict is insights.PriceVerdict.LUXURY
    assert len(occasion.warnings) == 2
    assert occasion.warnings[0] in insights.EXPENSIVE_WARNINGS
    assert occasion.warnings[1] == insights.OCCASION_WARNING


def test_savings_ladder_thresholds() -> None:
    assert insights.savings_ladder(12.0)[0] == "Enough for a bubble tea."
    assert insights.savings_ladder(150000.0)[0].startswith("You've saved your first pot")
    assert insights.savings_ladder(2.0)[0].startswith("Every little bit")
    assert "crying" in insights.savings_ladder(-10.0)[0]


def test_verdicts_against_a_200_baseline() -> None:
    assert insights.evaluate_price(150.0, 200.0) is insights.PriceVerdict.GOOD_VALUE
    assert insights.evaluate_price(500.0, 200.0) is insights.PriceVerdict.LUXURY
    assert insights.evaluate_price(300.0, 200.0) is insights.PriceVerdict.NEUTRAL
