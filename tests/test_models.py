"""Tests for wardrobe item and settings models."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from closetbook.ledger.models import (
    CalendarMonth,
    Category,
    DressMeasurements,
    ItemStatus,
    LowerMeasurements,
    RollingPeriod,
    Settings,
    UpperMeasurements,
    WardrobeItem,
    measurements_for,
    to_local_naive,
)

from .conftest import make_item


def test_original_price_defaults_to_price() -> None:
    item = make_item(price=250.0)

    assert item.original_price == 250.0


def test_explicit_original_price_is_kept() -> None:
    item = make_item(price=250.0, original_price=400.0)

    assert item.original_price == 400.0


def test_cost_per_wear_is_full_price_when_unworn() -> None:
    item = make_item(price=300.0)

    assert item.wear_count == 0
    assert item.cost_per_wear == 300.0
    assert item.last_worn is None


def test_cost_per_wear_divides_by_wears() -> None:
    worn = [datetime(2026, 10, day, 9) for day in (2, 3, 4)]
    item = make_item(price=300.0, wear_dates=worn)

    assert item.cost_per_wear == pytest.approx(100.0)
    assert item.last_worn == datetime(2026, 10, 4, 9)
    assert item.worn_on(date(2026, 10, 3))
    assert not item.worn_on(date(2026, 10, 5))


def test_active_item_rejects_sold_fields() -> None:
    with pytest.raises(ValidationError):
        make_item(sold_price=50.0)


def test_sold_item_accepts_sold_fields() -> None:
    item = make_item(
        status=ItemStatus.SOLD, sold_price=50.0, sold_date=datetime(2026, 10, 10)
    )

    assert not item.is_active
    assert item.sold_price == 50.0


def test_measurement_kind_must_match_category() -> None:
    with pytest.raises(ValidationError):
        make_item(category=Category.BOTTOM, measurements=UpperMeasurements(chest="50"))

    with pytest.raises(ValidationError):
        make_item(category=Category.SHOES, measurements=LowerMeasurements(inseam="70"))


def test_measurements_for_picks_model_and_drops_blanks() -> None:
    upper = measurements_for(Category.OUTERWEAR, {"chest": " 56 ", "length": ""})
    dress = measurements_for(Category.DRESS, {"waistline": "34"})

    assert isinstance(upper, UpperMeasurements)
    assert upper.chest == "56"
    assert upper.length is None
    assert isinstance(dress, DressMeasurements)
    assert measurements_for(Category.BAG, {"chest": "40"}) is None
    assert measurements_for(Category.TOP, {"chest": "  "}) is None


def test_camel_case_wire_format_round_trips() -> None:
    item = make_item(
        category=Category.BOTTOM,
        measurements=LowerMeasurements(waistline="34", inseam="76"),
        target_cost_per_wear=5.0,
    )

    payload = item.model_dump(mode="json", by_alias=True)
    restored = WardrobeItem.model_validate(payload)

    assert "purchaseDate" in payload
    assert "targetCostPerWear" in payload
    assert payload["measurements"]["kind"] == "lower"
    assert restored == item


def test_aware_timestamps_are_normalized_to_naive_local() -> None:
    aware = datetime(2026, 10, 1, 12, tzinfo=timezone.utc)
    item = make_item(purchased=aware, wear_dates=[aware])

    assert item.purchase_date.tzinfo is None
    assert item.wear_dates[0].tzinfo is None
    assert item.purchase_date == to_local_naive(aware)


def test_rolling_period_window_is_inclusive_of_cutoff() -> None:
    now = datetime(2026, 10, 19, 12)

    assert RollingPeriod.WEEK.days == 7
    assert RollingPeriod.MONTH.days == 30
    assert RollingPeriod.YEAR.days == 365
    assert RollingPeriod.WEEK.contains(datetime(2026, 10, 12, 12), now)
    assert not RollingPeriod.WEEK.contains(datetime(2026, 10, 12, 11, 59), now)


def test_calendar_month_bounds() -> None:
    december = CalendarMonth.containing(date(2026, 12, 15))

    assert december.key == "2026-12"
    assert december.end == datetime(2027, 1, 1)
    assert december.days == 31
    assert december.contains(datetime(2026, 12, 31, 23, 59))
    assert not december.contains(datetime(2027, 1, 1))


def test_settings_defaults_and_budget_lookup() -> None:
    settings = Settings()

    assert settings.budget_for(RollingPeriod.WEEK) == 500
    assert settings.budget_for(RollingPeriod.MONTH) == 2000
    assert settings.budget_for(RollingPeriod.YEAR) == 24000
    assert settings.cold_threshold_days == 60


def test_category_catalog_labels() -> None:
    assert Category.LOUNGEWEAR.label
    assert Category.OCCASION.description
    assert len(list(Category)) == 9
