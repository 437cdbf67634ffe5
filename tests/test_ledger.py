"""Tests for ledger mutations and their persistence."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable

from closetbook.ledger import MutationStatus, WardrobeLedger, validate_new_item
from closetbook.ledger.models import Category, ItemStatus, RollingPeriod
from closetbook.state import StateRepository

from .conftest import NOW, MemoryGateway, RecordingImages, make_item

LedgerFactory = Callable[..., WardrobeLedger]


def test_add_item_persists_collection(
    ledger_factory: LedgerFactory, gateway: MemoryGateway
) -> None:
    ledger = ledger_factory()
    item = make_item()

    result = ledger.add_item(item)

    assert result.ok
    assert result.item_ids == [item.id]
    assert [stored.id for stored in gateway.items] == [item.id]


def test_ledger_hands_out_copies(ledger_factory: LedgerFactory) -> None:
    item = make_item()
    ledger = ledger_factory(item)

    copy = ledger.get(item.id)
    assert copy is not None
    copy.price = 1.0

    assert ledger.get(item.id).price == item.price


def test_update_unknown_item_is_not_found(ledger_factory: LedgerFactory) -> None:
    ledger = ledger_factory(make_item())

    result = ledger.update_item(make_item())

    assert result.status is MutationStatus.NOT_FOUND


def test_update_item_replaces_fields(ledger_factory: LedgerFactory) -> None:
    item = make_item(price=100.0)
    ledger = ledger_factory(item)

    edited = ledger.get(item.id)
    edited.price = 80.0
    edited.platform = "thrift"
    result = ledger.update_item(edited)

    assert result.ok
    assert ledger.get(item.id).platform == "thrift"
    assert ledger.get(item.id).price == 80.0


def test_sold_item_cannot_be_reactivated(ledger_factory: LedgerFactory) -> None:
    item = make_item()
    ledger = ledger_factory(item)
    ledger.mark_sold(item.id, 40.0)

    revived = ledger.get(item.id).model_copy(
        update={"status": ItemStatus.ACTIVE, "sold_price": None, "sold_date": None}
    )
    result = ledger.update_item(revived)

    assert result.status is MutationStatus.UNCHANGED
    assert result.warnings
    assert ledger.get(item.id).status is ItemStatus.SOLD


def test_update_cannot_sell_an_item(
    ledger_factory: LedgerFactory, gateway: MemoryGateway
) -> None:
    item = make_item(price=500.0)
    ledger = ledger_factory(item)

    sold = ledger.get(item.id).model_copy(update={"status": ItemStatus.SOLD, "sold_price": 300.0})
    result = ledger.update_item(sold)

    assert result.status is MutationStatus.UNCHANGED
    assert result.warnings == ["Use mark_sold to sell an item."]
    assert ledger.get(item.id).status is ItemStatus.ACTIVE
    assert ledger.total_recovered(RollingPeriod.WEEK) == 0.0
    assert gateway.saves == []


def test_delete_item_releases_photos(
    ledger_factory: LedgerFactory, images: RecordingImages
) -> None:
    item = make_item(image_refs=["a.jpg", "b.jpg"])
    ledger = ledger_factory(item)

    result = ledger.delete_item(item.id)

    assert result.ok
    assert ledger.items == []
    assert images.deleted == ["a.jpg", "b.jpg"]
    assert ledger.delete_item(item.id).status is MutationStatus.NOT_FOUND


def test_mark_sold_defaults_date_and_counts_recovery(ledger_factory: LedgerFactory) -> None:
    item = make_item(price=500.0, purchased=datetime(2025, 3, 1))
    ledger = ledger_factory(item)

    result = ledger.mark_sold(item.id, 200.0, sold_notes="to a friend")
    sold = ledger.get(item.id)

    assert result.ok
    assert sold.status is ItemStatus.SOLD
    assert sold.sold_date == NOW
    assert sold.sold_notes == "to a friend"
    assert ledger.total_recovered(RollingPeriod.WEEK) == 200.0
    assert ledger.mark_sold(item.id, 300.0).status is MutationStatus.UNCHANGED


def test_log_and_remove_wear(ledger_factory: LedgerFactory) -> None:
    item = make_item(price=300.0)
    ledger = ledger_factory(item)

    ledger.log_wear(item.id)
    ledger.log_wear(item.id, datetime(2026, 10, 18, 9))
    ledger.log_wear(item.id, datetime(2026, 10, 18, 20))

    assert ledger.get(item.id).wear_count == 3
    assert ledger.get(item.id).cost_per_wear == 100.0

    removed = ledger.remove_wear(item.id, date(2026, 10, 18))

    assert removed.ok
    assert ledger.get(item.id).wear_dates == [NOW]
    assert ledger.remove_wear(item.id, date(2026, 10, 1)).status is MutationStatus.UNCHANGED


def test_log_wear_dedupe_skips_same_day(ledger_factory: LedgerFactory) -> None:
    item = make_item()
    ledger = ledger_factory(item)

    ledger.log_wear(item.id, dedupe=True)
    second = ledger.log_wear(item.id, dedupe=True)

    assert second.status is MutationStatus.UNCHANGED
    assert ledger.get(item.id).wear_count == 1


def test_copy_yesterday_and_undo(ledger_factory: LedgerFactory, gateway: MemoryGateway) -> None:
    yesterday = NOW - timedelta(days=1)
    top = make_item(Category.TOP, wear_dates=[yesterday])
    shoes = make_item(Category.SHOES, wear_dates=[yesterday, NOW - timedelta(hours=1)])
    idle = make_item(Category.BAG)
    ledger = ledger_factory(top, shoes, idle)

    copied = ledger.copy_yesterday_outfit()

    assert copied.ok
    assert copied.item_ids == [top.id]
    assert ledger.get(top.id).wear_count == 2
    assert ledger.get(shoes.id).wear_count == 2
    assert gateway.session.last_copy_ids == [top.id]

    undone = ledger.undo_last_copy()

    assert undone.item_ids == [top.id]
    assert ledger.get(top.id).wear_dates == [yesterday]
    assert ledger.last_copy_ids == []
    assert ledger.undo_last_copy().status is MutationStatus.UNCHANGED


def test_copy_with_nothing_worn_yesterday_clears_buffer(ledger_factory: LedgerFactory) -> None:
    ledger = ledger_factory(make_item())

    result = ledger.copy_yesterday_outfit()

    assert result.status is MutationStatus.UNCHANGED
    assert ledger.last_copy_ids == []


def test_undo_survives_a_restart(tmp_path) -> None:
    yesterday = NOW - timedelta(days=1)
    repo = StateRepository(tmp_path)
    first = WardrobeLedger(repo, clock=lambda: NOW)
    item = make_item(wear_dates=[yesterday])
    first.add_item(item)
    first.copy_yesterday_outfit()

    second = WardrobeLedger(StateRepository(tmp_path), clock=lambda: NOW)

    assert second.last_copy_ids == [item.id]
    assert second.undo_last_copy().ok
    assert second.get(item.id).wear_dates == [yesterday]


def test_daily_notes_upsert_and_delete(
    ledger_factory: LedgerFactory, gateway: MemoryGateway
) -> None:
    ledger = ledger_factory()
    day = date(2026, 10, 18)

    ledger.set_daily_note(day, "rainy, wore boots")
    assert ledger.daily_note(day) == "rainy, wore boots"
    assert gateway.settings.daily_notes[day] == "rainy, wore boots"

    ledger.set_daily_note(datetime(2026, 10, 18, 22), "   ")
    assert ledger.daily_note(day) is None
    assert ledger.set_daily_note(day, "").status is MutationStatus.UNCHANGED


def test_budget_and_threshold_updates(ledger_factory: LedgerFactory) -> None:
    ledger = ledger_factory()

    ledger.update_budget(RollingPeriod.WEEK, 300)
    rejected = ledger.update_dormancy_threshold(0)
    ledger.update_dormancy_threshold(30)

    assert ledger.budget_for(RollingPeriod.WEEK) == 300
    assert rejected.status is MutationStatus.UNCHANGED
    assert ledger.settings.cold_threshold_days == 30


def test_failed_write_keeps_memory_and_warns(
    ledger_factory: LedgerFactory, gateway: MemoryGateway
) -> None:
    ledger = ledger_factory()
    gateway.fail = True

    result = ledger.add_item(make_item())

    assert result.ok
    assert len(ledger.items) == 1
    assert result.warnings and "disk full" in result.warnings[0]


def test_validate_new_item_reports_problems() -> None:
    item = make_item(price=0.0, justification=" ", image_refs=[])

    problems = validate_new_item(item)

    assert len(problems) == 3
    assert validate_new_item(make_item()) == []


def test_ledger_queries_use_clock(ledger_factory: LedgerFactory) -> None:
    recent = make_item(price=400.0, purchased=NOW - timedelta(days=2))
    stale = make_item(price=100.0, purchased=NOW - timedelta(days=100))
    ledger = ledger_factory(recent, stale)

    assert ledger.total_spending(RollingPeriod.WEEK) == 400.0
    assert ledger.money_saved(RollingPeriod.WEEK) == 100.0
    assert ledger.cold_items() == [stale]
    assert ledger.evaluate_price(100.0).value == "good_value"
