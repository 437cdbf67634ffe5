"""Monthly title classifier.

The title is judged against the current *calendar* month, unlike the rolling
windows used by the spending queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from . import queries
from .models import CalendarMonth, MonthlyTitle, TitleKind, WardrobeItem

RESALE_TITLE_THRESHOLD = 500.0
OVERSPEND_RATIO = 1.5
FRUGAL_RATIO = 0.2
HIGH_VOLUME_COUNT = 10
BALANCED_TOLERANCE = 0.1

_TITLES = {
    TitleKind.ASCETIC: (
        "Zen Ascetic",
        "Not a single purchase. You have left the mortal realm.",
        "sparkles",
        "purple",
    ),
    TitleKind.PROFIT_MASTER: (
        "Resale Master",
        "Your closet is secretly an investment portfolio.",
        "yensign.circle.fill",
        "orange",
    ),
    TitleKind.OVERSPENDER: (
        "Wallet Shredder",
        "One more order and it's instant noodles till payday.",
        "exclamationmark.triangle.fill",
        "red",
    ),
    TitleKind.FRUGAL: (
        "Human Piggy Bank",
        "Stingy? No, the fine art of thrift.",
        "banknote.fill",
        "green",
    ),
    TitleKind.HIGH_VOLUME: (
        "Thousand-Handed Shopper",
        "The cart refills faster than the closet empties.",
        "hands.sparkles.fill",
        "pink",
    ),
    TitleKind.BALANCED: (
        "Balance Keeper",
        "Right on budget. Impressive restraint.",
        "scale.3d",
        "blue",
    ),
    TitleKind.ROOKIE: (
        "Rational Rookie",
        "Keep it up, the future looks bright.",
        "leaf.fill",
        "teal",
    ),
}


@dataclass(frozen=True, slots=True)
class MonthSummary:
    """Aggregate behaviour for one calendar month.

    Attributes:
        purchase_count: Items bought during the month.
        spend: Total price of those items.
        recovered: Resale income for items sold during the month.
        budget: Monthly budget ceiling.
    """

    purchase_count: int
    spend: float
    recovered: float
    budget: float


def summarize_month(
    items: Iterable[WardrobeItem], month: CalendarMonth, budget: float
) -> MonthSummary:
    pool = list(items)
    purchases = queries.month_purchases(pool, month)
    return MonthSummary(
        purchase_count=len(purchases),
        spend=sum((item.price for item in purchases), 0.0),
        recovered=queries.month_recovered(pool, month),
        budget=budget,
    )


def classify(
    summary: MonthSummary, *, resale_threshold: float = RESALE_TITLE_THRESHOLD
) -> TitleKind:
    """Walk the decision list in priority order; the first matching rule wins."""
    spend = summary.spend
    budget = summary.budget
    if summary.purchase_count == 0 and spend == 0:
        return TitleKind.ASCETIC
    if summary.recovered > resale_threshold:
        return TitleKind.PROFIT_MASTER
    if spend > budget * OVERSPEND_RATIO:
        return TitleKind.OVERSPENDER
    if 0 < spend < budget * FRUGAL_RATIO:
        return TitleKind.FRUGAL
    if summary.purchase_count > HIGH_VOLUME_COUNT:
        return TitleKind.HIGH_VOLUME
    if budget * (1 - BALANCED_TOLERANCE) <= spend <= budget * (1 + BALANCED_TOLERANCE):
        return TitleKind.BALANCED
    return TitleKind.ROOKIE


def title_for(kind: TitleKind) -> MonthlyTitle:
    title, subtitle, icon, color = _TITLES[kind]
    return MonthlyTitle(kind=kind, title=title, subtitle=subtitle, icon=icon, color=color)


def monthly_title(
    items: Iterable[WardrobeItem],
    budget: float,
    now: datetime,
    *,
    resale_threshold: float = RESALE_TITLE_THRESHOLD,
) -> MonthlyTitle:
    """Return the title earned by the calendar month containing ``now``."""
    summary = summarize_month(items, CalendarMonth.containing(now), budget)
    return title_for(classify(summary, resale_threshold=resale_threshold))


__all__ = ["MonthSummary", "classify", "monthly_title", "summarize_month", "title_for"]
