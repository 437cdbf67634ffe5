"""Derived queries over the wardrobe collection.

Every function here is a pure function of ``(items, settings, now)``. Nothing is
cached: at personal scale a linear scan per call is cheap, and recomputing keeps
the results consistent with whatever the last mutation left behind.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .models import (
    BASELINE_EXCLUDED_CATEGORIES,
    COLD_EXEMPT_CATEGORIES,
    CalendarMonth,
    Category,
    CategorySpending,
    ItemStatus,
    MonthlyGroup,
    RollingPeriod,
    Settings,
    WardrobeItem,
)

RECENT_LIMIT = 10


class SortOption(str, Enum):
    """Orderings offered by item listings."""

    NEWEST = "newest"
    PRICE_HIGH = "price_high"
    PRICE_LOW = "price_low"
    WEAR_MOST = "wear_most"
    WEAR_LEAST = "wear_least"
    CPW_LOW = "cpw_low"
    CPW_HIGH = "cpw_high"


# Cost per wear ------------------------------------------------------------


def cost_per_wear(item: WardrobeItem) -> float:
    """Return ``price / wear_count``, or the full price for an unworn item."""
    return item.cost_per_wear


def sort_items(items: Iterable[WardrobeItem], option: SortOption) -> List[WardrobeItem]:
    """Return ``items`` ordered by ``option``.

    Unworn items never compete numerically on cost per wear: ``cpw_low`` ("best
    value") puts them after every worn item, ``cpw_high`` ("needs more wear")
    puts them first.
    """

    pool = list(items)
    if option is SortOption.NEWEST:
        return sorted(pool, key=lambda item: item.purchase_date, reverse=True)
    if option is SortOption.PRICE_HIGH:
        return sorted(pool, key=lambda item: item.price, reverse=True)
    if option is SortOption.PRICE_LOW:
        return sorted(pool, key=lambda item: item.price)
    if option is SortOption.WEAR_MOST:
        return sorted(pool, key=lambda item: item.wear_count, reverse=True)
    if option is SortOption.WEAR_LEAST:
        return sorted(pool, key=lambda item: item.wear_count)

    worn = [item for item in pool if item.wear_count > 0]
    unworn = [item for item in pool if item.wear_count == 0]
    if option is SortOption.CPW_LOW:
        return sorted(worn, key=cost_per_wear) + unworn
    return unworn + sorted(worn, key=cost_per_wear, reverse=True)


# Rolling-period spending --------------------------------------------------


def items_for_period(
    items: Iterable[WardrobeItem], period: RollingPeriod, now: datetime
) -> List[WardrobeItem]:
    """Return items purchased inside the trailing window, regardless of status."""
    return [item for item in items if period.contains(item.purchase_date, now)]


def total_spending(items: Iterable[WardrobeItem], period: RollingPeriod, now: datetime) -> float:
    return sum((item.price for item in items_for_period(items, period, now)), 0.0)


def total_count(items: Iterable[WardrobeItem], period: RollingPeriod, now: datetime) -> int:
    return len(items_for_period(items, period, now))


def total_recovered(items: Iterable[WardrobeItem], period: RollingPeriod, now: datetime) -> float:
    """Sum resale prices of items sold inside the trailing window."""
    return sum(
        (
            item.sold_price
            for item in items
            if item.status is ItemStatus.SOLD
            and item.sold_price is not None
            and item.sold_date is not None
            and period.contains(item.sold_date, now)
        ),
        0.0,
    )


def all_time_recovered(items: Iterable[WardrobeItem]) -> float:
    return sum(
        (
            item.sold_price
            for item in items
            if item.status is ItemStatus.SOLD and item.sold_price is not None
        ),
        0.0,
    )


def net_spending(items: Sequence[WardrobeItem], period: RollingPeriod, now: datetime) -> float:
    """Spending minus resale recovery; negative means a net profit."""
    return total_spending(items, period, now) - total_recovered(items, period, now)


def budget_for(settings: Settings, period: RollingPeriod) -> float:
    return settings.budget_for(period)


def money_saved(
    items: Sequence[WardrobeItem], settings: Settings, period: RollingPeriod, now: datetime
) -> float:
    """Budget left after net spending; negative when over budget."""
    return settings.budget_for(period) - net_spending(items, period, now)


def spending_by_category(
    items: Iterable[WardrobeItem], period: RollingPeriod, now: datetime
) -> List[CategorySpending]:
    totals: Dict[Category, float] = defaultdict(float)
    for item in items_for_period(items, period, now):
        totals[item.category] += item.price
    buckets = [
        CategorySpending(category=category, amount=amount) for category, amount in totals.items()
    ]
    return sorted(buckets, key=lambda bucket: bucket.amount, reverse=True)


# Dormancy -----------------------------------------------------------------


def is_cold(item: WardrobeItem, threshold_days: int, now: datetime) -> bool:
    """Return True when an active, non-exempt item has gone unworn too long."""
    if item.status is not ItemStatus.ACTIVE:
        return False
    if item.category in COLD_EXEMPT_CATEGORIES:
        return False
    last_worn = item.last_worn
    reference = item.purchase_date if last_worn is None else last_worn
    return (now - reference).days > threshold_days


def cold_items(
    items: Iterable[WardrobeItem], settings: Settings, now: datetime
) -> List[WardrobeItem]:
    """Return dormant items, longest-held first."""
    dormant = [item for item in items if is_cold(item, settings.cold_threshold_days, now)]
    return sorted(dormant, key=lambda item: item.purchase_date)


def cold_count(items: Iterable[WardrobeItem], settings: Settings, now: datetime) -> int:
    return sum(1 for item in items if is_cold(item, settings.cold_threshold_days, now))


# Listings -----------------------------------------------------------------


def all_items_sorted(items: Iterable[WardrobeItem]) -> List[WardrobeItem]:
    return sort_items(items, SortOption.NEWEST)


def active_items(items: Iterable[WardrobeItem]) -> List[WardrobeItem]:
    return all_items_sorted(item for item in items if item.status is ItemStatus.ACTIVE)


def items_for_category(items: Iterable[WardrobeItem], category: Category) -> List[WardrobeItem]:
    return all_items_sorted(item for item in items if item.category is category)


def recently_added(items: Iterable[WardrobeItem], limit: int = RECENT_LIMIT) -> List[WardrobeItem]:
    return active_items(items)[:limit]


def _matches(item: WardrobeItem, needle: str) -> bool:
    haystacks = (
        item.category.value,
        item.category.label,
        item.platform,
        item.justification,
        item.size,
    )
    return any(needle in haystack.lower() for haystack in haystacks)


def search_items(
    items: Iterable[WardrobeItem], query: str = "", *, include_sold: bool = False
) -> List[WardrobeItem]:
    """Case-insensitive substring search over category, platform, justification and size."""
    pool = all_items_sorted(items) if include_sold else active_items(items)
    needle = query.strip().lower()
    if not needle:
        return pool
    return [item for item in pool if _matches(item, needle)]


def group_by_month(
    items: Iterable[WardrobeItem], *, include_sold: bool = False, query: str = ""
) -> List[MonthlyGroup]:
    """Group (optionally filtered) items by purchase month, most recent month first."""
    groups: Dict[str, MonthlyGroup] = {}
    for item in search_items(items, query, include_sold=include_sold):
        group = groups.get(item.month_key)
        if group is None:
            group = MonthlyGroup(month_key=item.month_key, sort_date=item.month_start)
            groups[item.month_key] = group
        group.items.append(item)
    return sorted(groups.values(), key=lambda group: group.sort_date, reverse=True)


# Price baseline -----------------------------------------------------------


def adjusted_average_price(items: Iterable[WardrobeItem]) -> float:
    """Mean price of active, comparable items; 0 when there is no baseline yet."""
    prices = [
        item.price
        for item in items
        if item.status is ItemStatus.ACTIVE and item.category not in BASELINE_EXCLUDED_CATEGORIES
    ]
    if not prices:
        return 0.0
    return sum(prices) / len(prices)


# Calendar -----------------------------------------------------------------


def outfit_for(items: Iterable[WardrobeItem], day: date) -> List[WardrobeItem]:
    """Items worn on the calendar ``day``, ordered by category."""
    worn = [item for item in items if item.worn_on(day)]
    order = list(Category)
    return sorted(worn, key=lambda item: order.index(item.category))


def days_with_outfits(items: Iterable[WardrobeItem], month: CalendarMonth) -> Set[date]:
    return {
        moment.date()
        for item in items
        for moment in item.wear_dates
        if month.contains(moment)
    }


def month_purchases(items: Iterable[WardrobeItem], month: CalendarMonth) -> List[WardrobeItem]:
    return [item for item in items if month.contains(item.purchase_date)]


def month_recovered(items: Iterable[WardrobeItem], month: CalendarMonth) -> float:
    """Resale recovery for items whose sold date falls in the calendar ``month``."""
    return sum(
        (
            item.sold_price
            for item in items
            if item.sold_price is not None
            and item.sold_date is not None
            and month.contains(item.sold_date)
        ),
        0.0,
    )


def find_item(items: Iterable[WardrobeItem], item_id: object) -> Optional[WardrobeItem]:
    for item in items:
        if item.id == item_id:
            return item
    return None


__all__ = [
    "RECENT_LIMIT",
    "SortOption",
    "active_items",
    "adjusted_average_price",
    "all_items_sorted",
    "all_time_recovered",
    "budget_for",
    "cold_count",
    "cold_items",
    "cost_per_wear",
    "days_with_outfits",
    "find_item",
    "group_by_month",
    "is_cold",
    "items_for_category",
    "items_for_period",
    "money_saved",
    "month_purchases",
    "month_recovered",
    "net_spending",
    "outfit_for",
    "recently_added",
    "search_items",
    "sort_items",
    "spending_by_category",
    "total_count",
    "total_recovered",
    "total_spending",
]
