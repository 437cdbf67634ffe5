"""The wardrobe ledger: authoritative item collection, settings and mutations.

The ledger owns the in-memory collection and writes it through an injected
persistence gateway after every committed mutation. Mutations never raise for
ordinary user flows; they return a :class:`MutationResult` describing what
happened so callers can surface "not found" or persistence warnings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Protocol, Sequence, Set
from uuid import UUID

from closetbook.state.errors import StateError

from . import insights, queries, titles
from .models import (
    CalendarMonth,
    Category,
    CategorySpending,
    ItemStatus,
    MonthlyGroup,
    MonthlyTitle,
    RollingPeriod,
    SessionState,
    Settings,
    WardrobeItem,
    to_local_naive,
)

if TYPE_CHECKING:
    from closetbook.state import PersistenceGateway

LOGGER = logging.getLogger(__name__)

_BUDGET_FIELDS = {
    RollingPeriod.WEEK: "budget_weekly",
    RollingPeriod.MONTH: "budget_monthly",
    RollingPeriod.YEAR: "budget_yearly",
}


class MutationStatus(str, Enum):
    """Outcome of a ledger mutation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class MutationResult:
    """What a mutation did.

    Attributes:
        status: Overall outcome.
        item_ids: Items affected by the mutation.
        warnings: Non-fatal problems, such as a failed write to disk.
    """

    status: MutationStatus = MutationStatus.OK
    item_ids: List[UUID] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.OK


class ImageReleaser(Protocol):
    """The part of the image store the ledger needs when deleting items."""

    def delete(self, ref: str) -> None: ...


def validate_new_item(item: WardrobeItem) -> List[str]:
    """Return form-level problems with a new item; empty when it may be added.

    The ledger itself does not call this, so items added directly are accepted
    as-is. Front-ends are expected to validate before calling
    :meth:`WardrobeLedger.add_item`.
    """

    problems: List[str] = []
    if item.price <= 0:
        problems.append("Price must be greater than zero.")
    if not item.justification.strip():
        problems.append("A purchase justification is required.")
    if not item.image_refs:
        problems.append("At least one photo is required.")
    return problems


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


class WardrobeLedger:
    """Own the wardrobe collection and user settings."""

    def __init__(
        self,
        gateway: "PersistenceGateway",
        images: Optional[ImageReleaser] = None,
        *,
        defaults: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Load state through ``gateway``.

        Args:
            gateway: Durable storage for items, settings and session state.
            images: Image store used to release photos of deleted items.
            defaults: Settings used for anything not stored yet.
            clock: Source of "now"; injectable for tests.
        """
        self._gateway = gateway
        self._images = images
        self._clock = clock
        self._items: List[WardrobeItem] = list(gateway.load_items())
        self._settings = gateway.load_settings(defaults)
        session = gateway.load_session()
        self._last_copy_ids: List[UUID] = list(session.last_copy_ids)
        self._last_copy_day: Optional[date] = session.last_copy_day

    # ------------------------------------------------------------------ #
    # Accessors                                                          #
    # ------------------------------------------------------------------ #

    @property
    def items(self) -> List[WardrobeItem]:
        return list(self._items)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def last_copy_ids(self) -> List[UUID]:
        return list(self._last_copy_ids)

    def now(self) -> datetime:
        return self._clock()

    def get(self, item_id: UUID) -> Optional[WardrobeItem]:
        """Return a detached copy of the item, suitable for editing."""
        item = self._find(item_id)
        return item.model_copy(deep=True) if item is not None else None

    def daily_note(self, day: date | datetime) -> Optional[str]:
        return self._settings.daily_notes.get(_as_day(day))

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #

    def add_item(self, item: WardrobeItem) -> MutationResult:
        """Append ``item`` and persist. Validation is the caller's job."""
        self._items.append(item.model_copy(deep=True))
        LOGGER.debug("Added %s item %s", item.category.value, item.id)
        return self._commit_items(MutationResult(item_ids=[item.id]))

    def update_item(self, item: WardrobeItem) -> MutationResult:
        """Replace the stored item with the same id.

        Unknown ids are a no-op reported as ``not_found``. The status cannot change
        through an update: selling goes through :meth:`mark_sold` and a sold item
        stays sold.
        """
        index = self._index(item.id)
        if index is None:
            return MutationResult(MutationStatus.NOT_FOUND, [item.id])
        current = self._items[index]
        if current.status is not item.status:
            warning = (
                "Sold items cannot be reactivated."
                if current.status is ItemStatus.SOLD
                else "Use mark_sold to sell an item."
            )
            return MutationResult(MutationStatus.UNCHANGED, [item.id], [warning])
        self._items[index] = item.model_copy(deep=True)
        return self._commit_items(MutationResult(item_ids=[item.id]))

    def delete_item(self, item_id: UUID) -> MutationResult:
        """Remove the item and release every photo it references."""
        index = self._index(item_id)
        if index is None:
            return MutationResult(MutationStatus.NOT_FOUND, [item_id])
        item = self._items.pop(index)
        if self._images is not None:
            for ref in item.image_refs:
                self._images.delete(ref)
        LOGGER.debug("Deleted item %s and %d image(s)", item_id, len(item.image_refs))
        return self._commit_items(MutationResult(item_ids=[item_id]))

    def mark_sold(
        self,
        item_id: UUID,
        sold_price: Optional[float] = None,
        sold_date: Optional[datetime] = None,
        sold_notes: Optional[str] = None,
    ) -> MutationResult:
        """Move an active item to ``sold``; already-sold items are left alone."""
        item = self._find(item_id)
        if item is None:
            return MutationResult(MutationStatus.NOT_FOUND, [item_id])
        if item.status is not ItemStatus.ACTIVE:
            return MutationResult(MutationStatus.UNCHANGED, [item_id])
        item.status = ItemStatus.SOLD
        item.sold_price = sold_price
        item.sold_date = to_local_naive(sold_date) if sold_date else self.now()
        item.sold_notes = sold_notes
        return self._commit_items(MutationResult(item_ids=[item_id]))

    def log_wear(
        self, item_id: UUID, when: Optional[datetime] = None, *, dedupe: bool = False
    ) -> MutationResult:
        """Record a wear event.

        Args:
            item_id: Item that was worn.
            when: Timestamp of the wear; defaults to now.
            dedupe: Skip the write when a wear is already logged on that day.
        """
        item = self._find(item_id)
        if item is None:
            return MutationResult(MutationStatus.NOT_FOUND, [item_id])
        moment = to_local_naive(when) if when else self.now()
        if dedupe and item.worn_on(moment.date()):
            return MutationResult(MutationStatus.UNCHANGED, [item_id])
        item.wear_dates.append(moment)
        return self._commit_items(MutationResult(item_ids=[item_id]))

    def remove_wear(self, item_id: UUID, day: date | datetime) -> MutationResult:
        """Drop every wear event on the same calendar day as ``day``."""
        item = self._find(item_id)
        if item is None:
            return MutationResult(MutationStatus.NOT_FOUND, [item_id])
        if not self._strip_day(item, _as_day(day)):
            return MutationResult(MutationStatus.UNCHANGED, [item_id])
        return self._commit_items(MutationResult(item_ids=[item_id]))

    def copy_yesterday_outfit(self) -> MutationResult:
        """Log today's wear for everything worn yesterday.

        Items already logged today are skipped. The ids actually touched become
        the undo buffer, replacing whatever the previous copy left there.
        """
        now = self.now()
        today = now.date()
        yesterday = today - timedelta(days=1)
        touched: List[UUID] = []
        for item in self._items:
            if item.worn_on(yesterday) and not item.worn_on(today):
                item.wear_dates.append(now)
                touched.append(item.id)

        self._last_copy_ids = touched
        self._last_copy_day = today
        result = MutationResult(
            MutationStatus.OK if touched else MutationStatus.UNCHANGED, list(touched)
        )
        if touched:
            self._commit_items(result)
        self._commit_session(result)
        return result

    def undo_last_copy(self) -> MutationResult:
        """Remove the wear events added by the last copy and clear the buffer."""
        if not self._last_copy_ids:
            return MutationResult(MutationStatus.UNCHANGED)
        day = self._last_copy_day or self.now().date()
        wanted: Set[UUID] = set(self._last_copy_ids)
        reverted: List[UUID] = []
        for item in self._items:
            if item.id in wanted and self._strip_day(item, day):
                reverted.append(item.id)

        self._last_copy_ids = []
        self._last_copy_day = None
        result = MutationResult(item_ids=reverted)
        self._commit_items(result)
        self._commit_session(result)
        return result

    def set_daily_note(self, day: date | datetime, text: str) -> MutationResult:
        """Upsert the journal note for a calendar day; blank text deletes it."""
        key = _as_day(day)
        if text.strip():
            self._settings.daily_notes[key] = text
        elif self._settings.daily_notes.pop(key, None) is None:
            return MutationResult(MutationStatus.UNCHANGED)
        return self._commit_settings(MutationResult())

    def update_budget(self, period: RollingPeriod, amount: float) -> MutationResult:
        setattr(self._settings, _BUDGET_FIELDS[period], float(amount))
        return self._commit_settings(MutationResult())

    def update_dormancy_threshold(self, days: int) -> MutationResult:
        if days <= 0:
            return MutationResult(
                MutationStatus.UNCHANGED, warnings=["Threshold must be at least one day."]
            )
        self._settings.cold_threshold_days = int(days)
        return self._commit_settings(MutationResult())

    def replace_all(self, items: Sequence[WardrobeItem], settings: Settings) -> MutationResult:
        """Swap in a whole new collection and settings, e.g. from a backup."""
        self._items = [item.model_copy(deep=True) for item in items]
        self._settings = settings.model_copy(deep=True)
        self._last_copy_ids = []
        self._last_copy_day = None
        result = MutationResult(item_ids=[item.id for item in self._items])
        self._commit_items(result)
        self._commit_settings(result)
        self._commit_session(result)
        return result

    # ------------------------------------------------------------------ #
    # Derived queries, evaluated against the ledger clock                #
    # ------------------------------------------------------------------ #

    def total_spending(self, period: RollingPeriod) -> float:
        return queries.total_spending(self._items, period, self.now())

    def total_recovered(self, period: RollingPeriod) -> float:
        return queries.total_recovered(self._items, period, self.now())

    def net_spending(self, period: RollingPeriod) -> float:
        return queries.net_spending(self._items, period, self.now())

    def budget_for(self, period: RollingPeriod) -> float:
        return self._settings.budget_for(period)

    def money_saved(self, period: RollingPeriod) -> float:
        return queries.money_saved(self._items, self._settings, period, self.now())

    def budget_report(self, period: RollingPeriod) -> insights.BudgetReport:
        return insights.budget_report(self._items, self._settings, period, self.now())

    def spending_by_category(self, period: RollingPeriod) -> List[CategorySpending]:
        return queries.spending_by_category(self._items, period, self.now())

    def is_cold(self, item: WardrobeItem) -> bool:
        return queries.is_cold(item, self._settings.cold_threshold_days, self.now())

    def cold_items(self) -> List[WardrobeItem]:
        return queries.cold_items(self._items, self._settings, self.now())

    def group_by_month(
        self, *, include_sold: bool = False, query: str = ""
    ) -> List[MonthlyGroup]:
        return queries.group_by_month(self._items, include_sold=include_sold, query=query)

    def adjusted_average_price(self) -> float:
        return queries.adjusted_average_price(self._items)

    def evaluate_price(self, price: float) -> insights.PriceVerdict:
        return insights.evaluate_price(price, self.adjusted_average_price())

    def monthly_title(
        self, *, resale_threshold: float = titles.RESALE_TITLE_THRESHOLD
    ) -> MonthlyTitle:
        return titles.monthly_title(
            self._items,
            self._settings.budget_monthly,
            self.now(),
            resale_threshold=resale_threshold,
        )

    def outfit_for(self, day: date | datetime) -> List[WardrobeItem]:
        return queries.outfit_for(self._items, _as_day(day))

    def days_with_outfits(self, month: Optional[CalendarMonth] = None) -> Set[date]:
        month = month or CalendarMonth.containing(self.now())
        return queries.days_with_outfits(self._items, month)

    def items_for_category(self, category: Category) -> List[WardrobeItem]:
        return queries.items_for_category(self._items, category)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _index(self, item_id: UUID) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None

    def _find(self, item_id: UUID) -> Optional[WardrobeItem]:
        index = self._index(item_id)
        return self._items[index] if index is not None else None

    @staticmethod
    def _strip_day(item: WardrobeItem, day: date) -> bool:
        kept = [moment for moment in item.wear_dates if moment.date() != day]
        if len(kept) == len(item.wear_dates):
            return False
        item.wear_dates = kept
        return True

    def _commit_items(self, result: MutationResult) -> MutationResult:
        return self._commit(result, "items", lambda: self._gateway.save_items(self._items))

    def _commit_settings(self, result: MutationResult) -> MutationResult:
        settings = self._settings
        return self._commit(result, "settings", lambda: self._gateway.save_settings(settings))

    def _commit_session(self, result: MutationResult) -> MutationResult:
        session = SessionState(
            last_copy_ids=list(self._last_copy_ids), last_copy_day=self._last_copy_day
        )
        return self._commit(result, "session", lambda: self._gateway.save_session(session))

    def _commit(
        self, result: MutationResult, what: str, write: Callable[[], None]
    ) -> MutationResult:
        try:
            write()
        except StateError as exc:
            LOGGER.warning("Unable to persist %s; changes are kept in memory only: %s", what, exc)
            result.warnings.append(f"Could not save {what}: {exc}")
        return result


__all__ = [
    "ImageReleaser",
    "MutationResult",
    "MutationStatus",
    "WardrobeLedger",
    "validate_new_item",
]
