"""Data models for wardrobe items, ledger settings and derived views."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class LedgerModel(BaseModel):
    """Shared configuration: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def to_local_naive(value: datetime) -> datetime:
    """Return ``value`` as a naive datetime in local time.

    Calendar-day comparisons throughout the ledger assume naive local timestamps,
    so aware values (for example ``...Z`` strings from an imported backup) are
    converted on the way in.
    """

    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Category(str, Enum):
    """Fixed set of wardrobe categories."""

    TOP = "top"
    BOTTOM = "bottom"
    OUTERWEAR = "outerwear"
    DRESS = "dress"
    LOUNGEWEAR = "loungewear"
    SHOES = "shoes"
    BAG = "bag"
    ACCESSORY = "accessory"
    OCCASION = "occasion"

    @property
    def label(self) -> str:
        return CATEGORY_CATALOG[self][0]

    @property
    def description(self) -> str:
        return CATEGORY_CATALOG[self][1]


CATEGORY_CATALOG: Dict[Category, tuple[str, str]] = {
    Category.TOP: ("Tops", "T-shirts / hoodies / shirts"),
    Category.BOTTOM: ("Bottoms", "Jeans / trousers"),
    Category.OUTERWEAR: ("Outerwear", "Coats / down jackets / jackets"),
    Category.DRESS: ("Dresses", "Dresses / skirts"),
    Category.LOUNGEWEAR: ("Underwear & home", "Pyjamas / underwear / socks"),
    Category.SHOES: ("Shoes", "Sneakers / boots"),
    Category.BAG: ("Bags", "Backpacks / handbags / wallets"),
    Category.ACCESSORY: ("Accessories", "Hats / scarves / jewellery"),
    Category.OCCASION: ("Occasion wear", "Cosplay / stage / ski"),
}

# Rarely "worn" in the tracked sense, so never flagged as dormant.
COLD_EXEMPT_CATEGORIES = frozenset({Category.LOUNGEWEAR, Category.ACCESSORY, Category.OCCASION})

# Not comparable with regular garments when building the price baseline.
BASELINE_EXCLUDED_CATEGORIES = frozenset({Category.LOUNGEWEAR, Category.ACCESSORY})


class ItemStatus(str, Enum):
    """Lifecycle status of a wardrobe item."""

    ACTIVE = "active"
    SOLD = "sold"


class RollingPeriod(str, Enum):
    """Trailing statistics window ending at "now"."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def days(self) -> int:
        return {"week": 7, "month": 30, "year": 365}[self.value]

    def window_start(self, now: datetime) -> datetime:
        """Return the earliest timestamp that still falls inside the window."""
        return now - timedelta(days=self.days)

    def contains(self, moment: datetime, now: datetime) -> bool:
        return moment >= self.window_start(now)


@dataclass(frozen=True, slots=True)
class CalendarMonth:
    """A true calendar month, as opposed to a :class:`RollingPeriod`.

    Attributes:
        year: Four-digit year.
        month: Month number, 1-12.
    """

    year: int
    month: int

    @classmethod
    def containing(cls, moment: datetime | date) -> "CalendarMonth":
        return cls(moment.year, moment.month)

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1)

    @property
    def end(self) -> datetime:
        """Return the start of the following month (exclusive bound)."""
        if self.month == 12:
            return datetime(self.year + 1, 1, 1)
        return datetime(self.year, self.month + 1, 1)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


class UpperMeasurements(LedgerModel):
    """Flat-lay measurements for tops and outerwear, in cm."""

    kind: Literal["upper"] = "upper"
    shoulder_width: Optional[str] = None
    chest: Optional[str] = None
    sleeve_length: Optional[str] = None
    length: Optional[str] = None


class LowerMeasurements(LedgerModel):
    """Flat-lay measurements for bottoms, in cm."""

    kind: Literal["lower"] = "lower"
    waistline: Optional[str] = None
    length: Optional[str] = None
    inseam: Optional[str] = None


class DressMeasurements(LedgerModel):
    """Flat-lay measurements for dresses and skirts, in cm."""

    kind: Literal["dress"] = "dress"
    shoulder_width: Optional[str] = None
    chest: Optional[str] = None
    waistline: Optional[str] = None
    length: Optional[str] = None


Measurements = Annotated[
    Union[UpperMeasurements, LowerMeasurements, DressMeasurements],
    Field(discriminator="kind"),
]

MEASUREMENT_KINDS: Dict[Category, type[BaseModel]] = {
    Category.TOP: UpperMeasurements,
    Category.OUTERWEAR: UpperMeasurements,
    Category.BOTTOM: LowerMeasurements,
    Category.DRESS: DressMeasurements,
}


def measurements_for(category: Category, values: Dict[str, str]) -> Optional[BaseModel]:
    """Build the measurement payload matching ``category`` from loose field values.

    Empty values are dropped; returns None when nothing remains or the category
    carries no measurements.
    """

    model = MEASUREMENT_KINDS.get(category)
    cleaned = {key: value.strip() for key, value in values.items() if value and value.strip()}
    if model is None or not cleaned:
        return None
    return model.model_validate(cleaned)


class WardrobeItem(LedgerModel):
    """One purchased physical object tracked by the ledger.

    Attributes:
        id: Stable identifier, immutable for the item's lifetime.
        category: Wardrobe category.
        price: Price actually paid.
        original_price: Pre-discount price; defaults to ``price``.
        purchase_date: When the item was bought.
        platform: Acquisition channel (free text).
        justification: Why the item was bought (free text).
        size: Size label.
        status: Lifecycle status.
        wear_dates: Timestamps of logged wear events.
        image_refs: Opaque references resolved through the image store.
        measurements: Category-specific measurement payload.
        notes: Free-text notes.
        target_cost_per_wear: Optional cost-per-wear goal.
        sold_price: Resale price, only when sold.
        sold_date: Resale date, only when sold.
        sold_notes: Resale notes, only when sold.
    """

    id: UUID = Field(default_factory=uuid4)
    category: Category
    price: float
    original_price: float = 0.0
    purchase_date: datetime = Field(default_factory=datetime.now)
    platform: str = ""
    justification: str = ""
    size: str = ""
    status: ItemStatus = ItemStatus.ACTIVE
    wear_dates: List[datetime] = Field(default_factory=list)
    image_refs: List[str] = Field(default_factory=list)
    measurements: Optional[Measurements] = None
    notes: Optional[str] = None
    target_cost_per_wear: Optional[float] = None
    sold_price: Optional[float] = None
    sold_date: Optional[datetime] = None
    sold_notes: Optional[str] = None

    @field_validator("purchase_date", "sold_date")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else to_local_naive(value)

    @field_validator("wear_dates")
    @classmethod
    def _normalize_wear_dates(cls, value: List[datetime]) -> List[datetime]:
        return [to_local_naive(moment) for moment in value]

    @model_validator(mode="after")
    def _check_invariants(self) -> "WardrobeItem":
        if self.original_price <= 0:
            self.original_price = self.price
        if self.status is ItemStatus.ACTIVE and (
            self.sold_price is not None or self.sold_date is not None or self.sold_notes is not None
        ):
            raise ValueError("sold fields must be empty while an item is active")
        if self.measurements is not None:
            expected = MEASUREMENT_KINDS.get(self.category)
            if expected is None or not isinstance(self.measurements, expected):
                raise ValueError(
                    f"{self.measurements.kind} measurements do not apply to {self.category.value}"
                )
        return self

    @property
    def wear_count(self) -> int:
        return len(self.wear_dates)

    @property
    def last_worn(self) -> Optional[datetime]:
        return max(self.wear_dates) if self.wear_dates else None

    @property
    def cost_per_wear(self) -> float:
        """Price divided by wear count; the full price when never worn."""
        if self.wear_count == 0:
            return self.price
        return self.price / self.wear_count

    @property
    def is_active(self) -> bool:
        return self.status is ItemStatus.ACTIVE

    @property
    def month(self) -> CalendarMonth:
        return CalendarMonth.containing(self.purchase_date)

    @property
    def month_key(self) -> str:
        return self.month.key

    @property
    def month_start(self) -> date:
        return self.month.start.date()

    def worn_on(self, day: date) -> bool:
        """Return True when a wear event falls on the calendar ``day``."""
        return any(moment.date() == day for moment in self.wear_dates)


class Settings(LedgerModel):
    """Process-wide ledger settings.

    Attributes:
        budget_weekly: Weekly spending ceiling.
        budget_monthly: Monthly spending ceiling.
        budget_yearly: Yearly spending ceiling.
        cold_threshold_days: Days of non-wear before an active item is dormant.
        daily_notes: Outfit journal keyed by calendar day.
    """

    budget_weekly: float = 500.0
    budget_monthly: float = 2000.0
    budget_yearly: float = 24000.0
    cold_threshold_days: int = 60
    daily_notes: Dict[date, str] = Field(default_factory=dict)

    def budget_for(self, period: RollingPeriod) -> float:
        return {
            RollingPeriod.WEEK: self.budget_weekly,
            RollingPeriod.MONTH: self.budget_monthly,
            RollingPeriod.YEAR: self.budget_yearly,
        }[period]


class SessionState(LedgerModel):
    """Short-lived interaction state that must survive between CLI invocations.

    Attributes:
        last_copy_ids: Items touched by the most recent copy-yesterday action.
        last_copy_day: Calendar day the copied wear events were logged on.
    """

    last_copy_ids: List[UUID] = Field(default_factory=list)
    last_copy_day: Optional[date] = None


class CategorySpending(LedgerModel):
    """Aggregated spend for one category within a period."""

    category: Category
    amount: float


class MonthlyGroup(LedgerModel):
    """Items purchased in one calendar month."""

    month_key: str
    sort_date: date
    items: List[WardrobeItem] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.items)


class TitleKind(str, Enum):
    """Monthly title classifications, in decision-list order."""

    ASCETIC = "ascetic"
    PROFIT_MASTER = "profit_master"
    OVERSPENDER = "overspender"
    FRUGAL = "frugal"
    HIGH_VOLUME = "high_volume"
    BALANCED = "balanced"
    ROOKIE = "rookie"


class MonthlyTitle(LedgerModel):
    """Gamified title for the current calendar month; never persisted."""

    kind: TitleKind
    title: str
    subtitle: str
    icon: str
    color: str


__all__ = [
    "BASELINE_EXCLUDED_CATEGORIES",
    "CATEGORY_CATALOG",
    "COLD_EXEMPT_CATEGORIES",
    "CalendarMonth",
    "Category",
    "CategorySpending",
    "DressMeasurements",
    "ItemStatus",
    "LedgerModel",
    "LowerMeasurements",
    "MEASUREMENT_KINDS",
    "Measurements",
    "MonthlyGroup",
    "MonthlyTitle",
    "RollingPeriod",
    "SessionState",
    "Settings",
    "TitleKind",
    "UpperMeasurements",
    "WardrobeItem",
    "measurements_for",
    "to_local_naive",
]
