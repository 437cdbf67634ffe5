"""Budget framing, purchase feedback and the savings ladder."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from . import queries
from .models import Category, RollingPeriod, Settings, WardrobeItem

EXPENSIVE_PRICE = 1000.0
OCCASION_PRICE = 500.0
LUXURY_RATIO = 2.0


class BudgetStanding(str, Enum):
    """How a period's net spending compares with its budget."""

    NET_PROFIT = "net_profit"
    UNDER_BUDGET = "under_budget"
    ON_BUDGET = "on_budget"
    OVER_BUDGET = "over_budget"


@dataclass(frozen=True, slots=True)
class BudgetReport:
    """Spending summary for one rolling period.

    Attributes:
        period: Rolling window the report covers.
        spent: Total purchase spend.
        recovered: Resale recovery.
        net: ``spent - recovered``.
        budget: Ceiling configured for the period.
        saved: ``budget - net``; negative when over budget.
        count: Number of purchases.
        standing: Framing to present, net profit taking priority.
        message: Short human-readable verdict.
    """

    period: RollingPeriod
    spent: float
    recovered: float
    net: float
    budget: float
    saved: float
    count: int
    standing: BudgetStanding
    message: str


def budget_standing(net: float, saved: float) -> BudgetStanding:
    """A net profit outranks the under/over-budget framing."""
    if net < 0:
        return BudgetStanding.NET_PROFIT
    if saved > 0:
        return BudgetStanding.UNDER_BUDGET
    if saved < 0:
        return BudgetStanding.OVER_BUDGET
    return BudgetStanding.ON_BUDGET


def _standing_message(standing: BudgetStanding, saved: float, budget: float, count: int) -> str:
    if standing is BudgetStanding.NET_PROFIT:
        return "Resale income beat your spending. Your closet turned a profit!"
    if standing is BudgetStanding.OVER_BUDGET:
        return "Over budget. Consider slowing down or selling a few idle pieces."
    if count == 0:
        return "No purchases yet. Start logging your rational wardrobe!"
    if saved > budget * 0.5:
        return "Great job! You kept more than half of the budget."
    return "Healthy habits. Keep logging!"


def budget_report(
    items: Sequence[WardrobeItem], settings: Settings, period: RollingPeriod, now: datetime
) -> BudgetReport:
    spent = queries.total_spending(items, period, now)
    recovered = queries.total_recovered(items, period, now)
    net = spent - recovered
    budget = settings.budget_for(period)
    saved = budget - net
    count = queries.total_count(items, period, now)
    standing = budget_standing(net, saved)
    return BudgetReport(
        period=period,
        spent=spent,
        recovered=recovered,
        net=net,
        budget=budget,
        saved=saved,
        count=count,
        standing=standing,
        message=_standing_message(standing, saved, budget, count),
    )


# Purchase feedback --------------------------------------------------------


class PriceVerdict(str, Enum):
    """Classification of a candidate price against the personal baseline."""

    FIRST_PURCHASE = "first_purchase"
    GOOD_VALUE = "good_value"
    NEUTRAL = "neutral"
    LUXURY = "luxury"


def evaluate_price(price: float, baseline: float) -> PriceVerdict:
    """Compare ``price`` with the adjusted average; no baseline means first purchase."""
    if baseline <= 0:
        return PriceVerdict.FIRST_PURCHASE
    if price < baseline:
        return PriceVerdict.GOOD_VALUE
    if price > baseline * LUXURY_RATIO:
        return PriceVerdict.LUXURY
    return PriceVerdict.NEUTRAL


_VERDICT_MESSAGES = {
    PriceVerdict.FIRST_PURCHASE: "Rational Cat: no baseline yet. Welcome your first piece!",
    PriceVerdict.GOOD_VALUE: "Rational Cat: cheaper than your usual buy. Good value!",
    PriceVerdict.NEUTRAL: "Rational Cat: right around your usual price range.",
    PriceVerdict.LUXURY: "Rational Cat: more than twice your usual price. A splurge?",
}

EXPENSIVE_WARNINGS = (
    "Rational Cat: pricey! Leave it in the cart for three days first?",
    "Rational Cat: at this price, is it your dream piece?",
    "Rational Cat: think of the budget. Is it really worth it? Meow~",
    "Rational Cat: deep breath... look at the price again... sure?",
    "Rational Cat: is this love, or just an impulse?",
    "Rational Cat: high-price alert! Think twice, meow~",
    "Rational Cat: your wallet is trembling...",
    "Rational Cat: will you still wear it a year from now?",
)

OCCASION_WARNING = "Rational Cat: occasion wear rarely gets worn. Would renting be smarter?"


@dataclass(slots=True)
class PurchaseAssessment:
    """Feedback shown while a purchase is being entered.

    Attributes:
        verdict: Price classification against the baseline.
        baseline: Adjusted average price used for the comparison.
        message: Verdict message.
        warnings: High-price warnings, if any.
    """

    verdict: PriceVerdict
    baseline: float
    message: str
    warnings: List[str] = field(default_factory=list)


def assess_purchase(
    items: Sequence[WardrobeItem],
    category: Category,
    price: float,
    *,
    expensive_price: float = EXPENSIVE_PRICE,
    occasion_price: float = OCCASION_PRICE,
    rng: Optional[random.Random] = None,
) -> PurchaseAssessment:
    baseline = queries.adjusted_average_price(items)
    verdict = evaluate_price(price, baseline)
    assessment = PurchaseAssessment(
        verdict=verdict, baseline=baseline, message=_VERDICT_MESSAGES[verdict]
    )
    if price > expensive_price:
        assessment.warnings.append((rng or random).choice(EXPENSIVE_WARNINGS))
    if category is Category.OCCASION and price > occasion_price:
        assessment.warnings.append(OCCASION_WARNING)
    return assessment


# Savings ladder -----------------------------------------------------------

_SAVINGS_LADDER = (
    (150000, "You've saved your first pot of gold!", "dollarsign.circle.fill"),
    (80000, "Enough to fit out a walk-in closet.", "car.fill"),
    (50000, "Enough for a down payment on a small car.", "car.fill"),
    (30000, "Enough for a classic designer bag.", "airplane"),
    (20000, "Enough for a proper trip abroad.", "airplane"),
    (12000, "Enough for an entry-level luxury bag.", "laptopcomputer"),
    (8000, "Enough for a new laptop.", "laptopcomputer"),
    (5000, "Enough for a new phone or a beach holiday.", "music.mic"),
    (3000, "Enough for a front-row concert ticket.", "music.mic"),
    (2000, "Enough for a new games console.", "airpodspro"),
    (1500, "Enough for a pair of noise-cancelling earbuds.", "airpodspro"),
    (800, "Enough for a theme-park day with souvenirs.", "shoe.fill"),
    (500, "Enough for a pair of running shoes.", "shoe.fill"),
    (300, "Enough for a designer lipstick.", "flame.fill"),
    (100, "Enough for a hot-pot dinner.", "flame.fill"),
    (50, "Enough for a fast-food family bucket.", "cup.and.saucer.fill"),
    (20, "Enough for a fancy coffee.", "cup.and.saucer.fill"),
    (10, "Enough for a bubble tea.", "leaf.fill"),
    (5, "Enough for a soft-serve cone.", "leaf.fill"),
)


def savings_ladder(amount: float) -> tuple[str, str]:
    """Return ``(text, icon)`` describing what ``amount`` saved could buy."""
    for floor, text, icon in _SAVINGS_LADDER:
        if amount >= floor:
            return text, icon
    if amount > 0:
        return "Every little bit counts. A small step for rationality!", "leaf.fill"
    return "Rational Cat alert: your wallet is crying...", "exclamationmark.triangle.fill"


__all__ = [
    "BudgetReport",
    "BudgetStanding",
    "EXPENSIVE_WARNINGS",
    "OCCASION_WARNING",
    "PriceVerdict",
    "PurchaseAssessment",
    "assess_purchase",
    "budget_report",
    "budget_standing",
    "evaluate_price",
    "savings_ladder",
]
