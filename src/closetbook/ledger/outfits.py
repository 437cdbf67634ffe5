"""Random outfit generation from the active wardrobe."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import Category, ItemStatus, WardrobeItem

MAX_ATTEMPTS = 50
MAX_ACCESSORIES = 2


@dataclass(slots=True)
class Outfit:
    """A generated look.

    Attributes:
        top_or_dress: A top/outerwear piece, or a dress when no bottom is needed.
        bottom: Bottom paired with a top.
        shoes: Footwear.
        bag: Bag.
        accessories: Zero to two accessories.
    """

    top_or_dress: Optional[WardrobeItem] = None
    bottom: Optional[WardrobeItem] = None
    shoes: Optional[WardrobeItem] = None
    bag: Optional[WardrobeItem] = None
    accessories: List[WardrobeItem] = field(default_factory=list)

    @property
    def items(self) -> List[WardrobeItem]:
        picked = [self.top_or_dress, self.bottom, self.shoes, self.bag]
        return [item for item in picked if item is not None] + list(self.accessories)

    @property
    def total_price(self) -> float:
        return sum((item.price for item in self.items), 0.0)

    @property
    def is_empty(self) -> bool:
        return not self.items


def _pick(pool: List[WardrobeItem], rng: random.Random) -> Optional[WardrobeItem]:
    return rng.choice(pool) if pool else None


def generate_outfit(
    items: Iterable[WardrobeItem],
    max_budget: float,
    *,
    rng: Optional[random.Random] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> Optional[Outfit]:
    """Draw random combinations until one fits ``max_budget``.

    Returns None when no non-empty outfit within budget turns up after
    ``max_attempts`` draws.
    """

    rng = rng or random.Random()
    active = [item for item in items if item.status is ItemStatus.ACTIVE]

    def of(*categories: Category) -> List[WardrobeItem]:
        return [item for item in active if item.category in categories]

    tops = of(Category.TOP, Category.OUTERWEAR)
    bottoms = of(Category.BOTTOM)
    dresses = of(Category.DRESS)
    shoes = of(Category.SHOES)
    bags = of(Category.BAG)
    accessories = of(Category.ACCESSORY)

    for _ in range(max_attempts):
        outfit = Outfit()
        if dresses and rng.random() < 0.5:
            outfit.top_or_dress = _pick(dresses, rng)
        else:
            outfit.top_or_dress = _pick(tops, rng)
            outfit.bottom = _pick(bottoms, rng)
        outfit.shoes = _pick(shoes, rng)
        outfit.bag = _pick(bags, rng)
        count = rng.randint(0, min(MAX_ACCESSORIES, len(accessories)))
        outfit.accessories = rng.sample(accessories, count)

        if not outfit.is_empty and outfit.total_price <= max_budget:
            return outfit
    return None


__all__ = ["MAX_ATTEMPTS", "Outfit", "generate_outfit"]
