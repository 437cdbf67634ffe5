"""Shared fixtures for Closetbook tests."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

import pytest

from closetbook.ledger import WardrobeLedger
from closetbook.ledger.models import Category, SessionState, Settings, WardrobeItem
from closetbook.state import StateError

NOW = datetime(2026, 10, 19, 12, 0)


class MemoryGateway:
    """In-memory persistence gateway that records every save."""

    def __init__(
        self,
        items: Optional[Sequence[WardrobeItem]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.items: List[WardrobeItem] = list(items or [])
        self.settings = settings
        self.session = SessionState()
        self.saves: List[str] = []
        self.fail = False

    def load_items(self) -> List[WardrobeItem]:
        return [item.model_copy(deep=True) for item in self.items]

    def save_items(self, items: Sequence[WardrobeItem]) -> None:
        self._check()
        self.items = [item.model_copy(deep=True) for item in items]
        self.saves.append("items")

    def load_settings(self, defaults: Optional[Settings] = None) -> Settings:
        if self.settings is not None:
            return self.settings.model_copy(deep=True)
        return defaults.model_copy(deep=True) if defaults is not None else Settings()

    def save_settings(self, settings: Settings) -> None:
        self._check()
        self.settings = settings.model_copy(deep=True)
        self.saves.append("settings")

    def load_session(self) -> SessionState:
        return self.session.model_copy(deep=True)

    def save_session(self, session: SessionState) -> None:
        self._check()
        self.session = session.model_copy(deep=True)
        self.saves.append("session")

    def _check(self) -> None:
        if self.fail:
            raise StateError("disk full")


class RecordingImages:
    """Image releaser that remembers which references were deleted."""

    def __init__(self) -> None:
        self.deleted: List[str] = []

    def delete(self, ref: str) -> None:
        self.deleted.append(ref)


def make_item(
    category: Category = Category.TOP,
    price: float = 100.0,
    purchased: datetime = datetime(2026, 10, 1, 10, 0),
    **fields: Any,
) -> WardrobeItem:
    """Build a valid item with sensible defaults for tests."""
    fields.setdefault("justification", "needed one")
    fields.setdefault("image_refs", ["photo.jpg"])
    return WardrobeItem(category=category, price=price, purchase_date=purchased, **fields)


@pytest.fixture
def gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture
def images() -> RecordingImages:
    return RecordingImages()


@pytest.fixture
def ledger_factory(
    gateway: MemoryGateway, images: RecordingImages
) -> Callable[..., WardrobeLedger]:
    """Return a factory that seeds the gateway and builds a ledger on a fixed clock."""

    def _build(*items: WardrobeItem, now: datetime = NOW) -> WardrobeLedger:
        gateway.items = list(items)
        return WardrobeLedger(gateway, images, clock=lambda: now)

    return _build
