"""State repository tests."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from uuid import uuid4

import pytest

from closetbook.ledger.models import SessionState, Settings
from closetbook.state import (
    DEFAULT_STATE_DIRNAME,
    MissingStateError,
    StateError,
    StateRepository,
)

from .conftest import make_item


def test_initialize_creates_state_directory(tmp_path: Path) -> None:
    """Ensure initialize prepares the state directory.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)

    directory = repo.initialize()

    assert directory == tmp_path / DEFAULT_STATE_DIRNAME
    assert directory.is_dir()


def test_items_round_trip(tmp_path: Path) -> None:
    """Ensure saved items load back unchanged and use camelCase keys on disk.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)
    items = [make_item(notes="wool"), make_item(platform="market")]

    repo.save_items(items)
    loaded = repo.load_items()

    assert loaded == items
    raw = (repo.state_dir / "items.json").read_text(encoding="utf-8")
    assert '"purchaseDate"' in raw
    assert '"imageRefs"' in raw


def test_missing_documents_load_as_defaults(tmp_path: Path) -> None:
    """Verify a fresh data directory yields empty state rather than errors.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)
    defaults = Settings(budget_monthly=1500)

    assert repo.load_items() == []
    assert repo.load_settings(defaults).budget_monthly == 1500
    assert repo.load_session() == SessionState()


def test_corrupt_items_are_ignored(tmp_path: Path) -> None:
    """Verify unreadable items fall back to an empty collection.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)
    repo.initialize()
    (repo.state_dir / "items.json").write_text("{not json", encoding="utf-8")

    assert repo.load_items() == []


def test_settings_and_notes_persist_separately(tmp_path: Path) -> None:
    """Ensure a corrupt notes file does not reset the budgets.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)
    settings = Settings(budget_weekly=250, daily_notes={date(2026, 10, 18): "boots"})

    repo.save_settings(settings)
    assert repo.load_settings() == settings

    (repo.state_dir / "notes.json").write_text("[]", encoding="utf-8")
    reloaded = repo.load_settings()

    assert reloaded.budget_weekly == 250
    assert reloaded.daily_notes == {}


def test_stored_settings_override_defaults(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)
    repo.initialize()
    (repo.state_dir / "settings.json").write_text('{"budgetYearly": 9000}', encoding="utf-8")

    loaded = repo.load_settings(Settings(budget_weekly=321))

    assert loaded.budget_yearly == 9000
    assert loaded.budget_weekly == 321


def test_read_document_errors(tmp_path: Path) -> None:
    """Verify raw document reads distinguish missing from corrupt files.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)

    with pytest.raises(MissingStateError):
        repo.read_document("session.json")

    repo.initialize()
    (repo.state_dir / "session.json").write_text("nope", encoding="utf-8")
    with pytest.raises(StateError):
        repo.read_document("session.json")


def test_write_failure_raises_state_error(tmp_path: Path) -> None:
    """Ensure unwritable storage surfaces as StateError.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    blocker = tmp_path / "blocked"
    blocker.write_text("file, not a directory", encoding="utf-8")
    repo = StateRepository(blocker)

    with pytest.raises(StateError):
        repo.save_items([make_item()])


def test_invalid_record_quarantines_items_file(tmp_path: Path) -> None:
    """Ensure one bad record does not let the next save wipe the collection.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)
    keeper = make_item(notes="favourite coat")
    repo.save_items([keeper])
    items_path = repo.state_dir / "items.json"
    records = json.loads(items_path.read_text(encoding="utf-8"))
    broken = dict(records[0], id=str(uuid4()), category="not-a-category")
    items_path.write_text(json.dumps(records + [broken]), encoding="utf-8")

    assert repo.load_items() == []

    preserved = list(repo.state_dir.glob("items.json.corrupt-*"))
    assert len(preserved) == 1
    assert str(keeper.id) in preserved[0].read_text(encoding="utf-8")

    repo.save_items([make_item()])

    assert str(keeper.id) in preserved[0].read_text(encoding="utf-8")
    assert str(keeper.id) not in items_path.read_text(encoding="utf-8")


def test_corrupt_settings_notes_and_session_are_preserved(tmp_path: Path) -> None:
    """Verify every unreadable document is moved aside before falling back.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path)
    repo.initialize()
    for name in ("settings.json", "notes.json", "session.json"):
        (repo.state_dir / name).write_text("{broken", encoding="utf-8")

    assert repo.load_settings(Settings(budget_monthly=1200)).budget_monthly == 1200
    assert repo.load_session() == SessionState()

    for name in ("settings.json", "notes.json", "session.json"):
        assert not (repo.state_dir / name).exists()
        [preserved] = repo.state_dir.glob(f"{name}.corrupt-*")
        assert preserved.read_text(encoding="utf-8") == "{broken"


def test_quarantine_of_missing_document_is_a_no_op(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)

    assert repo.quarantine("items.json") is None
