"""State persistence helpers for the Closetbook ledger."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pydantic import TypeAdapter, ValidationError

from closetbook.ledger.models import SessionState, Settings, WardrobeItem

from .errors import MissingStateError, StateError

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_DIRNAME = "state"
ITEMS_FILENAME = "items.json"
SETTINGS_FILENAME = "settings.json"
NOTES_FILENAME = "notes.json"
SESSION_FILENAME = "session.json"

_ITEMS_ADAPTER = TypeAdapter(List[WardrobeItem])
_NOTES_ADAPTER = TypeAdapter(Dict[date, str])


class PersistenceGateway(Protocol):
    """Durable storage used by the ledger.

    Loads never raise: missing or corrupt data comes back as an empty/default
    value, and a corrupt document is moved aside before the fallback. Saves are
    full overwrites and raise :class:`StateError` on failure.
    """

    def load_items(self) -> List[WardrobeItem]: ...

    def save_items(self, items: Sequence[WardrobeItem]) -> None: ...

    def load_settings(self, defaults: Optional[Settings] = None) -> Settings: ...

    def save_settings(self, settings: Settings) -> None: ...

    def load_session(self) -> SessionState: ...

    def save_session(self, session: SessionState) -> None: ...


class StateRepository:
    """Persist ledger state as JSON documents under a data directory."""

    def __init__(self, data_dir: Path, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository.

        Args:
            data_dir: Root directory for Closetbook data.
            base_dirname: Name of the sub-directory that stores state files.
        """
        self._data_dir = Path(data_dir).expanduser()
        self._base_dirname = base_dirname

    @property
    def state_dir(self) -> Path:
        """Return the directory holding the state documents.

        Returns:
            Path: Directory containing ``items.json`` and friends.
        """
        return self._data_dir / self._base_dirname

    def initialize(self) -> Path:
        """Create the state directory when missing.

        Returns:
            Path: Directory containing the state artifacts.
        """
        directory = self.state_dir
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    # Items -------------------------------------------------------------

    def load_items(self) -> List[WardrobeItem]:
        """Load the wardrobe collection, falling back to an empty list.

        An unreadable ``items.json`` is quarantined first so the next save does
        not destroy the records it still holds.

        Returns:
            List[WardrobeItem]: Stored items, or ``[]`` when unavailable.
        """
        try:
            return _ITEMS_ADAPTER.validate_python(self.read_document(ITEMS_FILENAME))
        except MissingStateError:
            return []
        except (StateError, ValidationError) as exc:
            LOGGER.warning("Ignoring unreadable wardrobe items: %s", exc)
            self.quarantine(ITEMS_FILENAME)
            return []

    def save_items(self, items: Sequence[WardrobeItem]) -> None:
        """Overwrite the stored wardrobe collection.

        Args:
            items: Complete collection to persist.

        Raises:
            StateError: If the document cannot be written.
        """
        payload = _ITEMS_ADAPTER.dump_python(list(items), mode="json", by_alias=True)
        self.write_document(ITEMS_FILENAME, payload)

    # Settings ----------------------------------------------------------

    def load_settings(self, defaults: Optional[Settings] = None) -> Settings:
        """Load budgets, dormancy threshold and daily notes.

        Each document is read independently so a corrupt notes file does not
        reset the budgets, and vice versa.

        Args:
            defaults: Settings to fall back to for anything not stored yet.

        Returns:
            Settings: Stored settings merged over ``defaults``.
        """
        base = defaults.model_copy(deep=True) if defaults is not None else Settings()
        try:
            stored = self.read_document(SETTINGS_FILENAME)
            if not isinstance(stored, dict):
                raise StateError(f"{SETTINGS_FILENAME} must contain an object")
            merged = base.model_dump(by_alias=True, exclude={"daily_notes"})
            merged.update(stored)
            merged["dailyNotes"] = base.daily_notes
            base = Settings.model_validate(merged)
        except MissingStateError:
            pass
        except (StateError, ValidationError) as exc:
            LOGGER.warning("Ignoring unreadable settings: %s", exc)
            self.quarantine(SETTINGS_FILENAME)

        try:
            base.daily_notes = _NOTES_ADAPTER.validate_python(self.read_document(NOTES_FILENAME))
        except MissingStateError:
            pass
        except (StateError, ValidationError) as exc:
            LOGGER.warning("Ignoring unreadable daily notes: %s", exc)
            self.quarantine(NOTES_FILENAME)
        return base

    def save_settings(self, settings: Settings) -> None:
        """Persist settings and the daily notes as separate documents.

        Args:
            settings: Settings to persist.

        Raises:
            StateError: If a document cannot be written.
        """
        payload = settings.model_dump(mode="json", by_alias=True, exclude={"daily_notes"})
        self.write_document(SETTINGS_FILENAME, payload)
        notes = _NOTES_ADAPTER.dump_python(settings.daily_notes, mode="json")
        self.write_document(NOTES_FILENAME, notes)

    # Session -----------------------------------------------------------

    def load_session(self) -> SessionState:
        try:
            return SessionState.model_validate(self.read_document(SESSION_FILENAME))
        except MissingStateError:
            return SessionState()
        except (StateError, ValidationError) as exc:
            LOGGER.warning("Ignoring unreadable session state: %s", exc)
            self.quarantine(SESSION_FILENAME)
            return SessionState()

    def save_session(self, session: SessionState) -> None:
        self.write_document(SESSION_FILENAME, session.model_dump(mode="json", by_alias=True))

    # Raw documents -----------------------------------------------------

    def read_document(self, name: str) -> Any:
        """Read and decode one JSON document.

        Args:
            name: File name inside the state directory.

        Returns:
            Any: Decoded JSON payload.

        Raises:
            MissingStateError: If the document does not exist.
            StateError: If the document cannot be read or parsed.
        """
        path = self.state_dir / name
        if not path.exists():
            raise MissingStateError(f"No state document found at {path}")
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StateError(f"Invalid JSON in {path}: {exc}") from exc
        except OSError as exc:
            raise StateError(f"Unable to read {path}: {exc}") from exc

    def write_document(self, name: str, payload: Any) -> None:
        """Serialize ``payload`` and overwrite one JSON document.

        Args:
            name: File name inside the state directory.
            payload: JSON-compatible payload.

        Raises:
            StateError: If the document cannot be written.
        """
        try:
            directory = self.initialize()
            (directory / name).write_text(
                json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as exc:
            raise StateError(f"Unable to write {name}: {exc}") from exc

    def quarantine(self, name: str) -> Optional[Path]:
        """Move an unreadable document aside so the next save cannot clobber it.

        Args:
            name: File name inside the state directory.

        Returns:
            Optional[Path]: Location of the preserved copy, or ``None`` when the
            document is gone or cannot be moved.
        """
        path = self.state_dir / name
        if not path.exists():
            return None
        target = path.with_name(f"{name}.corrupt-{datetime.now():%Y%m%d-%H%M%S-%f}")
        try:
            path.rename(target)
        except OSError as exc:
            LOGGER.error("Unable to preserve unreadable %s: %s", path, exc)
            return None
        LOGGER.warning("Preserved unreadable %s as %s", name, target.name)
        return target


__all__ = [
    "DEFAULT_STATE_DIRNAME",
    "MissingStateError",
    "PersistenceGateway",
    "StateError",
    "StateRepository",
]
