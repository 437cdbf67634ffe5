"""Backup export and import.

The backup is a single JSON document holding every item plus the settings.
Exporting and then importing a document reproduces an equivalent ledger: optional
fields are always written (as ``null`` when absent) so the shape is stable.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, ValidationError

from closetbook.ledger import MutationResult, WardrobeLedger
from closetbook.ledger.models import LedgerModel, Settings, WardrobeItem


class BackupError(Exception):
    """Raised when a backup document cannot be read or written."""


class BackupDocument(LedgerModel):
    """Wire format of a backup file.

    Attributes:
        items: Every wardrobe item, active and sold.
        budget_weekly: Weekly budget ceiling.
        budget_monthly: Monthly budget ceiling.
        budget_yearly: Yearly budget ceiling.
        cold_threshold_days: Dormancy threshold in days.
        daily_notes: Outfit journal keyed by ``YYYY-MM-DD``.
        export_date: When the backup was produced.
        app_version: Version of the exporting application.
    """

    items: List[WardrobeItem] = Field(default_factory=list)
    budget_weekly: float
    budget_monthly: float
    budget_yearly: float
    cold_threshold_days: int
    daily_notes: Dict[date, str] = Field(default_factory=dict)
    export_date: datetime
    app_version: str

    def to_settings(self) -> Settings:
        return Settings(
            budget_weekly=self.budget_weekly,
            budget_monthly=self.budget_monthly,
            budget_yearly=self.budget_yearly,
            cold_threshold_days=self.cold_threshold_days,
            daily_notes=dict(self.daily_notes),
        )


def export_backup(
    ledger: WardrobeLedger, app_version: str, *, exported_at: Optional[datetime] = None
) -> BackupDocument:
    settings = ledger.settings
    return BackupDocument(
        items=[item.model_copy(deep=True) for item in ledger.items],
        budget_weekly=settings.budget_weekly,
        budget_monthly=settings.budget_monthly,
        budget_yearly=settings.budget_yearly,
        cold_threshold_days=settings.cold_threshold_days,
        daily_notes=dict(settings.daily_notes),
        export_date=exported_at or ledger.now(),
        app_version=app_version,
    )


def dumps(document: BackupDocument) -> str:
    return json.dumps(
        document.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False
    )


def parse_backup(text: str) -> BackupDocument:
    """Decode a backup document.

    Raises:
        BackupError: If the text is not valid JSON or does not match the format.
    """
    try:
        return BackupDocument.model_validate_json(text)
    except ValidationError as exc:
        raise BackupError(f"Invalid backup document: {exc}") from exc


def dump_backup(document: BackupDocument, path: Path) -> Path:
    """Write ``document`` to ``path`` and return the resolved path.

    Raises:
        BackupError: If the file cannot be written.
    """
    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(dumps(document), encoding="utf-8")
    except OSError as exc:
        raise BackupError(f"Unable to write backup to {target}: {exc}") from exc
    return target


def load_backup(path: Path) -> BackupDocument:
    """Read a backup file.

    Raises:
        BackupError: If the file is missing, unreadable or malformed.
    """
    source = Path(path).expanduser()
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise BackupError(f"Unable to read backup {source}: {exc}") from exc
    return parse_backup(text)


def import_backup(ledger: WardrobeLedger, document: BackupDocument) -> MutationResult:
    """Replace the ledger's items and settings with the backup contents."""
    return ledger.replace_all(document.items, document.to_settings())


__all__ = [
    "BackupDocument",
    "BackupError",
    "dump_backup",
    "dumps",
    "export_backup",
    "import_backup",
    "load_backup",
    "parse_backup",
]
