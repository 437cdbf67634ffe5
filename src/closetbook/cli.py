"""Command line interface for the Closetbook wardrobe ledger."""

from __future__ import annotations

import difflib
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional
from uuid import UUID

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from closetbook.backup import (
    BackupError,
    dump_backup,
    export_backup,
    import_backup,
    load_backup,
)
from closetbook.config import (
    ClosetConfig,
    ConfigError,
    ConfigManager,
    assign_path,
    resolve_with_precedence,
)
from closetbook.images import DEFAULT_IMAGES_DIRNAME, ImageError, ImageStore
from closetbook.ledger import MutationResult, MutationStatus, WardrobeLedger, validate_new_item
from closetbook.ledger import insights, outfits, queries
from closetbook.ledger.models import (
    MEASUREMENT_KINDS,
    CalendarMonth,
    Category,
    RollingPeriod,
    Settings,
    WardrobeItem,
    measurements_for,
)
from closetbook.state import StateRepository

console = Console()

_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"]
_CATEGORY_CHOICE = click.Choice([category.value for category in Category])
_PERIOD_CHOICE = click.Choice([period.value for period in RollingPeriod])
_SORT_CHOICE = click.Choice([option.value for option in queries.SortOption])


@dataclass
class AppContext:
    """Per-invocation state shared by every command.

    Attributes:
        config: Effective configuration.
        quiet: Whether non-error output is suppressed.
    """

    config: ClosetConfig
    quiet: bool = False
    _ledger: Optional[WardrobeLedger] = field(default=None, repr=False)
    _images: Optional[ImageStore] = field(default=None, repr=False)

    @property
    def data_dir(self) -> Path:
        return Path(self.config.storage.data_dir).expanduser()

    @property
    def images(self) -> ImageStore:
        if self._images is None:
            storage = self.config.storage
            self._images = ImageStore(
                self.data_dir / DEFAULT_IMAGES_DIRNAME,
                max_dimension=storage.image_max_dimension,
                quality=storage.image_quality,
            )
        return self._images

    @property
    def ledger(self) -> WardrobeLedger:
        if self._ledger is None:
            defaults = self.config.defaults
            self._ledger = WardrobeLedger(
                StateRepository(self.data_dir),
                self.images,
                defaults=Settings(
                    budget_weekly=defaults.budget_weekly,
                    budget_monthly=defaults.budget_monthly,
                    budget_yearly=defaults.budget_yearly,
                    cold_threshold_days=defaults.cold_threshold_days,
                ),
            )
        return self._ledger


pass_app = click.make_pass_decorator(AppContext)


# ---------------------------------------------------------------------- #
# Output helpers                                                         #
# ---------------------------------------------------------------------- #


def _configure_logging(level: str) -> None:
    """Route library logging through rich on stderr at ``level``."""

    root = logging.getLogger("closetbook")
    root.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    root.addHandler(handler)
    root.setLevel(level.upper())
    root.propagate = False


def _emit_message(message: Any, *, mode: str, quiet: bool) -> None:
    """Print ``message`` unless quiet mode hides it.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
    """

    if quiet and mode not in {"warning", "error"}:
        return
    console.print(message)


def _money(amount: float) -> str:
    if amount < 0:
        return f"-¥{abs(amount):,.0f}"
    return f"¥{amount:,.0f}"


def _short_id(item_id: UUID) -> str:
    return str(item_id)[:8]


def _report(app: AppContext, result: MutationResult, success: str) -> None:
    """Translate a mutation result into CLI output.

    Raises:
        click.ClickException: If the mutation referenced an unknown item.
    """

    for warning in result.warnings:
        _emit_message(f"[yellow]{warning}[/yellow]", mode="warning", quiet=app.quiet)
    if result.status is MutationStatus.NOT_FOUND:
        raise click.ClickException("No matching item in the wardrobe.")
    if result.status is MutationStatus.UNCHANGED:
        _emit_message("[yellow]Nothing to change.[/yellow]", mode="summary", quiet=app.quiet)
        return
    _emit_message(f"[green]{success}[/green]", mode="summary", quiet=app.quiet)


def _resolve_item(ledger: WardrobeLedger, token: str) -> WardrobeItem:
    """Find an item by full id or unique id prefix.

    Raises:
        click.ClickException: If nothing or more than one item matches.
    """

    needle = token.strip().lower()
    matches = [item for item in ledger.items if str(item.id).startswith(needle)]
    if not matches:
        raise click.ClickException(f"No item matches '{token}'.")
    if len(matches) > 1:
        raise click.ClickException(f"'{token}' is ambiguous; use more characters of the id.")
    return matches[0]


def _item_table(items: Iterable[WardrobeItem], ledger: WardrobeLedger, title: str = "") -> Table:
    table = Table(title=title or None)
    for column in ("ID", "Category", "Price", "Bought", "Wears", "CPW", "Status"):
        table.add_column(column)
    for item in items:
        status = item.status.value
        if ledger.is_cold(item):
            status += " (cold)"
        table.add_row(
            _short_id(item.id),
            item.category.label,
            _money(item.price),
            item.purchase_date.date().isoformat(),
            str(item.wear_count),
            _money(item.cost_per_wear),
            status,
        )
    return table


def _item_payload(item: WardrobeItem, ledger: WardrobeLedger) -> dict[str, Any]:
    payload = item.model_dump(mode="json", by_alias=True)
    payload["costPerWear"] = item.cost_per_wear
    payload["wearCount"] = item.wear_count
    payload["isCold"] = ledger.is_cold(item)
    return payload


def _parse_day(value: Optional[datetime], fallback: datetime) -> datetime:
    return value if value is not None else fallback


# ---------------------------------------------------------------------- #
# Root group                                                             #
# ---------------------------------------------------------------------- #


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="closetbook")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Override the data directory.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str], quiet: bool) -> None:
    """Closetbook tracks what you buy, wear and resell, and how rational it all is.

    Returns:
        None: This function is invoked for its side effects.
    """

    if ctx.invoked_subcommand == "config":
        return
    overrides: dict[str, Any] = {}
    if data_dir:
        overrides["storage.data_dir"] = data_dir
    try:
        config = ConfigManager().load(cli_overrides=overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _configure_logging(config.logging.level)
    ctx.obj = AppContext(config=config, quiet=quiet or config.cli.quiet_default)


# ---------------------------------------------------------------------- #
# Item lifecycle                                                         #
# ---------------------------------------------------------------------- #


@cli.command()
@click.option("--category", "-c", type=_CATEGORY_CHOICE, required=True, help="Item category.")
@click.option("--price", "-p", type=float, required=True, help="Price paid.")
@click.option("--original-price", type=float, help="Pre-discount price (defaults to price).")
@click.option("--date", "bought", type=click.DateTime(_DATE_FORMATS), help="Purchase date.")
@click.option("--platform", default="", help="Where it was bought.")
@click.option("--reason", "-r", default="", help="Why you bought it.")
@click.option("--size", default="", help="Size label.")
@click.option(
    "--photo",
    "photos",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Photo file; repeat for several.",
)
@click.option("--notes", help="Free-text notes.")
@click.option("--target-cpw", type=float, help="Cost-per-wear goal.")
@click.option("--shoulder", "shoulder_width", default="", help="Shoulder width (cm).")
@click.option("--chest", default="", help="Chest (cm).")
@click.option("--sleeve", "sleeve_length", default="", help="Sleeve length (cm).")
@click.option("--length", default="", help="Garment length (cm).")
@click.option("--waist", "waistline", default="", help="Waistline (cm).")
@click.option("--inseam", default="", help="Inseam (cm).")
@pass_app
def add(
    app: AppContext,
    category: str,
    price: float,
    original_price: Optional[float],
    bought: Optional[datetime],
    platform: str,
    reason: str,
    size: str,
    photos: tuple[Path, ...],
    notes: Optional[str],
    target_cpw: Optional[float],
    **measurement_values: str,
) -> None:
    """Log a new purchase.

    Raises:
        click.ClickException: If the purchase fails validation or a photo is unreadable.
    """

    ledger = app.ledger
    chosen = Category(category)
    refs: list[str] = []
    try:
        for photo in photos:
            refs.append(app.images.store(photo.read_bytes()))
        fields: dict[str, Any] = {}
        if bought is not None:
            fields["purchase_date"] = bought
        item = WardrobeItem(
            category=chosen,
            price=price,
            original_price=original_price or 0.0,
            platform=platform,
            justification=reason,
            size=size,
            image_refs=refs,
            measurements=_measurements(chosen, measurement_values),
            notes=notes,
            target_cost_per_wear=target_cpw,
            **fields,
        )
    except (ImageError, OSError, ValidationError) as exc:
        for ref in refs:
            app.images.delete(ref)
        raise click.ClickException(str(exc)) from exc

    problems = validate_new_item(item)
    if problems:
        for ref in refs:
            app.images.delete(ref)
        raise click.ClickException(" ".join(problems))

    thresholds = app.config.insights
    assessment = insights.assess_purchase(
        ledger.items,
        chosen,
        price,
        expensive_price=thresholds.expensive_price,
        occasion_price=thresholds.occasion_price,
    )
    _emit_message(f"[cyan]{assessment.message}[/cyan]", mode="detail", quiet=app.quiet)
    for warning in assessment.warnings:
        _emit_message(f"[yellow]{warning}[/yellow]", mode="warning", quiet=app.quiet)

    result = ledger.add_item(item)
    _report(app, result, f"Added {chosen.label.lower()} {_short_id(item.id)}.")


def _measurements(category: Category, values: dict[str, str]) -> Any:
    """Keep only the measurement fields that apply to ``category``."""

    model = MEASUREMENT_KINDS.get(category)
    if model is None:
        return None
    allowed = {name: value for name, value in values.items() if name in model.model_fields}
    return measurements_for(category, allowed)


@cli.command()
@click.argument("item_ref")
@click.option("--category", "-c", type=_CATEGORY_CHOICE, help="New category.")
@click.option("--price", "-p", type=float, help="New price.")
@click.option("--original-price", type=float, help="New pre-discount price.")
@click.option("--date", "bought", type=click.DateTime(_DATE_FORMATS), help="New purchase date.")
@click.option("--platform", help="New platform.")
@click.option("--reason", "-r", help="New justification.")
@click.option("--size", help="New size.")
@click.option("--notes", help="New notes (empty string clears).")
@click.option("--target-cpw", type=float, help="New cost-per-wear goal.")
@pass_app
def edit(app: AppContext, item_ref: str, **changes: Any) -> None:
    """Change fields of an existing item.

    Raises:
        click.ClickException: If the item is unknown or the new values are invalid.
    """

    ledger = app.ledger
    item = _resolve_item(ledger, item_ref)
    renames = {
        "bought": "purchase_date",
        "reason": "justification",
        "target_cpw": "target_cost_per_wear",
    }
    updates = {renames.get(key, key): value for key, value in changes.items() if value is not None}
    if not updates:
        raise click.ClickException("Nothing to edit; pass at least one option.")
    if updates.get("notes") == "":
        updates["notes"] = None

    data = item.model_dump()
    data.update(updates)
    if "category" in updates and updates["category"] != item.category.value:
        data["measurements"] = None
    try:
        edited = WardrobeItem.model_validate(data)
    except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    _report(app, ledger.update_item(edited), f"Updated {_short_id(item.id)}.")


@cli.command()
@click.argument("item_ref")
@click.option("--date", "when", type=click.DateTime(_DATE_FORMATS), help="When it was worn.")
@click.option("--once", is_flag=True, help="Skip if already logged for that day.")
@pass_app
def wear(app: AppContext, item_ref: str, when: Optional[datetime], once: bool) -> None:
    """Log that you wore an item."""

    ledger = app.ledger
    item = _resolve_item(ledger, item_ref)
    result = ledger.log_wear(item.id, when, dedupe=once)
    worn = ledger.get(item.id)
    count = worn.wear_count if worn is not None else item.wear_count
    _report(app, result, f"Logged a wear for {_short_id(item.id)} ({count} total).")


@cli.command()
@click.argument("item_ref")
@click.option(
    "--date", "day", type=click.DateTime(["%Y-%m-%d"]), help="Day to clear (default today)."
)
@pass_app
def unwear(app: AppContext, item_ref: str, day: Optional[datetime]) -> None:
    """Remove wear events logged on one day."""

    ledger = app.ledger
    item = _resolve_item(ledger, item_ref)
    target = _parse_day(day, ledger.now()).date()
    _report(app, ledger.remove_wear(item.id, target), f"Cleared wears on {target.isoformat()}.")


@cli.command()
@click.argument("item_ref")
@click.option("--price", type=float, help="Resale price.")
@click.option("--date", "sold_on", type=click.DateTime(_DATE_FORMATS), help="Sale date.")
@click.option("--notes", help="Sale notes.")
@pass_app
def sell(
    app: AppContext,
    item_ref: str,
    price: Optional[float],
    sold_on: Optional[datetime],
    notes: Optional[str],
) -> None:
    """Mark an item as sold."""

    ledger = app.ledger
    item = _resolve_item(ledger, item_ref)
    result = ledger.mark_sold(item.id, price, sold_on, notes)
    _report(app, result, f"Marked {_short_id(item.id)} as sold.")


@cli.command()
@click.argument("item_ref")
@click.confirmation_option(prompt="Delete this item and its photos?")
@pass_app
def delete(app: AppContext, item_ref: str) -> None:
    """Delete an item and release its photos."""

    ledger = app.ledger
    item = _resolve_item(ledger, item_ref)
    _report(app, ledger.delete_item(item.id), f"Deleted {_short_id(item.id)}.")


# ---------------------------------------------------------------------- #
# Listings                                                               #
# ---------------------------------------------------------------------- #


@cli.command("list")
@click.option("--sold", "include_sold", is_flag=True, help="Include sold items.")
@click.option("--search", "query", default="", help="Filter by category, platform, reason or size.")
@click.option("--sort", "sort_option", type=_SORT_CHOICE, help="Flat list in this order.")
@click.option("--category", "-c", type=_CATEGORY_CHOICE, help="Only this category.")
@click.option("--recent", is_flag=True, help="Only the most recently added active items.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON.")
@pass_app
def list_items(
    app: AppContext,
    include_sold: bool,
    query: str,
    sort_option: Optional[str],
    category: Optional[str],
    recent: bool,
    json_output: bool,
) -> None:
    """List items grouped by purchase month (or flat, with --sort)."""

    ledger = app.ledger
    if recent:
        pool = queries.recently_added(ledger.items, app.config.cli.recent_limit)
    elif category:
        pool = queries.search_items(
            ledger.items_for_category(Category(category)), query, include_sold=include_sold
        )
    else:
        pool = queries.search_items(ledger.items, query, include_sold=include_sold)

    if sort_option or recent or category:
        ordered = queries.sort_items(pool, queries.SortOption(sort_option or "newest"))
        if json_output:
            console.print_json(data={"items": [_item_payload(item, ledger) for item in ordered]})
            return
        console.print(_item_table(ordered, ledger))
        return

    groups = queries.group_by_month(pool, include_sold=True)
    if json_output:
        payload = [
            {
                "month": group.month_key,
                "count": group.item_count,
                "items": [_item_payload(item, ledger) for item in group.items],
            }
            for group in groups
        ]
        console.print_json(data={"groups": payload})
        return
    if not groups:
        _emit_message("[yellow]No items yet.[/yellow]", mode="summary", quiet=app.quiet)
        return
    for group in groups:
        title = f"{group.month_key} · {group.item_count} bought"
        console.print(_item_table(group.items, ledger, title=title))


@cli.command()
@click.argument("item_ref")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON.")
@pass_app
def show(app: AppContext, item_ref: str, json_output: bool) -> None:
    """Show one item in detail."""

    ledger = app.ledger
    item = _resolve_item(ledger, item_ref)
    if json_output:
        console.print_json(data=_item_payload(item, ledger))
        return

    table = Table(show_header=False, title=f"{item.category.label} {_short_id(item.id)}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Price", f"{_money(item.price)} (was {_money(item.original_price)})")
    table.add_row("Bought", f"{item.purchase_date:%Y-%m-%d} via {item.platform or '-'}")
    table.add_row("Why", item.justification or "-")
    table.add_row("Size", item.size or "-")
    table.add_row("Wears", str(item.wear_count))
    table.add_row("Cost per wear", _money(item.cost_per_wear))
    if item.target_cost_per_wear is not None:
        table.add_row("CPW goal", _money(item.target_cost_per_wear))
    if item.last_worn is not None:
        table.add_row("Last worn", f"{item.last_worn:%Y-%m-%d}")
    table.add_row("Status", item.status.value + (" (cold)" if ledger.is_cold(item) else ""))
    if item.sold_date is not None:
        sold_price = _money(item.sold_price) if item.sold_price is not None else "-"
        table.add_row("Sold", f"{item.sold_date:%Y-%m-%d} for {sold_price}")
    if item.sold_notes:
        table.add_row("Sale notes", item.sold_notes)
    if item.measurements is not None:
        sizes = item.measurements.model_dump(exclude={"kind"}, exclude_none=True)
        table.add_row("Measurements", ", ".join(f"{k}={v}cm" for k, v in sizes.items()))
    if item.notes:
        table.add_row("Notes", item.notes)
    missing = [ref for ref in item.image_refs if app.images.resolve(ref) is None]
    table.add_row("Photos", f"{len(item.image_refs)} ({len(missing)} missing)")
    console.print(table)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit JSON.")
@pass_app
def cold(app: AppContext, json_output: bool) -> None:
    """List dormant items that have not been worn for a while."""

    ledger = app.ledger
    dormant = ledger.cold_items()
    if json_output:
        console.print_json(
            data={
                "thresholdDays": ledger.settings.cold_threshold_days,
                "items": [_item_payload(item, ledger) for item in dormant],
            }
        )
        return
    if not dormant:
        _emit_message("[green]Nothing is gathering dust.[/green]", mode="summary", quiet=app.quiet)
        return
    title = f"Cold items (unworn > {ledger.settings.cold_threshold_days} days)"
    console.print(_item_table(dormant, ledger, title=title))


# ---------------------------------------------------------------------- #
# Analytics                                                              #
# ---------------------------------------------------------------------- #


@cli.command()
@click.option("--period", type=_PERIOD_CHOICE, default="month", show_default=True)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON.")
@pass_app
def stats(app: AppContext, period: str, json_output: bool) -> None:
    """Show spending, resale recovery and budget standing for a rolling period."""

    ledger = app.ledger
    window = RollingPeriod(period)
    report = ledger.budget_report(window)
    breakdown = ledger.spending_by_category(window)
    ladder_text, _ = insights.savings_ladder(report.saved)

    if json_output:
        console.print_json(
            data={
                "period": window.value,
                "spent": report.spent,
                "recovered": report.recovered,
                "net": report.net,
                "budget": report.budget,
                "saved": report.saved,
                "count": report.count,
                "standing": report.standing.value,
                "message": report.message,
                "allTimeRecovered": queries.all_time_recovered(ledger.items),
                "byCategory": [
                    {"category": bucket.category.value, "amount": bucket.amount}
                    for bucket in breakdown
                ],
            }
        )
        return

    table = Table(title=f"Last {window.days} days")
    table.add_column("Metric")
    table.add_column("Amount", justify="right")
    table.add_row("Spent", _money(report.spent))
    table.add_row("Recovered", _money(report.recovered))
    table.add_row("Net", _money(report.net))
    table.add_row("Budget", _money(report.budget))
    if report.standing is insights.BudgetStanding.NET_PROFIT:
        table.add_row("Net profit", _money(-report.net))
    elif report.standing is insights.BudgetStanding.OVER_BUDGET:
        table.add_row("Over budget by", _money(-report.saved))
    else:
        table.add_row("Saved", _money(report.saved))
    console.print(table)

    if breakdown:
        categories = Table(title="By category")
        categories.add_column("Category")
        categories.add_column("Amount", justify="right")
        for bucket in breakdown:
            categories.add_row(bucket.category.label, _money(bucket.amount))
        console.print(categories)

    colour = {"net_profit": "yellow", "over_budget": "red"}.get(report.standing.value, "green")
    console.print(f"[{colour}]{report.message}[/{colour}]")
    if report.standing is insights.BudgetStanding.UNDER_BUDGET:
        console.print(ladder_text)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit JSON.")
@pass_app
def title(app: AppContext, json_output: bool) -> None:
    """Show this calendar month's title."""

    earned = app.ledger.monthly_title(
        resale_threshold=app.config.insights.resale_title_threshold
    )
    if json_output:
        console.print_json(data=earned.model_dump(mode="json", by_alias=True))
        return
    console.print(f"[bold {earned.color}]{earned.title}[/bold {earned.color}]")
    console.print(earned.subtitle)


# ---------------------------------------------------------------------- #
# Daily journal and outfits                                              #
# ---------------------------------------------------------------------- #


@cli.command()
@click.argument("day", type=click.DateTime(["%Y-%m-%d"]))
@click.argument("text", required=False)
@pass_app
def note(app: AppContext, day: datetime, text: Optional[str]) -> None:
    """Show the note for DAY, or set it to TEXT (an empty TEXT deletes it)."""

    ledger = app.ledger
    if text is None:
        existing = ledger.daily_note(day)
        console.print(existing if existing else "[yellow]No note for that day.[/yellow]")
        return
    _report(app, ledger.set_daily_note(day, text), f"Saved note for {day:%Y-%m-%d}.")


@cli.command("copy-yesterday")
@pass_app
def copy_yesterday(app: AppContext) -> None:
    """Wear yesterday's outfit again today."""

    result = app.ledger.copy_yesterday_outfit()
    _report(app, result, f"Copied {len(result.item_ids)} item(s) from yesterday.")


@cli.command("undo-copy")
@pass_app
def undo_copy(app: AppContext) -> None:
    """Undo the last copy-yesterday."""

    result = app.ledger.undo_last_copy()
    _report(app, result, f"Reverted {len(result.item_ids)} item(s).")


@cli.command()
@click.option("--date", "day", type=click.DateTime(["%Y-%m-%d"]), help="Day to show.")
@click.option("--random", "generate", is_flag=True, help="Suggest a random outfit instead.")
@click.option("--budget", type=float, help="Ceiling for a random outfit.")
@click.option("--seed", type=int, help="Seed for reproducible suggestions.")
@pass_app
def outfit(
    app: AppContext,
    day: Optional[datetime],
    generate: bool,
    budget: Optional[float],
    seed: Optional[int],
) -> None:
    """Show what was worn on a day, or draw a random outfit."""

    ledger = app.ledger
    if generate:
        ceiling = budget if budget is not None else app.config.insights.outfit_budget
        look = outfits.generate_outfit(ledger.items, ceiling, rng=random.Random(seed))
        if look is None:
            raise click.ClickException(
                f"No outfit fits within {_money(ceiling)}. Raise the budget or add items."
            )
        heading = f"Outfit · {_money(look.total_price)}"
        console.print(_item_table(look.items, ledger, title=heading))
        return

    target = _parse_day(day, ledger.now()).date()
    worn = ledger.outfit_for(target)
    note_text = ledger.daily_note(target)
    if not worn and not note_text:
        _emit_message(
            f"[yellow]Nothing logged for {target.isoformat()}.[/yellow]",
            mode="summary",
            quiet=app.quiet,
        )
        return
    if worn:
        console.print(_item_table(worn, ledger, title=f"Worn on {target.isoformat()}"))
    if note_text:
        console.print(f"[italic]{note_text}[/italic]")


@cli.command()
@click.option("--month", type=click.DateTime(["%Y-%m"]), help="Month to show (default current).")
@pass_app
def calendar(app: AppContext, month: Optional[datetime]) -> None:
    """List the days of a month that have a logged outfit."""

    ledger = app.ledger
    target = CalendarMonth.containing(month or ledger.now())
    days = sorted(ledger.days_with_outfits(target))
    if not days:
        message = f"[yellow]No outfits in {target.key}.[/yellow]"
        _emit_message(message, mode="summary", quiet=app.quiet)
        return
    for day in days:
        console.print(f"{day.isoformat()}  {len(ledger.outfit_for(day))} item(s)")


# ---------------------------------------------------------------------- #
# Settings                                                               #
# ---------------------------------------------------------------------- #


@cli.command()
@click.argument("period", type=_PERIOD_CHOICE)
@click.argument("amount", type=click.FloatRange(min=0))
@pass_app
def budget(app: AppContext, period: str, amount: float) -> None:
    """Set the budget for a PERIOD (week, month or year)."""

    result = app.ledger.update_budget(RollingPeriod(period), amount)
    _report(app, result, f"{period.capitalize()} budget set to {_money(amount)}.")


@cli.command()
@click.argument("days", type=click.IntRange(min=1))
@pass_app
def threshold(app: AppContext, days: int) -> None:
    """Set how many unworn days make an item cold."""

    result = app.ledger.update_dormancy_threshold(days)
    _report(app, result, f"Items now go cold after {days} days.")


@cli.command()
@pass_app
def storage(app: AppContext) -> None:
    """Show where data lives and how much space photos use."""

    info = app.images.storage_info()
    console.print(f"Data directory: {app.data_dir}")
    console.print(f"Photos: {info.count} ({info.total_kb:,} KB)")


# ---------------------------------------------------------------------- #
# Backup                                                                 #
# ---------------------------------------------------------------------- #


def _app_version() -> str:
    from importlib import metadata

    try:
        return metadata.version("closetbook")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@cli.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@pass_app
def export_command(app: AppContext, path: Path) -> None:
    """Write a JSON backup of every item and setting to PATH."""

    document = export_backup(app.ledger, _app_version())
    try:
        target = dump_backup(document, path)
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc
    _emit_message(
        f"[green]Exported {len(document.items)} item(s) to {target}.[/green]",
        mode="summary",
        quiet=app.quiet,
    )


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.confirmation_option(prompt="Replace the current wardrobe with this backup?")
@pass_app
def import_command(app: AppContext, path: Path) -> None:
    """Replace the wardrobe with the backup at PATH."""

    try:
        document = load_backup(path)
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc
    result = import_backup(app.ledger, document)
    _report(app, result, f"Imported {len(document.items)} item(s) from {path}.")


# ---------------------------------------------------------------------- #
# Configuration                                                          #
# ---------------------------------------------------------------------- #


@cli.group()
def config() -> None:
    """Manage Closetbook configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager(env={}) if no_env else ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'defaults.budget_monthly'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        assign_path(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=ClosetConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.startswith(("-# Last updated", "+# Last updated"))
    ]

    if len(diff) <= 3:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=ClosetConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
