"""Console interface for kakeibo."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from kakeibo.config import Config
from kakeibo.exceptions import MalformedDocumentError, PersistenceError, RecordNotFoundError, ValidationError
from kakeibo.formatting import (
    currency_symbol,
    format_amount,
    format_breakdown_row,
    format_date,
    format_expense_row,
)
from kakeibo.forms import ExpenseDraft
from kakeibo.logs import setup_logging
from kakeibo.queries import (
    ExpenseFilter,
    SortOrder,
    category_breakdown,
    filter_expenses,
    filtered_total,
    summarize,
)
from kakeibo.services import CategoryService, ExpenseService, SettingsService
from kakeibo.storage import JSONStorage
from kakeibo.store import RecordStore
from kakeibo.sync import SheetSync
from kakeibo.transfer import import_data, write_export
from kakeibo.validators import parse_iso_date

SORT_CHOICES = [order.value for order in SortOrder]


def _parse_date(value: str) -> str:
    if parse_iso_date(value) is None:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}'. Expected format YYYY-MM-DD.")
    return value


def _parse_amount(value: str) -> str:
    if not value.strip().lstrip("+-").split(".")[0].isdigit():
        raise argparse.ArgumentTypeError("Amount must be a numeric value")
    return value


def _notify_stderr(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


class Context:
    """Services wired to one data directory."""

    def __init__(self, data_dir: Path, config: Config) -> None:
        self.config = config
        self.store = RecordStore(JSONStorage(data_dir), notifier=_notify_stderr)
        self.store.initialize()
        self.expenses = ExpenseService(self.store)
        self.categories = CategoryService(self.store)
        self.settings = SettingsService(self.store)

    @property
    def symbol(self) -> str:
        return currency_symbol(self.settings.get())


def _filters_from_args(args: argparse.Namespace) -> ExpenseFilter:
    return ExpenseFilter.from_mapping(
        {
            "date_from": args.date_from,
            "date_to": args.date_to,
            "category": getattr(args, "category", None),
            "amount_min": args.amount_min,
            "amount_max": args.amount_max,
            "search_memo": args.search,
        }
    )


def handle_expense(args: argparse.Namespace, ctx: Context) -> None:
    symbol = ctx.symbol
    if args.command == "add":
        draft = ExpenseDraft.for_new(
            today=date.today(),
            category=str(ctx.settings.get().get("defaultCategory") or ""),
        ).with_fields(date=args.date, category=args.category, amount=args.amount, memo=args.memo)
        expense = draft.submit(ctx.expenses)
        print("Expense added:\n  " + format_expense_row(expense, symbol))
    elif args.command == "list":
        expenses = ctx.expenses.list(_filters_from_args(args), args.sort)
        if not expenses:
            print("No expenses found.")
            return
        print(f"{len(expenses)} expense(s), total {format_amount(filtered_total(expenses), symbol)}:")
        for expense in expenses:
            print("  " + format_expense_row(expense, symbol))
    elif args.command == "show":
        expense = ctx.expenses.require(args.id)
        print(f"ID:       {expense.id}")
        print(f"Date:     {format_date(expense.date)}")
        print(f"Category: {expense.category}")
        print(f"Amount:   {format_amount(expense.amount, symbol)}")
        print(f"Memo:     {expense.memo or '-'}")
    elif args.command == "edit":
        draft = ExpenseDraft.for_existing(ctx.expenses.require(args.id)).with_fields(
            date=args.date, category=args.category, amount=args.amount, memo=args.memo
        )
        expense = draft.submit(ctx.expenses)
        print("Expense updated:\n  " + format_expense_row(expense, symbol))
    elif args.command == "delete":
        expense = ctx.expenses.require(args.id)
        ctx.expenses.delete(expense.id)
        print(
            f"Deleted {format_date(expense.date)} - {expense.category} - "
            f"{format_amount(expense.amount, symbol)}"
        )


def handle_category(args: argparse.Namespace, ctx: Context) -> None:
    if args.command == "list":
        for name in ctx.categories.list():
            print(name)
    elif args.command == "add":
        print(f"Category added: {ctx.categories.add(args.name)}")
    elif args.command == "remove":
        ctx.categories.remove(args.name)
        print(f"Category removed: {args.name}")


def handle_settings(args: argparse.Namespace, ctx: Context) -> None:
    if args.command == "set":
        settings = ctx.settings.update({args.key: args.value})
    else:
        settings = ctx.settings.get()
    for key, value in settings.items():
        print(f"{key}: {value}")


def handle_stats(args: argparse.Namespace, ctx: Context) -> None:
    symbol = ctx.symbol
    expenses = ctx.expenses.all()
    summary = summarize(expenses)
    print(f"This month:    {format_amount(summary.monthly_total, symbol)}")
    print(f"This year:     {format_amount(summary.yearly_total, symbol)}")
    print(f"Daily average: {format_amount(summary.average_daily, symbol)}")

    # The breakdown is per category, so a category filter does not apply here.
    stats = category_breakdown(filter_expenses(expenses, _filters_from_args(args)))
    print("By category:")
    if not stats:
        print("  No data.")
        return
    for stat in stats:
        print("  " + format_breakdown_row(stat, symbol))


def handle_export(args: argparse.Namespace, ctx: Context) -> None:
    path = write_export(ctx.store, args.output_dir)
    print(f"Exported to {path}")


def _ask_overwrite() -> bool:
    answer = input("Importing overwrites the existing data. Continue? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def handle_import(args: argparse.Namespace, ctx: Context) -> bool:
    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedDocumentError(f"Unable to read {args.file}") from exc
    confirm = (lambda: True) if args.yes else _ask_overwrite
    if not import_data(ctx.store, text, confirm):
        print("Import cancelled.")
        return False
    print("Import finished.")
    return True


def handle_sync(args: argparse.Namespace, ctx: Context) -> bool:
    url = args.url or ctx.config.sync_url
    if not url:
        raise ValidationError("No sync endpoint configured; pass --url or set KAKEIBO_SYNC_URL")
    client = SheetSync(
        url,
        args.secret if args.secret is not None else ctx.config.sync_secret,
        timeout=ctx.config.sync_timeout,
        notifier=print,
    )
    return client.push(ctx.store).ok


def _add_filter_arguments(parser: argparse.ArgumentParser, *, with_category: bool = True) -> None:
    parser.add_argument("--from", dest="date_from", type=_parse_date)
    parser.add_argument("--to", dest="date_to", type=_parse_date)
    if with_category:
        parser.add_argument("--category")
    parser.add_argument("--min", dest="amount_min", type=_parse_amount)
    parser.add_argument("--max", dest="amount_max", type=_parse_amount)
    parser.add_argument("--search", help="Case-insensitive memo substring")


def build_parser(config: Optional[Config] = None) -> argparse.ArgumentParser:
    config = config or Config.from_env()
    parser = argparse.ArgumentParser(prog="kakeibo", description="Personal expense tracker")
    parser.add_argument(
        "--data-dir",
        default=config.data_dir,
        type=Path,
        help=f"Directory to store JSON data (default: {config.data_dir})",
    )
    parser.add_argument("--log-level", default=config.log_level)

    subparsers = parser.add_subparsers(dest="entity", required=True)

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Add a new expense")
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("--date", type=_parse_date, help="Defaults to today")
    expense_add.add_argument("--category", help="Defaults to the defaultCategory setting")
    expense_add.add_argument("--memo")

    expense_list = expense_sub.add_parser("list", help="List expenses")
    _add_filter_arguments(expense_list)
    expense_list.add_argument("--sort", choices=SORT_CHOICES, default=SortOrder.DATE_DESC.value)

    expense_show = expense_sub.add_parser("show", help="Show one expense")
    expense_show.add_argument("id")

    expense_edit = expense_sub.add_parser("edit", help="Edit an existing expense")
    expense_edit.add_argument("id")
    expense_edit.add_argument("--date", type=_parse_date)
    expense_edit.add_argument("--category")
    expense_edit.add_argument("--amount", type=_parse_amount)
    expense_edit.add_argument("--memo")

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id")

    category_parser = subparsers.add_parser("category", help="Manage categories")
    category_sub = category_parser.add_subparsers(dest="command", required=True)
    category_sub.add_parser("list", help="List categories")
    category_add = category_sub.add_parser("add", help="Add a category")
    category_add.add_argument("name")
    category_remove = category_sub.add_parser("remove", help="Remove a category")
    category_remove.add_argument("name")

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_sub = settings_parser.add_subparsers(dest="command", required=True)
    settings_sub.add_parser("show", help="Show settings")
    settings_set = settings_sub.add_parser("set", help="Change one setting")
    settings_set.add_argument("key")
    settings_set.add_argument("value")

    stats_parser = subparsers.add_parser("stats", help="Show totals and the category breakdown")
    _add_filter_arguments(stats_parser, with_category=False)

    export_parser = subparsers.add_parser("export", help="Export all data as JSON")
    export_parser.add_argument("--output-dir", type=Path, default=Path("."))

    import_parser = subparsers.add_parser("import", help="Replace data from a JSON export")
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    sync_parser = subparsers.add_parser("sync", help="Back up all data to the sync endpoint")
    sync_parser.add_argument("--url")
    sync_parser.add_argument("--secret")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    config = Config.from_env()
    parser = build_parser(config)
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    ctx = Context(args.data_dir, config)

    handlers: Dict[str, Any] = {
        "expense": handle_expense,
        "category": handle_category,
        "settings": handle_settings,
        "stats": handle_stats,
        "export": handle_export,
        "import": handle_import,
        "sync": handle_sync,
    }
    try:
        outcome = handlers[args.entity](args, ctx)
    except ValidationError as exc:
        for message in exc.errors:
            print(f"Validation error: {message}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 1 if outcome is False else 0


if __name__ == "__main__":
    raise SystemExit(main())
