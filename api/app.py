"""Flask REST API exposing the kakeibo services."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from kakeibo.config import Config
from kakeibo.exceptions import MalformedDocumentError, PersistenceError, RecordNotFoundError, ValidationError
from kakeibo.formatting import currency_symbol, format_amount
from kakeibo.forms import ExpenseDraft
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
from kakeibo.store import NoticeBoard, RecordStore
from kakeibo.sync import SheetSync
from kakeibo.transfer import dumps, export_data, export_filename, import_data

FILTER_ARGS = {
    "date_from": "dateFrom",
    "date_to": "dateTo",
    "category": "category",
    "amount_min": "amountMin",
    "amount_max": "amountMax",
    "search_memo": "searchMemo",
}


def create_app(data_dir: Optional[Path] = None, config: Optional[Config] = None) -> Flask:
    config = config or Config.from_env()
    app = Flask(__name__)

    if config.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif config.allowed_origins:
        CORS(app, resources={r"/*": {"origins": config.allowed_origins}}, supports_credentials=True)
    else:
        CORS(app)

    notices = NoticeBoard()
    store = RecordStore(JSONStorage(Path(data_dir or config.data_dir)), notifier=notices)
    store.initialize()
    expense_service = ExpenseService(store)
    category_service = CategoryService(store)
    settings_service = SettingsService(store)

    def _success(payload: Any, status: int = 200):
        warnings = notices.drain()
        if warnings:
            if status == 204:
                payload, status = {}, 200
            payload = {**payload, "warnings": warnings}
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str, **extra: Any):
        app.logger.error("%s: %s", message, exc)
        body = {"error": message, "details": str(exc), **extra}
        warnings = notices.drain()
        if warnings:
            body["warnings"] = warnings
        return jsonify(body), status

    @app.errorhandler(MalformedDocumentError)
    def handle_malformed_document(exc: MalformedDocumentError):
        return _handle_error(exc, 400, "Malformed import document")

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error", errors=exc.errors)

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _filters() -> ExpenseFilter:
        return ExpenseFilter.from_mapping(
            {field: request.args.get(arg) for field, arg in FILTER_ARGS.items()}
        )

    def _symbol() -> str:
        return currency_symbol(settings_service.get())

    @app.get("/expenses")
    def list_expenses():
        sort = request.args.get("sort") or SortOrder.DATE_DESC.value
        expenses = expense_service.list(_filters(), sort)
        total = filtered_total(expenses)
        return _success({
            "items": [expense.to_dict() for expense in expenses],
            "count": len(expenses),
            "total": total,
            "totalDisplay": format_amount(total, _symbol()),
        })

    @app.post("/expenses")
    def create_expense():
        payload = _json_body()
        expense = ExpenseDraft().with_fields(**_form_fields(payload)).submit(expense_service)
        return _success(expense.to_dict(), 201)

    @app.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        expense = expense_service.require(expense_id)
        return _success(expense.to_dict())

    @app.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        payload = _json_body()
        draft = ExpenseDraft.for_existing(expense_service.require(expense_id))
        expense = draft.with_fields(**_form_fields(payload)).submit(expense_service)
        return _success(expense.to_dict())

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        expense_service.delete(expense_id)
        return _success({}, 204)

    @app.get("/categories")
    def list_categories():
        return _success({"items": category_service.list()})

    @app.post("/categories")
    def create_category():
        payload = _json_body()
        name = category_service.add(payload.get("name"))
        return _success({"name": name}, 201)

    @app.delete("/categories/<name>")
    def delete_category(name: str):
        category_service.remove(name)
        return _success({}, 204)

    @app.get("/settings")
    def get_settings():
        return _success(settings_service.get())

    @app.put("/settings")
    def update_settings():
        payload = _json_body()
        return _success(settings_service.update(payload))

    @app.get("/stats")
    def stats():
        expenses = expense_service.all()
        symbol = _symbol()
        summary = summarize(expenses)
        # Category breakdown ignores the category filter.
        breakdown = category_breakdown(filter_expenses(expenses, _filters().without_category()))
        return _success({
            **summary.to_dict(),
            "display": {
                "monthlyTotal": format_amount(summary.monthly_total, symbol),
                "yearlyTotal": format_amount(summary.yearly_total, symbol),
                "averageDaily": format_amount(summary.average_daily, symbol),
            },
            "categories": [stat.to_dict() for stat in breakdown],
        })

    @app.get("/export")
    def export():
        now = datetime.now(timezone.utc)
        body = dumps(export_data(store, now))
        return Response(
            body,
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{export_filename(now)}"'},
        )

    @app.post("/import")
    def import_():
        # The client confirms before uploading, so no second prompt here.
        written = import_data(store, request.get_data())
        return _success({"imported": written})

    @app.post("/sync")
    def sync():
        if not config.sync_enabled:
            raise ValidationError("No sync endpoint configured")
        client = SheetSync(
            config.sync_url, config.sync_secret, timeout=config.sync_timeout, notifier=notices
        )
        result = client.push(store)
        notices.drain()
        return _success({"ok": result.ok, "message": result.message}, 200 if result.ok else 502)

    return app


def _form_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: payload.get(key) for key in ("date", "category", "amount", "memo")}
