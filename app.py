from __future__ import annotations

import csv
import io
import logging
import os
import threading
import uuid
from typing import Any, Dict, Tuple

from flask import Flask, Response, abort, jsonify, redirect, request, session, url_for

from forms import (
    FormLayout,
    InvoiceHeader,
    build_layouts,
    header_defaults,
    header_from_dict,
    header_to_dict,
    load_presets,
    summary_labels,
    update_header,
)
from logging_config import setup_logging
from navigation import (
    InvoiceSession,
    focus_cell,
    handle_key,
    insert_row,
    remove_row,
    reset,
    session_from_dict,
    session_to_dict,
    update_field,
)
from pricing import aggregate_totals, bill_amount, compute_line_items, display_row, display_totals
from template import render_page
from words import amount_in_words

setup_logging()

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "invoice-entry-dev")


# ---------------------------------------------------------------------------
# Configuration & preset loading
# ---------------------------------------------------------------------------

BASE_PRESETS_PATH = os.path.join(os.path.dirname(__file__), "presets.json")
LOCAL_PRESETS_PATH = os.environ.get(
    "PRESETS_OVERRIDE_PATH",
    os.path.join(os.path.dirname(__file__), "presets.local.json"),
)

PRESETS = load_presets(BASE_PRESETS_PATH, LOCAL_PRESETS_PATH)
DEFAULTS = PRESETS.get("defaults", {})
FORM_LAYOUTS = build_layouts(PRESETS)
DEFAULT_FORM = DEFAULTS.get("default_form") or next(iter(FORM_LAYOUTS))
if DEFAULT_FORM not in FORM_LAYOUTS:
    raise RuntimeError(f"default_form {DEFAULT_FORM!r} is not a defined form layout")
CURRENCY = str(DEFAULTS.get("currency", "Rs"))
SUMMARY_LABELS = summary_labels(PRESETS)


class PayloadError(ValueError):
    pass


@app.errorhandler(PayloadError)
def _payload_error(exc: PayloadError):
    logger.warning("Rejected request to %s: %s", request.path, exc)
    return jsonify({"error": str(exc)}), 400


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------


def _layout(form: str) -> FormLayout:
    layout = FORM_LAYOUTS.get(form)
    if layout is None:
        abort(404)
    return layout


# Invoice state lives in process memory; the cookie only carries the session id.
_STATE_STORE: Dict[str, Dict[str, Dict[str, Any]]] = {}
_STATE_LOCK = threading.Lock()


def _session_id() -> str:
    sid = session.get("sid")
    if not isinstance(sid, str) or not sid:
        sid = uuid.uuid4().hex
        session["sid"] = sid
        logger.debug("Started invoice session %s", sid)
    return sid


def _load_state(layout: FormLayout) -> Tuple[InvoiceSession, InvoiceHeader]:
    sid = _session_id()
    with _STATE_LOCK:
        stored = dict(_STATE_STORE.get(sid, {}).get(layout.name) or {})
    invoice = session_from_dict(stored.get("invoice"), layout.field_order)
    header = header_from_dict(stored.get("header"), header_defaults(PRESETS))
    return invoice, header


def _save_state(layout: FormLayout, invoice: InvoiceSession, header: InvoiceHeader) -> None:
    sid = _session_id()
    state = {"invoice": session_to_dict(invoice), "header": header_to_dict(header)}
    with _STATE_LOCK:
        _STATE_STORE.setdefault(sid, {})[layout.name] = state


def _view(layout: FormLayout, invoice: InvoiceSession, header: InvoiceHeader) -> Dict[str, Any]:
    computed = compute_line_items(invoice.rows)
    totals = aggregate_totals(computed)
    bill = bill_amount(totals)
    try:
        words = amount_in_words(bill)
    except ValueError:
        words = ""
    focus = None
    if invoice.focus is not None:
        focus = {"row_id": invoice.focus.row_id, "field": invoice.focus.field}
    return {
        "form": layout.name,
        "rows": [display_row(row) for row in computed],
        "totals": display_totals(totals),
        "bill_amount": bill,
        "amount_in_words": words,
        "focus": focus,
        "header": header_to_dict(header),
    }


def _respond(layout: FormLayout, invoice: InvoiceSession, header: InvoiceHeader):
    _save_state(layout, invoice, header)
    return jsonify(_view(layout, invoice, header))


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Request body must be a JSON object")
    return data


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise PayloadError(f"{key} is required")
    return data[key]


def _row_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PayloadError("row_id must be an integer")


# ---------------------------------------------------------------------------
# Flask routes
# ---------------------------------------------------------------------------


@app.route("/")
def index():
    return redirect(url_for("entry_page", form=DEFAULT_FORM))


@app.route("/<form>")
def entry_page(form: str):
    layout = _layout(form)
    invoice, header = _load_state(layout)
    _save_state(layout, invoice, header)
    html = render_page(
        layout,
        _view(layout, invoice, header),
        forms={name: lay.title for name, lay in FORM_LAYOUTS.items()},
        currency=CURRENCY,
        summary_labels=SUMMARY_LABELS,
    )
    return Response(html, mimetype="text/html")


@app.route("/api/<form>/state")
def get_state(form: str):
    layout = _layout(form)
    invoice, header = _load_state(layout)
    return _respond(layout, invoice, header)


@app.route("/api/<form>/edit", methods=["POST"])
def edit_field(form: str):
    layout = _layout(form)
    data = _json_body()
    row_id = _row_id(_require(data, "row_id"))
    field = str(_require(data, "field"))
    invoice, header = _load_state(layout)
    invoice = update_field(invoice, row_id, field, data.get("value"))
    return _respond(layout, invoice, header)


@app.route("/api/<form>/key", methods=["POST"])
def press_key(form: str):
    layout = _layout(form)
    data = _json_body()
    key = str(_require(data, "key"))
    shift = data.get("shift", False)
    if not isinstance(shift, bool):
        raise PayloadError("shift must be a boolean")
    invoice, header = _load_state(layout)
    invoice = handle_key(invoice, key, shift=shift)
    return _respond(layout, invoice, header)


@app.route("/api/<form>/focus", methods=["POST"])
def set_focus(form: str):
    layout = _layout(form)
    data = _json_body()
    row_id = _row_id(_require(data, "row_id"))
    field = str(_require(data, "field"))
    invoice, header = _load_state(layout)
    invoice = focus_cell(invoice, row_id, field)
    return _respond(layout, invoice, header)


@app.route("/api/<form>/rows", methods=["POST"])
def add_row(form: str):
    layout = _layout(form)
    invoice, header = _load_state(layout)
    invoice = insert_row(invoice)
    return _respond(layout, invoice, header)


@app.route("/api/<form>/rows/<int:row_id>", methods=["DELETE"])
def delete_row(form: str, row_id: int):
    layout = _layout(form)
    invoice, header = _load_state(layout)
    invoice = remove_row(invoice, row_id)
    return _respond(layout, invoice, header)


@app.route("/api/<form>/header", methods=["POST"])
def edit_header(form: str):
    layout = _layout(form)
    data = _json_body()
    invoice, header = _load_state(layout)
    header = update_header(header, data)
    return _respond(layout, invoice, header)


@app.route("/api/<form>/reset", methods=["POST"])
def reset_form(form: str):
    layout = _layout(form)
    invoice, _ = _load_state(layout)
    return _respond(layout, reset(invoice), header_defaults(PRESETS))


@app.route("/<form>/export.csv")
def export_csv(form: str):
    layout = _layout(form)
    invoice, header = _load_state(layout)
    view = _view(layout, invoice, header)

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["#"] + [c.label for c in layout.columns])
    for idx, row in enumerate(view["rows"], start=1):
        writer.writerow([idx] + [row[c.key] for c in layout.columns])

    # Footer lines aligned to the last column
    pad = [""] * len(layout.columns)
    totals = view["totals"]
    writer.writerow(["Gross Total"] + pad[:-1] + [totals["gross_amount"]])
    writer.writerow(["Net Total"] + pad[:-1] + [totals["net_amount"]])
    writer.writerow(["Bill Amount"] + pad[:-1] + [view["bill_amount"]])

    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={layout.name}-invoice.csv"},
    )


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "5000"))
    debug = os.environ.get("DEBUG", "0") in ["1", "true", "True"]
    logger.info("Serving %s form layouts on %s:%s", len(FORM_LAYOUTS), host, port)
    app.run(host=host, port=port, debug=debug)
