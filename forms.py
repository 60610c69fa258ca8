from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from datetime import date
from typing import Any, Dict, Mapping, NamedTuple, Optional

from navigation import validate_field_order
from pricing import DERIVED_FIELDS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Preset loading
# ---------------------------------------------------------------------------


def load_json(path: str, *, required: bool = False) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as exc:
        if required:
            raise RuntimeError(f"Presets file not found: {path}") from exc
        return {}
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON in {path}: {exc}") from exc


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = base.copy()
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = deep_merge(base_value, value)
        else:
            merged[key] = value
    return merged


def load_presets(base_path: str, override_path: Optional[str] = None) -> dict[str, Any]:
    presets = load_json(base_path, required=True)
    if override_path:
        override = load_json(override_path)
        if override:
            logger.info("Applying preset overrides from %s", override_path)
            presets = deep_merge(presets, override)
    return presets


# ---------------------------------------------------------------------------
# Form layouts
# ---------------------------------------------------------------------------


class Column(NamedTuple):
    key: str
    label: str
    editable: bool
    type: str
    align: str


class FormLayout(NamedTuple):
    name: str
    title: str
    field_order: tuple[str, ...]
    columns: tuple[Column, ...]


_TEXT_INPUTS = {"code", "description", "pack_size", "batch_no"}


def _column(key: str, labels: Mapping[str, str], editable: bool) -> Column:
    is_text = key in _TEXT_INPUTS
    return Column(
        key=key,
        label=labels.get(key, key.replace("_", " ").title()),
        editable=editable,
        type="text" if is_text else "number",
        align="left" if is_text else "right",
    )


def build_layouts(presets: Mapping[str, Any]) -> Dict[str, FormLayout]:
    section = presets.get("forms") or {}
    if not section:
        raise RuntimeError("No form layouts defined in presets.")
    labels = presets.get("labels") or {}

    layouts: Dict[str, FormLayout] = {}
    for name, entry in section.items():
        try:
            order = validate_field_order(entry.get("field_order"))
        except ValueError as exc:
            raise RuntimeError(f"Form layout {name!r}: {exc}") from exc
        columns = tuple(_column(key, labels, True) for key in order)
        columns += (_column("net_amount", labels, False),)
        layouts[name] = FormLayout(
            name=name,
            title=str(entry.get("title") or name.title()),
            field_order=order,
            columns=columns,
        )
    return layouts


def summary_labels(presets: Mapping[str, Any]) -> dict[str, str]:
    labels = presets.get("labels") or {}
    return {key: labels.get(key, key.replace("_", " ").title()) for key in DERIVED_FIELDS}


# ---------------------------------------------------------------------------
# Invoice header
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InvoiceHeader:
    company_name: str = ""
    company_address: str = ""
    company_phone: str = ""
    company_email: str = ""
    customer_name: str = ""
    phone: str = ""
    salesman_name: str = ""
    date: str = ""
    terms: str = ""


HEADER_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(InvoiceHeader))


def header_defaults(presets: Mapping[str, Any]) -> InvoiceHeader:
    defaults = presets.get("defaults") or {}
    values = {k: str(v) for k, v in (defaults.get("header") or {}).items() if k in HEADER_FIELDS}
    values.setdefault("terms", str(defaults.get("terms", "")))
    if not values.get("date"):
        values["date"] = date.today().isoformat()
    return InvoiceHeader(**values)


def update_header(header: InvoiceHeader, payload: Mapping[str, Any]) -> InvoiceHeader:
    changes = {k: "" if v is None else str(v) for k, v in payload.items() if k in HEADER_FIELDS}
    return replace(header, **changes) if changes else header


def header_to_dict(header: InvoiceHeader) -> dict[str, str]:
    return asdict(header)


def header_from_dict(data: Optional[Mapping[str, Any]], defaults: InvoiceHeader) -> InvoiceHeader:
    return update_header(defaults, data or {})
