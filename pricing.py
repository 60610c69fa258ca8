from __future__ import annotations
import math
from dataclasses import dataclass, fields
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

TEXT_FIELDS: tuple[str, ...] = ("code", "description", "pack_size", "batch_no")
NUMERIC_FIELDS: tuple[str, ...] = (
    "quantity",
    "unit_price",
    "discount_percent",
    "gst_percent",
    "additional_gst",
    "advance_tax",
)
DERIVED_FIELDS: tuple[str, ...] = (
    "gross_amount",
    "discount_amount",
    "taxable_amount",
    "gst_amount",
    "net_amount",
)

@dataclass(frozen=True)
class LineItem:
    id: int
    code: str = ""
    description: str = ""
    pack_size: str = ""
    batch_no: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0
    discount_percent: float = 0.0
    gst_percent: float = 0.0
    additional_gst: float = 0.0
    advance_tax: float = 0.0

@dataclass(frozen=True)
class ComputedLineItem:
    item: LineItem
    gross_amount: float
    discount_amount: float
    taxable_amount: float
    gst_amount: float
    net_amount: float

@dataclass(frozen=True)
class InvoiceTotals:
    gross_amount: float = 0.0
    discount_amount: float = 0.0
    taxable_amount: float = 0.0
    gst_amount: float = 0.0
    additional_gst: float = 0.0
    advance_tax: float = 0.0
    net_amount: float = 0.0

def coerce_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        raw = str(value).strip()
        if not raw:
            return 0.0
        try:
            number = float(raw)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0

def coerce_text(value: Any) -> str:
    return "" if value is None else str(value)

def _percent_of(base: float, pct: float) -> float:
    return base * pct / 100.0

def compute_line_item(item: LineItem) -> ComputedLineItem:
    quantity = coerce_number(item.quantity)
    unit_price = coerce_number(item.unit_price)

    gross = quantity * unit_price
    discount_amt = _percent_of(gross, coerce_number(item.discount_percent))
    taxable = gross - discount_amt
    gst_amt = _percent_of(taxable, coerce_number(item.gst_percent))

    # Flat charges are layered on after tax
    net = taxable + gst_amt + coerce_number(item.additional_gst) + coerce_number(item.advance_tax)

    return ComputedLineItem(
        item=item,
        gross_amount=gross,
        discount_amount=discount_amt,
        taxable_amount=taxable,
        gst_amount=gst_amt,
        net_amount=net,
    )

def compute_line_items(items: Iterable[LineItem]) -> list[ComputedLineItem]:
    return [compute_line_item(item) for item in items]

def aggregate_totals(computed: Iterable[ComputedLineItem]) -> InvoiceTotals:
    sums = {f.name: 0.0 for f in fields(InvoiceTotals)}
    for row in computed:
        for name in DERIVED_FIELDS:
            sums[name] += getattr(row, name)
        sums["additional_gst"] += coerce_number(row.item.additional_gst)
        sums["advance_tax"] += coerce_number(row.item.advance_tax)
    return InvoiceTotals(**sums)

def bill_amount(totals: InvoiceTotals) -> int:
    # Half-up to the whole unit (ties away from zero); only the printed amount is rounded.
    exact = Decimal(repr(totals.net_amount))
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))

def _rounded(components: Mapping[str, float], digits: int) -> dict:
    return {name: round(amount, digits) for name, amount in components.items()}

def display_row(row: ComputedLineItem, digits: int = 2) -> dict:
    item = row.item
    payload: dict[str, Any] = {"id": item.id}
    payload.update({name: getattr(item, name) for name in TEXT_FIELDS})
    payload.update({name: getattr(item, name) for name in NUMERIC_FIELDS})
    payload.update(_rounded({name: getattr(row, name) for name in DERIVED_FIELDS}, digits))
    return payload

def display_totals(totals: InvoiceTotals, digits: int = 2) -> dict:
    return _rounded({f.name: getattr(totals, f.name) for f in fields(InvoiceTotals)}, digits)
