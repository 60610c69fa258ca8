"""Keyboard focus navigation over the line-item grid.

The whole editing session is one immutable :class:`InvoiceSession` value.
Every operation here takes a session and returns the next one, so the grid can
be driven (and tested) without a browser. Rows form an ordered arena keyed by
stable integer ids; a cell is addressed by ``(row_id, field)``.

After every transition the focus either is ``None`` (nothing focused yet) or
names a live row and a field of the session's field order. Operations that
would step outside the grid leave the session unchanged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

from pricing import NUMERIC_FIELDS, TEXT_FIELDS, LineItem, coerce_number, coerce_text

logger = logging.getLogger(__name__)

LINE_ITEM_FIELDS: tuple[str, ...] = TEXT_FIELDS + NUMERIC_FIELDS


@dataclass(frozen=True)
class FocusPosition:
    row_id: int
    field: str


@dataclass(frozen=True)
class InvoiceSession:
    field_order: tuple[str, ...]
    rows: tuple[LineItem, ...] = ()
    next_id: int = 1
    focus: Optional[FocusPosition] = None

    def row_ids(self) -> list[int]:
        return [row.id for row in self.rows]

    def index_of(self, row_id: int) -> Optional[int]:
        for idx, row in enumerate(self.rows):
            if row.id == row_id:
                return idx
        return None

    def has_cell(self, row_id: int, field: str) -> bool:
        return field in self.field_order and self.index_of(row_id) is not None

    @property
    def first_field(self) -> str:
        return self.field_order[0]

    @property
    def last_field(self) -> str:
        return self.field_order[-1]


def validate_field_order(field_order: Any) -> tuple[str, ...]:
    order = tuple(field_order or ())
    if not order:
        raise ValueError("Field order must name at least one field")
    unknown = [name for name in order if name not in LINE_ITEM_FIELDS]
    if unknown:
        raise ValueError(f"Unknown line item fields in field order: {', '.join(unknown)}")
    if len(set(order)) != len(order):
        raise ValueError("Field order must not repeat a field")
    return order


def new_session(field_order: Any) -> InvoiceSession:
    """Start a session with one blank row and nothing focused."""
    session = InvoiceSession(field_order=validate_field_order(field_order))
    session, _ = _append_blank_row(session)
    return session


def _append_blank_row(session: InvoiceSession) -> Tuple[InvoiceSession, int]:
    row_id = session.next_id
    rows = session.rows + (LineItem(id=row_id),)
    logger.debug("Inserted row %s (%s rows)", row_id, len(rows))
    return replace(session, rows=rows, next_id=row_id + 1), row_id


def _settle(session: InvoiceSession) -> InvoiceSession:
    # A removed row or a changed field order can leave focus dangling.
    focus = session.focus
    if focus is None or session.has_cell(focus.row_id, focus.field):
        return session
    if not session.rows:
        return replace(session, focus=None)
    return replace(session, focus=FocusPosition(session.rows[0].id, session.first_field))


# ---------------------------------------------------------------------------
# Row lifecycle
# ---------------------------------------------------------------------------


def insert_row(session: InvoiceSession) -> InvoiceSession:
    session, _ = _append_blank_row(session)
    return session


def remove_row(session: InvoiceSession, row_id: int) -> InvoiceSession:
    idx = session.index_of(row_id)
    if idx is None:
        return session

    rows = session.rows[:idx] + session.rows[idx + 1:]
    logger.debug("Removed row %s (%s rows left)", row_id, len(rows))
    if not rows:
        # The grid never goes empty: start over with one fresh row.
        session, new_id = _append_blank_row(replace(session, rows=()))
        return replace(session, focus=FocusPosition(new_id, session.first_field))

    session = replace(session, rows=rows)
    focus = session.focus
    if focus is not None and focus.row_id == row_id:
        session = replace(session, focus=FocusPosition(rows[0].id, session.first_field))
    return _settle(session)


def reset(session: InvoiceSession) -> InvoiceSession:
    # Ids keep counting up so a reset never hands out an id seen before.
    fresh = InvoiceSession(field_order=session.field_order, next_id=session.next_id)
    fresh, _ = _append_blank_row(fresh)
    return fresh


def update_field(session: InvoiceSession, row_id: int, field: str, value: Any) -> InvoiceSession:
    idx = session.index_of(row_id)
    if idx is None or field not in LINE_ITEM_FIELDS:
        return session
    coerced = coerce_number(value) if field in NUMERIC_FIELDS else coerce_text(value)
    row = replace(session.rows[idx], **{field: coerced})
    rows = session.rows[:idx] + (row,) + session.rows[idx + 1:]
    return replace(session, rows=rows)


# ---------------------------------------------------------------------------
# Focus transitions
# ---------------------------------------------------------------------------


def focus_cell(session: InvoiceSession, row_id: int, field: str) -> InvoiceSession:
    target = FocusPosition(row_id, field)
    if target == session.focus or not session.has_cell(row_id, field):
        return session
    return replace(session, focus=target)


def advance(session: InvoiceSession) -> InvoiceSession:
    """Move to the next cell in tab order, growing the grid past the last cell."""
    session = _settle(session)
    focus = session.focus
    if focus is None:
        if not session.rows:
            session, _ = _append_blank_row(session)
        return replace(session, focus=FocusPosition(session.rows[0].id, session.first_field))

    order = session.field_order
    col = order.index(focus.field)
    if col + 1 < len(order):
        return replace(session, focus=FocusPosition(focus.row_id, order[col + 1]))

    idx = session.index_of(focus.row_id)
    if idx + 1 < len(session.rows):
        return replace(session, focus=FocusPosition(session.rows[idx + 1].id, session.first_field))

    # Row insertion and focus assignment land in the same returned session.
    session, new_id = _append_blank_row(session)
    return replace(session, focus=FocusPosition(new_id, session.first_field))


def retreat(session: InvoiceSession) -> InvoiceSession:
    session = _settle(session)
    focus = session.focus
    if focus is None:
        return session

    order = session.field_order
    col = order.index(focus.field)
    if col > 0:
        return replace(session, focus=FocusPosition(focus.row_id, order[col - 1]))

    idx = session.index_of(focus.row_id)
    if idx == 0:
        return session
    return replace(session, focus=FocusPosition(session.rows[idx - 1].id, session.last_field))


def _move_vertical(session: InvoiceSession, step: int) -> InvoiceSession:
    session = _settle(session)
    focus = session.focus
    if focus is None:
        return session
    target = session.index_of(focus.row_id) + step
    if not 0 <= target < len(session.rows):
        return session
    return replace(session, focus=FocusPosition(session.rows[target].id, focus.field))


def move_up(session: InvoiceSession) -> InvoiceSession:
    return _move_vertical(session, -1)


def move_down(session: InvoiceSession) -> InvoiceSession:
    return _move_vertical(session, 1)


KEY_ACTIONS: Dict[str, Callable[[InvoiceSession], InvoiceSession]] = {
    "Enter": advance,
    "Tab": advance,
    "ArrowUp": move_up,
    "ArrowDown": move_down,
}
SHIFT_KEY_ACTIONS: Dict[str, Callable[[InvoiceSession], InvoiceSession]] = {
    "Enter": retreat,
    "Tab": retreat,
}


def handle_key(session: InvoiceSession, key: str, shift: bool = False) -> InvoiceSession:
    action = (SHIFT_KEY_ACTIONS if shift else KEY_ACTIONS).get(key)
    if action is None:
        return session
    return action(session)


# ---------------------------------------------------------------------------
# Session (de)serialization for the state store
# ---------------------------------------------------------------------------


def session_to_dict(session: InvoiceSession) -> dict[str, Any]:
    rows = []
    for row in session.rows:
        payload = {"id": row.id}
        payload.update({name: getattr(row, name) for name in LINE_ITEM_FIELDS})
        rows.append(payload)
    focus = None
    if session.focus is not None:
        focus = {"row_id": session.focus.row_id, "field": session.focus.field}
    return {"rows": rows, "next_id": session.next_id, "focus": focus}


def session_from_dict(data: Optional[dict[str, Any]], field_order: Any) -> InvoiceSession:
    """Rebuild a session, tolerating payloads written under an older field order."""
    if not data:
        return new_session(field_order)

    order = validate_field_order(field_order)
    rows = []
    for raw in data.get("rows") or ():
        try:
            row_id = int(raw["id"])
        except (KeyError, TypeError, ValueError):
            continue
        values: dict[str, Any] = {}
        for name in TEXT_FIELDS:
            if name in raw:
                values[name] = coerce_text(raw[name])
        for name in NUMERIC_FIELDS:
            if name in raw:
                values[name] = coerce_number(raw[name])
        rows.append(LineItem(id=row_id, **values))

    next_id = max([int(data.get("next_id") or 1)] + [row.id + 1 for row in rows])
    focus = None
    raw_focus = data.get("focus")
    if isinstance(raw_focus, dict):
        try:
            focus = FocusPosition(int(raw_focus["row_id"]), str(raw_focus["field"]))
        except (KeyError, TypeError, ValueError):
            focus = None

    session = InvoiceSession(field_order=order, rows=tuple(rows), next_id=next_id, focus=focus)
    if not session.rows:
        session, new_id = _append_blank_row(session)
        if focus is not None:
            session = replace(session, focus=FocusPosition(new_id, session.first_field))
    return _settle(session)
