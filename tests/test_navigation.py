"""Unit tests for grid focus navigation and row lifecycle."""

import random

import pytest

from navigation import (
    FocusPosition,
    InvoiceSession,
    advance,
    focus_cell,
    handle_key,
    insert_row,
    move_down,
    move_up,
    new_session,
    remove_row,
    reset,
    retreat,
    session_from_dict,
    session_to_dict,
    update_field,
)

ORDER = ("description", "quantity", "unit_price")


@pytest.fixture
def session():
    return new_session(ORDER)


def _with_rows(count):
    s = new_session(ORDER)
    for _ in range(count - 1):
        s = insert_row(s)
    return s


def _assert_focus_live(s: InvoiceSession):
    if s.focus is not None:
        assert s.focus.row_id in s.row_ids()
        assert s.focus.field in s.field_order


def test_new_session_has_one_blank_row_and_no_focus(session):
    assert len(session.rows) == 1
    assert session.rows[0].id == 1
    assert session.rows[0].quantity == 1
    assert session.focus is None


@pytest.mark.parametrize("order", [(), ("description", "bogus"), ("quantity", "quantity")])
def test_invalid_field_order_is_rejected(order):
    with pytest.raises(ValueError):
        new_session(order)


def test_first_advance_focuses_first_cell(session):
    s = advance(session)
    assert s.focus == FocusPosition(1, "description")


def test_advance_walks_the_row_then_next_row():
    s = focus_cell(_with_rows(2), 1, "description")
    s = advance(s)
    assert s.focus == FocusPosition(1, "quantity")
    s = advance(advance(s))
    assert s.focus == FocusPosition(2, "description")
    assert len(s.rows) == 2


def test_advance_past_last_cell_inserts_row_and_focuses_it(session):
    s = focus_cell(session, 1, "unit_price")
    s = advance(s)
    assert s.row_ids() == [1, 2]
    assert s.focus == FocusPosition(2, "description")


def test_retreat_steps_back_and_wraps_to_previous_row():
    s = focus_cell(_with_rows(2), 2, "description")
    s = retreat(s)
    assert s.focus == FocusPosition(1, "unit_price")
    s = retreat(s)
    assert s.focus == FocusPosition(1, "quantity")


def test_retreat_at_first_cell_is_noop(session):
    s = focus_cell(session, 1, "description")
    assert retreat(s) == s
    assert retreat(session) == session


def test_vertical_moves_keep_column_and_clamp():
    s = focus_cell(_with_rows(3), 2, "quantity")
    s = move_up(s)
    assert s.focus == FocusPosition(1, "quantity")
    assert move_up(s) == s
    s = move_down(move_down(s))
    assert s.focus == FocusPosition(3, "quantity")
    assert move_down(s) == s
    assert len(s.rows) == 3


def test_vertical_move_without_focus_is_noop(session):
    assert move_up(session) == session
    assert move_down(session) == session


def test_direct_focus_is_idempotent_and_ignores_unknown_cells(session):
    s = focus_cell(session, 1, "quantity")
    assert s.focus == FocusPosition(1, "quantity")
    assert focus_cell(s, 1, "quantity") is s
    assert focus_cell(s, 99, "quantity") is s
    assert focus_cell(s, 1, "code") is s


def test_insert_row_keeps_focus():
    s = focus_cell(new_session(ORDER), 1, "quantity")
    s = insert_row(s)
    assert s.row_ids() == [1, 2]
    assert s.focus == FocusPosition(1, "quantity")


def test_removing_focused_row_refocuses_first_remaining_row():
    s = focus_cell(_with_rows(3), 2, "unit_price")
    s = remove_row(s, 2)
    assert s.row_ids() == [1, 3]
    assert s.focus == FocusPosition(1, "description")


def test_removing_first_focused_row_moves_to_new_first_row():
    s = focus_cell(_with_rows(3), 1, "quantity")
    s = remove_row(s, 1)
    assert s.focus == FocusPosition(2, "description")


def test_removing_other_row_keeps_focus():
    s = focus_cell(_with_rows(3), 3, "quantity")
    s = remove_row(s, 1)
    assert s.focus == FocusPosition(3, "quantity")


def test_removing_unknown_row_is_noop(session):
    assert remove_row(session, 42) is session


def test_removing_last_row_resets_to_one_blank_focused_row(session):
    s = update_field(session, 1, "description", "Brufen")
    s = remove_row(s, 1)
    assert len(s.rows) == 1
    assert s.rows[0].id == 2
    assert s.rows[0].description == ""
    assert s.focus == FocusPosition(2, "description")


def test_ids_are_never_reused():
    s = _with_rows(3)
    s = remove_row(s, 3)
    s = insert_row(s)
    assert s.row_ids() == [1, 2, 4]
    s = reset(s)
    assert s.row_ids() == [5]
    assert s.focus is None


def test_update_field_coerces_values(session):
    s = update_field(session, 1, "quantity", "abc")
    assert s.rows[0].quantity == 0
    s = update_field(s, 1, "unit_price", "12.5")
    assert s.rows[0].unit_price == 12.5
    s = update_field(s, 1, "description", 123)
    assert s.rows[0].description == "123"


def test_update_field_ignores_unknown_targets(session):
    assert update_field(session, 9, "quantity", 3) is session
    assert update_field(session, 1, "net_amount", 3) is session


@pytest.mark.parametrize(
    "key,shift,expected",
    [
        ("Enter", False, FocusPosition(1, "unit_price")),
        ("Tab", False, FocusPosition(1, "unit_price")),
        ("Enter", True, FocusPosition(1, "description")),
        ("Tab", True, FocusPosition(1, "description")),
        ("ArrowDown", False, FocusPosition(2, "quantity")),
        ("ArrowUp", False, FocusPosition(1, "quantity")),
        ("Escape", False, FocusPosition(1, "quantity")),
    ],
)
def test_handle_key(key, shift, expected):
    s = focus_cell(_with_rows(2), 1, "quantity")
    assert handle_key(s, key, shift=shift).focus == expected


def test_focus_invariant_survives_random_operations():
    rng = random.Random(1234)
    s = new_session(ORDER)
    for _ in range(500):
        op = rng.choice(["advance", "retreat", "up", "down", "insert", "remove", "focus"])
        if op == "advance":
            s = advance(s)
        elif op == "retreat":
            s = retreat(s)
        elif op == "up":
            s = move_up(s)
        elif op == "down":
            s = move_down(s)
        elif op == "insert":
            s = insert_row(s)
        elif op == "remove":
            s = remove_row(s, rng.choice(s.row_ids() + [999]))
        else:
            s = focus_cell(s, rng.choice(s.row_ids()), rng.choice(ORDER + ("code",)))
        assert s.rows
        assert len(set(s.row_ids())) == len(s.rows)
        _assert_focus_live(s)


def test_session_round_trips_through_dict():
    s = focus_cell(_with_rows(2), 2, "unit_price")
    s = update_field(s, 2, "unit_price", "99.5")
    restored = session_from_dict(session_to_dict(s), ORDER)
    assert restored == s


def test_session_from_dict_repairs_stale_focus_and_empty_rows():
    restored = session_from_dict(
        {"rows": [{"id": 4, "quantity": "2"}], "next_id": 2, "focus": {"row_id": 9, "field": "code"}},
        ORDER,
    )
    assert restored.row_ids() == [4]
    assert restored.rows[0].quantity == 2.0
    assert restored.next_id == 5
    assert restored.focus == FocusPosition(4, "description")

    empty = session_from_dict({"rows": [], "next_id": 3, "focus": None}, ORDER)
    assert empty.row_ids() == [3]
    assert empty.focus is None


def test_session_from_dict_without_data_starts_fresh():
    assert session_from_dict(None, ORDER) == new_session(ORDER)
