from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from application.services.pos_fields import (
    derive_original_transaction_date,
    encode_amount,
    operation_timestamp,
    resolve_ticket_number,
)
from domain.common.exceptions import InvalidAmountException, MissingTicketNumberException
from shared.codes.pos_codes import PosCode


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("2000.00"), "200000"),
        (Decimal("1500.50"), "150050"),
        (1500.5, "150050"),
        (11.2, "1120"),
        ("0.01", "1"),
        (Decimal("0.005"), "1"),
        (Decimal("0.004"), "0"),
        (0, "0"),
        (1200, "120000"),
    ],
)
def test_encode_amount_scales_to_cents(amount, expected):
    assert encode_amount(amount) == expected


@pytest.mark.parametrize("amount", [Decimal("-1"), "-0.01", "abc", float("nan"), Decimal("Infinity")])
def test_encode_amount_rejects_invalid(amount):
    with pytest.raises(InvalidAmountException) as exc:
        encode_amount(amount)
    assert exc.value.code == PosCode.INVALID_AMOUNT
    assert exc.value.field == "amount"


def test_operation_timestamp_has_millisecond_precision(fixed_now):
    value = operation_timestamp(fixed_now)
    assert value == "20250314150926535"
    assert len(value) == 17


def test_operation_timestamp_converts_to_utc(fixed_now):
    montevideo = timezone(timedelta(hours=-3))
    assert operation_timestamp(fixed_now.astimezone(montevideo)) == "20250314150926535"


def test_operation_timestamp_treats_naive_as_utc():
    assert operation_timestamp(datetime(2025, 1, 2, 3, 4, 5, 6000)) == "20250102030405006"


def test_original_date_prefers_stored_sale_timestamp(order_factory, fixed_now):
    order = order_factory(pos_transaction_datetime="20250311093000123")
    assert derive_original_transaction_date(order, "20250301000000000", fixed_now) == "250311"


def test_original_date_skips_malformed_stored_value(order_factory, fixed_now):
    order = order_factory(pos_transaction_datetime="20251399000000000")
    assert derive_original_transaction_date(order, "20250312101010101", fixed_now) == "250312"


def test_original_date_accepts_six_digit_request_value(fixed_now):
    assert derive_original_transaction_date(None, "250309", fixed_now) == "250309"


def test_original_date_rejects_six_characters_that_are_not_digits(order_factory, fixed_now):
    order = order_factory(created_at=datetime(2025, 3, 10, 19, 45, tzinfo=timezone.utc))
    assert derive_original_transaction_date(order, "25A309", fixed_now) == "250310"
    assert derive_original_transaction_date(None, " 2503-9", fixed_now) == "250313"


def test_original_date_falls_back_to_order_creation(order_factory, fixed_now):
    order = order_factory(created_at=datetime(2025, 3, 10, 19, 45, tzinfo=timezone.utc))
    assert derive_original_transaction_date(order, "garbage", fixed_now) == "250310"


def test_original_date_without_anything_is_yesterday(fixed_now):
    assert derive_original_transaction_date(None, None, fixed_now) == "250313"


def test_ticket_number_explicit_value_is_used_verbatim(order_factory):
    order = order_factory(pos_transaction_id_string="123456789")
    assert resolve_ticket_number("12", order) == "12"


def test_ticket_number_from_last_four_characters(order_factory):
    order = order_factory(pos_transaction_id_string="123456789")
    assert resolve_ticket_number(None, order) == "6789"


def test_ticket_number_is_left_padded(order_factory):
    order = order_factory(pos_transaction_id=42)
    assert resolve_ticket_number("  ", order) == "0042"


def test_ticket_number_missing_raises(order_factory):
    with pytest.raises(MissingTicketNumberException) as exc:
        resolve_ticket_number(None, order_factory(7))
    assert exc.value.details == {"order_id": 7}


def test_ticket_number_without_order_raises():
    with pytest.raises(MissingTicketNumberException):
        resolve_ticket_number(None, None)


def test_ticket_number_from_long_terminal_id(order_factory):
    order = order_factory(pos_transaction_id_string="2603079266119181")
    assert resolve_ticket_number(None, order) == "9181"
