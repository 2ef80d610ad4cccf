"""
Field codecs shared by every POS request: amount scaling, the two date
fields and the ticket number.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from core.logging_config import get_logger
from domain.common.exceptions import InvalidAmountException, MissingTicketNumberException
from domain.order.entity import Order


logger = get_logger(__name__)

TIMESTAMP_LENGTH = 17
TICKET_LENGTH = 4


def encode_amount(amount: Union[Decimal, int, float, str]) -> str:
    """Scale to cents, rounding half away from zero: 2000.00 -> "200000"."""
    # str() first so floats like 11.2 are not expanded to their binary value
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise InvalidAmountException(amount) from exc
    if not value.is_finite() or value < 0:
        raise InvalidAmountException(amount)
    cents = (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return str(int(cents))


def operation_timestamp(now: datetime) -> str:
    """yyyyMMddHHmmssfff in UTC, computed fresh for every call."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 1000:03d}"


def _yymmdd_from_timestamp(value: Optional[str]) -> Optional[str]:
    """Characters 3-8 of the leading yyyyMMdd, only if it is a real date."""
    if not value or len(value) < 8:
        return None
    head = value[:8]
    if not head.isdigit():
        return None
    try:
        datetime.strptime(head, "%Y%m%d")
    except ValueError:
        return None
    return head[2:8]


def derive_original_transaction_date(
    order: Optional[Order],
    supplied: Optional[str],
    now: datetime,
) -> str:
    """Resolve OriginalTransactionDateyyMMdd.

    Order of preference: stored sale timestamp, caller value, order creation
    date, and with no order at all, yesterday.
    """
    order_id = order.id if order else None

    if order is not None:
        derived = _yymmdd_from_timestamp(order.pos_transaction_datetime)
        if derived:
            logger.info("pos_original_date_from_order_sale", order_id=order_id, value=derived)
            return derived
        if order.pos_transaction_datetime:
            logger.info(
                "pos_original_date_order_sale_malformed",
                order_id=order_id,
                stored=order.pos_transaction_datetime,
            )

    if supplied:
        supplied = supplied.strip()
        # Verbatim only when all six are digits; anything else must parse as yyyyMMdd
        if len(supplied) == 6 and supplied.isdigit():
            logger.info("pos_original_date_from_request", order_id=order_id, value=supplied)
            return supplied
        derived = _yymmdd_from_timestamp(supplied)
        if derived:
            logger.info("pos_original_date_from_request", order_id=order_id, value=derived)
            return derived
        logger.info("pos_original_date_request_malformed", order_id=order_id, supplied=supplied)

    if order is not None and order.created_at is not None:
        derived = order.created_at.strftime("%y%m%d")
        logger.info("pos_original_date_from_order_created_at", order_id=order_id, value=derived)
        return derived

    # Should not happen in practice: a refund always has an order or a date
    derived = (now - timedelta(days=1)).strftime("%y%m%d")
    logger.warning("pos_original_date_fallback_yesterday", order_id=order_id, value=derived)
    return derived


def resolve_ticket_number(explicit: Optional[str], order: Optional[Order]) -> str:
    if explicit is not None and explicit.strip():
        return explicit

    reference = order.sale_evidence.reference if order is not None else None
    if reference:
        ticket = reference[-TICKET_LENGTH:].rjust(TICKET_LENGTH, "0")
        logger.info("pos_ticket_from_order", order_id=order.id, ticket_number=ticket)
        return ticket

    raise MissingTicketNumberException(order.id if order is not None else None)
