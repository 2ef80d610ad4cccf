"""
Request encoder for the ITD/POSLink JSON protocol.

Each operation has a fixed field set and order. Cancel sends Quotas/Plan/
TaxRefund as JSON integers while Sale and Refund send them as strings; the
terminal endpoints expect exactly that, so the types must not be unified.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from application.dtos.pos import (
    CancelIntent,
    GatewayConfig,
    QueryIntent,
    RefundIntent,
    ReverseIntent,
    SaleIntent,
    TransactionKind,
)
from application.services.pos_fields import (
    TIMESTAMP_LENGTH,
    derive_original_transaction_date,
    encode_amount,
    operation_timestamp,
    resolve_ticket_number,
)
from core.logging_config import get_logger
from core.settings import PosSettings, pos_settings
from domain.common.exceptions import MissingTransactionIdException
from domain.order.entity import Order


logger = get_logger(__name__)

USER_ID = "1"
CURRENCY_UYU = "858"
SALE_QUOTAS = "5"
VOID_QUOTAS = 1
PLAN = 0
TAX_REFUND = 1


@dataclass(frozen=True)
class EncodedRequest:
    kind: TransactionKind
    endpoint: str
    payload: dict[str, Any]
    body: str
    # Value sent as TransactionDateTimeyyyyMMddHHmmssSSS
    transaction_datetime: str


def dump_body(payload: dict[str, Any]) -> str:
    """Deterministic wire string: insertion order, no whitespace."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


class RequestEncoder:
    def __init__(self, config: GatewayConfig, settings: Optional[PosSettings] = None) -> None:
        self.config = config
        self.settings = settings or pos_settings
        self._encoders: dict[TransactionKind, Callable[..., dict[str, Any]]] = {
            TransactionKind.SALE: self._sale,
            TransactionKind.CANCEL: self._cancel,
            TransactionKind.REFUND: self._refund,
            TransactionKind.QUERY: self._query,
            TransactionKind.REVERSE: self._reverse,
        }

    def encode(self, intent, order: Optional[Order], now: datetime) -> EncodedRequest:
        kind = TransactionKind(intent.kind)
        payload = self._encoders[kind](intent, order, now)
        return EncodedRequest(
            kind=kind,
            endpoint=self.settings.endpoint_url(kind.value),
            payload=payload,
            body=dump_body(payload),
            transaction_datetime=payload["TransactionDateTimeyyyyMMddHHmmssSSS"],
        )

    def _common(self, transaction_datetime: str) -> dict[str, Any]:
        return {
            "PosID": self.config.pos_id,
            "SystemId": self.config.system_id,
            "Branch": self.config.branch,
            "ClientAppId": self.config.client_app_id,
            "UserId": USER_ID,
            "TransactionDateTimeyyyyMMddHHmmssSSS": transaction_datetime,
        }

    def _sale(self, intent: SaleIntent, order: Optional[Order], now: datetime) -> dict[str, Any]:
        payload = self._common(operation_timestamp(now))
        taxable = (
            encode_amount(intent.taxable_amount)
            if intent.taxable_amount is not None
            else self.settings.sale.taxable_amount
        )
        invoice = (
            encode_amount(intent.invoice_amount)
            if intent.invoice_amount is not None
            else self.settings.sale.invoice_amount
        )
        payload.update(
            {
                "Amount": encode_amount(intent.amount),
                "Quotas": SALE_QUOTAS,
                "Plan": str(PLAN),
                "Currency": CURRENCY_UYU,
                "TaxRefund": str(TAX_REFUND),
                "TaxableAmount": taxable,
                "InvoiceAmount": invoice,
            }
        )
        return payload

    @staticmethod
    def _tax_fields(intent: CancelIntent | RefundIntent, amount: str) -> tuple[str, str]:
        if intent.taxable_amount is not None:
            taxable = encode_amount(intent.taxable_amount)
        elif intent.tax_amount is not None:
            taxable = encode_amount(Decimal(str(intent.amount)) - Decimal(str(intent.tax_amount)))
        else:
            taxable = amount
        invoice = encode_amount(intent.invoice_amount) if intent.invoice_amount is not None else amount
        return taxable, invoice

    def _cancel(self, intent: CancelIntent, order: Optional[Order], now: datetime) -> dict[str, Any]:
        ticket = resolve_ticket_number(intent.ticket_number, order)
        amount = encode_amount(intent.amount)
        taxable, invoice = self._tax_fields(intent, amount)
        payload = self._common(operation_timestamp(now))
        payload.update(
            {
                "Amount": amount,
                "Quotas": VOID_QUOTAS,
                "Plan": PLAN,
                "Currency": CURRENCY_UYU,
                "TaxRefund": TAX_REFUND,
                "TaxableAmount": taxable,
                "InvoiceAmount": invoice,
                "TicketNumber": ticket,
            }
        )
        return payload

    def _refund(self, intent: RefundIntent, order: Optional[Order], now: datetime) -> dict[str, Any]:
        ticket = resolve_ticket_number(intent.ticket_number, order)
        original_date = derive_original_transaction_date(order, intent.original_transaction_datetime, now)
        amount = encode_amount(intent.amount)
        taxable, invoice = self._tax_fields(intent, amount)
        payload = self._common(operation_timestamp(now))
        payload.update(
            {
                "Amount": amount,
                "Quotas": str(VOID_QUOTAS),
                "Plan": str(PLAN),
                "Currency": CURRENCY_UYU,
                "TaxRefund": str(TAX_REFUND),
                "TaxableAmount": taxable,
                "InvoiceAmount": invoice,
                "OriginalTransactionDateyyMMdd": original_date,
                "TicketNumber": ticket,
            }
        )
        return payload

    def _query(self, intent: QueryIntent, order: Optional[Order], now: datetime) -> dict[str, Any]:
        transaction_id, string_id = transaction_ids(intent, order)
        payload = self._common(operation_timestamp(now))
        payload.update({"TransactionId": transaction_id, "STransactionId": string_id})
        return payload

    def _reverse(self, intent: ReverseIntent, order: Optional[Order], now: datetime) -> dict[str, Any]:
        transaction_id, string_id = transaction_ids(intent, order)
        payload = self._common(original_sale_timestamp(intent, order, now))
        payload.update({"TransactionId": transaction_id, "STransactionId": string_id})
        return payload


def _is_timestamp(value: Optional[str]) -> bool:
    return bool(value) and len(value) == TIMESTAMP_LENGTH and value.isdigit()


def transaction_ids(intent: QueryIntent | ReverseIntent, order: Optional[Order]) -> tuple[Optional[int], str]:
    """TransactionId (number, may be null) and STransactionId (string).

    Caller values win; otherwise the order's stored sale evidence is used.
    """
    transaction_id = intent.transaction_id
    string_id = intent.string_transaction_id
    if transaction_id is None and string_id is None and order is not None:
        transaction_id = order.pos_transaction_id
        string_id = order.pos_transaction_id_string
    if transaction_id is None and not string_id:
        raise MissingTransactionIdException(order.id if order is not None else intent.order_id)
    if not string_id:
        string_id = str(transaction_id)
    if transaction_id is None and string_id.isdigit():
        transaction_id = int(string_id)
    return transaction_id, string_id


def original_sale_timestamp(intent: ReverseIntent, order: Optional[Order], now: datetime) -> str:
    """A reversal is sent with the timestamp of the sale it undoes."""
    supplied = intent.original_transaction_datetime
    if _is_timestamp(supplied):
        return supplied
    stored = order.pos_transaction_datetime if order is not None else None
    if _is_timestamp(stored):
        return stored
    fresh = operation_timestamp(now)
    logger.warning(
        "pos_reverse_timestamp_fallback_now",
        order_id=order.id if order is not None else intent.order_id,
        supplied=supplied,
        stored=stored,
        value=fresh,
    )
    return fresh
