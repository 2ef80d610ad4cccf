"""
Order domain entity - carries the POS transaction evidence
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class TransactionEvidence:
    """What the terminal returned for one financial role (sale, refund or reverse)."""

    transaction_id: Optional[int] = None
    transaction_id_string: Optional[str] = None
    transaction_datetime: Optional[str] = None
    response: Optional[str] = None

    @property
    def reference(self) -> Optional[str]:
        """Stringified transaction id, preferring the vendor's string form."""
        if self.transaction_id_string:
            return self.transaction_id_string
        if self.transaction_id is not None:
            return str(self.transaction_id)
        return None

    def is_empty(self) -> bool:
        return self.reference is None


@dataclass
class Order:
    """
    Order aggregate, reduced to what the POS gateway reads and writes

    Business rules:
    1. Evidence fields are empty at creation and written once, after a
       completed terminal response
    2. Once refunded_at is set no further refund or cancel is allowed
    3. Once reversed_at is set no further reverse is allowed
    4. Evidence is never cleared
    """

    id: Optional[int]
    # Not read by the encoder until the vendor confirms Sale tax fields follow the order total
    total: Decimal = Decimal("0")
    created_at: Optional[datetime] = None

    # Original sale
    pos_transaction_id: Optional[int] = None
    pos_transaction_id_string: Optional[str] = None
    pos_transaction_datetime: Optional[str] = None
    pos_response: Optional[str] = None

    # Refund / void
    pos_refund_transaction_id: Optional[int] = None
    pos_refund_transaction_id_string: Optional[str] = None
    pos_refund_transaction_datetime: Optional[str] = None
    pos_refund_response: Optional[str] = None
    pos_refunded_at: Optional[datetime] = None

    # Reverse
    pos_reverse_transaction_id: Optional[int] = None
    pos_reverse_transaction_id_string: Optional[str] = None
    pos_reverse_response: Optional[str] = None
    pos_reversed_at: Optional[datetime] = None

    def __post_init__(self):
        self.created_at = _ensure_utc(self.created_at)
        self.pos_refunded_at = _ensure_utc(self.pos_refunded_at)
        self.pos_reversed_at = _ensure_utc(self.pos_reversed_at)

    @property
    def sale_evidence(self) -> TransactionEvidence:
        return TransactionEvidence(
            transaction_id=self.pos_transaction_id,
            transaction_id_string=self.pos_transaction_id_string,
            transaction_datetime=self.pos_transaction_datetime,
            response=self.pos_response,
        )

    def is_refunded(self) -> bool:
        return self.pos_refunded_at is not None

    def is_reversed(self) -> bool:
        return self.pos_reversed_at is not None

    def apply_sale(self, evidence: TransactionEvidence) -> None:
        self.pos_transaction_id = evidence.transaction_id
        self.pos_transaction_id_string = evidence.transaction_id_string
        self.pos_transaction_datetime = evidence.transaction_datetime
        self.pos_response = evidence.response

    def apply_refund(self, evidence: TransactionEvidence, refunded_at: datetime) -> None:
        self.pos_refund_transaction_id = evidence.transaction_id
        self.pos_refund_transaction_id_string = evidence.transaction_id_string
        self.pos_refund_transaction_datetime = evidence.transaction_datetime
        self.pos_refund_response = evidence.response
        self.pos_refunded_at = _ensure_utc(refunded_at)

    def apply_reverse(self, evidence: TransactionEvidence, reversed_at: datetime) -> None:
        self.pos_reverse_transaction_id = evidence.transaction_id
        self.pos_reverse_transaction_id_string = evidence.transaction_id_string
        self.pos_reverse_response = evidence.response
        self.pos_reversed_at = _ensure_utc(reversed_at)
