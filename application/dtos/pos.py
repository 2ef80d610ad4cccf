"""
POS gateway DTOs (Pydantic v2) used at application boundaries.

TransactionIntent is a closed union discriminated by `kind`; every operation
shares the field codecs and differs only in its encoder/endpoint pair.
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.types import condecimal

from core.settings import pos_settings


class TransactionKind(str, Enum):
    SALE = "sale"
    CANCEL = "cancel"
    REFUND = "refund"
    QUERY = "query"
    REVERSE = "reverse"


class OutcomeClass(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    ERROR = "error"


PositiveAmount = condecimal(gt=0)


class GatewayConfig(BaseModel):
    """Terminal identifiers of one restaurant (tenant). Never mutated here."""

    pos_id: str
    system_id: str
    branch: str
    client_app_id: str

    model_config = {"frozen": True}

    @classmethod
    def resolve(
        cls,
        pos_id: Optional[str] = None,
        system_id: Optional[str] = None,
        branch: Optional[str] = None,
        client_app_id: Optional[str] = None,
    ) -> "GatewayConfig":
        """Build from tenant values, falling back to the configured defaults for blanks."""
        defaults = pos_settings.terminal

        def pick(value: Optional[str], default: str) -> str:
            value = (value or "").strip()
            return value or default

        return cls(
            pos_id=pick(pos_id, defaults.pos_id),
            system_id=pick(system_id, defaults.system_id),
            branch=pick(branch, defaults.branch),
            client_app_id=pick(client_app_id, defaults.client_app_id),
        )


class _IntentBase(BaseModel):
    order_id: Optional[int] = None


class SaleIntent(_IntentBase):
    kind: Literal["sale"] = "sale"
    amount: PositiveAmount  # type: ignore[valid-type]
    taxable_amount: Optional[Decimal] = None
    invoice_amount: Optional[Decimal] = None


class CancelIntent(_IntentBase):
    kind: Literal["cancel"] = "cancel"
    amount: PositiveAmount  # type: ignore[valid-type]
    ticket_number: Optional[str] = None
    taxable_amount: Optional[Decimal] = None
    invoice_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None


class RefundIntent(_IntentBase):
    kind: Literal["refund"] = "refund"
    amount: PositiveAmount  # type: ignore[valid-type]
    ticket_number: Optional[str] = None
    original_transaction_datetime: Optional[str] = None
    taxable_amount: Optional[Decimal] = None
    invoice_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None


class _ByTransactionId(_IntentBase):
    transaction_id: Optional[int] = None
    string_transaction_id: Optional[str] = None
    original_transaction_datetime: Optional[str] = None

    @field_validator("string_transaction_id", "original_transaction_datetime")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class QueryIntent(_ByTransactionId):
    kind: Literal["query"] = "query"


class ReverseIntent(_ByTransactionId):
    kind: Literal["reverse"] = "reverse"
    amount: Optional[PositiveAmount] = None  # type: ignore[valid-type]


TransactionIntent = Annotated[
    Union[SaleIntent, CancelIntent, RefundIntent, QueryIntent, ReverseIntent],
    Field(discriminator="kind"),
]


class GatewayOutcome(BaseModel):
    response_code: int
    classification: OutcomeClass
    status_message: str
    raw_response: str = ""
    transaction_id: Optional[int] = None
    string_transaction_id: Optional[str] = None
    remaining_expiration_time: Optional[float] = None
    parse_failed: bool = False

    # Filled by the service for the caller's forensic view
    request_json: Optional[str] = None
    transaction_datetime: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.classification is OutcomeClass.COMPLETED

    @property
    def is_pending(self) -> bool:
        return self.classification is OutcomeClass.PENDING

    @property
    def is_error(self) -> bool:
        return self.classification is OutcomeClass.ERROR
