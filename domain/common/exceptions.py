"""Business exceptions shared by the domain, application and infrastructure layers.

The core layer only maps them to HTTP responses; nothing here imports core.
"""
from __future__ import annotations

from typing import Any, Optional

from shared.codes import BusinessCode
from shared.codes.pos_codes import PosCode


class BusinessException(Exception):
    """Base business exception"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
        code: int = BusinessCode.PARAM_VALIDATION_ERROR,
        error_type: str = "DomainValidationError",
    ):
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=details,
            field=field,
        )


class OrderNotFoundException(BusinessException):
    def __init__(self, order_id: Optional[int] = None):
        details = {"order_id": order_id} if order_id is not None else None
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message="Order not found",
            error_type="OrderNotFound",
            details=details,
        )


class InvalidAmountException(DomainValidationException):
    def __init__(self, amount: Any):
        super().__init__(
            f"Amount must be a non-negative value: {amount}",
            field="amount",
            details={"amount": str(amount)},
            code=PosCode.INVALID_AMOUNT,
            error_type="InvalidAmount",
        )


class MissingTicketNumberException(DomainValidationException):
    def __init__(self, order_id: Optional[int] = None):
        super().__init__(
            "Ticket number is required and could not be derived from the order",
            field="ticket_number",
            details={"order_id": order_id},
            code=PosCode.MISSING_TICKET_NUMBER,
            error_type="MissingTicketNumber",
        )


class MissingTransactionIdException(DomainValidationException):
    def __init__(self, order_id: Optional[int] = None):
        super().__init__(
            "Transaction id is required and could not be derived from the order",
            field="transaction_id",
            details={"order_id": order_id},
            code=PosCode.MISSING_TRANSACTION_ID,
            error_type="MissingTransactionId",
        )


class DuplicateOperationException(BusinessException):
    """A refund/cancel or reverse was already recorded for the order."""

    def __init__(self, order_id: int, operation: str, recorded_at: Any = None):
        super().__init__(
            code=PosCode.DUPLICATE_OPERATION,
            message=f"Order {order_id} already has a completed {operation}",
            error_type="DuplicateOperation",
            details={
                "order_id": order_id,
                "operation": operation,
                "recorded_at": recorded_at.isoformat() if hasattr(recorded_at, "isoformat") else recorded_at,
            },
        )


class GatewayUnavailableException(BusinessException):
    """Non-2xx HTTP status or transport failure talking to the terminal.

    Carries the raw vendor body. Never retried automatically.
    """

    def __init__(self, message: str, *, status: Optional[int] = None, body: Optional[str] = None, endpoint: Optional[str] = None):
        self.status = status
        self.body = body
        super().__init__(
            code=PosCode.GATEWAY_UNAVAILABLE,
            message=message,
            error_type="GatewayUnavailable",
            details={"status": status, "body": body, "endpoint": endpoint},
        )


class _GatewayOutcomeException(BusinessException):
    def __init__(self, code: int, error_type: str, outcome: Any) -> None:
        self.outcome = outcome
        super().__init__(
            code=code,
            message=outcome.status_message,
            error_type=error_type,
            details={
                "response_code": outcome.response_code,
                "classification": str(outcome.classification.value),
                "transaction_id": outcome.transaction_id,
                "string_transaction_id": outcome.string_transaction_id,
                "request_json": outcome.request_json,
                "response": outcome.raw_response,
            },
        )


class GatewayBusinessException(_GatewayOutcomeException):
    """2xx HTTP but the ResponseCode classifies as an error."""

    def __init__(self, outcome: Any) -> None:
        super().__init__(PosCode.GATEWAY_ERROR, "GatewayBusinessError", outcome)


class GatewayPendingException(_GatewayOutcomeException):
    """The terminal has not finished; the caller must query again later."""

    def __init__(self, outcome: Any) -> None:
        super().__init__(PosCode.GATEWAY_PENDING, "GatewayPending", outcome)


class ResponseParseException(_GatewayOutcomeException):
    def __init__(self, outcome: Any) -> None:
        super().__init__(PosCode.RESPONSE_PARSE_ERROR, "ResponseParseError", outcome)
