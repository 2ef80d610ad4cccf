"""
Interpret raw ITD/POSLink responses into a stable completed/pending/error outcome.
"""
from __future__ import annotations

import json
from typing import Any, Optional

from application.dtos.pos import GatewayOutcome, OutcomeClass
from shared.codes.pos_codes import (
    COMPLETED_CODES,
    PENDING_CODES,
    RESPONSE_CODE_UNPARSEABLE,
    response_message,
)


RESPONSE_CODE_KEYS = ("ResponseCode", "responseCode", "Code", "code", "StatusCode")


def _as_int(value: Any) -> Optional[int]:
    """Accept JSON numbers and numeric strings; reject booleans and fractions."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            try:
                f = float(s)
            except ValueError:
                return None
            return int(f) if f.is_integer() else None
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def classify(code: int) -> OutcomeClass:
    if code in COMPLETED_CODES:
        return OutcomeClass.COMPLETED
    if code in PENDING_CODES:
        return OutcomeClass.PENDING
    # 12, >100 (999 included), negatives and anything unmapped
    return OutcomeClass.ERROR


def extract_response_code(data: dict[str, Any]) -> Optional[int]:
    for key in RESPONSE_CODE_KEYS:
        if key in data:
            code = _as_int(data[key])
            if code is not None:
                return code
    return None


def extract_transaction_ids(data: dict[str, Any]) -> tuple[Optional[int], Optional[str]]:
    raw_id = data.get("TransactionId")
    raw_sid = data.get("STransactionId")

    transaction_id = _as_int(raw_id)
    string_id: Optional[str] = None
    if raw_sid is not None and str(raw_sid).strip():
        string_id = str(raw_sid).strip()
    elif raw_id is not None and str(raw_id).strip():
        string_id = str(raw_id).strip()

    if transaction_id is None and string_id is not None:
        transaction_id = _as_int(string_id)
    return transaction_id, string_id


def _unparseable(raw: str) -> GatewayOutcome:
    return GatewayOutcome(
        response_code=RESPONSE_CODE_UNPARSEABLE,
        classification=OutcomeClass.ERROR,
        status_message=response_message(RESPONSE_CODE_UNPARSEABLE),
        raw_response=raw,
        parse_failed=True,
    )


def interpret_response(raw: Optional[str]) -> GatewayOutcome:
    raw = raw or ""
    try:
        data = json.loads(raw)
    except ValueError:
        return _unparseable(raw)
    if not isinstance(data, dict):
        return _unparseable(raw)

    code = extract_response_code(data)
    if code is None:
        return _unparseable(raw)

    transaction_id, string_id = extract_transaction_ids(data)
    return GatewayOutcome(
        response_code=code,
        classification=classify(code),
        status_message=response_message(code),
        raw_response=raw,
        transaction_id=transaction_id,
        string_transaction_id=string_id,
        remaining_expiration_time=_as_float(data.get("RemainingExpirationTime")),
    )
