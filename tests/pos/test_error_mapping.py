import pytest

from core.exceptions import business_exception_status
from domain.common.exceptions import (
    BusinessException,
    DuplicateOperationException,
    GatewayUnavailableException,
    InvalidAmountException,
    MissingTicketNumberException,
    OrderNotFoundException,
)
from shared.codes import BusinessCode


@pytest.mark.parametrize(
    "exc, expected",
    [
        (OrderNotFoundException(3), 404),
        (DuplicateOperationException(3, "refund"), 409),
        (InvalidAmountException("-1"), 422),
        (MissingTicketNumberException(3), 422),
        (GatewayUnavailableException("no route to terminal"), 503),
        (GatewayUnavailableException("bad status", status=500, body="oops"), 502),
        (BusinessException(BusinessCode.SERVICE_UNAVAILABLE, "down"), 503),
        (BusinessException(BusinessCode.SYSTEM_ERROR, "boom"), 500),
    ],
)
def test_business_exception_status(exc, expected):
    assert business_exception_status(exc) == expected


def test_unmapped_code_defaults_to_bad_request():
    assert business_exception_status(BusinessException(12345, "unknown")) == 400


def test_business_codes_are_only_those_in_use():
    assert {c.name for c in BusinessCode} == {
        "SUCCESS",
        "PARAM_VALIDATION_ERROR",
        "NOT_FOUND",
        "ORDER_NOT_FOUND",
        "SYSTEM_ERROR",
        "SERVICE_UNAVAILABLE",
    }
