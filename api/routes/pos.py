"""
POS terminal API routes.

Thin layer over PosTransactionService. Every response carries the outgoing
JSON and the raw terminal response for operator diagnostics.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_pos_service
from application.dtos.pos import (
    CancelIntent,
    GatewayOutcome,
    QueryIntent,
    RefundIntent,
    ReverseIntent,
    SaleIntent,
)
from application.services.pos_service import PosTransactionService
from core.response import success_response


router = APIRouter(prefix="/pos", tags=["POS"])


def _outcome_payload(outcome: GatewayOutcome) -> dict:
    return {
        "statusCode": outcome.response_code,
        "statusMessage": outcome.status_message,
        "isCompleted": outcome.is_completed,
        "isPending": outcome.is_pending,
        "isError": outcome.is_error,
        "transactionId": outcome.transaction_id,
        "sTransactionId": outcome.string_transaction_id,
        "transactionDateTime": outcome.transaction_datetime,
        "remainingExpirationTime": outcome.remaining_expiration_time,
        "requestJson": outcome.request_json,
        "response": outcome.raw_response,
    }


@router.post("/transaction", summary="Sale")
async def create_transaction(payload: SaleIntent, service: PosTransactionService = Depends(get_pos_service)):
    outcome = await service.execute(payload)
    return success_response(data=_outcome_payload(outcome), message="Transaction completed")


@router.post("/cancel", summary="Cancel sale by ticket")
async def cancel_transaction(payload: CancelIntent, service: PosTransactionService = Depends(get_pos_service)):
    outcome = await service.execute(payload)
    return success_response(data=_outcome_payload(outcome), message="Transaction cancelled")


@router.post("/void", summary="Refund sale")
async def void_transaction(payload: RefundIntent, service: PosTransactionService = Depends(get_pos_service)):
    outcome = await service.execute(payload)
    return success_response(data=_outcome_payload(outcome), message="Transaction refunded")


@router.post("/query", summary="Query transaction status")
async def query_transaction(
    payload: QueryIntent,
    wait: bool = Query(default=False, description="Poll until the terminal leaves the pending state"),
    service: PosTransactionService = Depends(get_pos_service),
):
    if wait:
        outcome = await service.await_settlement(payload)
    else:
        outcome = await service.execute(payload)
    return success_response(data=_outcome_payload(outcome), message=outcome.status_message)


@router.post("/reverse", summary="Reverse transaction")
async def reverse_transaction(payload: ReverseIntent, service: PosTransactionService = Depends(get_pos_service)):
    outcome = await service.execute(payload)
    return success_response(data=_outcome_payload(outcome), message="Transaction reversed")
