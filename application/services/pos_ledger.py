"""
Transaction ledger: duplicate guard before a financial call and evidence
persistence after a completed one.

The terminal protocol has no idempotency key, so the evidence timestamps on
the order are the only protection against a double refund/cancel/reverse.
The guard is a read; the writes are conditional updates, so two requests that
race past the guard still produce a single evidence record.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from application.dtos.pos import GatewayOutcome, TransactionKind
from application.services.pos_encoder import EncodedRequest
from core.logging_config import get_logger
from domain.common.exceptions import DuplicateOperationException
from domain.order.entity import Order, TransactionEvidence
from domain.order.repository import OrderEvidenceStore


logger = get_logger(__name__)

REFUND_FAMILY = frozenset({TransactionKind.CANCEL, TransactionKind.REFUND})


class TransactionLedger:
    def __init__(self, store: OrderEvidenceStore) -> None:
        self.store = store

    def guard(self, kind: TransactionKind, order: Optional[Order]) -> None:
        if order is None:
            return
        if kind in REFUND_FAMILY and order.is_refunded():
            logger.warning(
                "pos_duplicate_operation_rejected",
                order_id=order.id,
                operation=kind.value,
                refunded_at=order.pos_refunded_at.isoformat(),
            )
            raise DuplicateOperationException(order.id, "refund", order.pos_refunded_at)
        if kind is TransactionKind.REVERSE and order.is_reversed():
            logger.warning(
                "pos_duplicate_operation_rejected",
                order_id=order.id,
                operation=kind.value,
                reversed_at=order.pos_reversed_at.isoformat(),
            )
            raise DuplicateOperationException(order.id, "reverse", order.pos_reversed_at)

    async def record(
        self,
        request: EncodedRequest,
        order: Optional[Order],
        outcome: GatewayOutcome,
        now: datetime,
        *,
        sale_datetime: Optional[str] = None,
    ) -> None:
        """Persist evidence for a completed outcome. No-op for anything else.

        `sale_datetime` is the original sale timestamp a Query refers to; it is
        stored when a completed query settles a pending sale.
        """
        if order is None or not outcome.is_completed:
            return

        evidence = TransactionEvidence(
            transaction_id=outcome.transaction_id,
            transaction_id_string=outcome.string_transaction_id,
            transaction_datetime=request.transaction_datetime,
            response=outcome.raw_response,
        )

        if request.kind is TransactionKind.SALE:
            await self._record_sale(order, evidence)
        elif request.kind in REFUND_FAMILY:
            await self._record_refund(order, evidence, now)
        elif request.kind is TransactionKind.REVERSE:
            await self._record_reverse(order, evidence, now)
        elif request.kind is TransactionKind.QUERY and order.sale_evidence.is_empty():
            # A completed query settles a sale that was answered as pending
            evidence.transaction_datetime = sale_datetime
            await self._record_sale(order, evidence)

    async def _record_sale(self, order: Order, evidence: TransactionEvidence) -> None:
        saved = await self.store.save_sale_evidence(order.id, evidence)
        if saved:
            order.apply_sale(evidence)
            logger.info(
                "pos_sale_evidence_recorded",
                order_id=order.id,
                transaction_id=evidence.transaction_id,
                string_transaction_id=evidence.transaction_id_string,
            )
        else:
            logger.warning(
                "pos_sale_evidence_exists",
                order_id=order.id,
                transaction_id=evidence.transaction_id,
                response=evidence.response,
            )

    async def _record_refund(self, order: Order, evidence: TransactionEvidence, now: datetime) -> None:
        order_ids = [order.id]
        sale = order.sale_evidence
        if not sale.is_empty():
            # Several orders may have been settled under one card swipe
            shared = await self.store.list_by_sale_transaction(sale.transaction_id, sale.transaction_id_string)
            order_ids.extend(o.id for o in shared if o.id not in order_ids)

        updated = await self.store.mark_refunded(order_ids, evidence, now)
        if order.id in updated:
            order.apply_refund(evidence, now)
        skipped = [oid for oid in order_ids if oid not in updated]
        logger.info(
            "pos_refund_evidence_recorded",
            order_id=order.id,
            order_ids=updated,
            transaction_id=evidence.transaction_id,
        )
        if skipped:
            logger.warning(
                "pos_refund_evidence_conflict",
                order_id=order.id,
                skipped_order_ids=skipped,
                response=evidence.response,
            )

    async def _record_reverse(self, order: Order, evidence: TransactionEvidence, now: datetime) -> None:
        if await self.store.mark_reversed(order.id, evidence, now):
            order.apply_reverse(evidence, now)
            logger.info("pos_reverse_evidence_recorded", order_id=order.id, transaction_id=evidence.transaction_id)
        else:
            logger.warning("pos_reverse_evidence_conflict", order_id=order.id, response=evidence.response)
