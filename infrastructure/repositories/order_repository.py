"""
Order evidence store implemented with SQLAlchemy
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.order.entity import Order, TransactionEvidence
from domain.order.repository import OrderEvidenceStore
from infrastructure.models.order import OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyOrderEvidenceStore(OrderEvidenceStore):
    """OrderEvidenceStore backed by the orders table.

    Writes are single conditional UPDATE statements on the guard column and
    only flush; the unit of work commits.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """Map the database model to the domain entity"""
        return Order(
            id=model.id,
            total=Decimal(str(model.total)) if model.total is not None else Decimal("0"),
            created_at=model.created_at,
            pos_transaction_id=model.pos_transaction_id,
            pos_transaction_id_string=model.pos_transaction_id_string,
            pos_transaction_datetime=model.pos_transaction_datetime,
            pos_response=model.pos_response,
            pos_refund_transaction_id=model.pos_refund_transaction_id,
            pos_refund_transaction_id_string=model.pos_refund_transaction_id_string,
            pos_refund_transaction_datetime=model.pos_refund_transaction_datetime,
            pos_refund_response=model.pos_refund_response,
            pos_refunded_at=model.pos_refunded_at,
            pos_reverse_transaction_id=model.pos_reverse_transaction_id,
            pos_reverse_transaction_id_string=model.pos_reverse_transaction_id_string,
            pos_reverse_response=model.pos_reverse_response,
            pos_reversed_at=model.pos_reversed_at,
        )

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def list_by_sale_transaction(
        self,
        transaction_id: Optional[int],
        transaction_id_string: Optional[str],
    ) -> List[Order]:
        conditions = []
        if transaction_id is not None:
            conditions.append(OrderModel.pos_transaction_id == transaction_id)
        if transaction_id_string:
            conditions.append(OrderModel.pos_transaction_id_string == transaction_id_string)
        if not conditions:
            return []
        result = await self.session.execute(
            select(OrderModel)
            .where(or_(*conditions))
            .order_by(OrderModel.id)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(o) for o in result.scalars().all()]

    async def save_sale_evidence(self, order_id: int, evidence: TransactionEvidence) -> bool:
        result = await self.session.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.pos_transaction_id.is_(None),
                OrderModel.pos_transaction_id_string.is_(None),
            )
            .values(
                pos_transaction_id=evidence.transaction_id,
                pos_transaction_id_string=evidence.transaction_id_string,
                pos_transaction_datetime=evidence.transaction_datetime,
                pos_response=evidence.response,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1

    async def mark_refunded(
        self,
        order_ids: List[int],
        evidence: TransactionEvidence,
        refunded_at: datetime,
    ) -> List[int]:
        updated: List[int] = []
        for order_id in order_ids:
            result = await self.session.execute(
                update(OrderModel)
                .where(OrderModel.id == order_id, OrderModel.pos_refunded_at.is_(None))
                .values(
                    pos_refund_transaction_id=evidence.transaction_id,
                    pos_refund_transaction_id_string=evidence.transaction_id_string,
                    pos_refund_transaction_datetime=evidence.transaction_datetime,
                    pos_refund_response=evidence.response,
                    pos_refunded_at=refunded_at,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                updated.append(order_id)
        await self.session.flush()
        logger.info("order_refund_evidence_written", order_ids=updated, requested=order_ids)
        return updated

    async def mark_reversed(
        self,
        order_id: int,
        evidence: TransactionEvidence,
        reversed_at: datetime,
    ) -> bool:
        result = await self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.pos_reversed_at.is_(None))
            .values(
                pos_reverse_transaction_id=evidence.transaction_id,
                pos_reverse_transaction_id_string=evidence.transaction_id_string,
                pos_reverse_response=evidence.response,
                pos_reversed_at=reversed_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1
