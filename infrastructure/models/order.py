"""
Order database model - SQLAlchemy ORM model
Infrastructure detail only; POS rules live in domain.order.entity.Order
"""
from sqlalchemy import Column, Integer, BigInteger, String, Numeric, DateTime, Text, Index
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    """
    Order table, reduced to the columns the POS gateway reads and writes
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # Shared orders column; POS encoding does not read it
    total = Column(Numeric(precision=18, scale=2), nullable=False, default=0, comment="Order total")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Creation time"
    )

    # Original sale
    pos_transaction_id = Column(BigInteger, nullable=True, comment="Terminal TransactionId of the sale")
    pos_transaction_id_string = Column(String(64), nullable=True, comment="Terminal STransactionId of the sale")
    pos_transaction_datetime = Column(String(17), nullable=True, comment="yyyyMMddHHmmssfff sent with the sale")
    pos_response = Column(Text, nullable=True, comment="Raw terminal response of the sale")

    # Refund / void
    pos_refund_transaction_id = Column(BigInteger, nullable=True)
    pos_refund_transaction_id_string = Column(String(64), nullable=True)
    pos_refund_transaction_datetime = Column(String(17), nullable=True)
    pos_refund_response = Column(Text, nullable=True)
    pos_refunded_at = Column(DateTime(timezone=True), nullable=True, comment="Set once; blocks further refund/cancel")

    # Reverse
    pos_reverse_transaction_id = Column(BigInteger, nullable=True)
    pos_reverse_transaction_id_string = Column(String(64), nullable=True)
    pos_reverse_response = Column(Text, nullable=True)
    pos_reversed_at = Column(DateTime(timezone=True), nullable=True, comment="Set once; blocks further reverse")

    __table_args__ = (
        Index("ix_orders_pos_transaction_id", "pos_transaction_id"),
        Index("ix_orders_pos_transaction_id_string", "pos_transaction_id_string"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id={self.id}, total={self.total}, "
            f"pos_transaction_id={self.pos_transaction_id}, refunded_at={self.pos_refunded_at})>"
        )
