"""add_pos_transaction_fields_to_order

Revision ID: 8e4d07a6c1b2
Revises: 3b1f5c2a9d40
Create Date: 2025-10-06 09:22:47.103918

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8e4d07a6c1b2'
down_revision: Union[str, None] = '3b1f5c2a9d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('orders') as batch:
        # Original sale
        batch.add_column(sa.Column('pos_transaction_id', sa.BigInteger(), nullable=True, comment='Terminal TransactionId of the sale'))
        batch.add_column(sa.Column('pos_transaction_id_string', sa.String(length=64), nullable=True, comment='Terminal STransactionId of the sale'))
        batch.add_column(sa.Column('pos_transaction_datetime', sa.String(length=17), nullable=True, comment='yyyyMMddHHmmssfff sent with the sale'))
        batch.add_column(sa.Column('pos_response', sa.Text(), nullable=True, comment='Raw terminal response of the sale'))
        # Refund / void
        batch.add_column(sa.Column('pos_refund_transaction_id', sa.BigInteger(), nullable=True))
        batch.add_column(sa.Column('pos_refund_transaction_id_string', sa.String(length=64), nullable=True))
        batch.add_column(sa.Column('pos_refund_transaction_datetime', sa.String(length=17), nullable=True))
        batch.add_column(sa.Column('pos_refund_response', sa.Text(), nullable=True))
        batch.add_column(sa.Column('pos_refunded_at', sa.DateTime(timezone=True), nullable=True, comment='Set once; blocks further refund/cancel'))
        batch.create_index('ix_orders_pos_transaction_id', ['pos_transaction_id'], unique=False)
        batch.create_index('ix_orders_pos_transaction_id_string', ['pos_transaction_id_string'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('orders') as batch:
        batch.drop_index('ix_orders_pos_transaction_id_string')
        batch.drop_index('ix_orders_pos_transaction_id')
        for column in (
            'pos_refunded_at',
            'pos_refund_response',
            'pos_refund_transaction_datetime',
            'pos_refund_transaction_id_string',
            'pos_refund_transaction_id',
            'pos_response',
            'pos_transaction_datetime',
            'pos_transaction_id_string',
            'pos_transaction_id',
        ):
            batch.drop_column(column)
