"""add_pos_reverse_fields_to_order

Revision ID: c27a9f31e5d8
Revises: 8e4d07a6c1b2
Create Date: 2025-10-09 16:45:03.771204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'c27a9f31e5d8'
down_revision: Union[str, None] = '8e4d07a6c1b2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('orders') as batch:
        batch.add_column(sa.Column('pos_reverse_transaction_id', sa.BigInteger(), nullable=True))
        batch.add_column(sa.Column('pos_reverse_transaction_id_string', sa.String(length=64), nullable=True))
        batch.add_column(sa.Column('pos_reverse_response', sa.Text(), nullable=True))
        batch.add_column(sa.Column('pos_reversed_at', sa.DateTime(timezone=True), nullable=True, comment='Set once; blocks further reverse'))


def downgrade() -> None:
    with op.batch_alter_table('orders') as batch:
        batch.drop_column('pos_reversed_at')
        batch.drop_column('pos_reverse_response')
        batch.drop_column('pos_reverse_transaction_id_string')
        batch.drop_column('pos_reverse_transaction_id')
