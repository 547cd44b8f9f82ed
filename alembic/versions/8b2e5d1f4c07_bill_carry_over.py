"""track bills whose balance was carried into a later bill

Revision ID: 8b2e5d1f4c07
Revises: 3f9c2a7d1b64
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "8b2e5d1f4c07"
down_revision: Union[str, Sequence[str], None] = "3f9c2a7d1b64"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("bills") as batch_op:
        batch_op.add_column(sa.Column("carried_into_bill_id", sa.Integer, nullable=True))
        batch_op.create_foreign_key("fk_bills_carried_into_bill_id", "bills", ["carried_into_bill_id"], ["id"])
        batch_op.create_index("ix_bills_carried_into_bill_id", ["carried_into_bill_id"])


def downgrade() -> None:
    with op.batch_alter_table("bills") as batch_op:
        batch_op.drop_index("ix_bills_carried_into_bill_id")
        batch_op.drop_constraint("fk_bills_carried_into_bill_id", type_="foreignkey")
        batch_op.drop_column("carried_into_bill_id")
