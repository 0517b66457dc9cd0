"""orders legacy columns

Revision ID: 8c41e0b5a2d3
Revises: 3f2a9c1d7b10
Create Date: 2025-12-24 14:03:55.402117

Older deployments store orders under a second column set (order_status,
estimated_delivery_date, delivery_partner, ...). Both sets live side by side;
the lookup reads the newer column first and falls back to the legacy one.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8c41e0b5a2d3'
down_revision: Union[str, None] = '3f2a9c1d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


LEGACY_COLUMNS = (
    ("order_status", sa.Text()),
    ("estimated_delivery_date", sa.Date()),
    ("delivery_partner", sa.Text()),
    ("tracking_id", sa.Text()),
    ("issue_type", sa.Text()),
    ("order_notes", sa.Text()),
    ("order_date", sa.TIMESTAMP(timezone=True)),
    ("customer_name", sa.Text()),
    ("customer_phone", sa.Text()),
    ("product_id", sa.Text()),
    ("product_name", sa.Text()),
    ("category", sa.Text()),
    ("delivery_address", sa.Text()),
    ("payment_method", sa.Text()),
    ("return_eligible", sa.Boolean()),
    ("refund_amount", sa.Numeric(12, 2)),
)


def upgrade() -> None:
    for name, type_ in LEGACY_COLUMNS:
        op.add_column("orders", sa.Column(name, type_, nullable=True))


def downgrade() -> None:
    for name, _ in reversed(LEGACY_COLUMNS):
        op.drop_column("orders", name)
