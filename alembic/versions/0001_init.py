from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "processed_signatures",
        sa.Column("signature", sa.String(100), primary_key=True),
        sa.Column("claimed_at", sa.DateTime, nullable=False),
    )


def downgrade():
    op.drop_table("processed_signatures")
