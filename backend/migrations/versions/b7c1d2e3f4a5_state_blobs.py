"""state blobs

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the key-value table holding the dashboard collections:
- state_blobs: one row per collection key (departments, categories,
  equipment, equipment_usage, notifications, equipment_stats,
  department_stats), value stored as JSON text
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'state_blobs',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value_json', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade():
    op.drop_table('state_blobs')
