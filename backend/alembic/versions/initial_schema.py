"""initial schema

Revision ID: initial_schema
Revises:
Create Date: 2026-03-01

"""
from alembic import op

from arena.models import Base

# revision identifiers
revision = 'initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create every table of the current models.

    Later schema changes get their own revisions on top of this one.
    """
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
