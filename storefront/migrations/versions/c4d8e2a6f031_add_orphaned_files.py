"""add orphaned_files: image files whose post-commit deletion failed

Revision ID: c4d8e2a6f031
Revises: a1c3e5f7b9d2
Create Date: 2025-10-02 16:40:05.902117

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c4d8e2a6f031"
down_revision = "a1c3e5f7b9d2"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "orphaned_files",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("orphaned_files")
