"""Create documents table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `documents` table that backs the parcels, tracking and
       payments collections.
How:   UUID primary key, collection name, JSON document body and an insertion
       timestamp, plus a composite index for per-collection listing.

Rollback: downgrade() drops the table (all documents are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the documents table and its listing index."""
    op.create_table(
        "documents",

        # Public `_id` of the document
        sa.Column(
            "id",
            sa.Uuid(),
            nullable=False,
            comment="Document identity, exposed to clients as _id",
        ),

        sa.Column(
            "collection",
            sa.String(64),
            nullable=False,
            comment="Logical collection: parcels, tracking or payments",
        ),

        # JSON on SQLite, JSON on PostgreSQL (queried with ->> path operators)
        sa.Column(
            "body",
            sa.JSON(),
            nullable=False,
            comment="Document fields other than _id",
        ),

        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Insertion time (UTC); sort tie-break",
        ),

        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_documents_collection_created_at",
        "documents",
        ["collection", "created_at"],
    )


def downgrade() -> None:
    """Drop the documents table."""
    op.drop_index("idx_documents_collection_created_at", table_name="documents")
    op.drop_table("documents")
