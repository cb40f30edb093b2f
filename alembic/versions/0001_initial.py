from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "collections",
        sa.Column("name", sa.String(length=128), primary_key=True),
        sa.Column("partition_key_path", sa.String(length=128), nullable=False, server_default="/id"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "documents",
        sa.Column("collection", sa.String(length=128), sa.ForeignKey("collections.name", ondelete="CASCADE"), primary_key=True),
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("partition_key", sa.String(length=255), nullable=False),
        sa.Column("body", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_documents_partition_key", "documents", ["partition_key"])


def downgrade() -> None:
    op.drop_index("ix_documents_partition_key", table_name="documents")
    op.drop_table("documents")
    op.drop_table("collections")
