"""001: create sync_documents table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE sync_documents (
            doc_id          VARCHAR(128)    PRIMARY KEY,
            state           JSONB           NOT NULL DEFAULT '{}'::jsonb,
            version         BIGINT          NOT NULL DEFAULT 1,
            origin          VARCHAR(64)     NOT NULL,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_sync_version_positive CHECK (version > 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE sync_documents IS "
        "'Full-state store documents; one row per doc_id, last write wins';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sync_documents CASCADE;")
