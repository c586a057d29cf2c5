"""district_returns_init

Revision ID: 3c1d2e4f5a60
Revises:
Create Date: 2025-11-03 09:12:44.318207
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1d2e4f5a60"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# JSONB on PostgreSQL, JSON elsewhere
RECORDS = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

DOCUMENT_TABLES = {
    "sunday_service_reports": "uq_sunday_reports_assembly_month",
    "midweek_service_reports": "uq_midweek_reports_assembly_month",
    "special_service_reports": "uq_special_reports_assembly_month",
    "tithe_records": "uq_tithe_records_assembly_month",
}


def _document_columns():
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assembly", sa.String(length=120), nullable=False),
        sa.Column("submitted_by", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("month", sa.String(length=40), nullable=False),
        sa.Column("records", RECORDS, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _document_indexes(table: str) -> None:
    for col in ("id", "assembly", "month", "created_at"):
        op.create_index(f"ix_{table}_{col}", table, [col])


def upgrade() -> None:
    # --- Monthly documents keyed by (assembly, month)
    for table, unique_name in DOCUMENT_TABLES.items():
        op.create_table(
            table,
            *_document_columns(),
            sa.UniqueConstraint("assembly", "month", name=unique_name),
        )
        _document_indexes(table)

    # --- Offering sheets keyed by (assembly, month, type)
    op.create_table(
        "offering_records",
        *_document_columns(),
        sa.Column("type", sa.String(length=120), nullable=False),
        sa.UniqueConstraint("assembly", "month", "type", name="uq_offering_records_assembly_month_type"),
    )
    _document_indexes("offering_records")
    op.create_index("ix_offering_records_type", "offering_records", ["type"])

    # --- Income/expense ledgers with stored totals
    op.create_table(
        "financial_records",
        *_document_columns(),
        sa.Column("totals", RECORDS, nullable=False),
        sa.UniqueConstraint("assembly", "month", name="uq_financial_records_assembly_month"),
    )
    _document_indexes("financial_records")

    # --- Weekly-entry submissions keyed by numeric month/year
    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assembly", sa.String(length=120), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("entries", RECORDS, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("assembly", "month", "year", name="uq_submissions_assembly_month_year"),
    )
    op.create_index("ix_submissions_id", "submissions", ["id"])
    op.create_index("ix_submissions_assembly", "submissions", ["assembly"])


def downgrade() -> None:
    op.drop_table("submissions")
    op.drop_table("financial_records")
    op.drop_table("offering_records")
    for table in reversed(list(DOCUMENT_TABLES)):
        op.drop_table(table)
