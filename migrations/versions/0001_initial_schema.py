"""Initial ledger schema

Revision ID: 0001
Revises:
Create Date: 2026-02-22 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ACCOUNT_TYPES = ("ASSET", "LIABILITY", "EQUITY", "REVENUE", "EXPENSE")
ENTRY_TYPES = ("DEBIT", "CREDIT")
RECONCILIATION_STATUSES = (
    "UNRECONCILED", "PARTIALLY_RECONCILED", "FULLY_RECONCILED",
)


def upgrade() -> None:
    op.create_table(
        "chart_of_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "account_type",
            sa.Enum(*ACCOUNT_TYPES, name="account_type_enum"),
            nullable=False,
        ),
        sa.Column(
            "normal_side",
            sa.Enum(*ENTRY_TYPES, name="normal_side_enum"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "uq_chart_of_accounts_active_code",
        "chart_of_accounts",
        ["code"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "journal_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("journal_number", sa.String(32), nullable=False, unique=True),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("POSTED", name="journal_status_enum"),
            nullable=False,
        ),
        sa.Column("memo", sa.String(1000), nullable=True),
        sa.Column("source_type", sa.String(100), nullable=True),
        sa.Column("source_ref", sa.String(200), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "journal_entry_lines",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "journal_entry_id",
            sa.Uuid(),
            sa.ForeignKey("journal_entries.id"),
            nullable=False,
        ),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey("chart_of_accounts.id"),
            nullable=False,
        ),
        sa.Column(
            "line_type",
            sa.Enum(*ENTRY_TYPES, name="entry_type_enum"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "journal_entry_id", "line_number",
            name="uq_journal_entry_lines_number",
        ),
    )
    op.create_index(
        "ix_journal_entry_lines_journal_entry_id",
        "journal_entry_lines", ["journal_entry_id"],
    )
    op.create_index(
        "ix_journal_entry_lines_account_id",
        "journal_entry_lines", ["account_id"],
    )

    op.create_table(
        "import_batches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("source", sa.String(100), nullable=False),
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey("chart_of_accounts.id"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("row_count", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_import_batches_account_id", "import_batches", ["account_id"],
    )

    op.create_table(
        "raw_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("source", sa.String(100), nullable=False),
        sa.Column("external_id", sa.String(200), nullable=False),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey("chart_of_accounts.id"),
            nullable=False,
        ),
        sa.Column(
            "import_batch_id",
            sa.Uuid(),
            sa.ForeignKey("import_batches.id"),
            nullable=False,
        ),
        sa.Column("allocated_amount", sa.Numeric(19, 4), nullable=False),
        sa.Column(
            "reconciliation_status",
            sa.Enum(
                *RECONCILIATION_STATUSES,
                name="reconciliation_status_enum",
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "source", "external_id",
            name="uq_raw_transactions_source_external_id",
        ),
    )
    op.create_index(
        "ix_raw_transactions_account_id", "raw_transactions", ["account_id"],
    )
    op.create_index(
        "ix_raw_transactions_import_batch_id",
        "raw_transactions", ["import_batch_id"],
    )

    op.create_table(
        "reconciliation_allocations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "journal_entry_id",
            sa.Uuid(),
            sa.ForeignKey("journal_entries.id"),
            nullable=False,
        ),
        sa.Column(
            "raw_transaction_id",
            sa.Uuid(),
            sa.ForeignKey("raw_transactions.id"),
            nullable=False,
        ),
        sa.Column("amount_applied", sa.Numeric(19, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_reconciliation_allocations_journal_entry_id",
        "reconciliation_allocations", ["journal_entry_id"],
    )
    op.create_index(
        "ix_reconciliation_allocations_raw_transaction_id",
        "reconciliation_allocations", ["raw_transaction_id"],
    )

    op.create_table(
        "idempotency_records",
        sa.Column("idempotency_key", sa.String(200), primary_key=True),
        sa.Column("request_hash", sa.String(64), nullable=False),
        sa.Column(
            "journal_entry_id",
            sa.Uuid(),
            sa.ForeignKey("journal_entries.id"),
            nullable=False,
        ),
        sa.Column("journal_number", sa.String(32), nullable=False),
        sa.Column("allocation_count", sa.Integer(), nullable=False),
        sa.Column("reconciled_transaction_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("idempotency_records")
    op.drop_table("reconciliation_allocations")
    op.drop_table("raw_transactions")
    op.drop_table("import_batches")
    op.drop_table("journal_entry_lines")
    op.drop_table("journal_entries")
    op.drop_table("chart_of_accounts")
    for enum_name in (
        "reconciliation_status_enum",
        "entry_type_enum",
        "journal_status_enum",
        "normal_side_enum",
        "account_type_enum",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
