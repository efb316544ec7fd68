"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates all tables for the Animia sync server:
beneficiaries, screenings, interventions, sync_receipts,
notification_tokens, notifications_log.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- beneficiaries ---
    op.create_table(
        "beneficiaries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("id_number", sa.String(32), nullable=True),
        sa.Column("aadhaar_hash", sa.String(191), nullable=True),
        sa.Column("dob", sa.String(32), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("alt_phone", sa.String(64), nullable=True),
        sa.Column("doctor_name", sa.String(255), nullable=True),
        sa.Column("doctor_phone", sa.String(64), nullable=True),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("front_document", sa.Text, nullable=True),
        sa.Column("back_document", sa.Text, nullable=True),
        sa.Column("follow_up_due", sa.DateTime(timezone=True), nullable=True),
        sa.Column("follow_up_done", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("last_followed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hb", sa.Float, nullable=True),
        sa.Column("calcium_qty", sa.Integer, nullable=True),
        sa.Column("short_id", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_beneficiaries_aadhaar_hash", "beneficiaries", ["aadhaar_hash"], unique=True)

    # --- screenings ---
    op.create_table(
        "screenings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("beneficiary_id", sa.Integer, sa.ForeignKey("beneficiaries.id"), nullable=False),
        sa.Column("doctor_name", sa.String(255), nullable=True),
        sa.Column("hemoglobin", sa.Float, nullable=True),
        sa.Column("anemia_category", sa.String(64), nullable=True),
        sa.Column("pallor", sa.String(32), nullable=True),
        sa.Column("visit_type", sa.String(64), nullable=True),
        sa.Column("severity", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_screenings_beneficiary_id", "screenings", ["beneficiary_id"])

    # --- interventions ---
    op.create_table(
        "interventions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("beneficiary_id", sa.Integer, sa.ForeignKey("beneficiaries.id"), nullable=False),
        sa.Column("doctor_name", sa.String(255), nullable=True),
        sa.Column("ifa_yes", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("ifa_quantity", sa.Integer, nullable=True),
        sa.Column("calcium_yes", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("calcium_quantity", sa.Integer, nullable=True),
        sa.Column("deworm_yes", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("deworming_date", sa.Date, nullable=True),
        sa.Column("therapeutic_yes", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("therapeutic_notes", sa.Text, nullable=True),
        sa.Column("referral_yes", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("referral_facility", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_interventions_beneficiary_id", "interventions", ["beneficiary_id"])

    # --- sync_receipts ---
    op.create_table(
        "sync_receipts",
        sa.Column("receipt_id", sa.String(36), primary_key=True),
        sa.Column("idempotency_key", sa.String(255), nullable=True, unique=True),
        sa.Column("operation", sa.Enum("create", "update", "delete", name="syncoperation"), nullable=False),
        sa.Column("entity", sa.Enum("beneficiaries", "interventions", "screenings", name="syncentity"),
                  nullable=False),
        sa.Column("record_id", sa.Integer, nullable=True),
        sa.Column("client_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- notification_tokens ---
    op.create_table(
        "notification_tokens",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("token", sa.String(512), nullable=False, unique=True),
        sa.Column("platform", sa.String(32), nullable=True),
        sa.Column("device_id", sa.String(191), nullable=True, unique=True),
        sa.Column("model", sa.String(128), nullable=True),
        sa.Column("is_registered", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- notifications_log ---
    op.create_table(
        "notifications_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("data", sa.Text, nullable=True),
        sa.Column("device_id", sa.String(191), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("notifications_log")
    op.drop_table("notification_tokens")
    op.drop_table("sync_receipts")
    op.drop_index("ix_interventions_beneficiary_id", table_name="interventions")
    op.drop_table("interventions")
    op.drop_index("ix_screenings_beneficiary_id", table_name="screenings")
    op.drop_table("screenings")
    op.drop_index("ix_beneficiaries_aadhaar_hash", table_name="beneficiaries")
    op.drop_table("beneficiaries")
