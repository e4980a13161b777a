"""create patients table

Revision ID: 8c1f2a7d4b10
Revises:
Create Date: 2025-01-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "8c1f2a7d4b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("patient_id_internal", sa.Text(), nullable=True),
        sa.Column("assigned_staff_id", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("insurance_status", sa.Text(), nullable=True),
        sa.Column("last_interaction_date", sa.Date(), nullable=True),
        sa.Column("next_appointment_date", sa.Date(), nullable=True),
        sa.Column("intake_date", sa.Date(), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column(
            "is_archived", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_name", "patients", ["name"])
    op.create_index("ix_patients_email", "patients", ["email"])
    op.create_index("ix_patients_status", "patients", ["status"])
    op.create_index("ix_patients_is_archived", "patients", ["is_archived"])
    op.create_index("ix_patients_created_at", "patients", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_patients_created_at", table_name="patients")
    op.drop_index("ix_patients_is_archived", table_name="patients")
    op.drop_index("ix_patients_status", table_name="patients")
    op.drop_index("ix_patients_email", table_name="patients")
    op.drop_index("ix_patients_name", table_name="patients")
    op.drop_table("patients")
