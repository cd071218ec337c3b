"""create visitors, employees and visit_logs

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "visitors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("company", sa.String(), nullable=True),
        sa.Column("id_type", sa.String(length=32), nullable=False),
        sa.Column("id_number", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_visitors_id", "visitors", ["id"])
    op.create_index("ix_visitors_email", "visitors", ["email"])

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_employees_id", "employees", ["id"])
    op.create_index("ix_employees_email", "employees", ["email"], unique=True)

    op.create_table(
        "visit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("visitor_id", sa.Integer(), sa.ForeignKey("visitors.id"), nullable=False),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False,
                  server_default="pending_approval"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cso_approved_by", sa.String(), nullable=True),
        sa.Column("cso_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending_approval', 'checked_in', 'checked_out', 'rejected')",
            name="ck_visit_logs_status",
        ),
    )
    op.create_index("ix_visit_logs_id", "visit_logs", ["id"])
    op.create_index("ix_visit_logs_status_created_at", "visit_logs", ["status", "created_at"])


def downgrade():
    op.drop_index("ix_visit_logs_status_created_at", table_name="visit_logs")
    op.drop_index("ix_visit_logs_id", table_name="visit_logs")
    op.drop_table("visit_logs")
    op.drop_index("ix_employees_email", table_name="employees")
    op.drop_index("ix_employees_id", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_visitors_email", table_name="visitors")
    op.drop_index("ix_visitors_id", table_name="visitors")
    op.drop_table("visitors")
