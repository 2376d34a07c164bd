"""Initial schema for enrollments, billing, notifications and schedules

Revision ID: 0001_reconciliation_schema
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_reconciliation_schema"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(length=36), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        *_audit_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_table(
        "students",
        _id_column(),
        *_audit_columns(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_students_user_id_users", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
        sa.UniqueConstraint("user_id", name="uq_students_user_id"),
    )
    op.create_table(
        "class_templates",
        _id_column(),
        *_audit_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price_per_month", sa.Numeric(12, 2), nullable=False),
        sa.Column("max_students_per_section", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_class_templates"),
    )
    op.create_table(
        "class_sections",
        _id_column(),
        *_audit_columns(),
        sa.Column("template_id", sa.String(length=36), nullable=False),
        sa.Column("section_label", sa.String(length=32), nullable=False),
        sa.Column("current_enrollments", sa.Integer(), nullable=False),
        sa.Column("max_students_per_section", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.CheckConstraint("current_enrollments >= 0", name="ck_class_sections_current_enrollments_non_negative"),
        sa.ForeignKeyConstraint(["template_id"], ["class_templates.id"], name="fk_class_sections_template_id_class_templates"),
        sa.PrimaryKeyConstraint("id", name="pk_class_sections"),
    )
    op.create_index("ix_class_sections_template_id", "class_sections", ["template_id"])
    op.create_table(
        "waiting_list",
        _id_column(),
        *_audit_columns(),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("template_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], name="fk_waiting_list_student_id_students"),
        sa.ForeignKeyConstraint(["template_id"], ["class_templates.id"], name="fk_waiting_list_template_id_class_templates"),
        sa.PrimaryKeyConstraint("id", name="pk_waiting_list"),
    )
    op.create_index("ix_waiting_list_student_id", "waiting_list", ["student_id"])
    op.create_index("ix_waiting_list_template_id", "waiting_list", ["template_id"])
    op.create_table(
        "enrollments",
        _id_column(),
        *_audit_columns(),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("section_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("grace_expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["section_id"], ["class_sections.id"], name="fk_enrollments_section_id_class_sections"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], name="fk_enrollments_student_id_students"),
        sa.PrimaryKeyConstraint("id", name="pk_enrollments"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_section_id", "enrollments", ["section_id"])
    op.create_index("ix_enrollments_status_expiry_date", "enrollments", ["status", "expiry_date"])
    op.create_index("ix_enrollments_status_grace_expiry_date", "enrollments", ["status", "grace_expiry_date"])
    op.create_table(
        "payments",
        _id_column(),
        *_audit_columns(),
        sa.Column("enrollment_id", sa.String(length=36), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=32), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=False),
        sa.Column("gateway_token", sa.String(length=255), nullable=True),
        sa.Column("redirect_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["enrollment_id"], ["enrollments.id"], name="fk_payments_enrollment_id_enrollments"),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sa.UniqueConstraint("order_id", name="uq_payments_order_id"),
    )
    op.create_index("ix_payments_enrollment_id", "payments", ["enrollment_id"])
    op.create_index("ix_payments_status_expired_at", "payments", ["status", "expired_at"])
    op.create_table(
        "invoices",
        _id_column(),
        *_audit_columns(),
        sa.Column("invoice_number", sa.String(length=32), nullable=False),
        sa.Column("enrollment_id", sa.String(length=36), nullable=False),
        sa.Column("payment_id", sa.String(length=36), nullable=True),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("student_email", sa.String(length=255), nullable=False),
        sa.Column("student_phone", sa.String(length=50), nullable=True),
        sa.Column("program_name", sa.String(length=255), nullable=False),
        sa.Column("section_label", sa.String(length=32), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["enrollment_id"], ["enrollments.id"], name="fk_invoices_enrollment_id_enrollments"),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"], name="fk_invoices_payment_id_payments"),
        sa.PrimaryKeyConstraint("id", name="pk_invoices"),
        sa.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        sa.UniqueConstraint("payment_id", name="uq_invoices_payment_id"),
    )
    op.create_index("ix_invoices_enrollment_status_created", "invoices", ["enrollment_id", "status", "created_at"])
    op.create_table(
        "notifications",
        _id_column(),
        *_audit_columns(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("dedup_key", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_notifications_user_id_users", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])
    op.create_index("ix_notifications_dedup_key", "notifications", ["dedup_key"])
    op.create_table(
        "scheduled_meetings",
        _id_column(),
        *_audit_columns(),
        sa.Column("section_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meeting_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["section_id"], ["class_sections.id"], name="fk_scheduled_meetings_section_id_class_sections"),
        sa.PrimaryKeyConstraint("id", name="pk_scheduled_meetings"),
    )
    op.create_index("ix_scheduled_meetings_section_id", "scheduled_meetings", ["section_id"])
    op.create_index("ix_scheduled_meetings_scheduled_at", "scheduled_meetings", ["scheduled_at"])
    op.create_table(
        "assignments",
        _id_column(),
        *_audit_columns(),
        sa.Column("section_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["section_id"], ["class_sections.id"], name="fk_assignments_section_id_class_sections"),
        sa.PrimaryKeyConstraint("id", name="pk_assignments"),
    )
    op.create_index("ix_assignments_section_id", "assignments", ["section_id"])
    op.create_index("ix_assignments_due_date", "assignments", ["due_date"])
    op.create_table(
        "assignment_submissions",
        _id_column(),
        *_audit_columns(),
        sa.Column("assignment_id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["assignment_id"], ["assignments.id"], name="fk_assignment_submissions_assignment_id_assignments", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], name="fk_assignment_submissions_student_id_students"),
        sa.PrimaryKeyConstraint("id", name="pk_assignment_submissions"),
        sa.UniqueConstraint("assignment_id", "student_id", name="uq_assignment_submissions_assignment_student"),
    )


def downgrade() -> None:
    for table in (
        "assignment_submissions",
        "assignments",
        "scheduled_meetings",
        "notifications",
        "invoices",
        "payments",
        "enrollments",
        "waiting_list",
        "class_sections",
        "class_templates",
        "students",
        "users",
    ):
        op.drop_table(table)
