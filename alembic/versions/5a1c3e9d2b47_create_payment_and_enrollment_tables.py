"""create profile, course, payment and enrollment tables

Revision ID: 5a1c3e9d2b47
Revises:
Create Date: 2026-10-18 10:12:41.318270

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1c3e9d2b47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "profile",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="student"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_profile_email", "profile", ["email"])

    op.create_table(
        "course",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title_en", sa.String(), nullable=False),
        sa.Column("title_ar", sa.String(), nullable=False),
        sa.Column("short_description_en", sa.String(), nullable=True),
        sa.Column("short_description_ar", sa.String(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("teacher_id", sa.String(), sa.ForeignKey("profile.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "payment",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("profile.id"), nullable=False),
        sa.Column("course_id", sa.String(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False, server_default="EGP"),
        sa.Column("payment_method", sa.String(), nullable=False),
        sa.Column("paymob_order_id", sa.String(), nullable=True),
        sa.Column("paymob_payment_key", sa.String(), nullable=True),
        sa.Column("paymob_transaction_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("payment_data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("user_id", "paymob_order_id", name="uq_payment_user_order"),
    )
    op.create_index("ix_payment_user_id", "payment", ["user_id"])
    op.create_index("ix_payment_course_id", "payment", ["course_id"])
    op.create_index("ix_payment_paymob_order_id", "payment", ["paymob_order_id"])
    op.create_index("ix_payment_status", "payment", ["status"])

    op.create_table(
        "enrollment",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("student_id", sa.String(), sa.ForeignKey("profile.id"), nullable=False),
        sa.Column("course_id", sa.String(), sa.ForeignKey("course.id"), nullable=False),
        sa.Column("payment_id", sa.String(), sa.ForeignKey("payment.id"), nullable=True),
        sa.Column("enrollment_type", sa.String(), nullable=False),
        sa.Column("payment_status", sa.String(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_lessons", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enrolled_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
    )
    op.create_index("ix_enrollment_student_id", "enrollment", ["student_id"])
    op.create_index("ix_enrollment_course_id", "enrollment", ["course_id"])


def downgrade():
    op.drop_table("enrollment")
    op.drop_table("payment")
    op.drop_table("course")
    op.drop_table("profile")
