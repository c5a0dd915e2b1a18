"""Initial schema: users, professionals, weekly schedule, services, appointments.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("ADMIN", "PROFESSIONAL", "CLIENT", name="userrole")
professional_status = sa.Enum("ACTIVE", "INACTIVE", name="professionalstatus")
service_status = sa.Enum("ACTIVE", "INACTIVE", name="servicestatus")
appointment_status = sa.Enum("CONFIRMED", "COMPLETED", "NO_SHOW", "CANCELLED", name="appointmentstatus")
actor_role = sa.Enum("CLIENT", "PROFESSIONAL", name="actorrole")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "professionals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("profession", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("province", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("custom_url", sa.String(), nullable=False),
        sa.Column("status", professional_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_professionals_user_id"), "professionals", ["user_id"], unique=True)
    op.create_index(op.f("ix_professionals_custom_url"), "professionals", ["custom_url"], unique=True)
    op.create_index(op.f("ix_professionals_province"), "professionals", ["province"], unique=False)
    op.create_index(op.f("ix_professionals_city"), "professionals", ["city"], unique=False)

    op.create_table(
        "weekly_schedule_blocks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_schedule_day_of_week"),
        sa.CheckConstraint("end_time > start_time", name="ck_schedule_time_order"),
        sa.ForeignKeyConstraint(["professional_id"], ["professionals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_weekly_schedule_blocks_professional_id"),
        "weekly_schedule_blocks",
        ["professional_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_weekly_schedule_blocks_day_of_week"),
        "weekly_schedule_blocks",
        ["day_of_week"],
        unique=False,
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("deposit_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", service_status, nullable=False),
        sa.CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        sa.CheckConstraint(
            "deposit_percentage >= 0 AND deposit_percentage <= 100",
            name="ck_services_deposit_range",
        ),
        sa.CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
        sa.ForeignKeyConstraint(["professional_id"], ["professionals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_services_professional_id"), "services", ["professional_id"], unique=False)
    op.create_index(op.f("ix_services_status"), "services", ["status"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("service_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", appointment_status, nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("deposit_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("payment_reference", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by", actor_role, nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
        sa.ForeignKeyConstraint(["professional_id"], ["professionals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_reference"),
    )
    op.create_index(op.f("ix_appointments_professional_id"), "appointments", ["professional_id"], unique=False)
    op.create_index(op.f("ix_appointments_client_id"), "appointments", ["client_id"], unique=False)
    op.create_index(op.f("ix_appointments_service_id"), "appointments", ["service_id"], unique=False)
    op.create_index(op.f("ix_appointments_date"), "appointments", ["date"], unique=False)
    op.create_index(op.f("ix_appointments_status"), "appointments", ["status"], unique=False)
    op.create_index(
        "uq_appointments_active_start",
        "appointments",
        ["professional_id", "date", "start_time"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELLED'"),
        sqlite_where=sa.text("status <> 'CANCELLED'"),
    )

    # No two live appointments of a professional may share any minute on a date
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
        ALTER TABLE appointments
        ADD CONSTRAINT ex_appointments_no_overlap
        EXCLUDE USING gist (
            professional_id WITH =,
            tsrange(date + start_time, date + end_time, '[)') WITH &&
        )
        WHERE (status <> 'CANCELLED')
            """
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS ex_appointments_no_overlap")
    op.drop_index("uq_appointments_active_start", table_name="appointments")
    op.drop_index(op.f("ix_appointments_status"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_date"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_service_id"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_client_id"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_professional_id"), table_name="appointments")
    op.drop_table("appointments")
    op.drop_index(op.f("ix_services_status"), table_name="services")
    op.drop_index(op.f("ix_services_professional_id"), table_name="services")
    op.drop_table("services")
    op.drop_index(op.f("ix_weekly_schedule_blocks_day_of_week"), table_name="weekly_schedule_blocks")
    op.drop_index(op.f("ix_weekly_schedule_blocks_professional_id"), table_name="weekly_schedule_blocks")
    op.drop_table("weekly_schedule_blocks")
    op.drop_index(op.f("ix_professionals_city"), table_name="professionals")
    op.drop_index(op.f("ix_professionals_province"), table_name="professionals")
    op.drop_index(op.f("ix_professionals_custom_url"), table_name="professionals")
    op.drop_index(op.f("ix_professionals_user_id"), table_name="professionals")
    op.drop_table("professionals")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    for enum_type in (actor_role, appointment_status, service_status, professional_status, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
