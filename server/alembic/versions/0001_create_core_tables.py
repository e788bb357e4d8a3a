"""create people, identities, ministries, leadership and events tables

Revision ID: 0001_create_core_tables
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_create_core_tables"
down_revision = None
branch_labels = None
depends_on = None

person_gender = sa.Enum("Male", "Female", "Other", name="person_gender")
identity_role = sa.Enum("Pastor", "Leader", name="identity_role")
event_state = sa.Enum("PENDING", "IN_REVIEW", "APPROVED", "REJECTED", "CANCELLED", name="event_state")


def upgrade() -> None:
    op.create_table(
        "people",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_names", sa.String(length=120), nullable=False),
        sa.Column("last_names", sa.String(length=120), nullable=False),
        sa.Column("national_id", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=25), nullable=True),
        sa.Column("gender", person_gender, nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("education_level", sa.String(length=120), nullable=True),
        sa.Column("occupation", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_people_national_id", "people", ["national_id"], unique=True)

    op.create_table(
        "identities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id", ondelete="RESTRICT"), nullable=False, unique=True),
        sa.Column("handle", sa.String(length=150), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", identity_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_identities_handle", "identities", ["handle"], unique=True)

    op.create_table(
        "ministries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_path", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("identities.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "ministry_leaders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ministry_id", sa.Integer(), sa.ForeignKey("ministries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("identity_id", sa.Integer(), sa.ForeignKey("identities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assigned_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("ministry_id", "identity_id", name="uq_ministry_leader"),
    )
    op.create_index("ix_ministry_leaders_ministry_id", "ministry_leaders", ["ministry_id"])
    op.create_index("ix_ministry_leaders_identity_id", "ministry_leaders", ["identity_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ministry_id", sa.Integer(), sa.ForeignKey("ministries.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("state", event_state, nullable=False, server_default="PENDING"),
        sa.Column("rejection_reason", sa.String(length=500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("identities.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("ends_at IS NULL OR ends_at > starts_at", name="ck_events_end_after_start"),
    )
    op.create_index("ix_events_ministry_id", "events", ["ministry_id"])


def downgrade() -> None:
    op.drop_index("ix_events_ministry_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_ministry_leaders_identity_id", table_name="ministry_leaders")
    op.drop_index("ix_ministry_leaders_ministry_id", table_name="ministry_leaders")
    op.drop_table("ministry_leaders")
    op.drop_table("ministries")
    op.drop_index("ix_identities_handle", table_name="identities")
    op.drop_table("identities")
    op.drop_index("ix_people_national_id", table_name="people")
    op.drop_table("people")
    event_state.drop(op.get_bind(), checkfirst=True)
    identity_role.drop(op.get_bind(), checkfirst=True)
    person_gender.drop(op.get_bind(), checkfirst=True)
