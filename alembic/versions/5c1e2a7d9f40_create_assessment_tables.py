"""create assessment tables

Revision ID: 5c1e2a7d9f40
Revises:
Create Date: 2026-10-17 09:12:04.118302
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2a7d9f40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "assessments",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("organization_name", sa.String(200), nullable=False),
        sa.Column("consultant_id", sa.String(320), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("access_code", sa.String(64), nullable=False),
        sa.Column("code_expiration", sa.DateTime(timezone=True), nullable=True),
        sa.Column("code_regenerated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("departments", JSONType, nullable=False),
        sa.Column("questions", JSONType, nullable=False),
        sa.Column("question_source", JSONType, nullable=False),
        sa.Column("department_data", JSONType, nullable=False),
        sa.Column("management_responses", JSONType, nullable=False),
        sa.Column("employee_responses", JSONType, nullable=False),
        sa.Column("response_count", JSONType, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("status IN ('collecting','ready','locked')", name="ck_assessments_status"),
    )
    op.create_index("ix_assessments_consultant_id", "assessments", ["consultant_id"])
    op.create_index("ix_assessments_access_code", "assessments", ["access_code"])

    op.create_table(
        "participant_responses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "assessment_id",
            sa.String(64),
            sa.ForeignKey("assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("survey_id", sa.String(128), nullable=False),
        sa.Column("participant_id", sa.String(128), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("department", sa.String(200), nullable=False),
        sa.Column("answers", JSONType, nullable=False),
        sa.Column("current_question_index", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('management','employee')", name="ck_participant_responses_role"),
    )
    op.create_index(
        "ix_participant_responses_assessment_role",
        "participant_responses",
        ["assessment_id", "role"],
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("actor_id", sa.String(320), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("event_metadata", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_events_entity_id", "audit_events", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_entity_id", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_participant_responses_assessment_role", table_name="participant_responses")
    op.drop_table("participant_responses")
    op.drop_index("ix_assessments_access_code", table_name="assessments")
    op.drop_index("ix_assessments_consultant_id", table_name="assessments")
    op.drop_table("assessments")
