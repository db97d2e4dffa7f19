from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, CheckConstraint, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column
import sqlalchemy as sa

from alignment.db.base import Base
from alignment.models.types import JSONType


class ParticipantResponseRecord(Base):
    __tablename__ = "participant_responses"
    __table_args__ = (
        CheckConstraint(
            "role IN ('management','employee')",
            name="ck_participant_responses_role",
        ),
        Index("ix_participant_responses_assessment_role", "assessment_id", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    assessment_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
    )
    survey_id: Mapped[str] = mapped_column(String(128), nullable=False)
    participant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    # Free text: department id, code fragment, or legacy name
    department: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # [{"question_id": ..., "score": 1..10 | null}, ...]
    answers: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    current_question_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
