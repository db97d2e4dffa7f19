from datetime import datetime

from sqlalchemy import String, DateTime, CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column
import sqlalchemy as sa

from alignment.db.base import Base
from alignment.models.types import JSONType


class AssessmentRecord(Base):
    """
    One organization's survey instance, stored as a whole record: scalar
    columns for lookups, JSON columns for the embedded lists and the derived
    aggregates.
    """
    __tablename__ = "assessments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('collecting','ready','locked')",
            name="ck_assessments_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    organization_name: Mapped[str] = mapped_column(String(200), nullable=False)
    consultant_id: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="collecting")

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    access_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    code_expiration: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    code_regenerated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    departments: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    questions: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    question_source: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    department_data: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    management_responses: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    employee_responses: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    response_count: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )
    # Optimistic locking
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version}
