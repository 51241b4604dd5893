"""Initial schema for timed assessment sessions

Revision ID: 001_exam_schema
Revises:
Create Date: 2026-10-18

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import CheckConstraint, Column, ForeignKey, Index, UniqueConstraint
from sqlalchemy.types import JSON, Boolean, DateTime, Enum, Integer, Numeric, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_exam_schema"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

Key = String(22)
Timestamp = DateTime(timezone=True)
Marks = Numeric(8, 2)
Document = JSON().with_variant(JSONB(), "postgresql")

UserRole = Enum("instructor", "participant", name="userrole")
AccessMode = Enum("invitation", "code", "open", name="accessmode")
QuestionKind = Enum("single_select", "short_answer", "coding", name="questionkind")
GrantStatus = Enum("pending", "accepted", "expired", name="grantstatus")
SessionStatus = Enum("not_started", "in_progress", "completed", "terminated", name="sessionstatus")
GradingStatus = Enum("pending", "partial", "completed", name="gradingstatus")


def timestamps() -> list[Column[t.Any]]:
    return [
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        Column("user_id", Key, primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("role", UserRole, nullable=False),
        Column("password_hash", String, nullable=True),
        *timestamps(),
    )

    op.create_table(
        "assessments",
        Column("assessment_id", Key, primary_key=True),
        Column("owner_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("title", String, nullable=False),
        Column("description", Text, nullable=True),
        Column("start_time", Timestamp, nullable=False),
        Column("end_time", Timestamp, nullable=False),
        Column("duration_minutes", Integer, nullable=False),
        Column("access_mode", AccessMode, nullable=False),
        Column("access_code", String, nullable=True),
        Column("max_violations", Integer, nullable=True),
        Column("require_proctor_signal", Boolean, nullable=False),
        Column("is_published", Boolean, nullable=False),
        Column("total_marks", Marks, nullable=False),
        *timestamps(),
        CheckConstraint("start_time < end_time", name="assessments_window_check"),
        CheckConstraint("duration_minutes > 0", name="assessments_duration_check"),
    )

    op.create_table(
        "questions",
        Column("question_id", Key, primary_key=True),
        Column("assessment_id", Key, ForeignKey("assessments.assessment_id"), nullable=False, index=True),
        Column("kind", QuestionKind, nullable=False),
        Column("position", Integer, nullable=False),
        Column("content", Document, nullable=False),
        Column("answer_key", Document, nullable=True),
        Column("marks", Marks, nullable=False),
        *timestamps(),
        UniqueConstraint("assessment_id", "position"),
    )

    op.create_table(
        "access_grants",
        Column("grant_id", Key, primary_key=True),
        Column("token", String, unique=True, nullable=False),
        Column("email", String, nullable=False),
        Column("issued_by", Key, ForeignKey("users.user_id"), nullable=False),
        Column("assessment_id", Key, ForeignKey("assessments.assessment_id"), nullable=True),
        Column("status", GrantStatus, nullable=False),
        Column("expires_at", Timestamp, nullable=False),
        Column("accept_time", Timestamp, nullable=True),
        *timestamps(),
    )

    op.create_table(
        "exam_sessions",
        Column("session_id", Key, primary_key=True),
        Column("assessment_id", Key, ForeignKey("assessments.assessment_id"), nullable=False),
        Column("participant_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("status", SessionStatus, nullable=False),
        Column("start_time", Timestamp, nullable=True),
        Column("end_time", Timestamp, nullable=True),
        Column("total_score", Marks, nullable=True),
        Column("violations_count", Integer, nullable=False),
        *timestamps(),
        UniqueConstraint("participant_id", "assessment_id"),
        Index("exam_sessions_assessment_status_idx", "assessment_id", "status"),
    )

    op.create_table(
        "answers",
        Column("answer_id", Key, primary_key=True),
        Column("session_id", Key, ForeignKey("exam_sessions.session_id"), nullable=False),
        Column("question_id", Key, ForeignKey("questions.question_id"), nullable=False),
        Column("kind", QuestionKind, nullable=False),
        Column("position", Integer, nullable=False),
        Column("content", Document, nullable=False),
        Column("answer_key", Document, nullable=True),
        Column("marks", Marks, nullable=False),
        Column("response", Document, nullable=True),
        Column("answer_time", Timestamp, nullable=True),
        Column("marks_obtained", Marks, nullable=True),
        Column("graded", Boolean, nullable=False),
        Column("grader_id", Key, ForeignKey("users.user_id"), nullable=True),
        Column("grader_comments", Text, nullable=True),
        *timestamps(),
        UniqueConstraint("session_id", "question_id"),
    )

    op.create_table(
        "flags",
        Column("session_id", Key, ForeignKey("exam_sessions.session_id"), primary_key=True),
        Column("question_id", Key, ForeignKey("questions.question_id"), primary_key=True),
        Column("flagged", Boolean, nullable=False),
        *timestamps(),
    )

    op.create_table(
        "student_responses",
        Column("response_id", Key, primary_key=True),
        Column("session_id", Key, ForeignKey("exam_sessions.session_id"), unique=True, nullable=False),
        Column("assessment_id", Key, ForeignKey("assessments.assessment_id"), nullable=False),
        Column("participant_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("answers", Document, nullable=False),
        Column("auto_score", Marks, nullable=False),
        Column("grading_status", GradingStatus, nullable=False),
        Column("submitted_at", Timestamp, nullable=False),
        *timestamps(),
    )


def downgrade() -> None:
    for table in (
        "student_responses",
        "flags",
        "answers",
        "exam_sessions",
        "access_grants",
        "questions",
        "assessments",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (GradingStatus, SessionStatus, GrantStatus, QuestionKind, AccessMode, UserRole):
        enum.drop(bind, checkfirst=True)
