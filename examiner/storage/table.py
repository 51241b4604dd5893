import datetime
import decimal
import enum
import typing as t

from sqlalchemy import CheckConstraint, ForeignKey, func, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON, Numeric, Text

from examiner.model import AccessMode, AnswerID, AssessmentID, GradingStatus, GrantID, GrantStatus, QuestionID, \
    QuestionKind, ResponseID, SessionID, SessionStatus, UserID, UserRole

from .type import ShortUUIDKeyType, UTCDateTime, ValueEnumMapper

JSONDocument = JSON().with_variant(JSONB(), "postgresql")
Marks = Numeric(8, 2)


class base(MappedAsDataclass, DeclarativeBase):
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        AssessmentID: ShortUUIDKeyType(AssessmentID),
        QuestionID: ShortUUIDKeyType(QuestionID),
        GrantID: ShortUUIDKeyType(GrantID),
        SessionID: ShortUUIDKeyType(SessionID),
        AnswerID: ShortUUIDKeyType(AnswerID),
        ResponseID: ShortUUIDKeyType(ResponseID),
        datetime.datetime: UTCDateTime(),
        decimal.Decimal: Marks,
        dict[str, t.Any]: JSONDocument,
        list[dict[str, t.Any]]: JSONDocument,
        enum.Enum: ValueEnumMapper,
    }


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    role: Mapped[UserRole]
    password_hash: Mapped[str | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Assessments & question bank


class assessments(base):
    __tablename__ = "assessments"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="assessments_window_check"),
        CheckConstraint("duration_minutes > 0", name="assessments_duration_check"),
    )

    assessment_id: Mapped[AssessmentID] = mapped_column(primary_key=True)
    owner_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))

    title: Mapped[str]
    start_time: Mapped[datetime.datetime]
    end_time: Mapped[datetime.datetime]
    duration_minutes: Mapped[int]

    description: Mapped[str | None] = mapped_column(Text, default=None)
    access_mode: Mapped[AccessMode] = mapped_column(default=AccessMode.Open)
    access_code: Mapped[str | None] = mapped_column(default=None)
    max_violations: Mapped[int | None] = mapped_column(default=None)
    require_proctor_signal: Mapped[bool] = mapped_column(default=False)
    is_published: Mapped[bool] = mapped_column(default=False)
    total_marks: Mapped[decimal.Decimal] = mapped_column(default=decimal.Decimal(0))

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class questions(base):
    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("assessment_id", "position"),)

    question_id: Mapped[QuestionID] = mapped_column(primary_key=True)
    assessment_id: Mapped[AssessmentID] = mapped_column(ForeignKey("assessments.assessment_id"), index=True)
    kind: Mapped[QuestionKind]
    position: Mapped[int]
    content: Mapped[dict[str, t.Any]]
    marks: Mapped[decimal.Decimal]
    answer_key: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Invitations


class access_grants(base):
    __tablename__ = "access_grants"

    grant_id: Mapped[GrantID] = mapped_column(primary_key=True)
    token: Mapped[str] = mapped_column(unique=True)
    email: Mapped[str]
    issued_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    expires_at: Mapped[datetime.datetime]
    assessment_id: Mapped[AssessmentID | None] = mapped_column(ForeignKey("assessments.assessment_id"), default=None)
    status: Mapped[GrantStatus] = mapped_column(default=GrantStatus.Pending)
    accept_time: Mapped[datetime.datetime | None] = mapped_column(default=None)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Sessions


class exam_sessions(base):
    __tablename__ = "exam_sessions"
    __table_args__ = (
        UniqueConstraint("participant_id", "assessment_id"),
        Index("exam_sessions_assessment_status_idx", "assessment_id", "status"),
    )

    session_id: Mapped[SessionID] = mapped_column(primary_key=True)
    assessment_id: Mapped[AssessmentID] = mapped_column(ForeignKey("assessments.assessment_id"))
    participant_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))

    status: Mapped[SessionStatus] = mapped_column(default=SessionStatus.NotStarted)
    start_time: Mapped[datetime.datetime | None] = mapped_column(default=None)
    end_time: Mapped[datetime.datetime | None] = mapped_column(default=None)
    total_score: Mapped[decimal.Decimal | None] = mapped_column(default=None)
    violations_count: Mapped[int] = mapped_column(default=0)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class answers(base):
    __tablename__ = "answers"
    __table_args__ = (UniqueConstraint("session_id", "question_id"),)

    answer_id: Mapped[AnswerID] = mapped_column(primary_key=True)
    session_id: Mapped[SessionID] = mapped_column(ForeignKey("exam_sessions.session_id"))
    question_id: Mapped[QuestionID] = mapped_column(ForeignKey("questions.question_id"))

    kind: Mapped[QuestionKind]
    position: Mapped[int]
    content: Mapped[dict[str, t.Any]]
    marks: Mapped[decimal.Decimal]
    answer_key: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)

    response: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    answer_time: Mapped[datetime.datetime | None] = mapped_column(default=None)
    marks_obtained: Mapped[decimal.Decimal | None] = mapped_column(default=None)
    graded: Mapped[bool] = mapped_column(default=False)
    grader_id: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)
    grader_comments: Mapped[str | None] = mapped_column(Text, default=None)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class flags(base):
    __tablename__ = "flags"

    session_id: Mapped[SessionID] = mapped_column(ForeignKey("exam_sessions.session_id"), primary_key=True)
    question_id: Mapped[QuestionID] = mapped_column(ForeignKey("questions.question_id"), primary_key=True)
    flagged: Mapped[bool]

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Reporting


class student_responses(base):
    __tablename__ = "student_responses"

    response_id: Mapped[ResponseID] = mapped_column(primary_key=True)
    session_id: Mapped[SessionID] = mapped_column(ForeignKey("exam_sessions.session_id"), unique=True)
    assessment_id: Mapped[AssessmentID] = mapped_column(ForeignKey("assessments.assessment_id"))
    participant_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))

    answers: Mapped[list[dict[str, t.Any]]]
    auto_score: Mapped[decimal.Decimal]
    grading_status: Mapped[GradingStatus]
    submitted_at: Mapped[datetime.datetime]

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())
