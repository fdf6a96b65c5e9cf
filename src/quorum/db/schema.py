"""Database schema for Quorum.

Options, specifications and answers belong to exactly one survey and are
deleted with it. Unique constraints enforce correctness invariants.
"""

from datetime import date, datetime, timezone

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """Account that owns surveys and answers them."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    gender: Mapped[str] = mapped_column(String(1), nullable=False)
    birthdate: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class Survey(Base):
    """A survey and its lifecycle status (D -> P -> C)."""

    __tablename__ = "surveys"

    survey_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(1), nullable=False)
    status: Mapped[str] = mapped_column(String(1), nullable=False, default="D")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow, onupdate=_utcnow
    )

    options: Mapped[list["SurveyOption"]] = relationship(
        back_populates="survey", cascade="all, delete-orphan"
    )
    specifications: Mapped[list["SurveySpecification"]] = relationship(
        back_populates="survey", cascade="all, delete-orphan"
    )
    answers: Mapped[list["SurveyAnswer"]] = relationship(
        back_populates="survey", cascade="all, delete-orphan"
    )
    owner: Mapped[User] = relationship()


class SurveyOption(Base):
    """Selectable option of a List survey."""

    __tablename__ = "survey_options"

    option_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    survey_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("surveys.survey_id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)

    survey: Mapped[Survey] = relationship(back_populates="options")


class SurveySpecification(Base):
    """Weighting rule: kind A (age breakpoint) or G (gender)."""

    __tablename__ = "survey_specifications"

    specification_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    survey_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("surveys.survey_id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(1), nullable=False)
    value: Mapped[str] = mapped_column(String(8), nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)

    survey: Mapped[Survey] = relationship(back_populates="specifications")


class SurveyAnswer(Base):
    """Answer of one user to one survey (immutable).

    Invariant: UNIQUE(survey_id, user_id)
    A user answers a survey at most once.
    """

    __tablename__ = "survey_answers"

    answer_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    survey_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("surveys.survey_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    value: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    survey: Mapped[Survey] = relationship(back_populates="answers")
    user: Mapped[User] = relationship()

    __table_args__ = (
        UniqueConstraint("survey_id", "user_id", name="uq_answer_per_user"),
    )
