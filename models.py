from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class MathProblemSession(Base):
    __tablename__ = "math_problem_sessions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, index=True)
    problem_text: Mapped[str] = mapped_column(Text)
    correct_answer: Mapped[float] = mapped_column(Float)


class MathProblemSubmission(Base):
    __tablename__ = "math_problem_submissions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, index=True)
    # unique: a session accepts one answer
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("math_problem_sessions.id"), unique=True
    )
    user_answer: Mapped[float] = mapped_column(Float)
    is_correct: Mapped[bool] = mapped_column(Boolean)
    feedback_text: Mapped[str] = mapped_column(Text)
    graded_by: Mapped[str] = mapped_column(String(16), default="model")  # "model" | "local"
