# Row operations for sessions and submissions.
# Every operation is a single attempt; a database error is rolled back, logged
# and reported as None, the same as a missing row.

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import MathProblemSession, MathProblemSubmission

logger = logging.getLogger("math-problems")


# ---------- Sessions ----------


def create_session(
    db: Session, problem_text: str, correct_answer: float
) -> Optional[MathProblemSession]:
    try:
        row = MathProblemSession(problem_text=problem_text, correct_answer=correct_answer)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    except SQLAlchemyError:
        db.rollback()
        logger.warning("create_session failed", exc_info=True)
        return None


def get_session(db: Session, session_id: str) -> Optional[MathProblemSession]:
    try:
        return db.get(MathProblemSession, session_id)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("get_session(%s) failed", session_id, exc_info=True)
        return None


def update_session(
    db: Session, session_id: str, problem_text: str, correct_answer: float
) -> Optional[MathProblemSession]:
    """Replace the problem of an open session. Answered sessions are left untouched."""
    try:
        row = db.get(MathProblemSession, session_id)
        if row is None:
            return None
        if _has_submission(db, session_id):
            logger.info("update_session(%s) refused: already answered", session_id)
            return None
        row.problem_text = problem_text
        row.correct_answer = correct_answer
        db.commit()
        db.refresh(row)
        return row
    except SQLAlchemyError:
        db.rollback()
        logger.warning("update_session(%s) failed", session_id, exc_info=True)
        return None


def _has_submission(db: Session, session_id: str) -> bool:
    stmt = select(MathProblemSubmission.id).where(MathProblemSubmission.session_id == session_id)
    return db.execute(stmt).first() is not None


def is_answered(db: Session, session_id: str) -> Optional[bool]:
    """True/False, or None when the store could not be read."""
    try:
        return _has_submission(db, session_id)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("is_answered(%s) failed", session_id, exc_info=True)
        return None


# ---------- Submissions ----------


def create_submission(
    db: Session,
    session_id: str,
    user_answer: float,
    is_correct: bool,
    feedback_text: str,
    graded_by: str = "model",
) -> Optional[MathProblemSubmission]:
    try:
        row = MathProblemSubmission(
            session_id=session_id,
            user_answer=user_answer,
            is_correct=is_correct,
            feedback_text=feedback_text,
            graded_by=graded_by,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    except SQLAlchemyError:
        db.rollback()
        logger.warning("create_submission(%s) failed", session_id, exc_info=True)
        return None


def get_submission(db: Session, submission_id: str) -> Optional[MathProblemSubmission]:
    try:
        return db.get(MathProblemSubmission, submission_id)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("get_submission(%s) failed", submission_id, exc_info=True)
        return None


def recent_submissions(db: Session, limit: int = 20) -> List[MathProblemSubmission]:
    stmt = (
        select(MathProblemSubmission)
        .order_by(MathProblemSubmission.created_at.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())
