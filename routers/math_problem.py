from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from db import SessionLocal
from genai import GeminiClient
from generator import ProblemGenerator
from grading import local_feedback
from schemas.math_problem import (
    SessionOut,
    SessionResponse,
    SubmissionOut,
    SubmissionResponse,
    SubmitRequest,
)
from store import create_session, create_submission, get_session, is_answered, update_session

logger = logging.getLogger("math-problems")

router = APIRouter(prefix="/api/math-problem", tags=["math-problem"])

# --- Messages ---------------------------------------------------------------------
GENERATION_FAILED_MSG = "Error generating math problem. Please try again."
SAVE_FAILED_MSG = "Error saving math problem session. Please try again."
GET_FAILED_MSG = "Error getting math problem session. Please try again."
SUBMIT_FAILED_MSG = "Error submitting answer. Please try again later."
ALREADY_ANSWERED_MSG = "This problem has already been answered. Generate a new one."


def get_generator() -> Iterator[ProblemGenerator]:
    client = GeminiClient()
    try:
        yield ProblemGenerator(client)
    finally:
        client.close()


def _fail(message: str) -> Dict[str, Any]:
    return {"success": 0, "message": message}


def _session_ok(row) -> Dict[str, Any]:
    return {"success": 1, "message": SessionOut.model_validate(row)}


# --- Session transitions ----------------------------------------------------------


def _start(db: Session, gen: ProblemGenerator) -> Dict[str, Any]:
    problem = gen.generate()
    if problem is None:
        return _fail(GENERATION_FAILED_MSG)
    row = create_session(db, problem.problem_text, problem.correct_answer)
    if row is None:
        # generated problem is discarded; nothing was persisted
        return _fail(SAVE_FAILED_MSG)
    logger.info("session %s started", row.id)
    return _session_ok(row)


def _resume(db: Session, session_id: str) -> Dict[str, Any]:
    row = get_session(db, session_id)
    if row is None:
        return _fail(GET_FAILED_MSG)
    return _session_ok(row)


def _regenerate(db: Session, gen: ProblemGenerator, session_id: str) -> Dict[str, Any]:
    if get_session(db, session_id) is None:
        return _fail(GET_FAILED_MSG)
    answered = is_answered(db, session_id)
    if answered is None:
        return _fail(SAVE_FAILED_MSG)
    if answered:
        # closed sessions stay as answered; the client gets a fresh one
        logger.info("session %s already answered, starting a new session", session_id)
        return _start(db, gen)
    problem = gen.generate()
    if problem is None:
        return _fail(GENERATION_FAILED_MSG)
    row = update_session(db, session_id, problem.problem_text, problem.correct_answer)
    if row is None:
        return _fail(SAVE_FAILED_MSG)
    logger.info("session %s regenerated", row.id)
    return _session_ok(row)


def _submit(
    db: Session, gen: ProblemGenerator, session_id: str, req: SubmitRequest
) -> Dict[str, Any]:
    session = get_session(db, session_id)
    if session is None:
        return _fail(GET_FAILED_MSG)

    answered = is_answered(db, session_id)
    if answered is None:
        return _fail(SUBMIT_FAILED_MSG)
    if answered:
        return _fail(ALREADY_ANSWERED_MSG)

    if req.problem is not None and req.problem.strip() != session.problem_text:
        logger.info("session %s: submitted problem text differs from stored; using stored", session_id)

    # Model judgment first; exact local comparison only when the model is unavailable
    judged = gen.evaluate(session.problem_text, req.user_answer)
    if judged is not None:
        is_correct, feedback, graded_by = judged.is_correct, judged.feedback, "model"
    else:
        logger.warning("session %s: feedback model unavailable, grading locally", session_id)
        is_correct, feedback = local_feedback(req.user_answer, session.correct_answer)
        graded_by = "local"

    row = create_submission(db, session_id, req.user_answer, is_correct, feedback, graded_by)
    if row is None:
        return _fail(SUBMIT_FAILED_MSG)
    logger.info("session %s answered (correct=%s, graded_by=%s)", session_id, is_correct, graded_by)
    return {"success": 1, "message": SubmissionOut.model_validate(row)}


# --- Endpoints --------------------------------------------------------------------


@router.get("", response_model=SessionResponse)
def get_or_create_problem(
    id: Optional[str] = Query(default=None, description="Resume this session instead of starting one"),
    gen: ProblemGenerator = Depends(get_generator),
):
    with SessionLocal() as db:
        if id:
            return _resume(db, id)
        return _start(db, gen)


@router.post("/regenerate", response_model=SessionResponse)
def regenerate_problem(id: str, gen: ProblemGenerator = Depends(get_generator)):
    with SessionLocal() as db:
        return _regenerate(db, gen, id)


@router.post("/submit", response_model=SubmissionResponse)
def submit_answer(id: str, req: SubmitRequest, gen: ProblemGenerator = Depends(get_generator)):
    with SessionLocal() as db:
        return _submit(db, gen, id, req)
