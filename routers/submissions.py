# routers/submissions.py
# Read-only history of answered problems, for teachers and admin tooling.

from fastapi import APIRouter, Depends, HTTPException, Query

from db import SessionLocal
from deps.auth import require_client
from schemas.math_problem import SessionOut, SubmissionOut
from store import get_session, get_submission, recent_submissions

router = APIRouter(prefix="/submissions", tags=["submissions"], dependencies=[Depends(require_client)])


@router.get("/recent")
def submissions_recent(limit: int = Query(default=20, ge=1, le=100)):
    with SessionLocal() as db:
        rows = [SubmissionOut.model_validate(s).model_dump(mode="json") for s in recent_submissions(db, limit)]
    return {"ok": True, "items": rows, "count": len(rows)}


@router.get("/{submission_id}")
def get_submission_detail(submission_id: str):
    with SessionLocal() as db:
        s = get_submission(db, submission_id)
        if not s:
            raise HTTPException(status_code=404, detail="Submission not found")
        session = get_session(db, s.session_id)
        return {
            "ok": True,
            "submission": SubmissionOut.model_validate(s).model_dump(mode="json"),
            "session": SessionOut.model_validate(session).model_dump(mode="json") if session else None,
        }
