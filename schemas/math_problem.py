# schemas/math_problem.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from grading import to_number

# ---------- Model output shapes ----------


class ProblemPayload(BaseModel):
    problem_text: str
    correct_answer: float

    @field_validator("problem_text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("problem_text is empty")
        return v

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _numeric(cls, v):
        return to_number(v)


class FeedbackPayload(BaseModel):
    feedback: str
    correct_answer: float
    is_correct: bool

    @field_validator("feedback")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("feedback is empty")
        return v

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _numeric(cls, v):
        return to_number(v)


# ---------- Rows ----------


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    created_at: datetime | None = None
    problem_text: str
    correct_answer: float


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    created_at: datetime | None = None
    session_id: str
    user_answer: float
    is_correct: bool
    feedback_text: str
    graded_by: str


# ---------- Requests / envelopes ----------


class SubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    problem: Optional[str] = None
    user_answer: float = Field(alias="userAnswer", allow_inf_nan=False)


class SessionResponse(BaseModel):
    success: int
    message: Union[SessionOut, str]


class SubmissionResponse(BaseModel):
    success: int
    message: Union[SubmissionOut, str]
