# client/state.py
"""
Client-side orchestration of one practice round, mirroring the browser page.

The view moves idle -> loading -> problem_shown -> loading -> feedback_shown,
and the open session id is persisted after every transition so a restart
resumes the same problem.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("math-problems")

API = "/api/math-problem"
HANDLE_KEY = "sessionId"
NETWORK_ERROR_MSG = "Network error. Please try again."
ALREADY_ANSWERED_MSG = "This problem has already been answered. Generate a new one."


class View(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PROBLEM_SHOWN = "problem_shown"
    FEEDBACK_SHOWN = "feedback_shown"


@dataclass(frozen=True)
class ClientState:
    view: View = View.IDLE
    session_id: Optional[str] = None
    problem_text: Optional[str] = None
    feedback: Optional[str] = None
    is_correct: Optional[bool] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["view"] = self.view.value
        return d


class HandleStore:
    """The open session id, kept in a small JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError):
            logger.warning("unreadable session handle at %s; ignoring", self.path)
            return None
        value = data.get(HANDLE_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    def save(self, session_id: Optional[str]) -> None:
        if session_id is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({HANDLE_KEY: session_id}), encoding="utf-8")


class PracticeClient:
    def __init__(self, http: httpx.Client, handles: HandleStore) -> None:
        self.http = http
        self.handles = handles
        self.state = ClientState(session_id=handles.load())

    def _transition(self, **changes: Any) -> ClientState:
        self.state = replace(self.state, **changes)
        self.handles.save(self.state.session_id)
        return self.state

    def _call(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            r = self.http.request(method, url, **kwargs)
            r.raise_for_status()
            return r.json()
        except (httpx.HTTPError, ValueError):
            logger.warning("%s %s failed", method, url, exc_info=True)
            return {"success": 0, "message": NETWORK_ERROR_MSG}

    def mount(self) -> ClientState:
        """Resume a held session without generating a new problem."""
        if not self.state.session_id:
            return self._transition(view=View.IDLE)
        self._transition(view=View.LOADING, error=None)
        res = self._call("GET", API, params={"id": self.state.session_id})
        if not res.get("success"):
            # stale handle: the session is gone
            return self._transition(view=View.IDLE, session_id=None, error=res.get("message"))
        return self._transition(view=View.PROBLEM_SHOWN, problem_text=res["message"]["problem_text"])

    def generate(self) -> ClientState:
        previous = self.state.view
        self._transition(view=View.LOADING, error=None)
        if self.state.session_id:
            res = self._call("POST", f"{API}/regenerate", params={"id": self.state.session_id})
        else:
            res = self._call("GET", API)
        if not res.get("success"):
            return self._transition(view=previous, error=res.get("message"))
        session = res["message"]
        return self._transition(
            view=View.PROBLEM_SHOWN,
            session_id=session["id"],
            problem_text=session["problem_text"],
            feedback=None,
            is_correct=None,
        )

    def submit(self, answer: float) -> ClientState:
        if self.state.view is not View.PROBLEM_SHOWN or not self.state.session_id:
            return self._transition(error="Generate a problem first.")
        self._transition(view=View.LOADING, error=None)
        res = self._call(
            "POST",
            f"{API}/submit",
            params={"id": self.state.session_id},
            json={"problem": self.state.problem_text, "userAnswer": answer},
        )
        if not res.get("success"):
            if res.get("message") == ALREADY_ANSWERED_MSG:
                # answered elsewhere (e.g. reply lost): the handle is spent
                return self._transition(
                    view=View.IDLE, session_id=None, problem_text=None, error=ALREADY_ANSWERED_MSG
                )
            return self._transition(view=View.PROBLEM_SHOWN, error=res.get("message"))
        submission = res["message"]
        # single-use session: drop the handle once answered
        return self._transition(
            view=View.FEEDBACK_SHOWN,
            session_id=None,
            feedback=submission["feedback_text"],
            is_correct=submission["is_correct"],
        )
