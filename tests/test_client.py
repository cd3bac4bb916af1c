from fastapi.testclient import TestClient
from sqlalchemy import select

import routers.math_problem as math_problem
from client.state import ALREADY_ANSWERED_MSG, ClientState, HandleStore, PracticeClient, View
from db import SessionLocal
from genai import GeminiError
from main import app
from models import MathProblemSession, MathProblemSubmission

http = TestClient(app)


def test_full_round_clears_handle(fake_model, tmp_path):
    handles = HandleStore(tmp_path / "handle.json")
    pc = PracticeClient(http, handles)
    assert pc.mount().view is View.IDLE

    state = pc.generate()
    assert state.view is View.PROBLEM_SHOWN
    assert state.problem_text == "What is 3+5?"
    assert handles.load() == state.session_id
    session_id = state.session_id

    state = pc.submit(8)
    assert state.view is View.FEEDBACK_SHOWN
    assert state.is_correct is True
    assert state.session_id is None
    assert handles.load() is None
    assert not (tmp_path / "handle.json").exists()

    with SessionLocal() as db:
        sub = db.scalars(select(MathProblemSubmission)).one()
        assert sub.session_id == session_id
        assert sub.is_correct is True


def test_reload_resumes_without_generating(fake_model, tmp_path):
    handles = HandleStore(tmp_path / "handle.json")
    first = PracticeClient(http, handles)
    session_id = first.generate().session_id

    second = PracticeClient(http, handles)
    state = second.mount()
    assert state.view is View.PROBLEM_SHOWN
    assert state.session_id == session_id
    assert state.problem_text == "What is 3+5?"
    assert len(fake_model.calls("problem")) == 1


def test_stale_handle_is_dropped(fake_model, tmp_path):
    handles = HandleStore(tmp_path / "handle.json")
    handles.save("gone")
    state = PracticeClient(http, handles).mount()
    assert state.view is View.IDLE
    assert state.session_id is None
    assert state.error
    assert handles.load() is None


def test_generate_with_open_handle_updates_same_session(fake_model, tmp_path):
    pc = PracticeClient(http, HandleStore(tmp_path / "handle.json"))
    session_id = pc.generate().session_id
    fake_model.replies["problem"] = '{"problem_text": "What is 9-4?", "correct_answer": 5}'
    state = pc.generate()
    assert state.session_id == session_id
    assert state.problem_text == "What is 9-4?"
    with SessionLocal() as db:
        assert len(db.scalars(select(MathProblemSession)).all()) == 1


def test_generate_failure_keeps_previous_view(fake_model, tmp_path):
    fake_model.replies["problem"] = GeminiError("offline")
    pc = PracticeClient(http, HandleStore(tmp_path / "handle.json"))
    state = pc.generate()
    assert state.view is View.IDLE
    assert state.error == "Error generating math problem. Please try again."
    assert state.session_id is None


def test_submit_before_generate_is_refused(fake_model, tmp_path):
    pc = PracticeClient(http, HandleStore(tmp_path / "handle.json"))
    state = pc.submit(3)
    assert state.view is View.IDLE
    assert state.error


def test_feedback_then_generate_starts_fresh_session(fake_model, tmp_path):
    pc = PracticeClient(http, HandleStore(tmp_path / "handle.json"))
    first = pc.generate().session_id
    pc.submit(9)
    assert pc.state.is_correct is False
    second = pc.generate().session_id
    assert second != first
    assert pc.state.feedback is None


def test_handle_store_ignores_garbage(tmp_path):
    p = tmp_path / "handle.json"
    p.write_text("{not json", encoding="utf-8")
    assert HandleStore(p).load() is None


def test_state_serializes():
    d = ClientState(view=View.LOADING, session_id="abc").to_dict()
    assert d["view"] == "loading" and d["session_id"] == "abc"


def test_handle_answered_elsewhere_is_dropped(fake_model, tmp_path):
    handles = HandleStore(tmp_path / "handle.json")
    session_id = PracticeClient(http, handles).generate().session_id
    # the answer reached the server but the reply never came back
    http.post("/api/math-problem/submit", params={"id": session_id}, json={"userAnswer": 8})

    pc = PracticeClient(http, handles)
    assert pc.mount().session_id == session_id
    state = pc.submit(8)
    assert state.view is View.IDLE
    assert state.session_id is None
    assert state.error == ALREADY_ANSWERED_MSG
    assert handles.load() is None

    state = pc.generate()
    assert state.view is View.PROBLEM_SHOWN
    assert state.session_id not in (None, session_id)
    assert pc.submit(8).view is View.FEEDBACK_SHOWN


def test_generate_on_answered_handle_gets_fresh_session(fake_model, tmp_path):
    handles = HandleStore(tmp_path / "handle.json")
    session_id = PracticeClient(http, handles).generate().session_id
    http.post("/api/math-problem/submit", params={"id": session_id}, json={"userAnswer": 8})

    pc = PracticeClient(http, handles)
    pc.mount()
    state = pc.generate()
    assert state.view is View.PROBLEM_SHOWN
    assert state.error is None
    assert state.session_id != session_id
    assert handles.load() == state.session_id


def test_already_answered_message_matches_server():
    assert ALREADY_ANSWERED_MSG == math_problem.ALREADY_ANSWERED_MSG
