import os
import tempfile

# Must be set before db.py is imported
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "math_problems_test.db")
os.environ.pop("GEMINI_API_KEY", None)

import pytest  # noqa: E402

import models  # noqa: E402,F401
from db import Base, engine  # noqa: E402
from genai import GeminiError  # noqa: E402
from generator import ProblemGenerator  # noqa: E402
from main import app  # noqa: E402
from routers.math_problem import get_generator  # noqa: E402

PROBLEM_REPLY = '{"problem_text": "What is 3+5?", "correct_answer": 8}'


class FakeTextModel:
    """Stands in for GeminiClient; replies per requested shape."""

    def __init__(self):
        self.replies = {"problem": PROBLEM_REPLY, "feedback": GeminiError("feedback model offline")}
        self.prompts = []

    def generate_json(self, prompt, *, response_schema, temperature=0.7):
        kind = "feedback" if "is_correct" in response_schema["properties"] else "problem"
        self.prompts.append((kind, prompt))
        reply = self.replies[kind]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def calls(self, kind):
        return [p for k, p in self.prompts if k == kind]


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def fake_model():
    model = FakeTextModel()
    app.dependency_overrides[get_generator] = lambda: ProblemGenerator(model, grade_level="Primary 5")
    yield model
    app.dependency_overrides.pop(get_generator, None)
