import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Routers
from routers.health import router as health_router
from routers.math_problem import router as math_problem_router
from routers.submissions import router as submissions_router

logger = logging.getLogger("math-problems")
logging.basicConfig(level=logging.INFO)

STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title="Math Problem Generator API")

# Allow calls from a separately served front end during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "x-api-key", "x-admin-token"],
)


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(math_problem_router)  # /api/math-problem, /regenerate, /submit
app.include_router(submissions_router)  # /submissions/...
app.include_router(health_router)  # /health/...

# Single-page UI
app.mount("/app", StaticFiles(directory=STATIC_DIR, html=True), name="frontend")
