# routers/health.py
import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from alembic.config import Config
from alembic.script import ScriptDirectory
from db import engine

logger = logging.getLogger("math-problems")

router = APIRouter(prefix="/health", tags=["health"])

# repo root, so the check does not depend on the working directory
ROOT_DIR = Path(__file__).resolve().parents[1]


@router.get("/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ok": True}
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"db_error: {type(e).__name__}: {e}")


def _alembic_heads() -> list[str]:
    cfg = Config(str(ROOT_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    return list(ScriptDirectory.from_config(cfg).get_heads())


def _db_version() -> str | None:
    with engine.connect() as conn:
        try:
            return conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one_or_none()
        except SQLAlchemyError:
            # schema built without alembic
            return None


@router.get("/migrations")
def health_migrations():
    heads: list[str] = []
    try:
        heads = _alembic_heads()
    except Exception:
        logger.exception("could not read alembic heads from %s", ROOT_DIR)

    try:
        db_ver = _db_version()
    except SQLAlchemyError as e:
        return {
            "ok": False,
            "error": f"db_connect_failed: {e}",
            "code_heads": heads,
            "db_version": None,
        }

    synced = db_ver in heads
    return {"ok": synced, "synced": synced, "db_version": db_ver, "code_heads": heads}
