import logging
import time
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from .config import ALLOWED_ORIGINS, DEV_MODE, LOG_LEVEL, MIGRATIONS_DIR
from .database import SessionLocal
from .errors import MatchServiceError, NotAuthenticated
from .routes import include_modular_routers

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Event Match API")
include_modular_routers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MatchServiceError)
async def match_service_error_handler(request: Request, exc: MatchServiceError) -> JSONResponse:
    body = {"error": exc.detail}
    if DEV_MODE or not isinstance(exc, NotAuthenticated):
        body["reason"] = exc.reason
    return JSONResponse(status_code=exc.status_code, content=body)


DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def run_migrations(migrations_dir: Path | None = None) -> list[str]:
    """Apply every ``*.sql`` file in name order inside one transaction.

    The files are written to be re-runnable (``IF NOT EXISTS``), so this runs
    on every boot.
    """
    migrations_dir = migrations_dir or (Path(MIGRATIONS_DIR) if MIGRATIONS_DIR else DEFAULT_MIGRATIONS_DIR)
    if not migrations_dir.is_dir():
        raise FileNotFoundError(f"Migrations directory not found: {migrations_dir}")

    applied: list[str] = []
    with SessionLocal() as db:
        for path in sorted(migrations_dir.glob("*.sql")):
            db.execute(text(path.read_text(encoding="utf-8")))
            applied.append(path.name)
        db.commit()
    logger.info(f"[startup] applied {len(applied)} migration file(s) from {migrations_dir}")
    return applied


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    for attempt in range(1, max_attempts + 1):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
            return
        except OperationalError as exc:
            if attempt == max_attempts:
                raise
            logger.warning(f"[startup] database not ready ({attempt}/{max_attempts}): {exc}")
            time.sleep(delay_seconds)


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    run_migrations()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
