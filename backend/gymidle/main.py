import logging
import os
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .config import Settings, get_settings
from .db.session import get_engine
from .errors import GameError
from .game_routes import game_error_handler, router as game_router
from .logging_config import configure_logging


configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title="GymIdle Progression Backend", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(GameError, game_error_handler)
app.include_router(game_router)

settings_snapshot = get_settings()
logger.info("Backend starting (daily reset at %02d:00 UTC)", settings_snapshot.daily_reset_hour_utc)
logger.info("Database configured: %s", bool(settings_snapshot.database_url))


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {"status": "ok", "daily_reset_hour_utc": settings.daily_reset_hour_utc}


@app.get("/healthz/database")
def database_health() -> Dict[str, Any]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database health check failed: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"status": "ok", "dialect": engine.dialect.name}


def run() -> None:
    import uvicorn

    host = os.getenv("GYMIDLE_HOST", "0.0.0.0")
    port = int(os.getenv("GYMIDLE_PORT", "8000"))
    logger.info("Starting progression API on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level="info", timeout_graceful_shutdown=30)


if __name__ == "__main__":
    run()
