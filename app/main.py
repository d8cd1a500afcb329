import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import get_settings
from core.app_context import get_app_context
from database.db import db
from database.init import ALL_MODELS, init_from_env
from services.errors import DuplicateClientError, RecordNotFoundError
from services.settings_service import ensure_settings_row
from utils.logging_config import setup_logging

from .api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    setup_logging(settings)
    init_from_env(settings.database_url or None)
    db.create_tables(ALL_MODELS, safe=True)
    ensure_settings_row(settings)

    scheduler = get_app_context().reminder_scheduler
    if settings.reminders_enabled:
        scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        if not db.is_closed():
            db.close()


app = FastAPI(title="Loan CRM API", lifespan=lifespan)
app.include_router(api_router, prefix="/api")


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(_request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(DuplicateClientError)
async def duplicate_client_handler(_request: Request, exc: DuplicateClientError):
    return JSONResponse(
        status_code=409,
        content={"error": str(exc), "existingClientId": exc.existing_id},
    )


@app.exception_handler(ValueError)
async def bad_request_handler(_request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.get("/ping")
def ping():
    return {"message": "pong"}
