import argparse
import logging

import uvicorn

from config import Settings, get_settings
from core.app_context import get_app_context
from database.db import db
from database.init import ALL_MODELS, init_from_env
from utils.logging_config import setup_logging

__all__ = ["main"]


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Run the CRM API, or a one-off reminder check with ``remind``."""

    parser = argparse.ArgumentParser(description="Loan CRM backend")
    parser.add_argument("command", nargs="?", default="serve", choices=["serve", "remind"])
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3001)
    args = parser.parse_args(argv)

    settings = settings or get_settings()
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not set in .env")

    setup_logging(settings)
    logger = logging.getLogger(__name__)

    if args.command == "remind":
        init_from_env(settings.database_url)
        db.create_tables(ALL_MODELS, safe=True)
        result = get_app_context().reminder_service.run_reminder_check()
        logger.info("Reminders: %s found, %s sent, %s failed", result.found, result.sent, result.failed)
        return 0 if result.failed == 0 else 1

    logger.info("Starting API on %s:%s", args.host, args.port)
    uvicorn.run("app.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
