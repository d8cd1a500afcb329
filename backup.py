"""Full Excel backup of the CRM tables.

Requires the ``DATABASE_URL`` environment variable.
"""

import logging

from config import get_settings
from core.app_context import get_app_context
from database.init import init_from_env
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    setup_logging(settings)
    init_from_env(settings.database_url or None)

    logger.info("Building Excel backup in %s", settings.backup_dir)
    try:
        path = get_app_context().backup_service.create_full_backup()
    except Exception:
        logger.exception("Backup failed")
        return 1
    logger.info("Backup saved: %s", path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
