"""Keep the backup workbook in step with CRUD operations.

A failing backup never fails the database operation that triggered it.
"""

import logging

from services.backup_service import BackupAction

logger = logging.getLogger(__name__)


def _backup_service():
    from core.app_context import get_app_context

    return get_app_context().backup_service


def mirror_client(client_id: int, action: BackupAction) -> None:
    try:
        _backup_service().update_backup_for_client(client_id, action)
    except Exception:  # noqa: BLE001
        logger.exception("Backup not updated for client #%s (%s)", client_id, action.value)


def mirror_loan(loan_id: int, client_id: int, action: BackupAction) -> None:
    try:
        _backup_service().update_backup_for_loan(loan_id, client_id, action)
    except Exception:  # noqa: BLE001
        logger.exception("Backup not updated for loan #%s (%s)", loan_id, action.value)


def mirror_follow_up(follow_up_id: int, client_id: int, action: BackupAction) -> None:
    try:
        _backup_service().update_backup_for_follow_up(follow_up_id, client_id, action)
    except Exception:  # noqa: BLE001
        logger.exception(
            "Backup not updated for follow-up #%s (%s)", follow_up_id, action.value
        )


__all__ = ["mirror_client", "mirror_loan", "mirror_follow_up"]
