"""Follow-up interactions logged against a client."""

import logging
from datetime import datetime

from database.models import Client, FollowUp, FollowUpType, db
from services.backup_service import BackupAction
from services.backup_sync import mirror_client, mirror_follow_up
from services.client_service import get_client
from services.errors import RecordNotFoundError
from utils.time_utils import storage_now, to_storage

logger = logging.getLogger(__name__)


def list_follow_ups(client_id: int) -> list[FollowUp]:
    return list(
        FollowUp.select()
        .where(FollowUp.client == client_id)
        .order_by(FollowUp.date.desc(), FollowUp.id.desc())
    )


def get_follow_up(follow_up_id: int) -> FollowUp:
    follow_up = FollowUp.get_or_none(FollowUp.id == follow_up_id)
    if follow_up is None:
        raise RecordNotFoundError(f"Follow-up #{follow_up_id} not found")
    return follow_up


def add_follow_up(
    client_id: int,
    *,
    type: str = FollowUpType.CALL.value,
    date: datetime | None = None,
    notes: str | None = None,
    next_follow_up_date: datetime | None = None,
) -> FollowUp:
    """Log a follow-up and copy its timestamps onto the client.

    ``date`` and ``next_follow_up_date`` are client-side datetimes; they are
    shifted onto the storage clock before saving.
    """
    client = get_client(client_id)
    stored_date = to_storage(date) if date else storage_now()
    stored_next = to_storage(next_follow_up_date)

    with db.atomic():
        follow_up = FollowUp.create(
            client=client,
            type=type,
            date=stored_date,
            notes=notes,
            next_follow_up_date=stored_next,
        )
        Client.update(
            last_follow_up=stored_date,
            next_follow_up=stored_next,
            updated_at=storage_now(),
        ).where(Client.id == client.id).execute()
    logger.info(
        "Follow-up #%s (%s) logged for client #%s, next at %s",
        follow_up.id,
        type,
        client.id,
        stored_next,
    )

    mirror_follow_up(follow_up.id, client.id, BackupAction.CREATE)
    mirror_client(client.id, BackupAction.UPDATE)
    return follow_up


def delete_follow_up(follow_up_id: int) -> None:
    follow_up = get_follow_up(follow_up_id)
    client_id = follow_up.client_id
    with db.atomic():
        follow_up.delete_instance()
    logger.info("Follow-up #%s deleted", follow_up_id)
    mirror_follow_up(follow_up_id, client_id, BackupAction.DELETE)


__all__ = ["list_follow_ups", "get_follow_up", "add_follow_up", "delete_follow_up"]
