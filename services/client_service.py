"""Client (loan lead) management."""

import logging
from datetime import datetime

from peewee import ModelSelect

from database.models import Client, FollowUp, FollowUpType, Loan, db
from services.backup_service import BackupAction
from services.backup_sync import mirror_client, mirror_follow_up, mirror_loan
from services.errors import DuplicateClientError, RecordNotFoundError
from utils.time_utils import storage_now, to_storage

logger = logging.getLogger(__name__)

CLIENT_ALLOWED_FIELDS = {
    "customer_name",
    "phone_number",
    "business_name",
    "area",
    "monthly_turnover",
    "required_amount",
    "status",
    "old_financier_name",
    "old_scheme",
    "old_finance_amount",
    "new_financier_name",
    "new_scheme",
    "bank_support",
    "remarks",
    "reference",
    "commission_percentage",
    "last_follow_up",
    "next_follow_up",
}

_SHIFTED_FIELDS = ("last_follow_up", "next_follow_up")


def _clean(data: dict, *, drop_empty: bool) -> dict:
    clean = {}
    for key, value in data.items():
        if key not in CLIENT_ALLOWED_FIELDS:
            continue
        if drop_empty and value in ("", None):
            continue
        if key in _SHIFTED_FIELDS and isinstance(value, datetime):
            value = to_storage(value)
        clean[key] = value
    return clean


# ──────────────────────────── queries ─────────────────────────────


def list_clients() -> ModelSelect:
    return Client.select().order_by(Client.created_at.desc(), Client.id.desc())


def get_client(client_id: int) -> Client:
    client = Client.get_or_none(Client.id == client_id)
    if client is None:
        raise RecordNotFoundError(f"Client #{client_id} not found")
    return client


def find_by_phone(phone_number: str) -> Client | None:
    return Client.get_or_none(Client.phone_number == phone_number)


# ──────────────────────────── mutations ─────────────────────────────


def add_client(**kwargs) -> Client:
    """Create a client; a duplicate phone number raises :class:`DuplicateClientError`."""
    clean_data = _clean(kwargs, drop_empty=True)
    if not clean_data.get("customer_name"):
        raise ValueError("customer_name is required")

    phone = clean_data.get("phone_number")
    if phone:
        existing = find_by_phone(phone)
        if existing is not None:
            logger.warning("Duplicate phone %s for client #%s", phone, existing.id)
            raise DuplicateClientError(existing.id, phone)

    with db.atomic():
        client = Client.create(**clean_data)
    logger.info("Client #%s created: %s", client.id, client.customer_name)
    mirror_client(client.id, BackupAction.CREATE)
    return client


def update_client(client_id: int, **kwargs) -> Client:
    client = get_client(client_id)
    updates = _clean(kwargs, drop_empty=False)
    if not updates:
        return client

    with db.atomic():
        for key, value in updates.items():
            setattr(client, key, value)
        client.updated_at = storage_now()
        client.save()
    logger.info("Client #%s updated: %s", client.id, sorted(updates))
    mirror_client(client.id, BackupAction.UPDATE)
    return client


def merge_client(client_id: int, **kwargs) -> Client:
    """Apply only non-empty values and log that the client came back."""
    client = get_client(client_id)
    updates = _clean(kwargs, drop_empty=True)

    with db.atomic():
        for key, value in updates.items():
            setattr(client, key, value)
        client.updated_at = storage_now()
        client.save()
        follow_up = FollowUp.create(
            client=client,
            type=FollowUpType.OTHER.value,
            date=storage_now(),
            notes="Client returned with updated information",
        )
    logger.info("Client #%s merged with new details", client.id)
    mirror_client(client.id, BackupAction.UPDATE)
    mirror_follow_up(follow_up.id, client.id, BackupAction.CREATE)
    return client


def update_client_status(client_id: int, status: str) -> Client:
    client = get_client(client_id)
    now = storage_now()
    with db.atomic():
        client.status = status
        client.status_updated_at = now
        client.updated_at = now
        client.save()
    logger.info("Client #%s status → %s", client.id, status)
    mirror_client(client.id, BackupAction.UPDATE)
    return client


def delete_client(client_id: int) -> None:
    """Delete a client with its loans and follow-ups."""
    client = get_client(client_id)
    loan_ids = [row.id for row in Loan.select(Loan.id).where(Loan.client == client)]
    follow_up_ids = [
        row.id for row in FollowUp.select(FollowUp.id).where(FollowUp.client == client)
    ]
    with db.atomic():
        Loan.delete().where(Loan.client == client).execute()
        FollowUp.delete().where(FollowUp.client == client).execute()
        client.delete_instance()
    logger.info("Client #%s deleted", client_id)

    mirror_client(client_id, BackupAction.DELETE)
    for loan_id in loan_ids:
        mirror_loan(loan_id, client_id, BackupAction.DELETE)
    for follow_up_id in follow_up_ids:
        mirror_follow_up(follow_up_id, client_id, BackupAction.DELETE)


__all__ = [
    "CLIENT_ALLOWED_FIELDS",
    "list_clients",
    "get_client",
    "find_by_phone",
    "add_client",
    "update_client",
    "merge_client",
    "update_client_status",
    "delete_client",
]
