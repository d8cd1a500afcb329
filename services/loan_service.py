"""Loan disbursements."""

import logging
from datetime import date
from decimal import Decimal

from database.models import Client, ClientStatus, Loan, db
from services.backup_service import BackupAction
from services.backup_sync import mirror_client, mirror_loan
from services.client_service import get_client
from services.errors import RecordNotFoundError
from utils.time_utils import storage_now

logger = logging.getLogger(__name__)


def list_loans(client_id: int) -> list[Loan]:
    return list(
        Loan.select()
        .where(Loan.client == client_id)
        .order_by(Loan.disbursement_date.desc(), Loan.id.desc())
    )


def get_loan(loan_id: int) -> Loan:
    loan = Loan.get_or_none(Loan.id == loan_id)
    if loan is None:
        raise RecordNotFoundError(f"Loan #{loan_id} not found")
    return loan


def add_loan(
    client_id: int,
    amount: Decimal | float,
    disbursement_date: date,
    proof_file_name: str | None = None,
    proof_file_path: str | None = None,
) -> Loan:
    """Record a disbursement and mark the client as Disbursed."""
    client = get_client(client_id)
    with db.atomic():
        loan = Loan.create(
            client=client,
            amount=amount,
            disbursement_date=disbursement_date,
            proof_file_name=proof_file_name,
            proof_file_path=proof_file_path,
        )
        Client.update(
            status=ClientStatus.DISBURSED.value,
            disbursement_date=disbursement_date,
            updated_at=storage_now(),
        ).where(Client.id == client.id).execute()
    logger.info("Loan #%s of %s recorded for client #%s", loan.id, amount, client.id)

    mirror_loan(loan.id, client.id, BackupAction.CREATE)
    mirror_client(client.id, BackupAction.UPDATE)
    return loan


def delete_loan(loan_id: int) -> None:
    loan = get_loan(loan_id)
    client_id = loan.client_id
    with db.atomic():
        loan.delete_instance()
    logger.info("Loan #%s deleted", loan_id)
    mirror_loan(loan_id, client_id, BackupAction.DELETE)


__all__ = ["list_loans", "get_loan", "add_loan", "delete_loan"]
