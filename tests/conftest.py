from datetime import datetime, timedelta

import pytest

from database.models import Client, FollowUp, Loan
from infrastructure.workbook_gateway import WorkbookGateway
from services.backup_service import BackupRepository, BackupService


class TickingClock:
    """Returns a later second on every call so backup names never collide."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def backup_service(test_db, settings):
    return BackupService(
        settings,
        WorkbookGateway(creator=settings.company_name),
        BackupRepository(),
        clock=TickingClock(),
    )


@pytest.fixture
def make_client():
    counter = {"n": 0}

    def factory(**kwargs) -> Client:
        counter["n"] += 1
        data = {
            "customer_name": f"Client {counter['n']}",
            "phone_number": f"90000000{counter['n']:02d}",
            "business_name": f"Business {counter['n']}",
            "area": "Pune",
        }
        data.update(kwargs)
        return Client.create(**data)

    return factory


@pytest.fixture
def make_follow_up():
    def factory(client: Client, next_at: datetime | None = None, **kwargs) -> FollowUp:
        data = {
            "client": client,
            "type": "Call",
            "date": datetime(2024, 6, 1, 12, 0, 0),
            "notes": "Discussed documents",
            "next_follow_up_date": next_at,
        }
        data.update(kwargs)
        return FollowUp.create(**data)

    return factory


@pytest.fixture
def make_loan():
    def factory(client: Client, **kwargs) -> Loan:
        data = {
            "client": client,
            "amount": 250000,
            "disbursement_date": datetime(2024, 6, 2).date(),
            "proof_file_name": "sanction.pdf",
        }
        data.update(kwargs)
        return Loan.create(**data)

    return factory
