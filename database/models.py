from datetime import datetime
from enum import Enum
from peewee import (
    Model,
    AutoField,
    BooleanField,
    CharField,
    DateField,
    DateTimeField,
    DecimalField,
    ForeignKeyField,
    IntegerField,
    TextField,
)

from database.db import db
from utils.time_utils import storage_now


def _stamp() -> datetime:
    return storage_now()


class BaseModel(Model):
    class Meta:
        database = db


class ClientStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "In Progress"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    DISBURSED = "Disbursed"
    COMPLETED = "Completed"


class FollowUpType(str, Enum):
    CALL = "Call"
    EMAIL = "Email"
    MEETING = "Meeting"
    OTHER = "Other"


class Client(BaseModel):
    customer_name = CharField(index=True)
    phone_number = CharField(null=True, index=True)
    business_name = CharField(null=True)
    area = CharField(null=True)
    monthly_turnover = DecimalField(max_digits=14, decimal_places=2, null=True)
    required_amount = DecimalField(max_digits=14, decimal_places=2, null=True)
    # free-form, no transitions enforced
    status = CharField(default=ClientStatus.NEW.value)
    old_financier_name = CharField(null=True)
    old_scheme = CharField(null=True)
    old_finance_amount = DecimalField(max_digits=14, decimal_places=2, null=True)
    new_financier_name = CharField(null=True)
    new_scheme = CharField(null=True)
    bank_support = BooleanField(default=False)
    remarks = TextField(null=True)
    reference = CharField(null=True)
    commission_percentage = DecimalField(max_digits=5, decimal_places=2, null=True)
    disbursement_date = DateField(null=True)
    created_at = DateTimeField(default=_stamp)
    updated_at = DateTimeField(default=_stamp)
    status_updated_at = DateTimeField(null=True)
    last_follow_up = DateTimeField(null=True)
    next_follow_up = DateTimeField(null=True)

    class Meta:
        table_name = "clients"

    def __str__(self) -> str:
        return self.customer_name


class Loan(BaseModel):
    client = ForeignKeyField(Client, backref="loans", on_delete="CASCADE")
    amount = DecimalField(max_digits=14, decimal_places=2)
    disbursement_date = DateField()
    proof_file_name = CharField(null=True)
    proof_file_path = CharField(null=True)
    created_at = DateTimeField(default=_stamp)

    class Meta:
        table_name = "loans"


class FollowUp(BaseModel):
    client = ForeignKeyField(Client, backref="follow_ups", on_delete="CASCADE")
    type = CharField(default=FollowUpType.CALL.value)
    date = DateTimeField(null=True)
    notes = TextField(null=True)
    next_follow_up_date = DateTimeField(null=True, index=True)
    reminder_sent = BooleanField(default=False)
    created_at = DateTimeField(default=_stamp)

    class Meta:
        table_name = "follow_ups"


class CompanySettings(BaseModel):
    """Single-row table (``id = 1``) edited from the settings page."""

    id = AutoField()
    company_name = CharField(null=True)
    company_email = CharField(null=True)
    company_phone = CharField(null=True)
    company_address = TextField(null=True)
    notification_email = CharField(null=True)
    reminder_time_before = IntegerField(null=True)
    notifications_enabled = BooleanField(default=True)
    admin_email = CharField(null=True)
    admin_name = CharField(null=True)
    logo_url = CharField(null=True)

    class Meta:
        table_name = "company_settings"
