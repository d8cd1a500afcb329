from datetime import date, datetime

from pydantic import BaseModel


class ClientBase(BaseModel):
    customer_name: str | None = None
    phone_number: str | None = None
    business_name: str | None = None
    area: str | None = None
    monthly_turnover: float | None = None
    required_amount: float | None = None
    status: str | None = None
    old_financier_name: str | None = None
    old_scheme: str | None = None
    old_finance_amount: float | None = None
    new_financier_name: str | None = None
    new_scheme: str | None = None
    bank_support: bool | None = None
    remarks: str | None = None
    reference: str | None = None
    commission_percentage: float | None = None


class ClientCreate(ClientBase):
    customer_name: str


class ClientUpdate(ClientBase):
    last_follow_up: datetime | None = None
    next_follow_up: datetime | None = None


class ClientStatusUpdate(BaseModel):
    status: str


class ClientRead(ClientBase):
    id: int
    disbursement_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    status_updated_at: datetime | None = None
    last_follow_up: datetime | None = None
    next_follow_up: datetime | None = None

    class Config:
        from_attributes = True


class LoanCreate(BaseModel):
    amount: float
    disbursement_date: date
    proof_file_name: str | None = None
    proof_file_path: str | None = None


class LoanRead(LoanCreate):
    id: int
    client_id: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class FollowUpCreate(BaseModel):
    type: str = "Call"
    date: datetime | None = None
    notes: str | None = None
    next_follow_up_date: datetime | None = None


class FollowUpRead(FollowUpCreate):
    id: int
    client_id: int
    reminder_sent: bool = False
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BackupCreated(BaseModel):
    message: str
    backupPath: str


class BackupRead(BaseModel):
    filename: str
    created: datetime
    size: int

    class Config:
        from_attributes = True


class SettingsBase(BaseModel):
    company_name: str | None = None
    company_email: str | None = None
    company_phone: str | None = None
    company_address: str | None = None
    notification_email: str | None = None
    reminder_time_before: int | None = None
    notifications_enabled: bool | None = None
    admin_email: str | None = None
    admin_name: str | None = None


class SettingsRead(SettingsBase):
    id: int
    logo_url: str | None = None

    class Config:
        from_attributes = True
