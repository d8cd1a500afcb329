"""Column layout of the backup workbook.

Each sheet is one ordered list of columns. The full rebuild and the
single-row patch both format records through it, so the two paths cannot
disagree on headers, order or cell formatting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Mapping

from utils.time_utils import format_date, format_datetime

Formatter = Callable[[Any], Any]


def passthrough(value: Any) -> Any:
    return value


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def amount(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


@dataclass(frozen=True)
class Column:
    field: str
    header: str
    width: int = 15
    formatter: Formatter = passthrough


@dataclass(frozen=True)
class SheetSchema:
    title: str
    columns: tuple[Column, ...]
    _by_field: dict[str, Column] = field(init=False, repr=False, compare=False)
    _by_header: dict[str, Column] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_field", {c.field: c for c in self.columns})
        object.__setattr__(self, "_by_header", {c.header: c for c in self.columns})

    @property
    def headers(self) -> list[str]:
        return [c.header for c in self.columns]

    @property
    def widths(self) -> list[int]:
        return [c.width for c in self.columns]

    def header_for(self, field_name: str) -> str:
        """Display header of a database field, or the field name itself."""
        column = self._by_field.get(field_name)
        return column.header if column else field_name

    def field_for(self, header: str) -> str:
        """Database field behind a display header, or the header itself."""
        column = self._by_header.get(header)
        return column.field if column else header

    def format_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Cell values keyed by database field, for the fields present in ``record``."""
        formatted: dict[str, Any] = {}
        for key, value in record.items():
            column = self._by_field.get(key)
            formatted[key] = column.formatter(value) if column else value
        return formatted

    def row_for(self, record: Mapping[str, Any], headers: list[str] | None = None) -> list[Any]:
        """Values ordered like ``headers`` (default: schema order); absent fields are ``None``."""
        formatted = self.format_record(record)
        return [formatted.get(self.field_for(h)) for h in (headers or self.headers)]


CLIENTS = SheetSchema(
    "Clients",
    (
        Column("id", "ID", 10),
        Column("customer_name", "Customer Name", 30),
        Column("phone_number", "Phone Number", 15),
        Column("business_name", "Business Name", 30),
        Column("area", "Area", 20),
        Column("monthly_turnover", "Monthly Turnover", 15, amount),
        Column("required_amount", "Required Amount", 15, amount),
        Column("status", "Status", 15),
        Column("old_financier_name", "Old Financier", 20),
        Column("old_scheme", "Old Scheme", 20),
        Column("old_finance_amount", "Old Finance Amount", 15, amount),
        Column("new_financier_name", "New Financier", 20),
        Column("new_scheme", "New Scheme", 20),
        Column("bank_support", "Bank Support", 15, yes_no),
        Column("remarks", "Remarks", 30),
        Column("reference", "Reference", 20),
        Column("commission_percentage", "Commission %", 15, amount),
        Column("created_at", "Created At", 20, format_datetime),
        Column("updated_at", "Updated At", 20, format_datetime),
        Column("status_updated_at", "Status Updated At", 20, format_datetime),
        Column("last_follow_up", "Last Follow-up", 20, format_datetime),
        Column("next_follow_up", "Next Follow-up", 20, format_datetime),
    ),
)

LOANS = SheetSchema(
    "Loans",
    (
        Column("id", "ID", 10),
        Column("client_id", "Client ID", 10),
        Column("client_name", "Client Name", 30),
        Column("amount", "Amount", 15, amount),
        Column("disbursement_date", "Disbursement Date", 20, format_date),
        Column("proof_file_name", "Proof File", 30),
        Column("created_at", "Created At", 20, format_datetime),
    ),
)

FOLLOW_UPS = SheetSchema(
    "Follow-ups",
    (
        Column("id", "ID", 10),
        Column("client_id", "Client ID", 10),
        Column("client_name", "Client Name", 30),
        Column("type", "Type", 15),
        Column("date", "Date", 20, format_datetime),
        Column("notes", "Notes", 40),
        Column("next_follow_up_date", "Next Follow-up Date", 20, format_date),
        Column("created_at", "Created At", 20, format_datetime),
        Column("reminder_sent", "Reminder Sent", 15, yes_no),
    ),
)

SHEETS: tuple[SheetSchema, ...] = (CLIENTS, LOANS, FOLLOW_UPS)

__all__ = [
    "Column",
    "SheetSchema",
    "CLIENTS",
    "LOANS",
    "FOLLOW_UPS",
    "SHEETS",
    "yes_no",
    "amount",
]
