"""Excel mirror of the clients, loans and follow-ups tables.

The latest ``backup_<timestamp>.xlsx`` in the backup directory is patched one
row at a time after every mutation. When there is no workbook yet, or a patch
fails for any reason, the whole workbook is rebuilt from the database.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from openpyxl.worksheet.worksheet import Worksheet

from config import Settings
from database.models import Client, FollowUp, Loan
from infrastructure.workbook_gateway import WorkbookGateway
from services.backup_schema import CLIENTS, FOLLOW_UPS, LOANS, SheetSchema
from services.errors import BackupNotFoundError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
BACKUP_NAME_RE = re.compile(r"^backup_(\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})\.xlsx$")
ID_HEADER = "ID"

Record = dict[str, Any]


class BackupAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class BackupInfo:
    filename: str
    created: datetime
    size: int


# One lock per backup directory, shared by every service instance in the process.
_dir_locks: dict[Path, threading.RLock] = {}
_dir_locks_guard = threading.Lock()


def _lock_for(directory: Path) -> threading.RLock:
    with _dir_locks_guard:
        lock = _dir_locks.get(directory)
        if lock is None:
            lock = _dir_locks[directory] = threading.RLock()
        return lock


class BackupRepository:
    """Reads the rows mirrored into the workbook."""

    @staticmethod
    def _loans():
        return (
            Loan.select(
                Loan.id,
                Loan.client.alias("client_id"),
                Client.customer_name.alias("client_name"),
                Loan.amount,
                Loan.disbursement_date,
                Loan.proof_file_name,
                Loan.proof_file_path,
                Loan.created_at,
            )
            .join(Client)
            .order_by(Loan.id)
        )

    @staticmethod
    def _follow_ups():
        return (
            FollowUp.select(
                FollowUp.id,
                FollowUp.client.alias("client_id"),
                Client.customer_name.alias("client_name"),
                FollowUp.type,
                FollowUp.date,
                FollowUp.notes,
                FollowUp.next_follow_up_date,
                FollowUp.created_at,
                FollowUp.reminder_sent,
            )
            .join(Client)
            .order_by(FollowUp.id)
        )

    def all_clients(self) -> list[Record]:
        return list(Client.select().order_by(Client.id).dicts())

    def all_loans(self) -> list[Record]:
        return list(self._loans().dicts())

    def all_follow_ups(self) -> list[Record]:
        return list(self._follow_ups().dicts())

    def client(self, client_id: int) -> Record | None:
        return Client.select().where(Client.id == client_id).dicts().first()

    def loan(self, loan_id: int) -> Record | None:
        return self._loans().where(Loan.id == loan_id).dicts().first()

    def follow_up(self, follow_up_id: int) -> Record | None:
        return self._follow_ups().where(FollowUp.id == follow_up_id).dicts().first()


class BackupService:
    """Builds and patches the backup workbook."""

    def __init__(
        self,
        settings: Settings,
        gateway: WorkbookGateway,
        repository: BackupRepository,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._backup_dir = Path(settings.backup_dir).expanduser().resolve()
        self._gateway = gateway
        self._repository = repository
        self._clock = clock
        self._lock = _lock_for(self._backup_dir)

    # ─────────────────────────── public methods ───────────────────────────

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    def ensure_backup_dir(self) -> Path:
        self._backup_dir.mkdir(parents=True, exist_ok=True)
        return self._backup_dir

    def create_full_backup(self) -> Path:
        """Write a fresh workbook with every sheet and return its absolute path."""
        with self._lock:
            return self._create_full_backup()

    def get_latest_backup(self) -> Path | None:
        try:
            names = [entry.name for entry in self._backup_dir.iterdir()]
        except FileNotFoundError:
            return None
        except OSError:
            logger.exception("Failed to list backups in %s", self._backup_dir)
            return None

        stamps = sorted(
            match.group(1) for match in map(BACKUP_NAME_RE.match, names) if match
        )
        if not stamps:
            return None
        return self._backup_dir / f"backup_{stamps[-1]}.xlsx"

    def update_backup_for_client(self, client_id: int, action: BackupAction | str) -> Path:
        return self._update_backup(CLIENTS, client_id, action, self._repository.client)

    def update_backup_for_loan(
        self, loan_id: int, client_id: int | None, action: BackupAction | str
    ) -> Path:
        logger.debug("Backup patch for loan #%s of client #%s", loan_id, client_id)
        return self._update_backup(LOANS, loan_id, action, self._repository.loan)

    def update_backup_for_follow_up(
        self, follow_up_id: int, client_id: int | None, action: BackupAction | str
    ) -> Path:
        logger.debug(
            "Backup patch for follow-up #%s of client #%s", follow_up_id, client_id
        )
        return self._update_backup(
            FOLLOW_UPS, follow_up_id, action, self._repository.follow_up
        )

    def list_backups(self) -> list[BackupInfo]:
        """Backup files, newest first."""
        directory = self.ensure_backup_dir()
        backups: list[BackupInfo] = []
        for entry in directory.iterdir():
            name = entry.name
            if name.startswith("~") or not (
                name.startswith("backup_") and name.endswith(".xlsx")
            ):
                continue
            try:
                stat = entry.stat()
            except OSError:
                logger.exception("Failed to stat backup %s", name)
                continue
            created = getattr(stat, "st_birthtime", None) or stat.st_ctime
            backups.append(
                BackupInfo(
                    filename=name,
                    created=datetime.fromtimestamp(created),
                    size=stat.st_size,
                )
            )
        backups.sort(key=lambda b: (b.created, b.filename), reverse=True)
        return backups

    def resolve_backup(self, filename: str) -> Path:
        """Path of a backup file for download."""
        if ".." in filename or "/" in filename or "\\" in filename:
            raise ValueError("Invalid filename")
        path = self._backup_dir / filename
        if not path.is_file():
            raise BackupNotFoundError(f"Backup file {filename} not found")
        return path

    # ─────────────────────────── internals ──────────────────────────

    def _snapshot(self) -> list[tuple[SheetSchema, list[Record]]]:
        return [
            (CLIENTS, self._repository.all_clients()),
            (LOANS, self._repository.all_loans()),
            (FOLLOW_UPS, self._repository.all_follow_ups()),
        ]

    def _create_full_backup(self) -> Path:
        timestamp = self._clock().strftime(TIMESTAMP_FORMAT)
        path = self.ensure_backup_dir() / f"backup_{timestamp}.xlsx"
        try:
            workbook = self._gateway.new_workbook()
            for schema, records in self._snapshot():
                self._gateway.add_sheet(
                    workbook,
                    schema.title,
                    schema.headers,
                    schema.widths,
                    (schema.row_for(record) for record in records),
                )
            self._gateway.save(workbook, path)
        except Exception:
            logger.exception("Error creating backup %s", path.name)
            raise
        self._remove_lock_files()
        logger.info("Backup created: %s", path.name)
        return path

    def _remove_lock_files(self) -> None:
        for leftover in self._backup_dir.glob("~*.xlsx"):
            try:
                leftover.unlink()
                logger.info("Removed temporary file: %s", leftover.name)
            except OSError:
                logger.warning("Could not remove temporary file %s", leftover.name)

    def _update_backup(
        self,
        schema: SheetSchema,
        record_id: int,
        action: BackupAction | str,
        fetch: Callable[[int], Record | None],
    ) -> Path:
        action = BackupAction(action)
        with self._lock:
            latest = self.get_latest_backup()
            if latest is None:
                logger.info("No backup found, creating a full one")
                return self._create_full_backup()

            try:
                workbook = self._gateway.load(latest)
                sheet = workbook[schema.title]
                columns = self._gateway.header_map(sheet)

                if action is BackupAction.DELETE:
                    row_number = self._find_row(sheet, columns, record_id)
                    if row_number is not None:
                        sheet.delete_rows(row_number, 1)
                else:
                    record = fetch(record_id)
                    if record is None:
                        logger.info(
                            "%s #%s not found, backup left unchanged",
                            schema.title,
                            record_id,
                        )
                        return latest
                    self._upsert_row(schema, sheet, columns, record_id, record)

                self._gateway.save(workbook, latest)
                logger.debug(
                    "Backup %s patched: %s #%s %s",
                    latest.name,
                    schema.title,
                    record_id,
                    action.value,
                )
                return latest
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Error updating backup for %s #%s, rebuilding",
                    schema.title,
                    record_id,
                )
                return self._create_full_backup()

    @staticmethod
    def _same_id(value: Any, record_id: int) -> bool:
        if value is None:
            return False
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip() == str(record_id)

    def _find_row(
        self, sheet: Worksheet, columns: dict[str, int], record_id: int
    ) -> int | None:
        id_column = columns[ID_HEADER]
        for (cell,) in sheet.iter_rows(
            min_row=2, min_col=id_column, max_col=id_column
        ):
            if self._same_id(cell.value, record_id):
                return cell.row
        return None

    def _upsert_row(
        self,
        schema: SheetSchema,
        sheet: Worksheet,
        columns: dict[str, int],
        record_id: int,
        record: Record,
    ) -> None:
        formatted = schema.format_record(record)
        row_number = self._find_row(sheet, columns, record_id)
        if row_number is not None:
            for field_name, value in formatted.items():
                column = columns.get(schema.header_for(field_name))
                if column:
                    sheet.cell(row=row_number, column=column, value=value)
            return

        row: list[Any] = [None] * max(columns.values(), default=0)
        for header, column in columns.items():
            row[column - 1] = formatted.get(schema.field_for(header))
        sheet.append(row)


__all__ = [
    "BackupAction",
    "BackupInfo",
    "BackupRepository",
    "BackupService",
    "BACKUP_NAME_RE",
]
