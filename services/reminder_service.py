"""Follow-up reminder e-mails.

Every poll selects follow-ups whose next contact falls inside
``(now, now + lead hours]`` on the storage clock and still have
``reminder_sent = False``. A follow-up is marked only after its mail went
out, so a failed send is retried on the next poll.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from config import Settings
from database.db import db
from database.models import Client, FollowUp
from infrastructure.mail_gateway import MailGateway
from services.settings_service import NotificationSettings, get_notification_settings
from utils.time_utils import format_display, storage_now

logger = logging.getLogger(__name__)

Record = dict[str, Any]


@dataclass(frozen=True)
class ReminderRunResult:
    found: int = 0
    sent: int = 0
    failed: int = 0


class FollowUpReminderRepository:
    """Queries used by the reminder poller."""

    @staticmethod
    def _with_client():
        return FollowUp.select(
            FollowUp.id,
            FollowUp.client.alias("client_id"),
            FollowUp.type,
            FollowUp.date,
            FollowUp.notes,
            FollowUp.next_follow_up_date,
            FollowUp.reminder_sent,
            Client.customer_name,
            Client.business_name,
            Client.phone_number,
            Client.area,
            Client.status,
        ).join(Client)

    def due_between(self, start: datetime, end: datetime) -> list[Record]:
        query = (
            self._with_client()
            .where(
                (FollowUp.next_follow_up_date > start)
                & (FollowUp.next_follow_up_date <= end)
                & (FollowUp.reminder_sent == False)
            )
            .order_by(FollowUp.next_follow_up_date)
        )
        return list(query.dicts())

    def in_window(self, start: datetime, end: datetime) -> list[Record]:
        query = self._with_client().where(
            (FollowUp.next_follow_up_date > start)
            & (FollowUp.next_follow_up_date <= end)
        )
        return list(query.dicts())

    def all_follow_ups(self) -> list[Record]:
        return list(self._with_client().order_by(FollowUp.next_follow_up_date).dicts())

    def mark_sent(self, follow_up_id: int) -> None:
        with db.atomic():
            FollowUp.update(reminder_sent=True).where(
                FollowUp.id == follow_up_id
            ).execute()


def reminder_subject(row: Record) -> str:
    return f"Follow-up Reminder: {row.get('customer_name')} - {row.get('business_name')}"


def _cell(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def render_reminder_email(
    row: Record, lead_hours: int, company_name: str, frontend_url: str
) -> str:
    """HTML body of a reminder for one follow-up joined with its client."""
    unit = "hour" if lead_hours == 1 else "hours"
    client_url = f"{frontend_url.rstrip('/')}/clients/{row.get('client_id')}"
    label = 'style="padding: 8px; border-bottom: 1px solid #e0e0e0; font-weight: bold; width: 150px;"'
    value = 'style="padding: 8px; border-bottom: 1px solid #e0e0e0;"'

    def line(title: str, content: str, extra: str = "") -> str:
        return (
            f"<tr><td {label}>{title}:</td>"
            f"<td {value}{extra}>{content}</td></tr>"
        )

    client_rows = "".join(
        [
            line("Client Name", _cell(row.get("customer_name"))),
            line("Business", _cell(row.get("business_name"))),
            line("Phone", _cell(row.get("phone_number"))),
            line("Area", _cell(row.get("area"))),
            line("Status", _cell(row.get("status"))),
        ]
    )
    follow_up_rows = "".join(
        [
            line("Type", _cell(row.get("type"))),
            line("Last Follow-up", _cell(format_display(row.get("date")))),
            line(
                "Next Follow-up",
                f"<strong>{_cell(format_display(row.get('next_follow_up_date')))}</strong>",
            ),
            line("Notes", _cell(row.get("notes") or "No notes")),
        ]
    )
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">
    <h2 style="color: #3b82f6; margin-top: 0;">Follow-up Reminder</h2>
    <div style="background-color: #f0f9ff; border-left: 4px solid #3b82f6; padding: 15px; margin-bottom: 20px;">
        <p style="margin: 0; font-weight: bold;">A follow-up is due in {lead_hours} {unit}!</p>
    </div>
    <h3 style="margin-bottom: 10px;">Client Details:</h3>
    <table style="width: 100%; border-collapse: collapse; margin-bottom: 20px;">{client_rows}</table>
    <h3 style="margin-bottom: 10px;">Follow-up Details:</h3>
    <table style="width: 100%; border-collapse: collapse; margin-bottom: 20px;">{follow_up_rows}</table>
    <div style="background-color: #f0f9ff; padding: 15px; border-radius: 5px;">
        <p style="margin: 0;"><a href="{html.escape(client_url)}" style="color: #3b82f6; text-decoration: none; font-weight: bold;">View Client Details →</a></p>
    </div>
    <p style="color: #6b7280; font-size: 12px; margin-top: 20px; text-align: center;">
        This is an automated reminder from {_cell(company_name)}.
    </p>
</div>
"""


class ReminderService:
    """Polls for due follow-ups and mails the management address."""

    def __init__(
        self,
        settings: Settings,
        mail_gateway: MailGateway,
        repository: FollowUpReminderRepository,
        *,
        settings_provider: Callable[[Settings], NotificationSettings] = get_notification_settings,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._settings = settings
        self._mail = mail_gateway
        self._repository = repository
        self._settings_provider = settings_provider
        self._clock = clock

    def reminder_window(self, lead_hours: int) -> tuple[datetime, datetime]:
        """``(now, now + lead_hours)`` on the storage clock."""
        start = storage_now(self._clock())
        return start, start + timedelta(hours=lead_hours)

    def check_follow_up_reminders(self) -> ReminderRunResult:
        """One poll. Never raises, so a bad cycle cannot stop the scheduler."""
        try:
            return self._check()
        except Exception:  # noqa: BLE001
            logger.exception("Error checking follow-up reminders")
            return ReminderRunResult()

    def send_follow_up_reminder(self, row: Record, prefs: NotificationSettings) -> bool:
        subject = reminder_subject(row)
        body = render_reminder_email(
            row,
            prefs.reminder_time_before,
            prefs.company_name,
            self._settings.frontend_url,
        )
        try:
            self._mail.send_html(prefs.notification_email, subject, body)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Error sending reminder for follow-up #%s (%s)",
                row.get("id"),
                row.get("customer_name"),
            )
            return False
        logger.info(
            "Reminder sent to %s for client %s", prefs.notification_email, row.get("customer_name")
        )
        return True

    def debug_follow_ups(self) -> None:
        """Log every follow-up and the ones inside the current window."""
        prefs = self._settings_provider(self._settings)
        start, end = self.reminder_window(prefs.reminder_time_before)
        logger.info("Reminder window on storage clock: %s .. %s", start, end)
        for row in self._repository.all_follow_ups():
            logger.info(
                "Follow-up #%s client=%s next=%s reminder_sent=%s",
                row["id"],
                row.get("customer_name"),
                row.get("next_follow_up_date"),
                row.get("reminder_sent"),
            )
        in_window = self._repository.in_window(start, end)
        logger.info("%d follow-ups inside the window", len(in_window))
        for row in in_window:
            logger.info(
                "In window: #%s client=%s next=%s reminder_sent=%s",
                row["id"],
                row.get("customer_name"),
                row.get("next_follow_up_date"),
                row.get("reminder_sent"),
            )

    def run_reminder_check(self) -> ReminderRunResult:
        """Manual run with diagnostics, used from the command line."""
        logger.info("Manually running follow-up reminder check")
        try:
            self.debug_follow_ups()
        except Exception:  # noqa: BLE001
            logger.exception("Error in follow-up diagnostics")
        result = self.check_follow_up_reminders()
        logger.info("Reminder check completed: %s", result)
        return result

    def _check(self) -> ReminderRunResult:
        prefs = self._settings_provider(self._settings)
        if not prefs.notifications_enabled:
            # the flag only hides the badge in the UI; sending is not gated on it
            logger.info("notifications_enabled is off; reminders are still sent")

        start, end = self.reminder_window(prefs.reminder_time_before)
        rows = self._repository.due_between(start, end)
        logger.info(
            "Found %d follow-ups due between %s and %s", len(rows), start, end
        )

        sent = failed = 0
        for row in rows:
            if self.send_follow_up_reminder(row, prefs):
                self._repository.mark_sent(row["id"])
                sent += 1
            else:
                failed += 1
        return ReminderRunResult(found=len(rows), sent=sent, failed=failed)


__all__ = [
    "FollowUpReminderRepository",
    "ReminderRunResult",
    "ReminderService",
    "render_reminder_email",
    "reminder_subject",
]
