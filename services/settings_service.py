"""Company settings: a single ``company_settings`` row with ``id = 1``."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from config import Settings, get_settings
from database.db import db
from database.models import CompanySettings

logger = logging.getLogger(__name__)

SETTINGS_ID = 1
DEFAULT_REMINDER_HOURS = 2

SETTINGS_ALLOWED_FIELDS = {
    "company_name",
    "company_email",
    "company_phone",
    "company_address",
    "notification_email",
    "reminder_time_before",
    "notifications_enabled",
    "admin_email",
    "admin_name",
    "logo_url",
}


@dataclass(frozen=True)
class NotificationSettings:
    """What the reminder poller needs from the settings row."""

    notification_email: str
    reminder_time_before: int
    notifications_enabled: bool
    company_name: str


def default_notification_settings(settings: Settings | None = None) -> NotificationSettings:
    settings = settings or get_settings()
    return NotificationSettings(
        notification_email=settings.reminder_fallback_email,
        reminder_time_before=DEFAULT_REMINDER_HOURS,
        notifications_enabled=True,
        company_name=settings.company_name,
    )


def get_settings_row() -> CompanySettings | None:
    return CompanySettings.get_or_none(CompanySettings.id == SETTINGS_ID)


def get_notification_settings(settings: Settings | None = None) -> NotificationSettings:
    """Settings row merged over the hardcoded defaults.

    Any failure to read the row yields the defaults.
    """
    defaults = default_notification_settings(settings)
    try:
        row = get_settings_row()
    except Exception:  # noqa: BLE001
        logger.exception("Failed to read company settings, using defaults")
        return defaults
    if row is None:
        return defaults

    hours = row.reminder_time_before
    return NotificationSettings(
        notification_email=row.notification_email or defaults.notification_email,
        reminder_time_before=(
            int(hours) if hours is not None else defaults.reminder_time_before
        ),
        notifications_enabled=(
            defaults.notifications_enabled
            if row.notifications_enabled is None
            else bool(row.notifications_enabled)
        ),
        company_name=row.company_name or defaults.company_name,
    )


def ensure_settings_row(settings: Settings | None = None) -> CompanySettings:
    """Return the settings row, creating it with defaults when missing."""
    row = get_settings_row()
    if row is not None:
        return row
    defaults = default_notification_settings(settings)
    with db.atomic():
        row = CompanySettings.create(id=SETTINGS_ID, **asdict(defaults))
    logger.info("Default company settings created")
    return row


def update_settings(settings: Settings | None = None, **fields) -> CompanySettings:
    """Update the settings row; ``admin_password``-like fields are not accepted."""
    clean = {k: v for k, v in fields.items() if k in SETTINGS_ALLOWED_FIELDS}
    row = ensure_settings_row(settings)
    with db.atomic():
        for key, value in clean.items():
            setattr(row, key, value)
        row.save()
    logger.info("Company settings updated: %s", ", ".join(sorted(clean)) or "-")
    return row


__all__ = [
    "NotificationSettings",
    "DEFAULT_REMINDER_HOURS",
    "default_notification_settings",
    "get_notification_settings",
    "get_settings_row",
    "ensure_settings_row",
    "update_settings",
]
