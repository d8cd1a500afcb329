import logging
from datetime import datetime, timezone

import pytest

from database.models import CompanySettings, FollowUp
from services.reminder_service import (
    FollowUpReminderRepository,
    ReminderRunResult,
    ReminderService,
    render_reminder_email,
    reminder_subject,
)
from services.settings_service import default_notification_settings

# 10:00 UTC is 15:30 on the storage clock
NOW = datetime(2024, 6, 1, 10, 0, 0, tzinfo=timezone.utc)
STORAGE_NOW = datetime(2024, 6, 1, 15, 30, 0)


@pytest.fixture
def reminder_service(test_db, settings, fake_mail):
    return ReminderService(
        settings,
        fake_mail,
        FollowUpReminderRepository(),
        clock=lambda: NOW,
    )


def _sent_flag(follow_up) -> bool:
    return FollowUp.get_by_id(follow_up.id).reminder_sent


def test_reminder_window_is_on_storage_clock(reminder_service):
    start, end = reminder_service.reminder_window(2)

    assert start == STORAGE_NOW
    assert end == datetime(2024, 6, 1, 17, 30, 0)


def test_due_follow_up_is_mailed_once(reminder_service, fake_mail, make_client, make_follow_up):
    client = make_client(customer_name="Asha", business_name="Asha Traders")
    follow_up = make_follow_up(client, next_at=datetime(2024, 6, 1, 16, 30))

    first = reminder_service.check_follow_up_reminders()
    second = reminder_service.check_follow_up_reminders()

    assert first == ReminderRunResult(found=1, sent=1, failed=0)
    assert second == ReminderRunResult(found=0, sent=0, failed=0)
    assert len(fake_mail.sent) == 1
    mail = fake_mail.sent[0]
    assert mail["to"] == "fallback@example.com"
    assert mail["subject"] == "Follow-up Reminder: Asha - Asha Traders"
    assert _sent_flag(follow_up) is True


def test_window_bounds(reminder_service, fake_mail, make_client, make_follow_up):
    client = make_client()
    at_now = make_follow_up(client, next_at=STORAGE_NOW)
    at_end = make_follow_up(client, next_at=datetime(2024, 6, 1, 17, 30, 0))
    past_end = make_follow_up(client, next_at=datetime(2024, 6, 1, 17, 30, 1))
    overdue = make_follow_up(client, next_at=datetime(2024, 6, 1, 9, 0))
    no_date = make_follow_up(client, next_at=None)

    result = reminder_service.check_follow_up_reminders()

    assert result.sent == 1
    assert _sent_flag(at_end) is True
    for follow_up in (at_now, past_end, overdue, no_date):
        assert _sent_flag(follow_up) is False


def test_already_sent_follow_up_is_skipped(reminder_service, fake_mail, make_client, make_follow_up):
    client = make_client()
    make_follow_up(client, next_at=datetime(2024, 6, 1, 16, 0), reminder_sent=True)

    result = reminder_service.check_follow_up_reminders()

    assert result.found == 0
    assert fake_mail.sent == []


def test_failed_send_is_retried_next_poll(reminder_service, fake_mail, make_client, make_follow_up):
    ok = make_follow_up(make_client(customer_name="Alpha"), next_at=datetime(2024, 6, 1, 16, 0))
    bad = make_follow_up(make_client(customer_name="Bravo"), next_at=datetime(2024, 6, 1, 16, 5))
    fake_mail.fail_on.add("Bravo")

    first = reminder_service.check_follow_up_reminders()

    assert first == ReminderRunResult(found=2, sent=1, failed=1)
    assert _sent_flag(ok) is True
    assert _sent_flag(bad) is False

    fake_mail.fail_on.clear()
    second = reminder_service.check_follow_up_reminders()

    assert second == ReminderRunResult(found=1, sent=1, failed=0)
    assert _sent_flag(bad) is True


def test_settings_row_overrides_recipient_and_lead_time(
    reminder_service, fake_mail, make_client, make_follow_up
):
    CompanySettings.create(
        id=1,
        company_name="Acme Loans",
        notification_email="ops@example.com",
        reminder_time_before=5,
        notifications_enabled=False,
    )
    client = make_client()
    make_follow_up(client, next_at=datetime(2024, 6, 1, 20, 0))

    result = reminder_service.check_follow_up_reminders()

    assert result.sent == 1
    mail = fake_mail.sent[0]
    assert mail["to"] == "ops@example.com"
    assert "A follow-up is due in 5 hours!" in mail["html"]
    assert "This is an automated reminder from Acme Loans." in mail["html"]


def test_check_never_raises(settings, fake_mail, caplog):
    class BrokenRepository(FollowUpReminderRepository):
        def due_between(self, start, end):
            raise RuntimeError("database is gone")

    service = ReminderService(
        settings,
        fake_mail,
        BrokenRepository(),
        settings_provider=default_notification_settings,
        clock=lambda: NOW,
    )

    with caplog.at_level(logging.ERROR):
        result = service.check_follow_up_reminders()

    assert result == ReminderRunResult()
    assert "Error checking follow-up reminders" in caplog.text


def test_run_reminder_check_logs_diagnostics(
    reminder_service, fake_mail, make_client, make_follow_up, caplog
):
    client = make_client()
    make_follow_up(client, next_at=datetime(2024, 6, 1, 16, 0))
    make_follow_up(client, next_at=datetime(2024, 6, 2, 16, 0))

    with caplog.at_level(logging.INFO, logger="services.reminder_service"):
        result = reminder_service.run_reminder_check()

    assert result.sent == 1
    assert "1 follow-ups inside the window" in caplog.text
    assert "Reminder check completed" in caplog.text


# ───────────────────────── e-mail content ─────────────────────────


def _row(**overrides):
    row = {
        "id": 3,
        "client_id": 7,
        "customer_name": "Ravi <R&K>",
        "business_name": "R&K Textiles",
        "phone_number": "9000000007",
        "area": "Nashik",
        "status": "In Progress",
        "type": "Call",
        "date": datetime(2024, 6, 1, 12, 0),
        "notes": None,
        "next_follow_up_date": datetime(2024, 6, 1, 17, 30),
    }
    row.update(overrides)
    return row


def test_reminder_subject():
    assert reminder_subject(_row()) == "Follow-up Reminder: Ravi <R&K> - R&K Textiles"


def test_render_reminder_email_escapes_and_links():
    body = render_reminder_email(_row(), 2, "Test Finance", "http://crm.test/")

    assert "Ravi &lt;R&amp;K&gt;" in body
    assert "<R&K>" not in body
    assert "No notes" in body
    assert "A follow-up is due in 2 hours!" in body
    assert 'href="http://crm.test/clients/7"' in body
    assert "01 June 2024, 05:30 PM" in body
    assert "This is an automated reminder from Test Finance." in body


def test_render_reminder_email_singular_hour_and_notes():
    body = render_reminder_email(_row(notes="Bring KYC"), 1, "Test Finance", "http://crm.test")

    assert "A follow-up is due in 1 hour!" in body
    assert "Bring KYC" in body
    assert "No notes" not in body
