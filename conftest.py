import os
import signal
import sys
from pathlib import Path

import pytest
from peewee import SqliteDatabase

# Force tests to use SQLite so nothing ever touches a real database.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# ensure project root is on sys.path when running tests
sys.path.append(str(Path(__file__).resolve().parent))

from config import Settings
from core.app_context import build_context, set_app_context
from database.db import db
from database.init import ALL_MODELS

_TEST_TIMEOUT = int(os.environ.get("PYTEST_TIMEOUT", "60"))


@pytest.fixture(autouse=True)
def watchdog():
    """Fail a test if it hangs longer than the timeout."""
    if not hasattr(signal, "SIGALRM"):
        yield
        return

    def handler(signum, frame):  # pragma: no cover - timeout handler
        pytest.fail("Test timeout exceeded", pytrace=False)

    signal.signal(signal.SIGALRM, handler)
    signal.alarm(_TEST_TIMEOUT)
    try:
        yield
    finally:
        signal.alarm(0)


@pytest.fixture()
def test_db(tmp_path):
    """Fresh SQLite file database bound to the ``db`` proxy.

    A file (not ``:memory:``) so that FastAPI worker threads see the same data.
    """
    previous = getattr(db, "obj", None)
    database = SqliteDatabase(
        str(tmp_path / "crm.db"),
        pragmas={"foreign_keys": 1},
        check_same_thread=False,
    )
    db.initialize(database)
    database.create_tables(ALL_MODELS)
    try:
        yield database
    finally:
        if not database.is_closed():
            database.close()
        db.initialize(previous)


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'crm.db'}",
        log_dir=str(tmp_path / "logs"),
        backup_dir=str(tmp_path / "backups"),
        smtp_host="localhost",
        smtp_port=2525,
        smtp_use_tls=False,
        smtp_timeout=5.0,
        reminder_fallback_email="fallback@example.com",
        reminders_enabled=False,
        company_name="Test Finance",
        frontend_url="http://crm.test",
    )


class FakeMailGateway:
    """Records outgoing mail; recipients or subjects in ``fail_on`` raise."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail_on: set[str] = set()

    def send_html(self, to, subject, html, text=None):
        from services.errors import MailDeliveryError

        if any(marker in subject or marker == to for marker in self.fail_on):
            raise MailDeliveryError(f"refused: {subject}")
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture()
def fake_mail() -> FakeMailGateway:
    return FakeMailGateway()


@pytest.fixture(autouse=True)
def app_context(settings, fake_mail):
    """Process-wide context pointing at the temp backup dir and the fake mailer."""
    context = build_context(settings).override(mail_gateway=fake_mail)
    set_app_context(context)
    try:
        yield context
    finally:
        set_app_context(None)
