from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from appdirs import user_log_dir
from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    database_url: str = ""
    log_dir: str = field(default_factory=lambda: user_log_dir("loan_crm"))
    log_level: str = "INFO"
    detailed_logging: bool = False
    backup_dir: str = str(Path(__file__).resolve().parent / "backups")
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_from: str | None = None
    smtp_use_tls: bool = True
    smtp_timeout: float = 30.0
    reminder_fallback_email: str = "management@example.com"
    reminder_interval_minutes: int = 30
    reminders_enabled: bool = True
    company_name: str = "Chetana Business Solutions"
    frontend_url: str = "http://localhost:3000"


@lru_cache()
def get_settings() -> Settings:
    dotenv_path = Path(__file__).resolve().parent / ".env"
    load_dotenv(dotenv_path)

    defaults = Settings()
    smtp_username = os.getenv("SMTP_USERNAME")
    return Settings(
        database_url=os.getenv("DATABASE_URL", ""),
        log_dir=os.getenv("LOG_DIR") or user_log_dir("loan_crm"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        detailed_logging=_flag("DETAILED_LOGGING", "0"),
        backup_dir=os.getenv("BACKUP_DIR") or defaults.backup_dir,
        smtp_host=os.getenv("SMTP_HOST", defaults.smtp_host),
        smtp_port=int(os.getenv("SMTP_PORT", str(defaults.smtp_port))),
        smtp_username=smtp_username,
        smtp_password=os.getenv("SMTP_PASSWORD"),
        smtp_from=os.getenv("SMTP_FROM") or smtp_username,
        smtp_use_tls=_flag("SMTP_USE_TLS", "1"),
        smtp_timeout=float(os.getenv("SMTP_TIMEOUT", str(defaults.smtp_timeout))),
        reminder_fallback_email=os.getenv(
            "REMINDER_FALLBACK_EMAIL", defaults.reminder_fallback_email
        ),
        reminder_interval_minutes=int(
            os.getenv(
                "REMINDER_INTERVAL_MINUTES", str(defaults.reminder_interval_minutes)
            )
        ),
        reminders_enabled=_flag("REMINDERS_ENABLED", "1"),
        company_name=os.getenv("COMPANY_NAME", defaults.company_name),
        frontend_url=os.getenv("FRONTEND_URL", defaults.frontend_url),
    )
