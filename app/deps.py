from config import Settings
from core.app_context import get_app_context
from services.backup_service import BackupService


def get_app_settings() -> Settings:
    return get_app_context().settings


def get_backup_service() -> BackupService:
    return get_app_context().backup_service
