"""Application context and dependency wiring."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from config import Settings, get_settings
from infrastructure.mail_gateway import MailGateway
from infrastructure.workbook_gateway import WorkbookGateway
from services.backup_service import BackupRepository, BackupService
from services.reminder_scheduler import ReminderScheduler
from services.reminder_service import FollowUpReminderRepository, ReminderService

DependencyName = str


class AppContext:
    """Application context that creates its dependencies lazily."""

    _DEPENDENCY_NAMES: ClassVar[set[str]] = {
        "workbook_gateway",
        "mail_gateway",
        "backup_repository",
        "backup_service",
        "reminder_repository",
        "reminder_service",
        "reminder_scheduler",
    }

    def __init__(
        self,
        settings: Settings,
        *,
        workbook_gateway_factory: Callable[[Settings], WorkbookGateway],
        mail_gateway_factory: Callable[[Settings], MailGateway],
        backup_repository_factory: Callable[[], BackupRepository],
        backup_service_factory: Callable[["AppContext"], BackupService],
        reminder_repository_factory: Callable[[], FollowUpReminderRepository],
        reminder_service_factory: Callable[["AppContext"], ReminderService],
        reminder_scheduler_factory: Callable[["AppContext"], ReminderScheduler],
        overrides: dict[str, Any] | None = None,
        instances: dict[str, Any] | None = None,
    ) -> None:
        self._settings = settings
        self._workbook_gateway_factory = workbook_gateway_factory
        self._mail_gateway_factory = mail_gateway_factory
        self._backup_repository_factory = backup_repository_factory
        self._backup_service_factory = backup_service_factory
        self._reminder_repository_factory = reminder_repository_factory
        self._reminder_service_factory = reminder_service_factory
        self._reminder_scheduler_factory = reminder_scheduler_factory
        self._overrides: dict[str, Any] = dict(overrides or {})
        self._instances: dict[str, Any] = dict(instances or {})

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def workbook_gateway(self) -> WorkbookGateway:
        return self._get_dependency(
            "workbook_gateway",
            lambda: self._workbook_gateway_factory(self._settings),
        )

    @property
    def mail_gateway(self) -> MailGateway:
        return self._get_dependency(
            "mail_gateway",
            lambda: self._mail_gateway_factory(self._settings),
        )

    @property
    def backup_repository(self) -> BackupRepository:
        return self._get_dependency(
            "backup_repository",
            self._backup_repository_factory,
        )

    @property
    def backup_service(self) -> BackupService:
        return self._get_dependency(
            "backup_service",
            lambda: self._backup_service_factory(self),
        )

    @property
    def reminder_repository(self) -> FollowUpReminderRepository:
        return self._get_dependency(
            "reminder_repository",
            self._reminder_repository_factory,
        )

    @property
    def reminder_service(self) -> ReminderService:
        return self._get_dependency(
            "reminder_service",
            lambda: self._reminder_service_factory(self),
        )

    @property
    def reminder_scheduler(self) -> ReminderScheduler:
        return self._get_dependency(
            "reminder_scheduler",
            lambda: self._reminder_scheduler_factory(self),
        )

    def override(self, **deps: Any) -> "AppContext":
        """Return a new context with some dependencies replaced."""

        override_args = dict(deps)
        new_settings = override_args.pop("settings", self._settings)

        unknown = set(override_args) - self._DEPENDENCY_NAMES
        if unknown:
            names = ", ".join(sorted(unknown))
            raise ValueError(f"Unknown dependencies to override: {names}")

        overrides = dict(self._overrides)
        overrides.update(override_args)
        if new_settings is self._settings:
            instances = {
                key: value
                for key, value in self._instances.items()
                if key not in override_args
            }
        else:
            instances = {}
        return AppContext(
            settings=new_settings,
            workbook_gateway_factory=self._workbook_gateway_factory,
            mail_gateway_factory=self._mail_gateway_factory,
            backup_repository_factory=self._backup_repository_factory,
            backup_service_factory=self._backup_service_factory,
            reminder_repository_factory=self._reminder_repository_factory,
            reminder_service_factory=self._reminder_service_factory,
            reminder_scheduler_factory=self._reminder_scheduler_factory,
            overrides=overrides,
            instances=instances,
        )

    def _get_dependency(
        self, name: DependencyName, factory: Callable[[], Any]
    ) -> Any:
        if name in self._overrides:
            return self._overrides[name]
        if name not in self._instances:
            self._instances[name] = factory()
        return self._instances[name]


_app_context: AppContext | None = None


def build_context(settings: Settings | None = None) -> AppContext:
    settings = settings or get_settings()
    return AppContext(
        settings=settings,
        workbook_gateway_factory=lambda s: WorkbookGateway(creator=s.company_name),
        mail_gateway_factory=MailGateway,
        backup_repository_factory=BackupRepository,
        backup_service_factory=lambda context: BackupService(
            settings=context.settings,
            gateway=context.workbook_gateway,
            repository=context.backup_repository,
        ),
        reminder_repository_factory=FollowUpReminderRepository,
        reminder_service_factory=lambda context: ReminderService(
            settings=context.settings,
            mail_gateway=context.mail_gateway,
            repository=context.reminder_repository,
        ),
        reminder_scheduler_factory=lambda context: ReminderScheduler(
            context.reminder_service,
            interval_minutes=context.settings.reminder_interval_minutes,
        ),
    )


def get_app_context() -> AppContext:
    """Return the process-wide context, creating it on first use."""

    global _app_context
    if _app_context is None:
        _app_context = build_context()
    return _app_context


def set_app_context(context: AppContext | None) -> None:
    """Install ``context`` as the process-wide one (``None`` resets it)."""

    global _app_context
    _app_context = context


__all__ = ["AppContext", "build_context", "get_app_context", "set_app_context"]
