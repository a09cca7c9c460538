from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from .alerts.mysql_alert_repository import MySQLAlertRepository
from .alerts.service import AlertService
from .attendance.factory import CheckInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .auth.guards import Guards, build_guards
from .auth.tokens import TokenService
from .database.connection import DatabaseConnection, DBConfig
from .notifications.mailer import LoggingMailer, Mailer
from .performance.calculator.standard_calculator import StandardPerformanceCalculator
from .performance.mysql_performance_repository import MySQLPerformanceRepository
from .performance.service import PerformanceService
from .shifts.mysql_schedule_repository import MySQLScheduleRepository
from .shifts.mysql_swap_repository import MySQLSwapRepository
from .shifts.service import ShiftService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.reassignment import TaskReassigner
from .tasks.service import TaskService
from .users.mysql_admin_repository import MySQLAdminRepository
from .users.mysql_profile_repository import MySQLProfileRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AdminService, AuthService, StaffService
from .verification.mysql_team_repository import MySQLTeamRepository
from .verification.mysql_verification_repository import MySQLVerificationRepository
from .verification.service import VerificationService


@dataclass(frozen=True)
class Settings:
    """Values read from the selected ``config.*`` module."""

    secret_key: str
    environment: str = "development"
    debug: bool = False
    access_token_hours: int = 24
    admin_token_hours: int = 8
    reset_token_minutes: int = 60
    verification_code_minutes: int = 10
    cors_origins: List[str] = field(default_factory=list)
    rate_limit_window_seconds: int = 900
    rate_limit_max_requests: int = 500
    db_connect_retries: int = 3
    db_connect_retry_seconds: float = 3
    frontend_url: str = "http://localhost:3000"

    @classmethod
    def from_module(cls, module: Any) -> "Settings":
        return cls(
            secret_key=str(module.SECRET_KEY),
            environment=str(getattr(module, "ENVIRONMENT", "development")),
            debug=bool(getattr(module, "DEBUG", False)),
            access_token_hours=int(getattr(module, "ACCESS_TOKEN_HOURS", 24)),
            admin_token_hours=int(getattr(module, "ADMIN_TOKEN_HOURS", 8)),
            reset_token_minutes=int(getattr(module, "RESET_TOKEN_MINUTES", 60)),
            verification_code_minutes=int(getattr(module, "VERIFICATION_CODE_MINUTES", 10)),
            cors_origins=list(getattr(module, "CORS_ORIGINS", [])),
            rate_limit_window_seconds=int(getattr(module, "RATE_LIMIT_WINDOW_SECONDS", 900)),
            rate_limit_max_requests=int(getattr(module, "RATE_LIMIT_MAX_REQUESTS", 500)),
            db_connect_retries=int(getattr(module, "DB_CONNECT_RETRIES", 3)),
            db_connect_retry_seconds=float(getattr(module, "DB_CONNECT_RETRY_SECONDS", 3)),
            frontend_url=str(getattr(module, "FRONTEND_URL", "http://localhost:3000")),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@dataclass(frozen=True)
class Container:
    settings: Settings
    conn: Any
    tokens: TokenService
    guards: Guards
    mailer: Mailer

    auth_service: AuthService
    admin_service: AdminService
    staff_service: StaffService
    attendance_service: AttendanceService
    alert_service: AlertService
    shift_service: ShiftService
    task_service: TaskService
    verification_service: VerificationService
    performance_service: PerformanceService


def build_container(*, db_config: dict, settings: Settings) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    admins_repo = MySQLAdminRepository(conn)
    profiles_repo = MySQLProfileRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    swaps_repo = MySQLSwapRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)
    alerts_repo = MySQLAlertRepository(conn)
    teams_repo = MySQLTeamRepository(conn)
    verifications_repo = MySQLVerificationRepository(conn)
    performance_repo = MySQLPerformanceRepository(conn)

    tokens = TokenService(
        settings.secret_key,
        access_hours=settings.access_token_hours,
        admin_hours=settings.admin_token_hours,
        reset_minutes=settings.reset_token_minutes,
    )
    mailer = LoggingMailer()

    alert_service = AlertService(alerts_repo, users_repo, profiles_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        profiles_repo,
        mailer,
        strategy_factory=CheckInStrategyFactory(),
    )
    reassigner = TaskReassigner(
        tasks_repo, users_repo, profiles_repo, absent_on=attendance_service.absent_user_ids
    )

    return Container(
        settings=settings,
        conn=conn,
        tokens=tokens,
        guards=build_guards(tokens),
        mailer=mailer,
        auth_service=AuthService(
            users_repo,
            profiles_repo,
            tokens,
            mailer,
            verification_minutes=settings.verification_code_minutes,
            expose_codes=settings.is_development,
            frontend_url=settings.frontend_url,
        ),
        admin_service=AdminService(admins_repo, tokens),
        staff_service=StaffService(users_repo, profiles_repo),
        attendance_service=attendance_service,
        alert_service=alert_service,
        shift_service=ShiftService(schedules_repo, swaps_repo, users_repo, profiles_repo, alert_service),
        task_service=TaskService(tasks_repo, users_repo, profiles_repo, alert_service, reassigner),
        verification_service=VerificationService(teams_repo, verifications_repo, tasks_repo, users_repo),
        performance_service=PerformanceService(
            performance_repo,
            users_repo,
            profiles_repo,
            attendance_repo,
            tasks_repo,
            schedules_repo,
            alert_service,
            mailer,
            calculator=StandardPerformanceCalculator(),
        ),
    )
