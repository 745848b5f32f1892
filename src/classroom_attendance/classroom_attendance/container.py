from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.service import AttendanceService
from .attendance.session_manager import AttendanceSessionManager
from .core.constants import SESSION_TTL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .ephemeral.lifecycle import RedisConfig, RedisLifecycle
from .ephemeral.redis_store import RedisEphemeralStore
from .ephemeral.store import EphemeralStore
from .mail.mailer import MailConfig, Mailer, SmtpMailer
from .otp.service import OtpService
from .reports.service import AttendanceReportService
from .requests.queue import RequestQueue
from .requests.service import CollaborationService, EnrollmentService
from .subjects.mysql_subject_repository import MySQLSubjectRepository
from .subjects.repository import SubjectRepository
from .subjects.service import SubjectService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    store: EphemeralStore
    users_repo: UserRepository
    subjects_repo: SubjectRepository
    mailer: Mailer
    token_service: TokenService

    session_manager: AttendanceSessionManager
    request_queue: RequestQueue

    auth_service: AuthService
    user_service: UserService
    otp_service: OtpService
    subject_service: SubjectService
    attendance_service: AttendanceService
    enrollment_service: EnrollmentService
    collaboration_service: CollaborationService
    report_service: AttendanceReportService

    conn: Optional[DatabaseConnection] = None
    redis: Optional[RedisLifecycle] = None


def assemble(
    *,
    store: EphemeralStore,
    users_repo: UserRepository,
    subjects_repo: SubjectRepository,
    mailer: Mailer,
    token_service: TokenService,
    session_ttl_seconds: int = SESSION_TTL_SECONDS,
    mark_requires_open_session: bool = False,
    conn: Optional[DatabaseConnection] = None,
    redis: Optional[RedisLifecycle] = None,
) -> Container:
    """Wire services over already-built adapters (real ones or test fakes)."""
    session_manager = AttendanceSessionManager(store, ttl_seconds=session_ttl_seconds)
    request_queue = RequestQueue(store)

    user_service = UserService(users_repo)

    return Container(
        store=store,
        users_repo=users_repo,
        subjects_repo=subjects_repo,
        mailer=mailer,
        token_service=token_service,
        session_manager=session_manager,
        request_queue=request_queue,
        auth_service=AuthService(users_repo, token_service),
        user_service=user_service,
        otp_service=OtpService(store, users_repo, user_service, mailer),
        subject_service=SubjectService(subjects_repo, users_repo),
        attendance_service=AttendanceService(
            subjects_repo,
            users_repo,
            session_manager,
            mark_requires_open_session=mark_requires_open_session,
        ),
        enrollment_service=EnrollmentService(request_queue, subjects_repo, users_repo),
        collaboration_service=CollaborationService(request_queue, subjects_repo, users_repo),
        report_service=AttendanceReportService(subjects_repo, users_repo, mailer),
        conn=conn,
        redis=redis,
    )


def build_container(
    *,
    db_config: dict,
    redis_config: dict,
    mail_config: dict,
    jwt_secret: str,
    access_token_minutes: int = 15,
    refresh_token_days: int = 7,
    session_ttl_seconds: int = SESSION_TTL_SECONDS,
    mark_requires_open_session: bool = False,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))
    redis = RedisLifecycle(RedisConfig.from_mapping(redis_config))

    return assemble(
        store=RedisEphemeralStore(redis.client),
        users_repo=MySQLUserRepository(conn),
        subjects_repo=MySQLSubjectRepository(conn),
        mailer=SmtpMailer(MailConfig.from_mapping(mail_config)),
        token_service=TokenService(
            jwt_secret,
            access_minutes=access_token_minutes,
            refresh_days=refresh_token_days,
        ),
        session_ttl_seconds=session_ttl_seconds,
        mark_requires_open_session=mark_requires_open_session,
        conn=conn,
        redis=redis,
    )
