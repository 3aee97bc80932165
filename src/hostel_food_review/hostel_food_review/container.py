from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analytics.service import AnalyticsService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.repository import AuditLogRepository
from .audit.service import AuditService
from .blocks.mysql_block_repository import MySQLBlockRepository
from .blocks.repository import BlockRepository
from .blocks.service import BlockService
from .checkins.mysql_checkin_repository import MySQLCheckinRepository
from .checkins.repository import CheckinRepository
from .checkins.service import CheckinService
from .common.mailer import Mailer, SMTPConfig
from .common.turnstile import TurnstileVerifier
from .complaints.mysql_complaint_repository import MySQLComplaintRepository
from .complaints.repository import ComplaintRepository
from .complaints.service import ComplaintService
from .core.constants import OTP_TTL_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .exports.service import ExportService
from .menus.mysql_menu_repository import MySQLMenuRepository
from .menus.repository import MenuRepository
from .menus.service import MenuService
from .notifications.mysql_notification_repository import MySQLNotificationReadRepository
from .notifications.repository import NotificationReadRepository
from .notifications.service import NotificationService
from .reviews.mysql_review_repository import MySQLReviewRepository
from .reviews.repository import ReviewRepository
from .reviews.service import ReviewService
from .settings.mysql_settings_repository import MySQLSiteSettingsRepository
from .settings.repository import SiteSettingsRepository
from .settings.service import SiteSettingsService
from .superadmin.service import SuperAdminService
from .users.mysql_password_reset_repository import MySQLPasswordResetRepository
from .users.mysql_roster_repository import MySQLStudentRecordRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import PasswordResetRepository, StudentRecordRepository, UserRepository
from .users.service import (
    AuthService,
    PasswordResetService,
    ProfileService,
    StudentDataService,
    UserAdminService,
)


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    roster_repo: StudentRecordRepository
    blocks_repo: BlockRepository
    audit_repo: AuditLogRepository
    settings_repo: SiteSettingsRepository
    checkins_repo: CheckinRepository
    menus_repo: MenuRepository
    reviews_repo: ReviewRepository
    complaints_repo: ComplaintRepository
    notification_reads_repo: NotificationReadRepository

    turnstile: TurnstileVerifier
    mailer: Mailer

    audit_service: AuditService
    block_service: BlockService
    auth_service: AuthService
    password_reset_service: PasswordResetService
    profile_service: ProfileService
    user_admin_service: UserAdminService
    student_data_service: StudentDataService
    settings_service: SiteSettingsService
    checkin_service: CheckinService
    menu_service: MenuService
    review_service: ReviewService
    complaint_service: ComplaintService
    analytics_service: AnalyticsService
    super_admin_service: SuperAdminService
    export_service: ExportService
    notification_service: NotificationService


def wire_container(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    roster_repo: StudentRecordRepository,
    resets_repo: PasswordResetRepository,
    blocks_repo: BlockRepository,
    audit_repo: AuditLogRepository,
    settings_repo: SiteSettingsRepository,
    checkins_repo: CheckinRepository,
    menus_repo: MenuRepository,
    reviews_repo: ReviewRepository,
    complaints_repo: ComplaintRepository,
    notification_reads_repo: NotificationReadRepository,
    turnstile: TurnstileVerifier,
    mailer: Mailer,
    app_url: str = "",
    allowed_email_domain: str = "kanchiuniv.ac.in",
) -> Container:
    """Build every service on top of the given repositories (MySQL or in-memory)."""
    audit_service = AuditService(audit_repo)
    settings_service = SiteSettingsService(settings_repo, audit_service)
    menu_service = MenuService(menus_repo, audit_service)
    review_service = ReviewService(reviews_repo, users_repo, blocks_repo, audit_service)

    return Container(
        conn=conn,
        users_repo=users_repo,
        roster_repo=roster_repo,
        blocks_repo=blocks_repo,
        audit_repo=audit_repo,
        settings_repo=settings_repo,
        checkins_repo=checkins_repo,
        menus_repo=menus_repo,
        reviews_repo=reviews_repo,
        complaints_repo=complaints_repo,
        notification_reads_repo=notification_reads_repo,
        turnstile=turnstile,
        mailer=mailer,
        audit_service=audit_service,
        block_service=BlockService(blocks_repo),
        auth_service=AuthService(
            users_repo, roster_repo, blocks_repo, mailer, allowed_email_domain=allowed_email_domain
        ),
        password_reset_service=PasswordResetService(users_repo, resets_repo, mailer, ttl_minutes=OTP_TTL_MINUTES),
        profile_service=ProfileService(users_repo, roster_repo),
        user_admin_service=UserAdminService(users_repo, audit_service),
        student_data_service=StudentDataService(roster_repo, audit_service),
        settings_service=settings_service,
        checkin_service=CheckinService(checkins_repo, users_repo, settings_service, app_url=app_url),
        menu_service=menu_service,
        review_service=review_service,
        complaint_service=ComplaintService(complaints_repo, users_repo, blocks_repo, audit_service),
        analytics_service=AnalyticsService(reviews_repo, complaints_repo, menus_repo, blocks_repo, review_service),
        super_admin_service=SuperAdminService(users_repo, blocks_repo, audit_service),
        export_service=ExportService(reviews_repo, complaints_repo, checkins_repo, users_repo),
        notification_service=NotificationService(
            notification_reads_repo, reviews_repo, complaints_repo, checkins_repo, menu_service
        ),
    )


def build_container(*, db_config: dict, settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    app_url = str(getattr(settings, "APP_URL", "") or "")
    development = bool(getattr(settings, "DEBUG", False))

    return wire_container(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        roster_repo=MySQLStudentRecordRepository(conn),
        resets_repo=MySQLPasswordResetRepository(conn),
        blocks_repo=MySQLBlockRepository(conn),
        audit_repo=MySQLAuditLogRepository(conn),
        settings_repo=MySQLSiteSettingsRepository(conn),
        checkins_repo=MySQLCheckinRepository(conn),
        menus_repo=MySQLMenuRepository(conn),
        reviews_repo=MySQLReviewRepository(conn),
        complaints_repo=MySQLComplaintRepository(conn),
        notification_reads_repo=MySQLNotificationReadRepository(conn),
        turnstile=TurnstileVerifier(getattr(settings, "TURNSTILE_SECRET_KEY", None), development=development),
        mailer=Mailer(SMTPConfig.from_settings(settings), portal_url=app_url),
        app_url=app_url,
        allowed_email_domain=str(getattr(settings, "ALLOWED_EMAIL_DOMAIN", "kanchiuniv.ac.in")),
    )
