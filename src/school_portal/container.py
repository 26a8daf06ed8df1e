from __future__ import annotations

from dataclasses import dataclass

from .attendance.blob_store import BlobStore, FileSystemBlobStore
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .core.constants import MAX_UPLOAD_BYTES
from .database.connection import DBConfig, DatabaseConnection
from .grading.calculator.weighted_calculator import WeightedAverageCalculator
from .grading.mysql_grading_repository import MySQLGradingRepository
from .grading.repository import GradingRepository
from .grading.service import GradingLedger
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.repository import ReportRepository
from .reports.service import ReportService
from .school.access import SchoolAccess
from .school.mysql_school_repository import MySQLSchoolRepository
from .school.repository import SchoolRepository
from .school.service import SchoolService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    school_repo: SchoolRepository
    attendance_repo: AttendanceRepository
    grading_repo: GradingRepository
    reports_repo: ReportRepository
    blobs: BlobStore

    auth_service: AuthService
    user_service: UserService
    school_service: SchoolService
    attendance_ledger: AttendanceLedger
    grading_ledger: GradingLedger
    report_service: ReportService


def wire_container(
    *,
    users_repo: UserRepository,
    school_repo: SchoolRepository,
    attendance_repo: AttendanceRepository,
    grading_repo: GradingRepository,
    reports_repo: ReportRepository,
    blobs: BlobStore,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
) -> Container:
    """Build the services on top of already constructed repositories."""
    access = SchoolAccess(users_repo, school_repo)
    calculator = WeightedAverageCalculator()

    return Container(
        users_repo=users_repo,
        school_repo=school_repo,
        attendance_repo=attendance_repo,
        grading_repo=grading_repo,
        reports_repo=reports_repo,
        blobs=blobs,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        school_service=SchoolService(school_repo, users_repo, access, blobs),
        attendance_ledger=AttendanceLedger(
            attendance_repo,
            school_repo,
            access,
            blobs,
            max_upload_bytes=max_upload_bytes,
        ),
        grading_ledger=GradingLedger(grading_repo, school_repo, access, calculator=calculator),
        report_service=ReportService(reports_repo, access, calculator=calculator),
    )


def build_container(*, db_config: dict, upload_dir: str, max_upload_bytes: int = MAX_UPLOAD_BYTES) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        school_repo=MySQLSchoolRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        grading_repo=MySQLGradingRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        blobs=FileSystemBlobStore(upload_dir),
        max_upload_bytes=max_upload_bytes,
    )
