from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..common.validators import file_extension, parse_status, require_non_empty, require_positive_int, sanitize_filename
from ..core.constants import (
    DEFAULT_DOCUMENT_MIME_TYPE,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_PENDING_LIMIT,
    DOCUMENT_MIME_TYPES,
    MAX_UPLOAD_BYTES,
)
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import DuplicateRecord, RecordNotFound, Unauthorized, ValidationError
from ..school.access import SchoolAccess
from ..school.model import ClassSubjectAssignment, Period
from ..school.repository import SchoolRepository
from ..security.guard import is_admin, require_any_role, require_role
from ..security.session import RequestContext
from .blob_store import BlobStore
from .model import AttendanceDetails, JustificationDocument, UploadedFile
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

StatusInput = Union[AttendanceStatus, str]


class AttendanceLedger:
    """Use case: record attendance and run the absence-justification workflow.

    Approval lifecycle of an ABSENT record::

        PENDING --decide(approved=True)--> APPROVED
        PENDING --decide(approved=False, reason)--> REJECTED
        REJECTED --submit_justification--> PENDING

    Moving a record away from ABSENT wipes the justification, document, decision
    and reason; they are not restored if the record becomes ABSENT again.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        school: SchoolRepository,
        access: SchoolAccess,
        blobs: BlobStore,
        *,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self._attendance = attendance
        self._school = school
        self._access = access
        self._blobs = blobs
        self._max_upload_bytes = int(max_upload_bytes)

    # -------- Recording --------
    def _period_for_teacher(self, ctx: RequestContext, period_id: int) -> Tuple[Period, ClassSubjectAssignment]:
        period = self._school.get_period(int(period_id))
        if not period:
            raise RecordNotFound("Period not found")
        assignment = self._school.get_assignment(period.class_subject_id)
        if not assignment:
            raise RecordNotFound("Period not found")
        self._access.ensure_teaches(ctx, assignment)
        return period, assignment

    def _upsert(self, enroll_id: int, period_id: int, status: AttendanceStatus) -> int:
        existing = self._attendance.get_for_enrollment_and_period(enroll_id, period_id)
        if existing is None:
            try:
                return self._attendance.insert(enroll_id=enroll_id, period_id=period_id, status=status)
            except DuplicateRecord:
                # Lost a race with a concurrent insert; fall through to update.
                existing = self._attendance.get_for_enrollment_and_period(enroll_id, period_id)
                if existing is None:
                    raise

        clear = status != AttendanceStatus.ABSENT
        self._attendance.update_status(existing.attendance_id, status=status, clear_justification=clear)
        if clear and existing.justification_file:
            self._blobs.delete(existing.justification_file)
        return existing.attendance_id

    def record_status(self, ctx: RequestContext, *, enrollment_id: int, period_id: int, status: StatusInput) -> int:
        period, assignment = self._period_for_teacher(ctx, period_id)
        status = parse_status(status)

        enrollment = self._school.get_enrollment(require_positive_int(enrollment_id, "enrollment_id"))
        if not enrollment or enrollment.class_id != assignment.class_id:
            raise ValidationError("Student is not enrolled in this class")

        att_id = self._upsert(enrollment.enroll_id, period.period_id, status)
        logger.info("User %s set attendance %s (period %s) to %s", ctx.user_id, att_id, period.period_id, status.value)
        return att_id

    def record_bulk(
        self,
        ctx: RequestContext,
        *,
        period_id: int,
        entries: Iterable[Tuple[int, StatusInput]],
    ) -> List[int]:
        """Validate every entry first; write only if all of them are acceptable."""
        period, assignment = self._period_for_teacher(ctx, period_id)
        enrolled = {e.enroll_id for e in self._school.list_enrollments_for_class(assignment.class_id)}

        parsed: list[Tuple[int, AttendanceStatus]] = []
        for enroll_id, status in entries:
            enroll_id = require_positive_int(enroll_id, "enrollment_id")
            if enroll_id not in enrolled:
                raise ValidationError(f"Enrollment {enroll_id} is not part of this class")
            parsed.append((enroll_id, parse_status(status)))

        if not parsed:
            raise ValidationError("No attendance entries given")

        ids = [self._upsert(enroll_id, period.period_id, status) for enroll_id, status in parsed]
        logger.info("User %s recorded %d attendance entries for period %s", ctx.user_id, len(ids), period.period_id)
        return ids

    def list_period_attendance(self, ctx: RequestContext, *, period_id: int) -> Sequence[dict]:
        """One row per enrolled student; students without a record have ``status`` None."""
        period, assignment = self._period_for_teacher(ctx, period_id)
        recorded = {r.enroll_id: r for r in self._attendance.list_for_period(period.period_id)}

        rows = []
        for entry in self._school.list_roster(assignment.class_id):
            record = recorded.get(entry.enroll_id)
            rows.append(
                {
                    "enroll_id": entry.enroll_id,
                    "student_id": entry.student_id,
                    "first_name": entry.first_name,
                    "last_name": entry.last_name,
                    "att_id": record.attendance_id if record else None,
                    "status": record.status.value if record else None,
                    "approval_state": record.approval_state.value if record else None,
                }
            )
        return rows

    # -------- Justification workflow --------
    def _store_document(self, document: UploadedFile) -> str:
        ext = file_extension(document.filename or "")
        if ext not in DOCUMENT_MIME_TYPES:
            raise ValidationError("File type not allowed. Allowed: " + ", ".join(sorted(DOCUMENT_MIME_TYPES)))

        data = document.read(self._max_upload_bytes + 1)
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > self._max_upload_bytes:
            raise ValidationError("Uploaded file is too large")
        return self._blobs.store(data, ext)

    def submit_justification(
        self,
        ctx: RequestContext,
        *,
        attendance_id: int,
        text: str,
        document: Optional[UploadedFile] = None,
    ) -> None:
        try:
            require_any_role(ctx, Role.STUDENT, Role.PARENT)
            details = self._attendance.get_details(int(attendance_id))
            if not details or not (is_admin(ctx) or self._access.owns_student(ctx, details.student_id)):
                raise RecordNotFound("Attendance record not found")

            record = details.record
            if record.status != AttendanceStatus.ABSENT:
                raise ValidationError("Only absences can be justified")
            if record.approved is True:
                raise ValidationError("This absence has already been approved")

            text = require_non_empty(text, "Justification")
            document_ref = self._store_document(document) if document is not None else None

            try:
                if not self._attendance.save_justification(record.attendance_id, text=text, document_ref=document_ref):
                    raise RecordNotFound("Attendance record not found")
            except Exception:
                # The stored document would be unreferenced.
                if document_ref:
                    self._blobs.delete(document_ref)
                raise
            if record.justification_file and record.justification_file != document_ref:
                self._blobs.delete(record.justification_file)
            logger.info("User %s submitted justification for attendance %s", ctx.user_id, record.attendance_id)
        finally:
            if document is not None:
                document.close()

    def _details_for_homeroom(self, ctx: RequestContext, attendance_id: int) -> Optional[AttendanceDetails]:
        details = self._attendance.get_details(int(attendance_id))
        if not details or not self._access.is_homeroom_teacher(ctx, details.class_id):
            return None
        return details

    def decide(
        self,
        ctx: RequestContext,
        *,
        attendance_id: int,
        approved: bool,
        reason: Optional[str] = None,
    ) -> None:
        require_role(ctx, Role.TEACHER)
        details = self._attendance.get_details(int(attendance_id))
        if not details:
            raise RecordNotFound("Attendance record not found")
        if not self._access.is_homeroom_teacher(ctx, details.class_id):
            logger.info("User %s is not homeroom teacher for attendance %s", ctx.user_id, attendance_id)
            raise Unauthorized("Only the homeroom teacher can decide on this justification")

        record = details.record
        if record.status != AttendanceStatus.ABSENT:
            raise ValidationError("Only absences can be approved or rejected")
        if not (record.justification or "").strip():
            raise ValidationError("No justification has been submitted")

        reject_reason = None
        if not approved:
            reject_reason = require_non_empty(reason or "", "Reject reason")

        self._attendance.set_decision(record.attendance_id, approved=bool(approved), reject_reason=reject_reason)
        logger.info(
            "User %s %s justification for attendance %s",
            ctx.user_id,
            "approved" if approved else "rejected",
            record.attendance_id,
        )

    def get_justification_document(self, ctx: RequestContext, *, attendance_id: int) -> JustificationDocument:
        require_role(ctx, Role.TEACHER)
        details = self._details_for_homeroom(ctx, attendance_id)
        if not details or not details.record.justification_file:
            raise RecordNotFound("Document not found")

        reference = details.record.justification_file
        content = self._blobs.retrieve(reference)
        ext = file_extension(reference)

        base = f"{details.first_name}_{details.last_name}_{details.class_code}_justification"
        filename = sanitize_filename(f"{base}.{ext}" if ext else base)
        return JustificationDocument(
            content=content,
            filename=filename,
            mime_type=DOCUMENT_MIME_TYPES.get(ext, DEFAULT_DOCUMENT_MIME_TYPE),
        )

    # -------- Listings --------
    def list_pending(self, ctx: RequestContext, *, limit: int = DEFAULT_PENDING_LIMIT) -> Sequence[dict]:
        require_role(ctx, Role.TEACHER)
        if is_admin(ctx):
            return self._attendance.list_pending(homeroom_teacher_id=None, limit=limit)
        teacher_id = self._access.teacher_id(ctx)
        if teacher_id is None:
            return []
        return self._attendance.list_pending(homeroom_teacher_id=teacher_id, limit=limit)

    def list_for_student(
        self,
        ctx: RequestContext,
        *,
        student_id: Optional[int] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[dict]:
        require_any_role(ctx, Role.STUDENT, Role.PARENT)
        visible = self._access.visible_student_ids(ctx)

        if visible is None:
            ids: Optional[list[int]] = [int(student_id)] if student_id else None
        elif student_id:
            ids = [int(student_id)] if int(student_id) in visible else []
        else:
            ids = sorted(visible)

        if ids is not None and not ids:
            return []
        return self._attendance.list_for_students(student_ids=ids, limit=limit)
