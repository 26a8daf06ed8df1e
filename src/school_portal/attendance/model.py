from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..core.enums import ApprovalState, AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's status for one period.

    Justification fields are only meaningful while ``status`` is ABSENT.
    ``approved`` is tri-state: None (pending), True (approved), False (rejected).
    """

    attendance_id: int
    enroll_id: int
    period_id: int
    status: AttendanceStatus
    justification: Optional[str] = None
    approved: Optional[bool] = None
    reject_reason: Optional[str] = None
    justification_file: Optional[str] = None

    @property
    def approval_state(self) -> ApprovalState:
        if self.status != AttendanceStatus.ABSENT:
            return ApprovalState.NOT_APPLICABLE
        if self.approved is None:
            return ApprovalState.PENDING
        return ApprovalState.APPROVED if self.approved else ApprovalState.REJECTED


@dataclass(frozen=True)
class AttendanceDetails:
    """A record joined with the student and homeroom class it belongs to."""

    record: AttendanceRecord
    student_id: int
    first_name: str
    last_name: str
    class_id: int
    class_code: str


@dataclass(frozen=True)
class JustificationDocument:
    content: bytes
    filename: str
    mime_type: str


class UploadedFile(Protocol):
    """The slice of ``werkzeug.datastructures.FileStorage`` the ledger relies on."""

    filename: Optional[str]

    def read(self, size: int = -1) -> bytes:
        ...

    def close(self) -> None:
        ...
