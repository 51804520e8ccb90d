from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional, Sequence

from ..classes.descriptor import ScheduleDescriptor, parse_schedule
from ..classes.model import ClassSchedule
from ..classes.repository import ClassRepository
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_GENERATED_STATUS, DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import AttendanceStatus, LogDirection
from ..core.exceptions import AuthorizationError, GenerationFailed, InvalidSchedule, StoreUnavailable, ValidationError
from ..enrollment.model import EnrolledStudent
from ..enrollment.repository import EnrollmentProvider
from ..logs.model import RawLogEntry
from ..logs.repository import LogProvider
from ..users.model import CurrentUser
from .aggregator import SessionSummary, summarize
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# Passed to mark() for a time that should stay as stored; None clears it.
KEEP = object()


def _sort_key(r: AttendanceRecord):
    return (r.last_name.lower(), r.first_name.lower(), r.student_user_id)


class AttendanceSessionService:
    """Materializes and maintains class attendance sessions.

    A session is every row sharing (class_id, session_date). Generation only
    ever adds missing rows, so it is safe to call again when a teacher
    revisits a date or when students enrolled after the first run.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        enrollment: EnrollmentProvider,
        classes: ClassRepository,
        logs: LogProvider | None = None,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        default_status: AttendanceStatus = DEFAULT_GENERATED_STATUS,
    ):
        self._attendance = attendance
        self._enrollment = enrollment
        self._classes = classes
        self._logs = logs
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._default_status = AttendanceStatus(default_status)

    @staticmethod
    def _require_staff(current_user: CurrentUser) -> None:
        if not current_user.is_staff:
            raise AuthorizationError("Only teachers, instructors and admins can manage attendance")

    def _get_class(self, class_id: int) -> ClassSchedule:
        cls = self._classes.get_by_id(require_positive_id(class_id, "class_id"))
        if not cls:
            raise ValidationError(f"Class {class_id} does not exist")
        return cls

    def _schedule_for(self, cls: ClassSchedule) -> Optional[ScheduleDescriptor]:
        try:
            return parse_schedule(cls.schedule)
        except InvalidSchedule as e:
            logger.warning("class schedule not parsable; lateness not derived", extra={"class_id": cls.class_id, "error": str(e)})
            return None

    def _new_record(self, class_id: int, session_date: date, student: EnrolledStudent, actor_id: int) -> AttendanceRecord:
        return AttendanceRecord(
            class_id=class_id,
            student_user_id=student.student_user_id,
            session_date=session_date,
            status=self._default_status,
            student_code=student.student_code,
            first_name=student.first_name,
            middle_name=student.middle_name,
            last_name=student.last_name,
            recorded_by=actor_id,
        )

    def _fetch_logs(self, class_id: int, session_date: date) -> tuple[dict[int, datetime], dict[int, datetime]]:
        """First login and last logout per student on the session date."""

        first_in: dict[int, datetime] = {}
        last_out: dict[int, datetime] = {}
        if self._logs is None:
            return first_in, last_out

        entries: Sequence[RawLogEntry] = self._logs.logs_for(class_id, session_date)
        for e in entries:
            if e.timestamp.date() != session_date:
                continue
            sid = e.student_user_id
            if e.direction == LogDirection.IN:
                if sid not in first_in or e.timestamp < first_in[sid]:
                    first_in[sid] = e.timestamp
            elif sid not in last_out or e.timestamp > last_out[sid]:
                last_out[sid] = e.timestamp
        return first_in, last_out

    def _apply_logs(
        self,
        record: AttendanceRecord,
        *,
        first_login: Optional[datetime],
        last_logout: Optional[datetime],
        schedule: Optional[ScheduleDescriptor],
    ) -> AttendanceRecord:
        strategy = self._factory.for_logs(
            first_login=first_login,
            session_date=record.session_date,
            schedule=schedule,
            grace_minutes=self._grace_minutes,
        )
        decision = strategy.decide(
            first_login=first_login,
            session_date=record.session_date,
            schedule=schedule,
            grace_minutes=self._grace_minutes,
        )
        return replace(
            record,
            status=decision.status,
            time_in=first_login.time().replace(microsecond=0) if first_login else None,
            time_out=last_logout.time().replace(microsecond=0) if last_logout else None,
            remarks=record.remarks or decision.note or "",
        )

    def _overlay_logs(self, cls: ClassSchedule, session_date: date, rows: list[AttendanceRecord]) -> list[AttendanceRecord]:
        first_in, last_out = self._fetch_logs(cls.class_id, session_date)
        if not first_in and not last_out:
            # Nothing imported for this date yet; leave the rows unmarked.
            return rows

        schedule = self._schedule_for(cls)
        return [
            self._apply_logs(
                r,
                first_login=first_in.get(r.student_user_id),
                last_logout=last_out.get(r.student_user_id),
                schedule=schedule,
            )
            for r in rows
        ]

    def generate(self, class_id: int, session_date: date, *, current_user: CurrentUser) -> list[AttendanceRecord]:
        """Ensure one row per currently enrolled student exists for the session.

        Rows already stored (including teacher edits) are kept as they are;
        only missing rows are written, in one batch. Any collaborator or store
        failure raises GenerationFailed and leaves the store unchanged.
        """

        self._require_staff(current_user)

        try:
            cls = self._get_class(class_id)
            enrolled = list(self._enrollment.list_enrolled(cls.class_id))
            existing = {r.student_user_id for r in self._attendance.list_by_class_and_date(cls.class_id, session_date)}

            new_rows = [
                self._new_record(cls.class_id, session_date, s, current_user.user_id)
                for s in enrolled
                if s.student_user_id not in existing
            ]
            if new_rows and self._logs is not None:
                new_rows = self._overlay_logs(cls, session_date, new_rows)

            inserted = self._attendance.insert_missing(new_rows) if new_rows else 0
            stored = {r.student_user_id: r for r in self._attendance.list_by_class_and_date(cls.class_id, session_date)}
        except StoreUnavailable as e:
            logger.warning(
                "session generation failed",
                extra={"class_id": class_id, "session_date": session_date.isoformat(), "error": str(e)},
            )
            raise GenerationFailed(f"Could not generate attendance for class {class_id} on {session_date}: {e}") from e

        missing = [s.student_user_id for s in enrolled if s.student_user_id not in stored]
        if missing:
            raise GenerationFailed(f"Store did not return rows for students {missing}")

        logger.info(
            "session generated",
            extra={
                "class_id": cls.class_id,
                "session_date": session_date.isoformat(),
                "enrolled": len(enrolled),
                "inserted": inserted,
                "actor_id": current_user.user_id,
            },
        )
        return sorted((stored[s.student_user_id] for s in enrolled), key=_sort_key)

    def backfill_from_logs(self, class_id: int, session_date: date, *, current_user: CurrentUser) -> int:
        """Fill times and derived status on rows nobody has touched yet.

        Returns the number of rows updated. Rows with a status, a time-in or
        remarks are skipped.
        """

        self._require_staff(current_user)
        if self._logs is None:
            return 0

        cls = self._get_class(class_id)
        untouched = [r for r in self._attendance.list_by_class_and_date(cls.class_id, session_date) if r.is_untouched]
        if not untouched:
            return 0

        updated = 0
        for before, after in zip(untouched, self._overlay_logs(cls, session_date, untouched)):
            if after == before:
                continue
            # A teacher may have edited the row since it was read; their edit wins.
            if self._attendance.update_if_untouched(replace(after, recorded_by=current_user.user_id)):
                updated += 1

        logger.info(
            "session backfilled from logs",
            extra={"class_id": cls.class_id, "session_date": session_date.isoformat(), "updated": updated},
        )
        return updated

    def mark(
        self,
        class_id: int,
        student_user_id: int,
        session_date: date,
        *,
        status: AttendanceStatus,
        current_user: CurrentUser,
        remarks: Optional[str] = None,
        time_in: Optional[time] | object = KEEP,
        time_out: Optional[time] | object = KEEP,
    ) -> AttendanceRecord:
        """Teacher edit of a single row. The row must have been generated first.

        remarks=None keeps the stored remarks. Times default to KEEP; passing
        None clears a stored time.
        """

        self._require_staff(current_user)
        try:
            status = AttendanceStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown status {status!r}") from e

        record = self._attendance.get(class_id, student_user_id, session_date)
        if not record:
            raise ValidationError("No attendance row for this student on that date; generate the session first")

        return self._attendance.put(
            replace(
                record,
                status=status,
                remarks=record.remarks if remarks is None else remarks.strip(),
                time_in=record.time_in if time_in is KEEP else time_in,
                time_out=record.time_out if time_out is KEEP else time_out,
                recorded_by=current_user.user_id,
            )
        )

    def load_session(self, class_id: int, session_date: date) -> list[AttendanceRecord]:
        return sorted(self._attendance.list_by_class_and_date(class_id, session_date), key=_sort_key)

    def summarize_session(self, class_id: int, session_date: date) -> SessionSummary:
        return summarize(self.load_session(class_id, session_date))

    def ensure_archivable(self, class_id: int, session_date: date) -> list[AttendanceRecord]:
        """Return the session if it may be exported/saved; otherwise raise ValidationError."""

        records = self.load_session(class_id, session_date)
        if not summarize(records).can_archive:
            raise ValidationError("Mark at least one student before saving or exporting")
        return records

    def load_range(self, class_id: int, start: date, end: date) -> list[AttendanceRecord]:
        """Rows of every session between start and end (inclusive), newest first."""

        if end < start:
            raise ValidationError("end date is before start date")
        return sorted(
            self._attendance.list_by_class_between(class_id, start, end),
            key=lambda r: (-r.session_date.toordinal(), *_sort_key(r)),
        )
