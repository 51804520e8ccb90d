from __future__ import annotations

import threading
from datetime import datetime, time

import pytest

from class_attendance.attendance.service import AttendanceSessionService
from class_attendance.core.constants import DEFAULT_GENERATED_STATUS
from class_attendance.core.enums import AttendanceStatus, LogDirection
from class_attendance.core.exceptions import AuthorizationError, GenerationFailed, ValidationError
from class_attendance.logs.model import RawLogEntry

from conftest import InMemoryLogs, make_student


def _login(student_id, hh, mm, direction=LogDirection.IN):
    return RawLogEntry(student_id, datetime(2026, 2, 2, hh, mm), direction, "PC-07")


def test_generate_creates_one_unmarked_row_per_enrolled_student(service, attendance_repo, teacher, session_date):
    records = service.generate(1, session_date, current_user=teacher)

    assert [r.student_user_id for r in records] == [7, 8, 6]  # Cruz, Reyes, Santos
    assert all(r.status == DEFAULT_GENERATED_STATUS == AttendanceStatus.NONE for r in records)
    assert all(r.time_in is None and r.time_out is None and r.remarks == "" for r in records)
    assert all(r.recorded_by == teacher.user_id for r in records)
    assert len(attendance_repo.all_rows()) == 3


def test_generate_copies_display_fields_from_snapshot(service, teacher, session_date):
    cruz = service.generate(1, session_date, current_user=teacher)[0]
    assert cruz.student_code == "2024-0007"
    assert cruz.display_name == "Cruz, Ana"


def test_generate_twice_is_idempotent(service, attendance_repo, teacher, session_date):
    first = service.generate(1, session_date, current_user=teacher)
    second = service.generate(1, session_date, current_user=teacher)

    assert first == second
    assert len(attendance_repo.all_rows()) == 3


def test_regenerate_keeps_manual_edits_and_adds_new_students(service, enrollment, attendance_repo, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)
    service.mark(1, 6, session_date, status=AttendanceStatus.EXCUSED, remarks="clinic", current_user=teacher)

    enrollment.by_class[1].append(make_student(9, "Bautista"))
    records = {r.student_user_id: r for r in service.generate(1, session_date, current_user=teacher)}

    assert set(records) == {6, 7, 8, 9}
    assert records[6].status == AttendanceStatus.EXCUSED
    assert records[6].remarks == "clinic"
    assert records[9].status == AttendanceStatus.NONE
    assert len(attendance_repo.all_rows()) == 4


def test_generate_with_no_enrolled_students_is_empty(service, attendance_repo, teacher, session_date):
    assert service.generate(2, session_date, current_user=teacher) == []
    assert attendance_repo.all_rows() == []


def test_generate_unknown_class_is_validation_error(service, teacher, session_date):
    with pytest.raises(ValidationError):
        service.generate(404, session_date, current_user=teacher)


def test_students_cannot_generate(service, student_user, session_date):
    with pytest.raises(AuthorizationError):
        service.generate(1, session_date, current_user=student_user)


def test_enrollment_outage_fails_whole_generation(service, enrollment, attendance_repo, teacher, session_date):
    enrollment.unavailable = True

    with pytest.raises(GenerationFailed):
        service.generate(1, session_date, current_user=teacher)
    assert attendance_repo.all_rows() == []


def test_write_failure_commits_nothing(service, attendance_repo, teacher, session_date):
    attendance_repo.fail_writes = True

    with pytest.raises(GenerationFailed):
        service.generate(1, session_date, current_user=teacher)
    assert attendance_repo.all_rows() == []


def test_log_outage_fails_generation(service_with_logs, logs, attendance_repo, teacher, session_date):
    logs.unavailable = True

    with pytest.raises(GenerationFailed):
        service_with_logs.generate(1, session_date, current_user=teacher)
    assert attendance_repo.all_rows() == []


def test_concurrent_generation_converges_to_one_row_per_student(service, enrollment, attendance_repo, teacher, session_date):
    # Both callers read enrollment and the (empty) session before either writes.
    enrollment.barrier = threading.Barrier(2)
    results, errors = [], []

    def run():
        try:
            results.append(service.generate(1, session_date, current_user=teacher))
        except Exception as e:  # surfaced through the assertion below
            errors.append(e)

    threads = [threading.Thread(target=run) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    rows = attendance_repo.all_rows()
    assert len(rows) == 3
    assert sorted(r.student_user_id for r in rows) == [6, 7, 8]
    assert results[0] == results[1]


def test_generate_overlays_logs_on_new_rows(service_with_logs, logs, teacher, session_date):
    # MWF 9:00 AM-10:00 AM, 15 minutes grace
    logs.entries = [
        _login(6, 8, 55),
        _login(6, 9, 58, LogDirection.OUT),
        _login(7, 9, 20),
        _login(7, 9, 5),  # earliest login wins
        _login(8, 10, 30),
    ]

    records = {r.student_user_id: r for r in service_with_logs.generate(1, session_date, current_user=teacher)}

    assert records[6].status == AttendanceStatus.PRESENT
    assert records[6].time_in == time(8, 55)
    assert records[6].time_out == time(9, 58)
    assert records[7].status == AttendanceStatus.PRESENT
    assert records[7].time_in == time(9, 5)
    assert records[8].status == AttendanceStatus.ABSENT
    assert records[8].remarks == "Logged in after session end"


def test_overlay_marks_late_and_absent(service_with_logs, logs, teacher, session_date):
    logs.entries = [_login(6, 9, 40)]

    records = {r.student_user_id: r for r in service_with_logs.generate(1, session_date, current_user=teacher)}

    assert records[6].status == AttendanceStatus.LATE
    assert records[6].remarks == "Late by 40 min"
    assert records[7].status == AttendanceStatus.ABSENT
    assert records[7].time_in is None


def test_no_logs_for_date_leaves_rows_unmarked(service_with_logs, teacher, session_date):
    records = service_with_logs.generate(1, session_date, current_user=teacher)
    assert all(r.status == AttendanceStatus.NONE for r in records)


def test_overlay_never_touches_existing_rows(service_with_logs, logs, teacher, session_date):
    service_with_logs.generate(1, session_date, current_user=teacher)
    service_with_logs.mark(1, 6, session_date, status=AttendanceStatus.PRESENT, current_user=teacher)

    logs.entries = [_login(6, 9, 50)]
    records = {r.student_user_id: r for r in service_with_logs.generate(1, session_date, current_user=teacher)}

    assert records[6].status == AttendanceStatus.PRESENT
    assert records[6].time_in is None


def test_unparsable_schedule_treats_any_login_as_present(service_with_logs, classes, enrollment, logs, teacher, session_date):
    enrollment.by_class[3] = [make_student(6, "Santos")]
    logs.entries = [_login(6, 15, 0)]

    (record,) = service_with_logs.generate(3, session_date, current_user=teacher)
    assert record.status == AttendanceStatus.PRESENT


def test_backfill_updates_only_untouched_rows(service_with_logs, logs, teacher, session_date):
    service_with_logs.generate(1, session_date, current_user=teacher)
    service_with_logs.mark(1, 7, session_date, status=AttendanceStatus.EXCUSED, current_user=teacher)

    logs.entries = [_login(6, 9, 0), _login(7, 9, 0)]
    updated = service_with_logs.backfill_from_logs(1, session_date, current_user=teacher)

    records = {r.student_user_id: r for r in service_with_logs.load_session(1, session_date)}
    assert updated == 2  # Santos present, Reyes absent; Cruz was edited by hand
    assert records[6].status == AttendanceStatus.PRESENT
    assert records[7].status == AttendanceStatus.EXCUSED
    assert records[7].time_in is None
    assert records[8].status == AttendanceStatus.ABSENT



def test_backfill_keeps_edit_made_while_logs_are_read(service, attendance_repo, enrollment, classes, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)

    class EditingLogs(InMemoryLogs):
        def logs_for(self, class_id, day):
            service.mark(1, 7, day, status=AttendanceStatus.EXCUSED, remarks="clinic", current_user=teacher)
            return super().logs_for(class_id, day)

    backfiller = AttendanceSessionService(
        attendance_repo, enrollment, classes, EditingLogs([_login(6, 9, 0)]), grace_minutes=15
    )
    updated = backfiller.backfill_from_logs(1, session_date, current_user=teacher)

    records = {r.student_user_id: r for r in service.load_session(1, session_date)}
    assert updated == 2
    assert records[6].status == AttendanceStatus.PRESENT
    assert records[7].status == AttendanceStatus.EXCUSED
    assert records[7].remarks == "clinic"
    assert records[8].status == AttendanceStatus.ABSENT

def test_backfill_without_log_source_is_noop(service, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)
    assert service.backfill_from_logs(1, session_date, current_user=teacher) == 0


def test_mark_updates_status_and_actor(service, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)

    rec = service.mark(
        1, 8, session_date, status=AttendanceStatus.LATE, remarks="  bus  ", time_in=time(9, 20), current_user=teacher
    )

    assert rec.status == AttendanceStatus.LATE
    assert rec.remarks == "bus"
    assert rec.time_in == time(9, 20)
    assert rec.recorded_by == teacher.user_id


def test_mark_requires_generated_row(service, teacher, session_date):
    with pytest.raises(ValidationError):
        service.mark(1, 6, session_date, status=AttendanceStatus.PRESENT, current_user=teacher)


def test_mark_rejects_unknown_status(service, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)
    with pytest.raises(ValidationError):
        service.mark(1, 6, session_date, status="asleep", current_user=teacher)


def test_archive_gate(service, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)
    with pytest.raises(ValidationError):
        service.ensure_archivable(1, session_date)

    service.mark(1, 6, session_date, status=AttendanceStatus.PRESENT, current_user=teacher)
    assert len(service.ensure_archivable(1, session_date)) == 3
    assert service.summarize_session(1, session_date).present == 1


def test_load_range_returns_sessions_newest_first(service, teacher, session_date):
    earlier = session_date.replace(day=1)
    service.generate(1, earlier, current_user=teacher)
    service.generate(1, session_date, current_user=teacher)

    rows = service.load_range(1, earlier, session_date)
    assert [r.session_date for r in rows] == [session_date] * 3 + [earlier] * 3
    assert service.load_range(1, session_date, session_date)[0].last_name == "Cruz"

    with pytest.raises(ValidationError):
        service.load_range(1, session_date, earlier)


def test_mark_keeps_times_unless_cleared(service, teacher, session_date):
    service.generate(1, session_date, current_user=teacher)
    service.mark(
        1, 8, session_date, status=AttendanceStatus.PRESENT, time_in=time(9, 0), time_out=time(10, 0), current_user=teacher
    )

    kept = service.mark(1, 8, session_date, status=AttendanceStatus.LATE, current_user=teacher)
    assert (kept.time_in, kept.time_out) == (time(9, 0), time(10, 0))

    cleared = service.mark(
        1, 8, session_date, status=AttendanceStatus.ABSENT, time_in=None, time_out=None, current_user=teacher
    )
    assert cleared.time_in is None and cleared.time_out is None
