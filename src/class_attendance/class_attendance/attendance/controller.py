from __future__ import annotations

import logging
from datetime import date
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_clock, parse_iso_date
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, GenerationFailed, StoreUnavailable, ValidationError
from ..container import Container
from ..users.model import CurrentUser
from .aggregator import summarize
from .model import AttendanceRecord
from .service import KEEP

logger = logging.getLogger(__name__)


def record_to_json(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "class_id": r.class_id,
        "student_user_id": r.student_user_id,
        "session_date": r.session_date.strftime("%Y-%m-%d"),
        "status": r.status.value,
        "time_in": r.time_in.strftime("%H:%M:%S") if r.time_in else None,
        "time_out": r.time_out.strftime("%H:%M:%S") if r.time_out else None,
        "remarks": r.remarks,
        "student_code": r.student_code,
        "name": r.display_name,
        "recorded_by": r.recorded_by,
    }


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        """Authentication lives elsewhere; it leaves user_id and role in the session."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Please log in to continue"}), 401
            return view(*args, **kwargs)

        return wrapper

    def domain_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ValidationError as e:
                return jsonify({"success": False, "message": str(e)}), 400
            except AuthorizationError as e:
                return jsonify({"success": False, "message": str(e)}), 403
            except GenerationFailed as e:
                return jsonify({"success": False, "message": str(e), "retry": True}), 503
            except StoreUnavailable:
                logger.exception("store unavailable", extra={"path": request.path})
                return jsonify({"success": False, "message": "Attendance store unavailable", "retry": True}), 503

        return wrapper

    def _current_user() -> CurrentUser:
        try:
            user_id = int(session["user_id"])
        except (TypeError, ValueError) as e:
            raise AuthorizationError("Invalid user id in session") from e
        try:
            role = Role(session.get("role"))
        except ValueError as e:
            raise AuthorizationError(f"Unknown role {session.get('role')!r}") from e
        return CurrentUser(user_id=user_id, role=role)

    def _parse_date(value: str) -> date:
        try:
            return parse_iso_date(value)
        except ValueError as e:
            raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from e

    def _clock_field(data: dict, key: str):
        # Absent key keeps the stored time; null or "" clears it.
        if key not in data:
            return KEEP
        if not data[key]:
            return None
        if not isinstance(data[key], str):
            raise ValueError(f"{key} must be HH:MM or HH:MM:SS")
        return parse_clock(data[key])

    def _lookback() -> int:
        raw = request.args.get("lookback") or str(container.default_lookback_days)
        if not raw.isdigit():
            raise ValidationError("lookback must be a non-negative integer")
        return int(raw)

    def _session_payload(records: list[AttendanceRecord]) -> dict:
        return {
            "success": True,
            "records": [record_to_json(r) for r in records],
            "summary": summarize(records).as_dict(),
        }

    @app.route("/api/classes/<int:class_id>/attendance/active", methods=["GET"], endpoint="attendance_active")
    @login_required
    @domain_errors
    def attendance_active(class_id: int):
        found = container.scanner.find_active(class_id, _lookback())
        return jsonify({"success": True, "class_id": class_id, "date": found.strftime("%Y-%m-%d") if found else None})

    @app.route("/api/attendance/dashboard", methods=["GET"], endpoint="attendance_dashboard")
    @login_required
    @domain_errors
    def attendance_dashboard():
        classes = container.classes_repo.list_active()
        found = container.scanner.find_active_many([c.class_id for c in classes], _lookback())
        return jsonify(
            {
                "success": True,
                "classes": [
                    {
                        "class_id": c.class_id,
                        "subject_code": c.subject_code,
                        "subject_name": c.subject_name,
                        "schedule": c.schedule or "TBA",
                        "room": c.room,
                        "active_date": found[c.class_id].strftime("%Y-%m-%d") if found.get(c.class_id) else None,
                    }
                    for c in classes
                ],
            }
        )

    @app.route("/api/classes/<int:class_id>/attendance/range", methods=["GET"], endpoint="attendance_range")
    @login_required
    @domain_errors
    def attendance_range(class_id: int):
        start = _parse_date(request.args.get("start", ""))
        end = _parse_date(request.args.get("end", ""))
        records = container.session_service.load_range(class_id, start, end)
        by_date: dict[str, list[AttendanceRecord]] = {}
        for r in records:
            by_date.setdefault(r.session_date.strftime("%Y-%m-%d"), []).append(r)
        return jsonify(
            {
                "success": True,
                "class_id": class_id,
                "sessions": [
                    {"date": d, "records": [record_to_json(r) for r in rows], "summary": summarize(rows).as_dict()}
                    for d, rows in by_date.items()
                ],
            }
        )

    @app.route("/api/classes/<int:class_id>/attendance/<date_s>", methods=["GET"], endpoint="attendance_session")
    @login_required
    @domain_errors
    def attendance_session(class_id: int, date_s: str):
        return jsonify(_session_payload(container.session_service.load_session(class_id, _parse_date(date_s))))

    @app.route("/api/classes/<int:class_id>/attendance/<date_s>/generate", methods=["POST"], endpoint="attendance_generate")
    @login_required
    @domain_errors
    def attendance_generate(class_id: int, date_s: str):
        records = container.session_service.generate(class_id, _parse_date(date_s), current_user=_current_user())
        return jsonify(_session_payload(records))

    @app.route("/api/classes/<int:class_id>/attendance/<date_s>/backfill", methods=["POST"], endpoint="attendance_backfill")
    @login_required
    @domain_errors
    def attendance_backfill(class_id: int, date_s: str):
        session_date = _parse_date(date_s)
        updated = container.session_service.backfill_from_logs(class_id, session_date, current_user=_current_user())
        payload = _session_payload(container.session_service.load_session(class_id, session_date))
        payload["updated"] = updated
        return jsonify(payload)

    @app.route(
        "/api/classes/<int:class_id>/attendance/<date_s>/students/<int:student_user_id>",
        methods=["PUT"],
        endpoint="attendance_mark",
    )
    @login_required
    @domain_errors
    def attendance_mark(class_id: int, date_s: str, student_user_id: int):
        data = request.get_json(silent=True) or {}
        try:
            status = AttendanceStatus(data.get("status", ""))
            time_in = _clock_field(data, "time_in")
            time_out = _clock_field(data, "time_out")
        except ValueError as e:
            raise ValidationError(str(e)) from e

        record = container.session_service.mark(
            class_id,
            student_user_id,
            _parse_date(date_s),
            status=status,
            remarks=data.get("remarks"),
            time_in=time_in,
            time_out=time_out,
            current_user=_current_user(),
        )
        return jsonify({"success": True, "record": record_to_json(record)})

    @app.route("/api/classes/<int:class_id>/attendance/<date_s>/export", methods=["GET"], endpoint="attendance_export")
    @login_required
    @domain_errors
    def attendance_export(class_id: int, date_s: str):
        session_date = _parse_date(date_s)
        try:
            records = container.session_service.ensure_archivable(class_id, session_date)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 409
        return jsonify(_session_payload(records))
