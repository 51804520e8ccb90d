"""Find the most recent active session of a class by probing recent dates.

There is no stored "last active date" per class, so the scanner checks today
and each of the previous `lookback_days` days. That costs one store query per
candidate date (classes x days for a dashboard) and is only acceptable because
the window is capped at MAX_LOOKBACK_DAYS. Replace it with a materialized
last-active-date pointer before widening the window.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import today_local
from ..common.validators import require_range
from ..core.constants import DEFAULT_LOOKBACK_DAYS, DEFAULT_SCAN_MAX_WORKERS, MAX_LOOKBACK_DAYS
from ..core.exceptions import StoreUnavailable
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class ActiveSessionScanner:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        max_workers: int = DEFAULT_SCAN_MAX_WORKERS,
        max_lookback_days: int = MAX_LOOKBACK_DAYS,
        clock: Callable[[], date] = today_local,
    ):
        self._attendance = attendance
        self._max_workers = max(1, int(max_workers))
        self._max_lookback_days = int(max_lookback_days)
        self._clock = clock

    def candidate_dates(self, lookback_days: int, *, today: Optional[date] = None) -> list[date]:
        """Today first, then each earlier day down to today - lookback_days."""

        lookback_days = require_range(lookback_days, "lookback_days", 0, self._max_lookback_days)
        today = today or self._clock()
        return [today - timedelta(days=i) for i in range(lookback_days + 1)]

    def is_active(self, class_id: int, session_date: date) -> bool:
        records = self._attendance.list_by_class_and_date(class_id, session_date)
        return any(r.is_marked for r in records)

    def _probe(self, class_id: int, session_date: date) -> bool:
        try:
            return self.is_active(class_id, session_date)
        except StoreUnavailable as e:
            # A gap in the scan only means this date is not a candidate.
            logger.warning(
                "active-session probe failed",
                extra={"class_id": class_id, "session_date": session_date.isoformat(), "error": str(e)},
            )
            return False

    def find_active(
        self,
        class_id: int,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        *,
        today: Optional[date] = None,
    ) -> Optional[date]:
        candidates = self.candidate_dates(lookback_days, today=today)

        if self._max_workers == 1:
            for d in candidates:
                if self._probe(class_id, d):
                    return d
            return None

        return self.find_active_many([class_id], lookback_days, today=today)[class_id]

    def find_active_many(
        self,
        class_ids: Iterable[int],
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        *,
        today: Optional[date] = None,
    ) -> dict[int, Optional[date]]:
        """Latest active date per class, probing all (class, date) pairs in parallel.

        Completion order does not matter: each class keeps the max qualifying date.
        """

        candidates = self.candidate_dates(lookback_days, today=today)
        class_ids = list(dict.fromkeys(int(c) for c in class_ids))
        found: dict[int, Optional[date]] = {c: None for c in class_ids}
        if not class_ids:
            return found

        workers = min(self._max_workers, len(class_ids) * len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="attendance-scan") as pool:
            futures = {
                pool.submit(self._probe, class_id, d): (class_id, d)
                for class_id in class_ids
                for d in candidates
            }
            for fut in as_completed(futures):
                class_id, d = futures[fut]
                if fut.result():
                    current = found[class_id]
                    if current is None or d > current:
                        found[class_id] = d

        logger.debug(
            "active-session scan done",
            extra={"classes": len(class_ids), "lookback_days": lookback_days, "probes": len(futures)},
        )
        return found
