"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import AttendanceStatus

# Status given to rows materialized by session generation before any marking.
DEFAULT_GENERATED_STATUS = AttendanceStatus.NONE

DEFAULT_LOOKBACK_DAYS = 7
# Upper bound for the backward scan; anything wider needs a real index.
MAX_LOOKBACK_DAYS = 90
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_SCAN_MAX_WORKERS = 8
