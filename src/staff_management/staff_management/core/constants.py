"""Business limits and defaults shared by the services."""

DEFAULT_PAGE_SIZE = 20
DEFAULT_HISTORY_LIMIT = 10

# Accounts
VERIFICATION_CODE_MINUTES = 10
MAX_LOGIN_ATTEMPTS = 5
RECENT_STAFF_DAYS = 30
DEFAULT_WORK_START = "09:00"
DEFAULT_WORK_END = "17:00"

# Attendance
LATE_GRACE_MINUTES = 10
ABSENT_AFTER_MINUTES = 120
URGENT_LEAVE_DAYS = 2

# Shift swaps
SWAP_EXPIRY_HOURS = 24

# Tasks
DEFAULT_TASK_DURATION_MINUTES = 60
VERIFICATION_OVERDUE_HOURS = 24
DEFAULT_UPCOMING_DAYS = 7
TREND_DAYS = 30
TOP_PERFORMERS_LIMIT = 10

# Secret verification teams
TEAM_SIZE = 3
VERIFICATION_DEADLINE_HOURS = 24
PASS_SCORE = 4.0
RECHECK_SCORE = 2.5

# Alerts
DEFAULT_ALERT_EXPIRY_DAYS = 7
MY_ALERTS_LIMIT = 50

# Performance
ATTENDANCE_WEIGHT = 0.4
TASK_WEIGHT = 0.4
PUNCTUALITY_WEIGHT = 0.2
TREND_THRESHOLD = 5
LOW_PERFORMER_THRESHOLD = 60
AUTO_WARNING_OVERALL = 60
AUTO_WARNING_ATTENDANCE = 70
AUTO_WARNING_TASKS = 70
RECALCULATE_USER_LIMIT = 20
HISTORY_MONTHS = 6
DEFAULT_IMPROVEMENT_PLAN_MONTHS = 3
