from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles carried in access tokens."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPER_ADMIN)


class AdminPermission(str, Enum):
    STAFF_MANAGEMENT = "staff_management"
    DUTY_SCHEDULING = "duty_scheduling"
    LEAVE_MANAGEMENT = "leave_management"
    PERFORMANCE_TRACKING = "performance_tracking"
    USER_MANAGEMENT = "user_management"
    SYSTEM_SETTINGS = "system_settings"


class Department(str, Enum):
    CLEANING_STAFF = "Cleaning Staff"
    EVENT_HELPERS = "Event Helpers"
    TEA_AND_SNACK_STAFF = "Tea and Snack Staff"
    MAINTENANCE_STAFF = "Maintenance Staff"
    OUTDOOR_CLEANERS = "Outdoor Cleaners"
    OFFICE_HELPERS = "Office Helpers"


class JobTitle(str, Enum):
    CLASSROOM_CLEANER = "Classroom Cleaner"
    RESTROOM_CLEANER = "Restroom Cleaner"
    FLOOR_CARE_TEAM = "Floor Care Team"
    MEETING_ATTENDANT = "Meeting Attendant"
    EVENT_SETUP_HELPER = "Event Setup Helper"
    DOCUMENT_RUNNER = "Document Runner"
    TEA_SERVER = "Tea Server"
    REFRESHMENT_HELPER = "Refreshment Helper"
    KEY_HANDLER = "Key Handler"
    REPAIR_TECHNICIAN = "Repair Technician"
    WASTE_COLLECTOR = "Waste Collector"
    GARDENER = "Gardener"
    OUTDOOR_CLEANER = "Outdoor Cleaner"
    SUPPLY_ASSISTANT = "Supply Assistant"
    GENERAL_HELPER = "General Helper"


class ShiftType(str, Enum):
    MORNING = "Morning"
    EVENING = "Evening"
    NIGHT = "Night"
    FLEXIBLE = "Flexible"


class Skill(str, Enum):
    CLEANING_AREAS = "Cleaning Areas"
    USING_TOOLS = "Using Tools"
    WASTE_MANAGEMENT = "Waste Management"
    LANGUAGE_SKILLS = "Language Skills"
    LAB_CLEANING = "Lab Cleaning"
    EVENT_SETUP = "Event Setup"
    TEA_SERVICE = "Tea Service"
    BASIC_MAINTENANCE = "Basic Maintenance"


class AttendanceStatus(str, Enum):
    """Daily attendance status stored per (user, date)."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    LEAVE = "leave"


class LeaveType(str, Enum):
    SICK = "sick"
    PERSONAL = "personal"
    VACATION = "vacation"
    EMERGENCY = "emergency"
    OTHER = "other"


class ScheduleStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"
    SWAPPED = "swapped"


class SwapStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REASSIGNED = "reassigned"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskCategory(str, Enum):
    SECURITY = "Security"
    MAINTENANCE = "Maintenance"
    CLEANING = "Cleaning"
    ADMINISTRATIVE = "Administrative"
    CUSTOMER_SERVICE = "Customer Service"
    INSPECTION = "Inspection"
    TRAINING = "Training"
    EMERGENCY_RESPONSE = "Emergency Response"


class TaskVerificationStatus(str, Enum):
    NONE = "none"
    PENDING_VERIFICATION = "pending_verification"
    COMPLETED = "completed"


class VerificationResult(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    RECHECK = "recheck"


class FinalVerificationStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING_RECHECK = "pending_recheck"


class ReassignmentReason(str, Enum):
    USER_ABSENT = "user_absent"
    USER_OVERLOADED = "user_overloaded"
    MANUAL_OVERRIDE = "manual_override"


class AlertType(str, Enum):
    SHIFT_REMINDER = "shift_reminder"
    TASK_ASSIGNED = "task_assigned"
    SWAP_REQUEST = "swap_request"
    EMERGENCY_CLEANUP = "emergency_cleanup"
    ATTENDANCE_MISSING = "attendance_missing"
    PERFORMANCE_REVIEW = "performance_review"


class AlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class VerificationTaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class IssueCategory(str, Enum):
    CLEANLINESS = "cleanliness"
    INCOMPLETE = "incomplete"
    DAMAGE = "damage"
    SAFETY = "safety"
    OTHER = "other"


class IssueSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PerformanceStatus(str, Enum):
    """Review lifecycle of a monthly performance record."""

    DRAFT = "draft"
    FINALIZED = "finalized"
    REVIEWED = "reviewed"
    UNDER_REVIEW = "under_review"
    NEEDS_ATTENTION = "needs_attention"


class PerformanceLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    SATISFACTORY = "satisfactory"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"


class Grade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class WarningLevel(str, Enum):
    NONE = "none"
    FIRST_WARNING = "first_warning"
    SECOND_WARNING = "second_warning"
    FINAL_WARNING = "final_warning"


class DisciplinaryType(str, Enum):
    VERBAL_WARNING = "verbal_warning"
    WRITTEN_WARNING = "written_warning"
    SUSPENSION = "suspension"
    FINAL_WARNING = "final_warning"
    TERMINATION = "termination"

    @property
    def counts_as_warning(self) -> bool:
        return self in (
            DisciplinaryType.VERBAL_WARNING,
            DisciplinaryType.WRITTEN_WARNING,
            DisciplinaryType.FINAL_WARNING,
        )


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class AchievementCategory(str, Enum):
    PERFORMANCE = "performance"
    ATTENDANCE = "attendance"
    TEAMWORK = "teamwork"
    INNOVATION = "innovation"
    CUSTOMER_SERVICE = "customer_service"
    LEADERSHIP = "leadership"


class ImprovementPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ImprovementProgress(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class PerformanceIssueCategory(str, Enum):
    ATTENDANCE = "attendance"
    PUNCTUALITY = "punctuality"
    TASK_COMPLETION = "task_completion"
    QUALITY = "quality"
    BEHAVIOR = "behavior"
    OTHER = "other"


class PerformanceIssueSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


class GoalCategory(str, Enum):
    ATTENDANCE = "attendance"
    PRODUCTIVITY = "productivity"
    QUALITY = "quality"
    SKILLS = "skills"
    BEHAVIOR = "behavior"
    OTHER = "other"


class GoalStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
