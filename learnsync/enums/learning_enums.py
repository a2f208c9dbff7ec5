"""
Learning-platform enums for the application.
"""

from enum import Enum


class ProviderPlatformType(str, Enum):
    CANVAS_CLOUD = "canvas_cloud"
    CANVAS_OSS = "canvas_oss"
    KOLIBRI = "kolibri"


class ProviderPlatformState(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    ARCHIVED = "archived"


class ProgramType(str, Enum):
    FIXED_ENROLLMENT = "fixed_enrollment"
    OPEN_ENROLLMENT = "open_enrollment"
    OPEN_CONTENT = "open_content"


class MilestoneType(str, Enum):
    ENROLLMENT = "enrollment"
    QUIZ_SUBMISSION = "quiz_submission"
    ASSIGNMENT_SUBMISSION = "assignment_submission"
    GRADE_RECEIVED = "grade_received"
    DISCUSSION_POST = "discussion_post"


# Milestone types that count towards course progress on the dashboard
PROGRESS_MILESTONE_TYPES = (
    MilestoneType.ASSIGNMENT_SUBMISSION.value,
    MilestoneType.QUIZ_SUBMISSION.value,
)


class ActivityType(str, Enum):
    CONTENT_INTERACTION = "content_interaction"
    COURSE_INTERACTION = "course_interaction"


class OutcomeType(str, Enum):
    CERTIFICATE = "certificate"
    GRADE = "grade"
    PATHWAY_COMPLETION = "pathway_completion"
    COLLEGE_CREDIT = "college_credit"


class UserRole(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class ImportPhase(str, Enum):
    USERS = "users"
    PROGRAMS = "programs"
    MILESTONES = "milestones"
    ACTIVITY = "activity"


# Order a full sync runs in; later phases depend on rows from earlier ones
IMPORT_PHASE_ORDER = (
    ImportPhase.USERS,
    ImportPhase.PROGRAMS,
    ImportPhase.MILESTONES,
    ImportPhase.ACTIVITY,
)
