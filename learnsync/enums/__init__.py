from .learning_enums import (
    ProviderPlatformType,
    ProviderPlatformState,
    ProgramType,
    MilestoneType,
    PROGRESS_MILESTONE_TYPES,
    ActivityType,
    OutcomeType,
    UserRole,
    ImportPhase,
    IMPORT_PHASE_ORDER,
)

__all__ = [
    "ProviderPlatformType",
    "ProviderPlatformState",
    "ProgramType",
    "MilestoneType",
    "PROGRESS_MILESTONE_TYPES",
    "ActivityType",
    "OutcomeType",
    "UserRole",
    "ImportPhase",
    "IMPORT_PHASE_ORDER",
]
