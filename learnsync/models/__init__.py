"""
Models package for the application.
"""

from .user import User
from .provider_platform import ProviderPlatform
from .provider_user_mapping import ProviderUserMapping
from .program import Program
from .milestone import Milestone
from .outcome import Outcome
from .activity import Activity, ActivityCounter

__all__ = [
    "User",
    "ProviderPlatform",
    "ProviderUserMapping",
    "Program",
    "Milestone",
    "Outcome",
    "Activity",
    "ActivityCounter",
]
