# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    profile, skill, rating, approval_log, goal, gamification, notification, preference
)

# Explicit class exports for cleaner imports
from .profile import Profile, ProfileRole
from .skill import SkillCategory, Skill, Subskill
from .rating import EmployeeRating, RatingLevel, RatingStatus
from .approval_log import ApprovalLog, ApprovalAction
from .goal import PersonalGoal, GoalProgressHistory, GoalStatus, Milestone
from .gamification import UserGamification
from .notification import Notification, NotificationType
from .preference import CategoryPreference

__all__ = [
    "Profile",
    "ProfileRole",
    "SkillCategory",
    "Skill",
    "Subskill",
    "EmployeeRating",
    "RatingLevel",
    "RatingStatus",
    "ApprovalLog",
    "ApprovalAction",
    "PersonalGoal",
    "GoalProgressHistory",
    "GoalStatus",
    "Milestone",
    "UserGamification",
    "Notification",
    "NotificationType",
    "CategoryPreference",
]
