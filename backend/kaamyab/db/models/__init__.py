"""ORM models exposed for metadata discovery."""
from kaamyab.db.models.effort_feedback import EffortFeedback
from kaamyab.db.models.plan_history import PlanHistory
from kaamyab.db.models.user import User
from kaamyab.db.models.user_streak import UserStreak

__all__ = [
    "EffortFeedback",
    "PlanHistory",
    "User",
    "UserStreak",
]
