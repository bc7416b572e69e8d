from brainbolt.db.models.answer_logs import AnswerLogRow
from brainbolt.db.models.base import Base
from brainbolt.db.models.leaderboard import LeaderboardScoreRow, LeaderboardStreakRow
from brainbolt.db.models.questions import QuestionRow
from brainbolt.db.models.user_state import UserStateRow

__all__ = [
    "AnswerLogRow",
    "Base",
    "LeaderboardScoreRow",
    "LeaderboardStreakRow",
    "QuestionRow",
    "UserStateRow",
]
