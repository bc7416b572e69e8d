from brainbolt.db.repo.answer_logs_repo import AnswerLogsRepo
from brainbolt.db.repo.leaderboard_repo import LeaderboardRepo
from brainbolt.db.repo.questions_repo import QuestionsRepo
from brainbolt.db.repo.user_state_repo import UserStateRepo

__all__ = ["AnswerLogsRepo", "LeaderboardRepo", "QuestionsRepo", "UserStateRepo"]
