from datetime import timedelta

RECENT_ANSWERS_LIMIT = 10
RECENT_PERFORMANCE_LIMIT = 20
DEFAULT_STREAK_DECAY_INTERVAL = timedelta(minutes=30)
