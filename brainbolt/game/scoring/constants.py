MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10

STREAK_MULTIPLIER_STEP = 0.1
MAX_STREAK_MULTIPLIER = 3.0
POINTS_PER_DIFFICULTY = 10
WRONG_ANSWER_PENALTY = -10.0

MOMENTUM_HISTORY_LIMIT = 10
MOMENTUM_DECAY = 0.7
MOMENTUM_CORRECT_BOOST = 0.3
MOMENTUM_WRONG_PENALTY = -0.5

HYSTERESIS_BAND = 0.3
MIN_STREAK_TO_INCREASE = 2
BASE_DIFFICULTY_STEP = 0.5
MOMENTUM_STEP_WEIGHT = 0.5
