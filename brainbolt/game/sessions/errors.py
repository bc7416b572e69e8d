class QuizSessionError(Exception):
    pass


class NotActiveSessionError(QuizSessionError):
    pass


class SessionMismatchError(QuizSessionError):
    pass


class StateVersionConflictError(QuizSessionError):
    pass


class StaleStateVersionError(StateVersionConflictError):
    pass


class QuestionNotFoundError(QuizSessionError):
    pass


class NoQuestionsAvailableError(QuizSessionError):
    pass


class InvalidQuestionError(QuizSessionError):
    pass
