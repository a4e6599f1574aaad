class GameSessionError(Exception):
    pass


class QuestionSupplyError(GameSessionError):
    pass


class InvalidSessionConfigError(GameSessionError, ValueError):
    pass


class SessionRecordError(GameSessionError):
    pass
