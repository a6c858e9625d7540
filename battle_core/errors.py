"""Exceptions for the battle engine"""


class BattleError(Exception):
    """Base exception for battle errors"""
    pass


class MatchInProgressError(BattleError):
    """Raised when a control is not allowed while a match is running"""

    def __init__(self, message: str = "A match is already in progress"):
        super().__init__(message)


class InvalidTopicError(BattleError):
    """Raised when a match is started without a topic"""

    def __init__(self, message: str = "Topic must not be empty"):
        super().__init__(message)


class ReasoningError(BattleError):
    """Raised when the reasoning output cannot be used"""

    def __init__(self, message: str = "Invalid reasoning response", raw: str = ""):
        super().__init__(message)
        self.raw = raw
