"""
Custom exceptions for the QuizCup tournament engine.
"""


class QuizCupError(Exception):
    """Base exception for all custom errors."""
    pass


# Bracket Construction Errors
class BracketError(QuizCupError):
    """Base exception for bracket construction errors."""
    pass


class UnsupportedSizeError(BracketError):
    """Raised when a bracket size is not one of the supported sizes."""
    def __init__(self, size: int = None, supported: tuple = None):
        self.size = size
        self.supported = supported
        msg = f"Unsupported bracket size: {size}"
        if supported:
            msg += f" (must be one of {', '.join(str(s) for s in supported)})"
        super().__init__(msg)


class InvalidSizeError(BracketError):
    """Raised when the participant count does not match the requested size."""
    def __init__(self, expected: int = None, actual: int = None, detail: str = None):
        self.expected = expected
        self.actual = actual
        msg = "Invalid participant count"
        if expected is not None and actual is not None:
            msg += f": expected {expected}, got {actual}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


# Match Progression Errors
class ScoringPreconditionError(QuizCupError):
    """Raised when a response cannot be attributed to the match."""
    def __init__(self, match_id: str = None, reason: str = None):
        self.match_id = match_id
        self.reason = reason
        msg = "Cannot record response"
        if match_id:
            msg += f" for match {match_id}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DuplicateResponseError(ScoringPreconditionError):
    """Raised when a question already has a recorded response in the match."""
    pass


class IncompleteMatchError(QuizCupError):
    """Raised when completing a match before all its questions are played."""
    def __init__(self, match_id: str = None, played: int = None, required: int = None):
        self.match_id = match_id
        self.played = played
        self.required = required
        msg = f"Match {match_id} is not finished"
        if played is not None and required is not None:
            msg += f" ({played}/{required} questions played)"
        super().__init__(msg)


class MatchStateError(QuizCupError):
    """Raised when a match is completed or advanced in the wrong state."""
    pass


# Question Bank Errors
class QuestionBankError(QuizCupError):
    """Raised when the question bank is malformed or too small."""
    pass


# Session Errors
class SessionError(QuizCupError):
    """Raised when acting on a session that cannot accept the action."""
    pass


# Configuration Errors
class ConfigurationError(QuizCupError):
    """Raised when configuration is invalid or missing."""
    pass
