"""Error types raised by the scheduler, the selector and the persistence layer."""


class SchedulerError(Exception):
    """Base class for all quiz_srs errors"""


class InvalidQualityError(SchedulerError, ValueError):
    """Quality rating is not an integer in [0, 5]"""

    def __init__(self, quality):
        self.quality = quality
        super().__init__(f"Quality rating must be an integer between 0 and 5, got {quality!r}")


class InvalidReviewStateError(SchedulerError, ValueError):
    """A stored review record cannot be read (missing or malformed SM-2 fields)"""

    def __init__(self, card_id, field: str):
        self.card_id = card_id
        self.field = field
        super().__init__(f"Review card {card_id!r} has an invalid '{field}' value")


class QuestionNotFoundError(SchedulerError, LookupError):
    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question {question_id!r} not found")


class ReviewCardNotFoundError(SchedulerError, LookupError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Review card {card_id!r} not found")


class UserNotFoundError(SchedulerError, LookupError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id!r} not found")
