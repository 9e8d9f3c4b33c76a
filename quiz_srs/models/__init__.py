from quiz_srs.models.user import User
from quiz_srs.models.question import Question
from quiz_srs.models.review_card import ReviewCard

__all__ = [
    "User",
    "Question",
    "ReviewCard",
]
