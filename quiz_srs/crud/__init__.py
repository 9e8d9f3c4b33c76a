from quiz_srs.crud.user import create_user, get_user, update_user, delete_user
from quiz_srs.crud.question import (
    create_question,
    get_question,
    get_all_questions,
    update_question,
    delete_question
)
from quiz_srs.crud.review_card import (
    QuizSession,
    bulk_create_review_cards,
    ensure_user_review_cards,
    get_review_card_by_question,
    get_user_review_cards,
    submit_answer,
    submit_review,
    delete_review_cards_by_question_id,
    get_due_cards_with_questions,
    get_review_cards_with_questions,
    get_reviews_completed_today,
    get_statistics,
    get_card_progress,
    build_quiz_session
)

__all__ = [
    "create_user",
    "get_user",
    "update_user",
    "delete_user",
    "create_question",
    "get_question",
    "get_all_questions",
    "update_question",
    "delete_question",
    "QuizSession",
    "bulk_create_review_cards",
    "ensure_user_review_cards",
    "get_review_card_by_question",
    "get_user_review_cards",
    "submit_answer",
    "submit_review",
    "delete_review_cards_by_question_id",
    "get_due_cards_with_questions",
    "get_review_cards_with_questions",
    "get_reviews_completed_today",
    "get_statistics",
    "get_card_progress",
    "build_quiz_session",
]
