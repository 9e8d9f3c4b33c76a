import random
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from quiz_srs.config import settings
from quiz_srs.exceptions import QuestionNotFoundError, ReviewCardNotFoundError, UserNotFoundError
from quiz_srs.logging import get_logger
from quiz_srs.models import Question, ReviewCard, User
from quiz_srs.schemas import AnswerResult, CardProgress, DailyProgress, QuizQuestion, Statistics
from quiz_srs.selector import DueQueue, classify, compute_statistics, mastery_badge, mastery_percentage
from quiz_srs.sm2 import SM2Algorithm, SM2Result, utc_now
from datetime import datetime, time, timedelta
from typing import Iterable, List, NamedTuple, Optional, Tuple

logger = get_logger(__name__)


class QuizSession(NamedTuple):
    """One fetch of the due set, shuffled and ready to be consumed"""
    queue: DueQueue
    daily_progress: DailyProgress


def _card_with_question_columns():
    return (
        ReviewCard.id.label("review_card_id"),
        Question.id.label("question_id"),
        Question.question,
        Question.question_type,
        Question.options,
        Question.region_name,
        Question.category,
        Question.curriculum,
        ReviewCard.ease_factor,
        ReviewCard.interval,
        ReviewCard.repetitions,
        ReviewCard.next_review_date,
        ReviewCard.last_review_date,
    )


def _missing_question_ids(db: Session, user_id: str) -> List[str]:
    existing = select(ReviewCard.question_id).where(ReviewCard.user_id == user_id)
    stmt = select(Question.id).where(Question.id.not_in(existing)).order_by(Question.id)
    return list(db.execute(stmt).scalars().all())


def bulk_create_review_cards(
    db: Session,
    pairs: Iterable[Tuple[str, str]],
    now: Optional[datetime] = None,
    commit: bool = True
) -> List[ReviewCard]:
    """Create default cards (due immediately) for (user_id, question_id) pairs"""
    ease_factor, interval, repetitions, next_review = SM2Algorithm.initialize_card(now)
    cards = [
        ReviewCard(
            user_id=user_id,
            question_id=question_id,
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review_date=next_review,
            last_review_date=None
        )
        for user_id, question_id in pairs
    ]
    db.add_all(cards)
    if commit:
        db.commit()
    return cards


def ensure_user_review_cards(db: Session, user_id: str, now: Optional[datetime] = None) -> int:
    """
    Materialise a default review card for every question the user lacks one for.

    A concurrent request may insert the same (user, question) card first; the
    unique constraint rejects our batch, which is then retried once against
    fresh state. A second conflict propagates.

    Returns:
        Number of cards created
    """
    for attempt in range(2):
        missing = _missing_question_ids(db, user_id)
        if not missing:
            return 0
        try:
            bulk_create_review_cards(db, [(user_id, qid) for qid in missing], now=now)
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.warning("review_card.duplicate_insert_retry", user_id=user_id, missing=len(missing))
            continue
        logger.info("review_card.cards_materialised", user_id=user_id, created=len(missing))
        return len(missing)
    return 0


def get_review_card_by_question(db: Session, user_id: str, question_id: str) -> Optional[ReviewCard]:
    return db.query(ReviewCard).filter(
        ReviewCard.user_id == user_id,
        ReviewCard.question_id == question_id
    ).first()


def get_user_review_cards(db: Session, user_id: str) -> List[ReviewCard]:
    return db.query(ReviewCard).filter(ReviewCard.user_id == user_id).all()


def _lock_card(db: Session, *criteria) -> Optional[ReviewCard]:
    # FOR UPDATE serialises concurrent submissions for the same card row
    return db.query(ReviewCard).filter(*criteria).with_for_update().populate_existing().first()


def _apply_review(db: Session, card: ReviewCard, quality: int, now: datetime) -> SM2Result:
    """Compute SM-2 from the locked row state and write it back in one commit"""
    try:
        result = SM2Algorithm.calculate_next_review(
            quality,
            card.ease_factor,
            card.interval,
            card.repetitions,
            reference_time=now
        )
        card.ease_factor = result.ease_factor
        card.interval = result.interval
        card.repetitions = result.repetitions
        card.next_review_date = result.next_review_date
        card.last_review_date = now
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return result


def submit_answer(
    db: Session,
    user_id: str,
    question_id: str,
    is_correct: bool,
    hesitant: bool = False,
    now: Optional[datetime] = None
) -> AnswerResult:
    """
    Record a learner's answer and reschedule the question.

    The answer has already been judged by the question-type evaluator;
    only the correct/incorrect outcome reaches the scheduler. A missing card
    is materialised first (the user may predate the question).

    Raises:
        UserNotFoundError: the learner does not exist
        QuestionNotFoundError: the question does not exist
    """
    if db.get(User, user_id) is None:
        raise UserNotFoundError(user_id)
    now = now if now is not None else utc_now()
    quality = SM2Algorithm.correctness_to_quality(is_correct, hesitant)

    criteria = (ReviewCard.user_id == user_id, ReviewCard.question_id == question_id)
    card = _lock_card(db, *criteria)
    if card is None:
        if db.get(Question, question_id) is None:
            raise QuestionNotFoundError(question_id)
        ensure_user_review_cards(db, user_id, now=now)
        card = _lock_card(db, *criteria)
        if card is None:
            raise ReviewCardNotFoundError(f"{user_id}/{question_id}")

    result = _apply_review(db, card, quality, now)
    logger.info(
        "review_card.answer_recorded",
        user_id=user_id,
        question_id=question_id,
        review_card_id=card.id,
        correct=is_correct,
        quality=quality,
        interval=result.interval,
        repetitions=result.repetitions,
        ease_factor=round(result.ease_factor, 4),
    )
    return AnswerResult(
        review_card_id=card.id,
        question_id=question_id,
        correct=is_correct,
        quality=quality,
        ease_factor=result.ease_factor,
        interval=result.interval,
        repetitions=result.repetitions,
        next_review_date=result.next_review_date
    )


def submit_review(db: Session, card_id: str, quality: int, now: Optional[datetime] = None) -> ReviewCard:
    """
    Reschedule a card with an explicit 0-5 quality rating.

    Raises:
        InvalidQualityError: quality outside 0-5
        ReviewCardNotFoundError: no card with that id
    """
    SM2Algorithm.validate_quality(quality)
    now = now if now is not None else utc_now()
    card = _lock_card(db, ReviewCard.id == card_id)
    if card is None:
        raise ReviewCardNotFoundError(card_id)
    result = _apply_review(db, card, quality, now)
    logger.info(
        "review_card.answer_recorded",
        user_id=card.user_id,
        question_id=card.question_id,
        review_card_id=card.id,
        quality=quality,
        interval=result.interval,
        repetitions=result.repetitions,
    )
    return card


def delete_review_cards_by_question_id(db: Session, question_id: str, commit: bool = True) -> int:
    """Wipe every learner's progress on a question"""
    removed = db.query(ReviewCard).filter(ReviewCard.question_id == question_id).delete()
    if commit:
        db.commit()
    logger.info("review_card.progress_wiped", question_id=question_id, removed=removed)
    return removed


def get_due_cards_with_questions(
    db: Session,
    user_id: str,
    curricula: Optional[List[str]] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None
):
    """Due cards joined with their question, earliest due first (highest priority)"""
    now = now if now is not None else utc_now()
    query = db.query(*_card_with_question_columns()).join(
        Question, ReviewCard.question_id == Question.id
    ).filter(
        ReviewCard.user_id == user_id,
        ReviewCard.next_review_date <= now
    )
    if curricula:
        query = query.filter(Question.curriculum.in_(curricula))
    query = query.order_by(ReviewCard.next_review_date, ReviewCard.id)
    if limit is not None and limit > 0:
        query = query.limit(limit)
    return query.all()


def get_review_cards_with_questions(db: Session, user_id: str, curricula: Optional[List[str]] = None):
    """All of a user's cards joined with their question"""
    query = db.query(*_card_with_question_columns()).join(
        Question, ReviewCard.question_id == Question.id
    ).filter(ReviewCard.user_id == user_id)
    if curricula:
        query = query.filter(Question.curriculum.in_(curricula))
    return query.order_by(Question.category, Question.id).all()


def get_reviews_completed_today(
    db: Session,
    user_id: str,
    curricula: Optional[List[str]] = None,
    now: Optional[datetime] = None
) -> int:
    """Number of cards answered during the current UTC day"""
    now = now if now is not None else utc_now()
    start_of_day = datetime.combine(now.date(), time.min)
    end_of_day = start_of_day + timedelta(days=1)
    query = db.query(ReviewCard).filter(
        ReviewCard.user_id == user_id,
        ReviewCard.last_review_date >= start_of_day,
        ReviewCard.last_review_date < end_of_day
    )
    if curricula:
        query = query.join(Question, ReviewCard.question_id == Question.id).filter(
            Question.curriculum.in_(curricula)
        )
    return query.count()


def get_statistics(
    db: Session,
    user_id: str,
    curricula: Optional[List[str]] = None,
    now: Optional[datetime] = None
) -> Statistics:
    """Progress statistics for a user, optionally limited to some curricula"""
    now = now if now is not None else utc_now()
    cards = get_review_cards_with_questions(db, user_id, curricula)
    total_query = db.query(Question)
    if curricula:
        total_query = total_query.filter(Question.curriculum.in_(curricula))
    return compute_statistics(
        cards,
        total_questions=total_query.count(),
        completed_today=get_reviews_completed_today(db, user_id, curricula, now=now),
        now=now
    )


def get_card_progress(db: Session, user_id: str, curricula: Optional[List[str]] = None) -> List[CardProgress]:
    """Per-card progress rows with status, mastery percentage and badge"""
    rows = []
    for card in get_review_cards_with_questions(db, user_id, curricula):
        mastery = mastery_percentage(card)
        rows.append(CardProgress(
            review_card_id=card.review_card_id,
            question_id=card.question_id,
            question=card.question,
            question_type=card.question_type,
            category=card.category,
            curriculum=card.curriculum,
            ease_factor=card.ease_factor,
            interval=card.interval,
            repetitions=card.repetitions,
            next_review_date=card.next_review_date,
            last_review_date=card.last_review_date,
            status=classify(card).value,
            mastery=mastery,
            badge=mastery_badge(mastery)
        ))
    return rows


def to_quiz_question(row) -> QuizQuestion:
    return QuizQuestion(
        id=row.question_id,
        question=row.question,
        question_type=row.question_type or "single",
        options=row.options or [],
        region_name=row.region_name,
        category=row.category,
        curriculum=row.curriculum,
        review_card_id=row.review_card_id,
        next_review_date=row.next_review_date
    )


def build_quiz_session(
    db: Session,
    user_id: str,
    curricula: Optional[List[str]] = None,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None
) -> QuizSession:
    """
    Fetch the due set once and shuffle it for variety.

    The queue keeps the priority order (queue.priority_order) alongside the
    shuffled serving order. Answered questions are removed with
    queue.mark_answered(question_id), the same id submit_answer takes; a
    fresh call re-sorts and re-shuffles.
    """
    now = now if now is not None else utc_now()
    due = [to_quiz_question(row) for row in get_due_cards_with_questions(db, user_id, curricula, now=now)]
    queue = DueQueue(due, rng=rng, key=lambda question: question.id)
    progress = DailyProgress(
        completed_today=get_reviews_completed_today(db, user_id, curricula, now=now),
        daily_goal=settings.daily_goal,
        total_due=len(due)
    )
    return QuizSession(queue, progress)
