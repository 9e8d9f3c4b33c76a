"""
Due-set selection and progress statistics over a learner's review cards.

Everything here is read-only and pure: functions take the cards (ORM rows,
joined result rows or any object exposing the SM-2 attributes) plus an
explicit ``now``, and never touch the database or log.
"""

import math
import random
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from quiz_srs.exceptions import InvalidReviewStateError
from quiz_srs.schemas import CategoryMastery, Statistics
from quiz_srs.sm2 import INITIAL_EASE_FACTOR, MIN_EASE_FACTOR, round_half_up, utc_now

MASTERED_MIN_REPETITIONS = 3
MASTERED_MIN_INTERVAL = 21
MASTERY_INTERVAL_CAP = 180  # days for the full interval bonus
MASTERY_EASE_CAP = 3.0
UNCATEGORIZED = "Uncategorized"


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"
    # repetitions >= 3 but interval < 21: outside the three progress tabs
    REVIEWING = "reviewing"


def _card_id(card: Any):
    return getattr(card, "review_card_id", None) or getattr(card, "id", None)


def _read_state(card: Any) -> Tuple[float, int, int, datetime]:
    """Return (ease_factor, interval, repetitions, next_review_date) or raise"""
    ease_factor = getattr(card, "ease_factor", None)
    if not isinstance(ease_factor, (int, float)) or math.isnan(ease_factor):
        raise InvalidReviewStateError(_card_id(card), "ease_factor")
    interval = getattr(card, "interval", None)
    if not isinstance(interval, int) or interval < 0:
        raise InvalidReviewStateError(_card_id(card), "interval")
    repetitions = getattr(card, "repetitions", None)
    if not isinstance(repetitions, int) or repetitions < 0:
        raise InvalidReviewStateError(_card_id(card), "repetitions")
    next_review_date = getattr(card, "next_review_date", None)
    if not isinstance(next_review_date, datetime):
        raise InvalidReviewStateError(_card_id(card), "next_review_date")
    return float(ease_factor), interval, repetitions, next_review_date


# ---------------------------------------------------------------------------
# Due set
# ---------------------------------------------------------------------------

def is_due(card: Any, now: Optional[datetime] = None) -> bool:
    """A card is due once its next review time has been reached"""
    now = now if now is not None else utc_now()
    return card.next_review_date <= now


def get_days_overdue(card: Any, now: Optional[datetime] = None) -> int:
    """Whole days since the card became due, 0 if it is not due yet"""
    now = now if now is not None else utc_now()
    if now < card.next_review_date:
        return 0
    return (now - card.next_review_date).days


def order_by_priority(cards: Iterable[Any]) -> List[Any]:
    """Earliest next review first (highest priority); stable for ties"""
    return sorted(cards, key=lambda card: card.next_review_date)


def select_due(cards: Iterable[Any], now: Optional[datetime] = None) -> List[Any]:
    """Due cards in priority order"""
    now = now if now is not None else utc_now()
    return order_by_priority(card for card in cards if is_due(card, now))


def shuffle_due(cards: Sequence[Any], rng: Optional[random.Random] = None) -> List[Any]:
    """Shuffled copy of a prioritised due list; the input is left untouched"""
    shuffled = list(cards)
    (rng or random.Random()).shuffle(shuffled)
    return shuffled


class DueQueue:
    """
    Single-pass queue over one fetched due set.

    The due list is shuffled once on construction. Answered cards leave the
    pool and are never served again by this queue; to pick up cards that
    became due in the meantime, fetch again and build a new queue.
    """

    def __init__(
        self,
        due_cards: Sequence[Any],
        rng: Optional[random.Random] = None,
        key: Callable[[Any], Any] = _card_id,
    ):
        self._key = key
        self.priority_order = list(due_cards)
        self._pending = shuffle_due(self.priority_order, rng)

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    @property
    def remaining(self) -> List[Any]:
        return list(self._pending)

    def peek(self) -> Optional[Any]:
        return self._pending[0] if self._pending else None

    def pop_next(self) -> Optional[Any]:
        """Remove and return the next card to serve, or None when exhausted"""
        return self._pending.pop(0) if self._pending else None

    def mark_answered(self, card_id) -> bool:
        """Drop an answered card from the pool; False if it was not pending"""
        for index, card in enumerate(self._pending):
            if self._key(card) == card_id:
                del self._pending[index]
                return True
        return False


# ---------------------------------------------------------------------------
# Classification and mastery
# ---------------------------------------------------------------------------

def is_mastered(card: Any) -> bool:
    return card.repetitions >= MASTERED_MIN_REPETITIONS and card.interval >= MASTERED_MIN_INTERVAL


def classify(card: Any) -> CardStatus:
    """Progress bucket of a card (reporting only, not used for scheduling)"""
    if card.repetitions == 0:
        return CardStatus.NEW
    if card.repetitions < MASTERED_MIN_REPETITIONS:
        return CardStatus.LEARNING
    if card.interval >= MASTERED_MIN_INTERVAL:
        return CardStatus.MASTERED
    return CardStatus.REVIEWING


def mastery_percentage(card: Any) -> int:
    """
    Continuous mastery score 0-100 for a single card.

    New cards score 0, learning cards 25 or 50. Cards with three or more
    repetitions score 50-69 while the interval is below 21 days, and 70-100
    once mastered, with bonuses for long intervals (up to 180 days) and a
    high ease factor (up to 3.0).
    """
    repetitions = card.repetitions
    interval = card.interval
    if repetitions == 0:
        return 0
    if repetitions == 1:
        return 25
    if repetitions == 2:
        return 50
    if interval >= MASTERED_MIN_INTERVAL:
        interval_score = min(interval / MASTERY_INTERVAL_CAP, 1) * 20
        ease_score = min((card.ease_factor - MIN_EASE_FACTOR) / (MASTERY_EASE_CAP - MIN_EASE_FACTOR), 1) * 10
        return min(100, round_half_up(70 + interval_score + ease_score))
    interval_progress = min(interval / MASTERED_MIN_INTERVAL, 1)
    return round_half_up(50 + interval_progress * 19)


def mastery_badge(mastery: int) -> str:
    if mastery >= 80:
        return "Expert"
    if mastery >= 60:
        return "Strong"
    if mastery >= 40:
        return "Learning"
    if mastery >= 20:
        return "Developing"
    return "New"


def category_mastery(cards: Iterable[Any]) -> List[CategoryMastery]:
    """Average mastery and mastered count per question category, weakest first"""
    groups: Dict[str, List[Any]] = {}
    for card in cards:
        _read_state(card)
        category = getattr(card, "category", None) or UNCATEGORIZED
        groups.setdefault(category, []).append(card)

    results = []
    for category, group in groups.items():
        total_mastery = sum(mastery_percentage(card) for card in group)
        results.append(CategoryMastery(
            category=category,
            total_questions=len(group),
            average_mastery=round_half_up(total_mastery / len(group)),
            mastered_count=sum(1 for card in group if is_mastered(card)),
        ))
    results.sort(key=lambda entry: (entry.average_mastery, entry.category))
    return results


# ---------------------------------------------------------------------------
# Aggregate statistics
# ---------------------------------------------------------------------------

def compute_statistics(
    cards: Iterable[Any],
    total_questions: Optional[int] = None,
    completed_today: int = 0,
    now: Optional[datetime] = None,
) -> Statistics:
    """
    Aggregate a learner's cards into progress statistics.

    Args:
        cards: The learner's review cards (already filtered by curriculum)
        total_questions: Number of questions in scope, defaults to len(cards)
        completed_today: Reviews answered today, counted by the caller
        now: Reference time (defaults to now, UTC)

    Returns:
        Statistics. With no cards every count is 0 and the average ease
        factor is the initial 2.5.

    Raises:
        InvalidReviewStateError: a card has unreadable SM-2 fields. Nothing
            is returned in that case, records are never skipped.
    """
    now = now if now is not None else utc_now()
    states = [_read_state(card) for card in cards]
    week_from_now = now + timedelta(days=7)
    today = now.date()

    mastered = learning = new = due_today = due_this_week = total_reviews = 0
    ease_sum = 0.0
    for ease_factor, interval, repetitions, next_review_date in states:
        if repetitions == 0:
            new += 1
        elif repetitions < MASTERED_MIN_REPETITIONS:
            learning += 1
        elif interval >= MASTERED_MIN_INTERVAL:
            mastered += 1
        if next_review_date.date() == today:
            due_today += 1
        if now <= next_review_date <= week_from_now:
            due_this_week += 1
        ease_sum += ease_factor
        total_reviews += repetitions

    if states:
        average_ease_factor = ease_sum / len(states)
    else:
        average_ease_factor = INITIAL_EASE_FACTOR

    return Statistics(
        total_questions=len(states) if total_questions is None else total_questions,
        mastered_questions=mastered,
        learning_questions=learning,
        new_questions=new,
        due_today=due_today,
        due_this_week=due_this_week,
        completed_today=completed_today,
        average_ease_factor=average_ease_factor,
        total_reviews=total_reviews,
    )
