import math
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

from quiz_srs.exceptions import InvalidQualityError


MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero (17.5 -> 18, 12.5 -> 13).

    Built-in round() uses banker's rounding and would give 12 for 12.5.
    Only defined for the non-negative values the scheduler produces.
    """
    return int(math.floor(value + 0.5))


class SM2Result(NamedTuple):
    """Updated review state for one answer submission"""
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime


class SM2Algorithm:
    """
    SM-2 spaced repetition algorithm for calculating review intervals.
    Based on SuperMemo 2 algorithm by Piotr Wozniak.

    Quality ratings:
        5 - perfect response
        4 - correct response after a hesitation
        3 - correct response recalled with serious difficulty
        2 - incorrect response; the correct one seemed easy to recall
        1 - incorrect response; the correct one remembered
        0 - complete blackout
    """
    
    @staticmethod
    def calculate_next_review(
        quality: int,
        ease_factor: float,
        interval: int,
        repetitions: int,
        reference_time: Optional[datetime] = None  # Optional: use custom time instead of now
    ) -> SM2Result:
        """
        Calculate next review date and update SM-2 parameters.

        Arguments are not validated: callers pass a quality in [0, 5] and
        the stored state of a card (EF >= 1.3, interval >= 0, repetitions >= 0).
        See validate_quality for the boundary check. The returned interval is
        always at least one day, so a stored interval of 0 with a running
        streak still schedules the card for tomorrow.
        
        Args:
            quality: Response quality (0-5). 0=total blackout, 5=perfect
            ease_factor: Current EF of the card
            interval: Current interval in days
            repetitions: Consecutive successful reviews since the last lapse
            reference_time: Optional reference time (defaults to now, UTC)
        
        Returns:
            SM2Result(ease_factor, interval, repetitions, next_review_date)
        """
        # Update easiness factor based on quality
        new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
        
        # Lower bound only, EF is never clamped upward
        if new_ef < MIN_EASE_FACTOR:
            new_ef = MIN_EASE_FACTOR
        
        # If quality < 3, reset repetitions (lapse)
        if quality < 3:
            new_repetitions = 0
            new_interval = 1
        else:
            new_repetitions = repetitions + 1
            
            if new_repetitions == 1:
                new_interval = 1
            elif new_repetitions == 2:
                new_interval = 6
            else:
                # Prior interval times the updated EF
                new_interval = max(1, round_half_up(interval * new_ef))
        
        base_time = reference_time if reference_time is not None else utc_now()
        next_review_date = base_time + timedelta(days=new_interval)
        
        return SM2Result(new_ef, new_interval, new_repetitions, next_review_date)
    
    @staticmethod
    def correctness_to_quality(is_correct: bool, hesitant: bool = False) -> int:
        """
        Convert a binary correct/incorrect answer to an SM-2 quality rating.

        The hesitant flag is accepted for callers that can detect hesitation;
        the quiz answer path does not set it.
        """
        if is_correct:
            return 4 if hesitant else 5
        return 2  # Incorrect but seemed easy to recall
    
    @staticmethod
    def validate_quality(quality) -> int:
        """Return quality unchanged, or raise InvalidQualityError if outside 0-5"""
        if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
            raise InvalidQualityError(quality)
        return quality
    
    @staticmethod
    def initialize_card(reference_time: Optional[datetime] = None) -> SM2Result:
        """
        Initial SM-2 state for a card the learner has never reviewed.
        
        The card is due immediately: next_review_date equals the reference time.
        """
        base_time = reference_time if reference_time is not None else utc_now()
        return SM2Result(INITIAL_EASE_FACTOR, 0, 0, base_time)
