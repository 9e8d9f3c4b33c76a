"""SM-2 spaced repetition scheduling for quiz questions."""

__version__ = "0.1.0"
