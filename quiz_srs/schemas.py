from pydantic import BaseModel, Field
from typing import Any, List, Literal, Optional
from datetime import datetime

QuestionType = Literal["single", "multi", "text-input", "map"]

class UserCreate(BaseModel):
    """Schema for creating a learner account"""
    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    selected_curricula: Optional[List[str]] = None

class QuestionCreate(BaseModel):
    """Schema for creating or replacing a question"""
    id: Optional[str] = None
    question: str
    question_type: QuestionType = "single"
    options: Optional[List[str]] = None
    correct_answer: Optional[int] = None
    correct_answers: Optional[List[int]] = None
    region_name: Optional[str] = None
    category: Optional[str] = None
    curriculum: Optional[str] = None

class QuizQuestion(BaseModel):
    """A due question as served to the learner"""
    id: str
    question: str
    question_type: QuestionType
    options: List[str] = Field(default_factory=list)
    region_name: Optional[str] = None
    category: Optional[str] = None
    curriculum: Optional[str] = None
    review_card_id: str
    next_review_date: datetime

class DailyProgress(BaseModel):
    completed_today: int
    daily_goal: int
    total_due: int

class AnswerResult(BaseModel):
    """Outcome of one answer submission"""
    review_card_id: str
    question_id: str
    correct: bool
    quality: int
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime

class Statistics(BaseModel):
    """Aggregate progress for one learner"""
    total_questions: int = 0
    mastered_questions: int = 0
    learning_questions: int = 0
    new_questions: int = 0
    due_today: int = 0
    due_this_week: int = 0
    completed_today: int = 0
    average_ease_factor: float = 2.5
    total_reviews: int = 0

class CardProgress(BaseModel):
    """Progress row for one card, joined with its question"""
    review_card_id: str
    question_id: str
    question: str
    question_type: str
    category: Optional[str] = None
    curriculum: Optional[str] = None
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime
    last_review_date: Optional[datetime] = None
    status: str
    mastery: int
    badge: str

class CategoryMastery(BaseModel):
    category: str
    total_questions: int
    average_mastery: int
    mastered_count: int

def dump(model: BaseModel) -> dict[str, Any]:
    """JSON-friendly dict of a schema instance"""
    return model.model_dump(mode="json")
