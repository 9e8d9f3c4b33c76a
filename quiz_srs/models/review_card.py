import uuid
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from quiz_srs.database import Base

class ReviewCard(Base):
    """SM-2 spaced repetition state per learner per question"""
    __tablename__ = "review_cards"
    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="user_question_unique"),
    )
    
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False, index=True)
    
    # SM-2 algorithm fields
    ease_factor = Column(Float, nullable=False, default=2.5)  # EF, never below 1.3
    interval = Column(Integer, nullable=False, default=0)  # days until next review
    repetitions = Column(Integer, nullable=False, default=0)  # consecutive successful reviews
    
    next_review_date = Column(DateTime, nullable=False, index=True)  # naive UTC
    last_review_date = Column(DateTime)
    
    user = relationship("User", back_populates="review_cards")
    question = relationship("Question", back_populates="review_cards")
