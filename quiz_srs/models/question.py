import uuid
from sqlalchemy import Column, Integer, String, Text, JSON
from sqlalchemy.orm import relationship
from quiz_srs.database import Base

# Edits to these columns change what the learner is asked, so progress is wiped
CONTENT_FIELDS = (
    "question",
    "question_type",
    "options",
    "correct_answer",
    "correct_answers",
    "region_name",
)

class Question(Base):
    """Quiz question, shared by all learners"""
    __tablename__ = "questions"
    
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    question = Column(Text, nullable=False)
    question_type = Column(String, nullable=False, default="single")  # single, multi, text-input, map
    options = Column(JSON)  # choices, or accepted answers for text-input/map
    correct_answer = Column(Integer)  # single-choice index
    correct_answers = Column(JSON)  # multi-select indices
    region_name = Column(String)  # map questions
    category = Column(String)
    curriculum = Column(String)
    
    review_cards = relationship("ReviewCard", back_populates="question", cascade="all, delete")
