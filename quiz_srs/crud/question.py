from sqlalchemy.orm import Session
from quiz_srs.models import Question
from quiz_srs.models.question import CONTENT_FIELDS
from quiz_srs.schemas import QuestionCreate
from quiz_srs.crud.review_card import delete_review_cards_by_question_id
from quiz_srs.logging import get_logger
from typing import List, Optional

logger = get_logger(__name__)

def create_question(db: Session, question: QuestionCreate) -> Question:
    """Create a question; review cards are materialised lazily per learner"""
    data = question.model_dump()
    if data.get("id") is None:
        data.pop("id", None)
    db_question = Question(**data)
    db.add(db_question)
    db.commit()
    db.refresh(db_question)
    return db_question

def get_question(db: Session, question_id: str) -> Optional[Question]:
    return db.query(Question).filter(Question.id == question_id).first()

def get_all_questions(db: Session, curricula: Optional[List[str]] = None) -> List[Question]:
    """All questions, optionally restricted to the given curricula"""
    query = db.query(Question)
    if curricula:
        query = query.filter(Question.curriculum.in_(curricula))
    return query.order_by(Question.id).all()

def update_question(db: Session, question_id: str, question_data: dict) -> Optional[Question]:
    """
    Update a question.

    Changing the content a learner answers (text, type, options, answers,
    region) wipes every learner's review card for it; the cards are
    recreated fresh on the next ensure_user_review_cards. Category or
    curriculum changes keep progress.
    """
    db_question = get_question(db, question_id)
    if not db_question:
        return None
    
    content_changed = any(
        key in CONTENT_FIELDS and getattr(db_question, key) != value
        for key, value in question_data.items()
    )
    if content_changed:
        delete_review_cards_by_question_id(db, question_id, commit=False)
        db.expire(db_question, ["review_cards"])
    
    for key, value in question_data.items():
        setattr(db_question, key, value)
    db.commit()
    db.refresh(db_question)
    return db_question

def delete_question(db: Session, question_id: str) -> bool:
    """Delete a question; every learner's review card for it goes with it"""
    db_question = get_question(db, question_id)
    if not db_question:
        return False
    removed = len(db_question.review_cards)
    db.delete(db_question)
    db.commit()
    logger.info("question.deleted", question_id=question_id, review_cards_removed=removed)
    return True
