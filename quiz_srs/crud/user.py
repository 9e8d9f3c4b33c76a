from sqlalchemy.orm import Session
from quiz_srs.models import User
from quiz_srs.schemas import UserCreate
from quiz_srs.logging import get_logger
from typing import Optional

logger = get_logger(__name__)

def create_user(db: Session, user: UserCreate) -> User:
    """Create a new learner account"""
    data = user.model_dump()
    if data.get("id") is None:
        data.pop("id", None)
    db_user = User(**data)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def update_user(db: Session, user_id: str, user_data: dict) -> Optional[User]:
    """Update user profile"""
    db_user = get_user(db, user_id)
    if db_user:
        for key, value in user_data.items():
            setattr(db_user, key, value)
        db.commit()
        db.refresh(db_user)
    return db_user

def delete_user(db: Session, user_id: str) -> bool:
    """Delete a learner; their review cards go with them"""
    db_user = get_user(db, user_id)
    if not db_user:
        return False
    removed = len(db_user.review_cards)
    db.delete(db_user)
    db.commit()
    logger.info("user.deleted", user_id=user_id, review_cards_removed=removed)
    return True
