import uuid
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import relationship
from quiz_srs.sm2 import utc_now
from quiz_srs.database import Base

class User(Base):
    """Learner account; identity comes from the external auth layer"""
    __tablename__ = "users"
    
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True)
    first_name = Column(String)
    last_name = Column(String)
    selected_curricula = Column(JSON)  # ["WSET1", "WSET2"], None = all
    created_at = Column(DateTime, default=utc_now)
    
    review_cards = relationship("ReviewCard", back_populates="user", cascade="all, delete")
