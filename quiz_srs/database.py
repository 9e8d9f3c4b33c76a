from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from quiz_srs.config import settings

engine = create_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()

def init_db(bind=None):
    """Create all tables that do not exist yet"""
    # Import models so they register on Base.metadata
    import quiz_srs.models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
