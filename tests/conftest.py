"""Shared fixtures: in-memory SQLite database and a fixed clock."""

import os

# Point the module-level engine at an in-memory database before quiz_srs is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quiz_srs.crud import create_question, create_user
from quiz_srs.database import init_db
from quiz_srs.logging import configure_logging
from quiz_srs.schemas import QuestionCreate, UserCreate

NOW = datetime(2025, 3, 10, 12, 0, 0)


@pytest.fixture(autouse=True)
def quiet_logging():
    configure_logging(level="WARNING", json=True)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    return create_user(db, UserCreate(id="learner-1", email="learner@example.com", first_name="Ada"))


@pytest.fixture
def questions(db):
    """Three questions across two curricula and categories"""
    return [
        create_question(db, QuestionCreate(
            id="q-bordeaux",
            question="Which grape dominates Pauillac blends?",
            options=["Merlot", "Cabernet Sauvignon", "Malbec", "Petit Verdot"],
            correct_answer=1,
            category="Bordeaux",
            curriculum="WSET2",
        )),
        create_question(db, QuestionCreate(
            id="q-barolo",
            question="Barolo is made from which grape?",
            question_type="text-input",
            options=["Nebbiolo"],
            category="Italian Wines",
            curriculum="WSET2",
        )),
        create_question(db, QuestionCreate(
            id="q-sancerre",
            question="Sancerre whites are made from which grapes?",
            question_type="multi",
            options=["Chardonnay", "Sauvignon Blanc", "Chenin Blanc", "Riesling", "Viognier", "Muscadet"],
            correct_answers=[1],
            category="Loire",
            curriculum="WSET3",
        )),
    ]
