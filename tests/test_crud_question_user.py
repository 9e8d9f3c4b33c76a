from quiz_srs.crud import (
    create_question,
    delete_user,
    get_all_questions,
    get_question,
    get_user,
    update_question,
    update_user,
)
from quiz_srs.schemas import QuestionCreate


def test_question_gets_generated_id(db):
    question = create_question(db, QuestionCreate(question="Rioja's main grape?", options=["Tempranillo"]))
    assert question.id
    assert question.question_type == "single"
    assert get_question(db, question.id).options == ["Tempranillo"]


def test_get_all_questions_by_curriculum(db, questions):
    assert len(get_all_questions(db)) == 3
    assert [q.id for q in get_all_questions(db, curricula=["WSET2"])] == ["q-barolo", "q-bordeaux"]
    assert get_all_questions(db, curricula=["WSET1"]) == []


def test_update_unknown_question(db):
    assert update_question(db, "q-missing", {"question": "?"}) is None


def test_update_user_curricula(db, user):
    updated = update_user(db, user.id, {"selected_curricula": ["WSET3"]})
    assert updated.selected_curricula == ["WSET3"]
    assert get_user(db, user.id).selected_curricula == ["WSET3"]


def test_delete_unknown_user(db):
    assert not delete_user(db, "nobody")
