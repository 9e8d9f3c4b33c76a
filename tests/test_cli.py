import json

import pytest
from typer.testing import CliRunner

import cli
from quiz_srs.crud import ensure_user_review_cards, get_review_card_by_question, submit_answer

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(session_factory, monkeypatch):
    monkeypatch.setattr(cli, "SessionLocal", session_factory)
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)


def test_create_user_schedules_existing_questions(db, questions):
    result = runner.invoke(cli.app, ["create-user", "--email", "new@example.com", "--curricula", "WSET2"])
    assert result.exit_code == 0, result.output
    assert "User created!" in result.output
    assert "Review cards scheduled: 3" in result.output


def test_stats_json_for_fresh_user(user, questions):
    result = runner.invoke(cli.app, ["stats", user.id, "--json"])
    assert result.exit_code == 0, result.output
    stats = json.loads(result.stdout)
    assert stats["total_questions"] == 3
    assert stats["new_questions"] == 3
    assert stats["average_ease_factor"] == 2.5
    assert stats["total_reviews"] == 0


def test_stats_respects_curricula_option(user, questions):
    result = runner.invoke(cli.app, ["stats", user.id, "--json", "--curricula", "WSET3"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["total_questions"] == 1


def test_stats_unknown_user(questions):
    result = runner.invoke(cli.app, ["stats", "nobody"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_answer_reschedules_card(db, user, questions):
    result = runner.invoke(cli.app, ["answer", user.id, "q-bordeaux", "--correct"])
    assert result.exit_code == 0, result.output
    assert "Correct" in result.output
    assert "quality: 5/5" in result.output

    card = get_review_card_by_question(db, user.id, "q-bordeaux")
    db.refresh(card)
    assert card.repetitions == 1
    assert card.interval == 1


def test_incorrect_hesitant_answer(db, user, questions):
    result = runner.invoke(cli.app, ["answer", user.id, "q-barolo", "--incorrect", "--hesitant"])
    assert result.exit_code == 0, result.output
    assert "quality: 2/5" in result.output


def test_answer_unknown_question(user, questions):
    result = runner.invoke(cli.app, ["answer", user.id, "q-missing", "--correct"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_answer_unknown_user(questions):
    result = runner.invoke(cli.app, ["answer", "ghost-user", "q-bordeaux", "--correct"])
    assert result.exit_code == 1
    assert "ghost-user" in result.output
    assert "not found" in result.output


def test_review_rejects_out_of_range_quality(db, user, questions):
    ensure_user_review_cards(db, user.id)
    card = get_review_card_by_question(db, user.id, "q-barolo")
    result = runner.invoke(cli.app, ["review", card.id, "--quality", "7"])
    assert result.exit_code == 1
    assert "between 0 and 5" in result.output


def test_due_lists_shuffled_queue(user, questions):
    result = runner.invoke(cli.app, ["due", user.id, "--seed", "1"])
    assert result.exit_code == 0, result.output
    assert "Due for review: 3" in result.output
    assert "Completed today: 0/20" in result.output


def test_due_nothing_left(db, user, questions):
    ensure_user_review_cards(db, user.id)
    for question in questions:
        submit_answer(db, user.id, question.id, True)
    result = runner.invoke(cli.app, ["due", user.id])
    assert result.exit_code == 0, result.output
    assert "Nothing due" in result.output


def test_progress_shows_mastery(db, user, questions):
    result = runner.invoke(cli.app, ["progress", user.id])
    assert result.exit_code == 0, result.output
    assert "Bordeaux" in result.output
    assert "0%" in result.output


def test_edit_question_content_resets_progress(db, user, questions):
    ensure_user_review_cards(db, user.id)
    submit_answer(db, user.id, "q-bordeaux", True)

    result = runner.invoke(cli.app, ["edit-question", "q-bordeaux", "--correct-answer", "2"])
    assert result.exit_code == 0, result.output
    assert get_review_card_by_question(db, user.id, "q-bordeaux") is None


def test_add_question_rejects_unknown_type():
    result = runner.invoke(cli.app, ["add-question", "--question", "Pick one", "--question-type", "essay"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_add_and_delete_question(db):
    result = runner.invoke(cli.app, ["add-question", "--question", "Chablis grape?", "--options", "Chardonnay"])
    assert result.exit_code == 0, result.output
    question_id = result.output.strip().split("ID: ")[-1].strip()

    result = runner.invoke(cli.app, ["delete-question", question_id])
    assert result.exit_code == 0, result.output
    assert "deleted" in result.output


def test_delete_user(db, user, questions):
    ensure_user_review_cards(db, user.id)
    result = runner.invoke(cli.app, ["delete-user", user.id])
    assert result.exit_code == 0, result.output
    assert "deleted" in result.output
