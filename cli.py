import typer
from rich.console import Console
from rich.table import Table
from rich.markup import escape
from typing import Optional, List
import json
import random

from quiz_srs.database import SessionLocal, init_db
from quiz_srs.crud import (
    create_user, get_user, delete_user,
    create_question, update_question, delete_question,
    ensure_user_review_cards, submit_answer, submit_review,
    build_quiz_session, get_statistics, get_card_progress
)
from quiz_srs.exceptions import SchedulerError
from quiz_srs.logging import configure_logging
from quiz_srs.schemas import UserCreate, QuestionCreate, dump
from quiz_srs.selector import category_mastery, get_days_overdue
from quiz_srs.sm2 import utc_now

app = typer.Typer(help="Quiz SRS CLI - SM-2 spaced repetition scheduling for quiz questions")
console = Console()

def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]

def _curricula_for(user, override: Optional[str]) -> Optional[List[str]]:
    """Explicit --curricula wins, otherwise the user's saved selection"""
    return _split(override) or (user.selected_curricula or None)

@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default from LOG_LEVEL)"),
):
    configure_logging(level=log_level)

@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")

@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA including review progress. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from quiz_srs.database import engine, Base
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    init_db()
    console.print("[green]✓[/green] Database reset complete! All data deleted.")

@app.command("create-user")
def create_user_cmd(
    email: Optional[str] = typer.Option(None, help="Email address"),
    first_name: Optional[str] = typer.Option(None, help="First name"),
    last_name: Optional[str] = typer.Option(None, help="Last name"),
    curricula: Optional[str] = typer.Option(None, help="Selected curricula (comma-separated, e.g., WSET1,WSET2)")
):
    """Create a learner and schedule every existing question for them"""
    db = SessionLocal()
    try:
        user = create_user(db, UserCreate(
            email=email,
            first_name=first_name,
            last_name=last_name,
            selected_curricula=_split(curricula)
        ))
        created = ensure_user_review_cards(db, user.id)
        console.print(f"[green]✓[/green] User created! User ID: {user.id}")
        console.print(f"  Review cards scheduled: {created}")
    finally:
        db.close()

@app.command("delete-user")
def delete_user_cmd(user_id: str):
    """Delete a learner and all of their review progress"""
    db = SessionLocal()
    try:
        if delete_user(db, user_id):
            console.print(f"[green]✓[/green] User {user_id} deleted")
        else:
            console.print(f"[red]✗[/red] User ID {user_id} not found")
    finally:
        db.close()

@app.command("add-question")
def add_question(
    question: str = typer.Option(..., prompt="Question text"),
    question_type: str = typer.Option("single", help="single, multi, text-input or map"),
    options: Optional[str] = typer.Option(None, help="Options or accepted answers (comma-separated)"),
    correct_answer: Optional[int] = typer.Option(None, help="Correct option index (single-choice)"),
    correct_answers: Optional[str] = typer.Option(None, help="Correct option indices (multi-select, comma-separated)"),
    region_name: Optional[str] = typer.Option(None, help="Region name (map questions)"),
    category: Optional[str] = typer.Option(None, help="Category (e.g., Bordeaux)"),
    curriculum: Optional[str] = typer.Option(None, help="Curriculum (e.g., WSET2)")
):
    """Add a question to the shared question bank"""
    db = SessionLocal()
    try:
        created = create_question(db, QuestionCreate(
            question=question,
            question_type=question_type,
            options=_split(options),
            correct_answer=correct_answer,
            correct_answers=[int(i) for i in _split(correct_answers) or []] or None,
            region_name=region_name,
            category=category,
            curriculum=curriculum
        ))
        console.print(f"[green]✓[/green] Question added! ID: {created.id}")
    except ValueError as e:
        console.print(f"[red]✗[/red] Error: {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command("edit-question")
def edit_question(
    question_id: str,
    question: Optional[str] = typer.Option(None, help="New question text"),
    options: Optional[str] = typer.Option(None, help="New options (comma-separated)"),
    correct_answer: Optional[int] = typer.Option(None, help="New correct option index"),
    category: Optional[str] = typer.Option(None, help="New category"),
    curriculum: Optional[str] = typer.Option(None, help="New curriculum")
):
    """Edit a question (content changes reset every learner's progress on it)"""
    db = SessionLocal()
    try:
        updates = {}
        if question:
            updates["question"] = question
        if options:
            updates["options"] = _split(options)
        if correct_answer is not None:
            updates["correct_answer"] = correct_answer
        if category:
            updates["category"] = category
        if curriculum:
            updates["curriculum"] = curriculum

        updated = update_question(db, question_id, updates)
        if updated:
            console.print(f"[green]✓[/green] Question updated!")
        else:
            console.print(f"[red]✗[/red] Question ID {question_id} not found")
    finally:
        db.close()

@app.command("delete-question")
def delete_question_cmd(question_id: str):
    """Delete a question and all review progress on it"""
    db = SessionLocal()
    try:
        if delete_question(db, question_id):
            console.print(f"[green]✓[/green] Question {question_id} deleted")
        else:
            console.print(f"[red]✗[/red] Question ID {question_id} not found")
    finally:
        db.close()

@app.command()
def due(
    user_id: str,
    curricula: Optional[str] = typer.Option(None, help="Curricula filter (comma-separated)"),
    seed: Optional[int] = typer.Option(None, help="Shuffle seed for a reproducible order"),
    limit: int = typer.Option(20, help="Max rows to display")
):
    """Show the shuffled quiz queue of questions due for review"""
    db = SessionLocal()
    try:
        user = get_user(db, user_id)
        if not user:
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            raise typer.Exit(code=1)

        ensure_user_review_cards(db, user_id)
        now = utc_now()
        rng = random.Random(seed) if seed is not None else None
        session = build_quiz_session(db, user_id, _curricula_for(user, curricula), rng=rng, now=now)
        daily = session.daily_progress

        console.print(f"\n[bold]Due for review: {daily.total_due}[/bold]")
        console.print(f"  Completed today: {daily.completed_today}/{daily.daily_goal}")

        if not session.queue:
            console.print("[green]Nothing due - come back later![/green]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Question ID", style="cyan")
        table.add_column("Question", style="green")
        table.add_column("Type", style="blue")
        table.add_column("Category", style="yellow")
        table.add_column("Days Overdue", style="red")

        remaining = session.queue.remaining
        for item in remaining[:limit]:
            days_overdue = get_days_overdue(item, now)
            table.add_row(
                item.id,
                escape(item.question[:50]),
                item.question_type,
                item.category or "-",
                str(days_overdue) if days_overdue > 0 else "Today"
            )

        console.print(table)
        if len(remaining) > limit:
            console.print(f"[dim]... and {len(remaining) - limit} more questions[/dim]")
    finally:
        db.close()

@app.command()
def answer(
    user_id: str,
    question_id: str,
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Whether the answer was correct"),
    hesitant: bool = typer.Option(False, "--hesitant", help="Correct but after hesitation (quality 4)")
):
    """Record an answer and reschedule the question"""
    db = SessionLocal()
    try:
        result = submit_answer(db, user_id, question_id, correct, hesitant=hesitant)
        mark = "[green]✓ Correct[/green]" if result.correct else "[red]✗ Incorrect[/red]"
        console.print(f"{mark} (quality: {result.quality}/5)")
        console.print(f"  Next review: {result.next_review_date:%Y-%m-%d %H:%M} (in {result.interval} days)")
        console.print(f"  Easiness: {result.ease_factor:.2f}, streak: {result.repetitions}")
    except SchedulerError as e:
        console.print(f"[red]✗[/red] Error: {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def review(
    card_id: str,
    quality: int = typer.Option(..., help="Quality rating 0-5")
):
    """Reschedule a review card with an explicit SM-2 quality rating"""
    db = SessionLocal()
    try:
        card = submit_review(db, card_id, quality)
        console.print(f"[green]✓[/green] Review recorded!")
        console.print(f"  Next review: {card.next_review_date:%Y-%m-%d %H:%M} (in {card.interval} days)")
        console.print(f"  Easiness: {card.ease_factor:.2f}, streak: {card.repetitions}")
    except SchedulerError as e:
        console.print(f"[red]✗[/red] Error: {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def stats(
    user_id: str,
    curricula: Optional[str] = typer.Option(None, help="Curricula filter (comma-separated)"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON")
):
    """View aggregate learning statistics"""
    db = SessionLocal()
    try:
        user = get_user(db, user_id)
        if not user:
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            raise typer.Exit(code=1)

        ensure_user_review_cards(db, user_id)
        statistics = get_statistics(db, user_id, _curricula_for(user, curricula))

        if as_json:
            typer.echo(json.dumps(dump(statistics)))
            return

        console.print(f"\n[cyan]Statistics:[/cyan]")
        console.print(f"  Total questions: {statistics.total_questions}")
        console.print(f"  Mastered: {statistics.mastered_questions}")
        console.print(f"  Learning: {statistics.learning_questions}")
        console.print(f"  New: {statistics.new_questions}")
        console.print(f"  Due today: {statistics.due_today}")
        console.print(f"  Due this week: {statistics.due_this_week}")
        console.print(f"  Completed today: {statistics.completed_today}")
        console.print(f"  Average easiness: {statistics.average_ease_factor:.2f}")
        console.print(f"  Total reviews: {statistics.total_reviews}")
    finally:
        db.close()

@app.command()
def progress(
    user_id: str,
    curricula: Optional[str] = typer.Option(None, help="Curricula filter (comma-separated)")
):
    """View per-question mastery and per-category progress"""
    db = SessionLocal()
    try:
        user = get_user(db, user_id)
        if not user:
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            raise typer.Exit(code=1)

        ensure_user_review_cards(db, user_id)
        rows = get_card_progress(db, user_id, _curricula_for(user, curricula))

        if not rows:
            console.print("[yellow]No questions tracked yet[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Question", style="green")
        table.add_column("Status", style="cyan")
        table.add_column("Mastery", style="yellow", justify="right")
        table.add_column("Badge")
        table.add_column("Next Review", style="blue")

        for row in rows:
            table.add_row(
                escape(row.question[:50]),
                row.status,
                f"{row.mastery}%",
                row.badge,
                f"{row.next_review_date:%Y-%m-%d}"
            )
        console.print(table)

        category_table = Table(show_header=True, header_style="bold magenta")
        category_table.add_column("Category", style="cyan")
        category_table.add_column("Questions", justify="right")
        category_table.add_column("Avg Mastery", style="yellow", justify="right")
        category_table.add_column("Mastered", style="green", justify="right")

        for entry in category_mastery(rows):
            category_table.add_row(
                entry.category,
                str(entry.total_questions),
                f"{entry.average_mastery}%",
                str(entry.mastered_count)
            )
        console.print(category_table)
    finally:
        db.close()

if __name__ == "__main__":
    app()
