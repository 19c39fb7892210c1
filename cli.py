import sys

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table
from typing import Optional
from pydantic import ValidationError as SchemaError

from studysheet.config import settings
from studysheet.database import SessionLocal, init_db as create_tables, reset_db as drop_and_recreate
from studysheet.crud import (
    create_user, get_user,
    create_problem, create_problems, get_problem, get_grouped_problems, list_problems, update_problem,
    set_problem_completed, get_problem_history, list_user_attempts
)
from studysheet.schemas import UserCreate, ProblemCreate, ProblemUpdate, ProblemResponse
from studysheet.problem_importer import ProblemImporter
from studysheet.attempt_logger import record_attempt, reconcile_problem, reconcile_user
from studysheet.due_queue import due_queue, days_overdue
from studysheet.errors import StudySheetError
from studysheet.clock import utcnow
from studysheet.stats import sheet_progress, topic_progress, activity_heatmap, current_streak, heat_level

app = typer.Typer(help="Study Sheet CLI - spaced repetition for practice problems")
console = Console()

HEAT_CHARS = ["·", "░", "▒", "▓", "█"]


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")):
    """Configure logging for every command"""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else settings.log_level)


def _fail(error):
    console.print(f"[red]✗[/red] {error}")
    raise typer.Exit(code=1)


def _fmt_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "never reviewed"


@app.command()
def init():
    """Initialize database tables"""
    create_tables()
    console.print("[green]✓[/green] Database initialized successfully!")

@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA, including attempt history. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    drop_and_recreate()
    console.print("[green]✓[/green] Database reset complete! All data deleted.")

@app.command("create-user")
def create_user_command(name: str = typer.Option(..., prompt="Your name")):
    """Create a user to own a problem sheet"""
    db = SessionLocal()
    try:
        user = create_user(db, UserCreate(name=name))
        console.print(f"[green]✓[/green] User created! User ID: {user.id}")
    finally:
        db.close()

@app.command()
def add_problem(
    user_id: int = typer.Option(..., prompt="User ID"),
    title: str = typer.Option(..., prompt="Problem title"),
    difficulty: Optional[str] = typer.Option(None, help="Easy, Medium or Hard"),
    topic: Optional[str] = typer.Option(None, help="Topic (e.g., Arrays, Graphs)"),
    number: Optional[int] = typer.Option(None, help="Question number on the sheet"),
    link: Optional[str] = typer.Option(None, help="Problem link")
):
    """Add a single problem to the sheet (due for review immediately)"""
    db = SessionLocal()
    try:
        if not get_user(db, user_id):
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            raise typer.Exit(code=1)

        problem = create_problem(db, user_id, ProblemCreate(
            title=title,
            difficulty=difficulty,
            topic_category=topic,
            question_number=number,
            link=link
        ))
        console.print(f"[green]✓[/green] Problem added! ID: {problem.id}")
    except SchemaError as e:
        _fail(e.errors()[0]["msg"])
    finally:
        db.close()

@app.command()
def edit_problem(
    user_id: int = typer.Option(..., prompt="User ID"),
    problem_id: int = typer.Option(..., prompt="Problem ID"),
    title: Optional[str] = typer.Option(None, help="New title"),
    difficulty: Optional[str] = typer.Option(None, help="Easy, Medium or Hard"),
    topic: Optional[str] = typer.Option(None, help="Topic (e.g., Arrays, Graphs)"),
    link: Optional[str] = typer.Option(None, help="Problem link"),
    comment: Optional[str] = typer.Option(None, help="Personal note shown on the sheet")
):
    """Edit a problem's sheet columns (its review schedule is left alone)"""
    fields = {
        "title": title,
        "difficulty": difficulty,
        "topic_category": topic,
        "link": link,
        "comment": comment
    }
    db = SessionLocal()
    try:
        changes = ProblemUpdate(**{k: v for k, v in fields.items() if v is not None})
        problem = update_problem(db, problem_id, user_id, changes)
        if not problem:
            console.print(f"[red]✗[/red] Problem {problem_id} not found")
            raise typer.Exit(code=1)

        saved = ProblemResponse.model_validate(problem)
        console.print(f"[green]✓[/green] Problem {saved.id} updated")
        console.print(f"  Title: {saved.title}")
        console.print(f"  Difficulty: {saved.difficulty or '-'}")
        console.print(f"  Topic: {saved.topic_category or '-'}")
        if saved.comment:
            console.print(f"  Comment: {saved.comment}")
        console.print(f"  Bucket {saved.srs_bucket}, next review {_fmt_time(saved.next_review_at)}")
    except SchemaError as e:
        _fail(e.errors()[0]["msg"])
    finally:
        db.close()

@app.command()
def import_problems(
    user_id: int = typer.Option(..., prompt="User ID"),
    file_path: str = typer.Option(..., prompt="Sheet file path (.csv or .xlsx)")
):
    """Import problems from a DSA sheet export (CSV or Excel)"""
    db = SessionLocal()
    try:
        if not get_user(db, user_id):
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            raise typer.Exit(code=1)

        console.print("[yellow]Parsing sheet...[/yellow]")
        items = ProblemImporter.auto_parse(file_path)
        problems = create_problems(db, user_id, items)
        console.print(f"[green]✓[/green] Imported {len(problems)} problems")
    except (StudySheetError, FileNotFoundError) as e:
        _fail(e)
    finally:
        db.close()

@app.command("list-problems")
def list_problems_command(user_id: int):
    """List the sheet grouped by topic"""
    db = SessionLocal()
    try:
        grouped = get_grouped_problems(db, user_id)
        if not grouped:
            console.print(f"[yellow]No problems found for user {user_id}[/yellow]")
            return

        for topic, problems in grouped.items():
            done = sum(1 for p in problems if p.is_completed)
            console.print(f"\n[bold]{topic}[/bold] ({done}/{len(problems)} completed)")

            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("ID", style="dim", justify="right")
            table.add_column("#", justify="right")
            table.add_column("Title", style="green")
            table.add_column("Difficulty", style="yellow")
            table.add_column("Bucket", justify="right")
            table.add_column("Next Review", style="cyan")
            table.add_column("Done")

            for p in problems:
                table.add_row(
                    str(p.id),
                    str(p.question_number or ""),
                    p.title[:50],
                    p.difficulty or "",
                    str(p.srs_bucket),
                    _fmt_time(p.next_review_at),
                    "✓" if p.is_completed else ""
                )
            console.print(table)
    finally:
        db.close()

@app.command()
def complete(
    user_id: int = typer.Option(..., prompt="User ID"),
    problem_id: int = typer.Option(..., prompt="Problem ID"),
    undo: bool = typer.Option(False, "--undo", help="Mark as not completed")
):
    """Tick a problem off the sheet"""
    db = SessionLocal()
    try:
        problem = set_problem_completed(db, problem_id, user_id, completed=not undo)
        if not problem:
            console.print(f"[red]✗[/red] Problem {problem_id} not found")
            raise typer.Exit(code=1)
        state = "not completed" if undo else "completed"
        console.print(f"[green]✓[/green] {problem.title} marked {state}")
    finally:
        db.close()

@app.command()
def due(
    user_id: int,
    limit: int = typer.Option(settings.due_queue_limit, help="Maximum problems to show")
):
    """Show the review queue: problems due now, most overdue first"""
    db = SessionLocal()
    try:
        now = utcnow()
        queue = due_queue(db, user_id, now)
        if not queue:
            console.print("[green]Nothing due. Come back later![/green]")
            return

        console.print(f"\n[bold]Review Queue[/bold] ({len(queue)} due)\n")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Title", style="green")
        table.add_column("Topic", style="cyan")
        table.add_column("Bucket", justify="right")
        table.add_column("Due", style="yellow")
        table.add_column("Days Overdue", style="red", justify="right")

        for p in queue[:limit]:
            overdue = days_overdue(p, now)
            table.add_row(
                str(p.id),
                p.title[:50],
                p.topic_category or "",
                str(p.srs_bucket),
                _fmt_time(p.next_review_at),
                "New" if p.next_review_at is None else (str(overdue) if overdue > 0 else "Today")
            )
        console.print(table)
        if len(queue) > limit:
            console.print(f"[dim]... and {len(queue) - limit} more problems[/dim]")
    finally:
        db.close()

@app.command()
def log_attempt(
    user_id: int = typer.Option(..., prompt="User ID"),
    problem_id: int = typer.Option(..., prompt="Problem ID"),
    outcome: str = typer.Option(..., prompt="Outcome (Solved/Failed/Hint_Used)"),
    confidence: int = typer.Option(..., prompt="Confidence 1-5"),
    minutes: Optional[float] = typer.Option(None, help="Time taken in minutes"),
    notes: Optional[str] = typer.Option(None, help="Optional notes (markdown)")
):
    """Record a practice attempt and reschedule the problem"""
    db = SessionLocal()
    try:
        result = record_attempt(
            db,
            user_id=user_id,
            problem_id=problem_id,
            outcome=outcome,
            confidence_rating=confidence,
            time_taken_seconds=round(minutes * 60) if minutes is not None else None,
            notes=notes
        )
        console.print(f"[green]✓[/green] Attempt recorded!")
        console.print(f"  Confidence: {confidence}/5")
        console.print(f"  Bucket: {result.next_bucket}")
        console.print(f"  Next review: {_fmt_time(result.next_review_at)} (in {result.interval_days} days)")
        console.print(f"  Personal difficulty: {result.personal_difficulty}/10")
    except StudySheetError as e:
        _fail(e)
    finally:
        db.close()

@app.command()
def history(
    user_id: int,
    problem_id: int,
    limit: int = typer.Option(20, help="Number of attempts to show")
):
    """Show attempts for a problem, newest first"""
    db = SessionLocal()
    try:
        problem = get_problem(db, problem_id, user_id)
        if not problem:
            console.print(f"[red]✗[/red] Problem {problem_id} not found")
            raise typer.Exit(code=1)

        console.print(f"\n[bold]{problem.title}[/bold]")
        console.print(f"  Bucket {problem.srs_bucket}, next review {_fmt_time(problem.next_review_at)}")

        attempts = get_problem_history(db, problem_id, limit)
        if not attempts:
            console.print("[yellow]No attempts yet[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("When", style="cyan")
        table.add_column("Outcome", style="green")
        table.add_column("Confidence", justify="right")
        table.add_column("Time", justify="right")
        table.add_column("Notes")
        for a in attempts:
            table.add_row(
                _fmt_time(a.timestamp),
                a.outcome,
                f"{a.confidence_rating}/5",
                f"{a.time_taken_seconds // 60}m {a.time_taken_seconds % 60}s" if a.time_taken_seconds is not None else "",
                (a.notes_markdown or "")[:40]
            )
        console.print(table)
    finally:
        db.close()

@app.command()
def reconcile(
    user_id: int,
    problem_id: Optional[int] = typer.Option(None, help="Rebuild a single problem"),
    force: bool = typer.Option(False, "--force", help="Rebuild even if the schedule looks current")
):
    """Rebuild schedules from attempt history after interrupted writes"""
    db = SessionLocal()
    try:
        if problem_id is not None:
            problem = reconcile_problem(db, problem_id, user_id, force=force)
            console.print(f"[green]✓[/green] Problem {problem.id}: bucket {problem.srs_bucket}, next review {_fmt_time(problem.next_review_at)}")
            return

        repaired = reconcile_user(db, user_id)
        if repaired:
            console.print(f"[green]✓[/green] Repaired {len(repaired)} problem(s): {', '.join(map(str, repaired))}")
        else:
            console.print("[green]✓[/green] All schedules are up to date")
    except StudySheetError as e:
        _fail(e)
    finally:
        db.close()

@app.command()
def progress(user_id: int):
    """View sheet completion, recent activity and streak"""
    db = SessionLocal()
    try:
        user = get_user(db, user_id)
        if not user:
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            raise typer.Exit(code=1)

        today = utcnow().date()
        problems = list_problems(db, user_id)
        attempts = list_user_attempts(db, user_id)
        summary = sheet_progress(problems)

        console.print(f"\n[bold]Progress - {user.name}[/bold]\n")
        overall = summary["overall"]
        console.print(f"[cyan]Overall:[/cyan] {overall['percentage']}% ({overall['completed']}/{overall['total']})")
        for level in ["easy", "medium", "hard"]:
            tally = summary[level]
            console.print(f"  {level.title()}: {tally['completed']}/{tally['total']}")

        console.print(f"\n[cyan]Streak:[/cyan] {current_streak((a.timestamp.date() for a in attempts), today)} days")
        console.print(f"[cyan]Due now:[/cyan] {len(due_queue(db, user_id))}")

        heatmap = activity_heatmap(attempts, today, days=28)
        console.print("\n[cyan]Last 4 weeks:[/cyan] " + "".join(HEAT_CHARS[heat_level(d["count"])] for d in heatmap))

        topics = topic_progress(get_grouped_problems(db, user_id))
        if topics:
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("Topic", style="cyan")
            table.add_column("Completed", justify="right")
            table.add_column("%", justify="right")
            for row in topics:
                table.add_row(row["topic"], f"{row['completed']}/{row['total']}", str(row["percentage"]))
            console.print()
            console.print(table)
    finally:
        db.close()

if __name__ == "__main__":
    app()
