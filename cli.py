#!/usr/bin/env python3
"""
CertPrep - adaptive certification exam preparation.
CLI interface for browsing exam profiles, planning practice runs and
simulating study sessions.
"""

import logging
import random
import sqlite3
from datetime import timedelta

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from config import Config
from core.catalog import ExamCatalog
from core.dto.distribution import STYLE_ORDER
from core.dto.exam import ExamProfile, SamplingMode
from core.dto.prediction import Priority, ScorePrediction
from core.dto.session import (
    FlashcardAttempt,
    FlashcardRating,
    QuestionAttempt,
    StudySessionConfig,
)
from core.sampling import (
    build_strategy,
    next_objective,
    progress_summary,
    should_end_session,
    strategy_problems,
)
from core.score_predictor import ScorePredictor
from core.session_tracker import SessionTracker
from core.style_tracker import StyleDistributionTracker
from storage.database import Database
from storage.memory_store import InMemorySessionStore

console = Console()

CLI_ERRORS = (ValueError, FileNotFoundError, sqlite3.Error)
MODES = [mode.value for mode in SamplingMode]
PRIORITY_COLORS = {Priority.HIGH: "red", Priority.MEDIUM: "yellow", Priority.LOW: "dim"}


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else getattr(logging, Config.LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def print_prediction(prediction: ScorePrediction, profile: ExamProfile):
    """Render a prediction and its per-objective breakdown."""
    interval = prediction.confidence_interval
    console.print(
        f"\n[bold]Predicted score:[/bold] [cyan]{prediction.predicted_score:.1f}%[/cyan] "
        f"(95% CI {interval.lower:.1f}-{interval.upper:.1f}, "
        f"reliability {prediction.reliability.value})"
    )
    console.print(
        f"[dim]Based on {prediction.sample_size} answers, "
        f"extrapolated to {prediction.target_questions} questions[/dim]\n"
    )

    table = Table(title="Objective Breakdown")
    table.add_column("Objective", style="cyan", no_wrap=True)
    table.add_column("Answered", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Predicted", justify="right", style="green")
    table.add_column("Confidence", justify="right")
    table.add_column("Trend")

    for row in prediction.breakdown:
        objective = profile.get_objective(row.objective_id)
        table.add_row(
            objective.title if objective else row.objective_id,
            str(row.sample_size),
            f"{row.current_score:.0f}%",
            f"{row.predicted_score:.0f}%",
            f"{row.confidence:.2f}",
            row.trend.value,
        )
    console.print(table)

    if prediction.recommended_actions:
        console.print("\n[bold]Recommended next steps:[/bold]")
        for action in prediction.recommended_actions:
            color = PRIORITY_COLORS[action.priority]
            console.print(f"  [{color}]• [{action.priority.value}][/{color}] {action.message}")
    console.print()


@click.group()
@click.version_option(version="0.1.0", prog_name="CertPrep")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """CertPrep - adaptive practice for certification exams."""
    setup_logging(verbose)


@cli.command()
def init():
    """Create the data directory and session database."""
    try:
        Config.ensure_dirs()
        with Database() as db:
            db.initialize()
        console.print("\n[bold green]✨ CertPrep initialized[/bold green]\n")
        console.print(f"Database: {Config.DB_PATH}")
        console.print(f"Exam profiles: {Config.EXAM_PROFILES_PATH}\n")
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()


@cli.command()
def exams():
    """List the exam profiles in the catalog."""
    try:
        catalog = ExamCatalog()
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    table = Table(title="Available Exams")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Provider", style="dim")
    table.add_column("Objectives", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Time", justify="right")

    for profile in catalog.list_profiles():
        table.add_row(
            profile.id,
            profile.name,
            profile.provider,
            str(len(profile.objectives)),
            str(profile.constraints.total_questions),
            f"{profile.constraints.time_minutes} min",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(catalog.list_profiles())} exams[/dim]\n")


@cli.command()
@click.option("--exam", "-e", required=True, help="Exam ID (e.g., cfa-l1)")
@click.option("--mode", "-m", type=click.Choice(MODES), default="efficient", help="Sampling mode")
@click.option("--questions", "-n", type=int, help="Question budget for efficient mode")
@click.option("--focus", "-f", multiple=True, help="Restrict to an objective (repeatable)")
def plan(exam, mode, questions, focus):
    """Show how a practice run splits its questions across objectives."""
    try:
        profile = ExamCatalog().get(exam)
        strategy = build_strategy(profile, mode, questions, list(focus) or None)
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    budget = "unbounded" if strategy.is_unbounded else f"{strategy.total_questions} questions"
    table = Table(title=f"{profile.name} - {strategy.mode.value} ({budget})")
    table.add_column("Objective", style="cyan", no_wrap=True)
    table.add_column("Weight", justify="right")
    table.add_column("Weight %" if strategy.is_unbounded else "Questions", justify="right", style="green")

    for allocation in strategy.distribution:
        objective = profile.get_objective(allocation.objective_id)
        table.add_row(
            objective.title,
            f"{objective.weight:g}",
            str(allocation.question_count),
        )
    console.print(table)

    problems = strategy_problems(strategy)
    if problems:
        console.print("\n[bold yellow]⚠️  Strategy problems:[/bold yellow]")
        for problem in problems:
            console.print(f"  • {problem}")
    else:
        console.print("\n[green]✓ Strategy is valid[/green]")
    console.print()


@cli.command()
@click.option("--exam", "-e", required=True, help="Exam ID (e.g., cfa-l1)")
@click.option("--mode", "-m", type=click.Choice(MODES), default="efficient", help="Sampling mode")
@click.option("--questions", "-n", type=int, help="Question budget (efficient) or run length (prep)")
@click.option("--accuracy", "-a", type=click.FloatRange(0, 1), default=0.7, help="Simulated accuracy")
@click.option("--pace", type=float, default=80.0, help="Mean seconds per simulated answer")
@click.option("--flashcards", is_flag=True, help="Also review a flashcard after each answer")
@click.option("--seed", type=int, help="Random seed for a reproducible run")
@click.option("--save", is_flag=True, help="Persist the session to the database")
def simulate(exam, mode, questions, accuracy, pace, flashcards, seed, save):
    """Run a practice session against a simulated learner."""
    rng = random.Random(seed)

    try:
        profile = ExamCatalog().get(exam)
        sampling_mode = SamplingMode(mode)
        target = questions if sampling_mode == SamplingMode.EFFICIENT else None
        strategy = build_strategy(profile, sampling_mode, target)

        tracker = SessionTracker()
        session = tracker.create_session(
            StudySessionConfig(
                exam_id=profile.id,
                exam_mode=sampling_mode,
                target_questions=target,
                spaced_repetition=flashcards,
            ),
            profile,
        )
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    styles = StyleDistributionTracker(InMemorySessionStore())
    predictor = ScorePredictor()
    prediction = predictor.predict(session, profile)

    # Prep mode never ends on its own
    run_length = questions or Config.PREP_BASE_QUESTIONS
    completed = {}
    now = session.started_at

    console.print(
        f"\n[bold cyan]Simulating {sampling_mode.value} run for {profile.name}[/bold cyan] "
        f"[dim](session {session.session_id})[/dim]\n"
    )

    while not should_end_session(strategy, completed):
        if strategy.is_unbounded and session.total_questions_answered >= run_length:
            break
        if tracker.is_time_expired(session):
            console.print("[yellow]⏰ Time is up[/yellow]")
            break

        objective_id = next_objective(strategy, completed)
        if objective_id is None:
            break
        objective = profile.get_objective(objective_id)

        style = styles.next_style(session.session_id, profile.id, objective, profile.style_preferences)
        styles.record(session.session_id, profile.id, objective_id, style)

        elapsed = max(5.0, rng.gauss(pace, pace * 0.3))
        now += timedelta(seconds=elapsed)
        number = session.total_questions_answered + 1
        tracker.record_question_attempt(
            session,
            QuestionAttempt(
                question_id=f"{objective_id}-q{number}",
                objective_id=objective_id,
                correct=rng.random() < accuracy,
                time_spent=elapsed,
                timestamp=now,
            ),
        )
        tracker.tick(session, elapsed)
        completed[objective_id] = completed.get(objective_id, 0) + 1

        if flashcards:
            rating = rng.choice(list(FlashcardRating))
            tracker.record_flashcard_attempt(
                session,
                FlashcardAttempt(
                    flashcard_id=f"{objective_id}-f{number}",
                    objective_id=objective_id,
                    rating=rating,
                    time_spent=15.0,
                    timestamp=now,
                ),
            )

        if tracker.is_break_due(session):
            tracker.start_break(session)
            tracker.tick(session, session.exam_conditions.break_duration_seconds)
            console.print(f"[dim]☕ Break taken after question {session.total_questions_answered}[/dim]")

        prediction = predictor.update_real_time(prediction, session, profile)

    tracker.end_session(session)
    prediction = predictor.predict(session, profile)

    summary = progress_summary(strategy, completed)
    console.print(
        f"[bold]Answered:[/bold] {session.total_questions_answered} "
        f"({summary.completion_percentage:.0f}% of {summary.total_target}), "
        f"[bold]score:[/bold] {session.session_score:.1f}%"
    )
    if session.timer.remaining_seconds is not None:
        console.print(
            f"[bold]Time left:[/bold] {session.timer.remaining_seconds / 60:.0f} min "
            f"({tracker.time_status(session).value})"
        )

    style_summary = styles.summary(session.session_id, profile.style_preferences)
    if style_summary is not None:
        table = Table(title=f"Question Styles (health {style_summary.health_score}/100)")
        table.add_column("Style", style="cyan")
        table.add_column("Actual", justify="right")
        table.add_column("Target", justify="right", style="dim")
        for style in STYLE_ORDER:
            table.add_row(
                style.value,
                f"{style_summary.percentages[style]:.1f}%",
                f"{style_summary.target[style]:.1f}%",
            )
        console.print()
        console.print(table)
        for recommendation in styles.health(
            session.session_id, exam_preferences=profile.style_preferences
        ).recommendations:
            console.print(f"  [yellow]•[/yellow] {recommendation}")

    print_prediction(prediction, profile)

    if save:
        try:
            with Database() as db:
                db.save_session(session)
            console.print(f"[green]✓ Saved session {session.session_id}[/green]\n")
        except CLI_ERRORS as e:
            console.print(f"\n[bold red]Error:[/bold red] {e}\n")
            raise click.Abort()


@cli.command()
@click.option("--session-id", "-s", required=True, help="Saved session ID")
@click.option("--target", "-t", type=int, help="Exam length to extrapolate to")
def predict(session_id, target):
    """Predict the exam score from a saved session."""
    try:
        with Database() as db:
            session = db.load_session(session_id)
        if session is None:
            console.print(f"\n[bold red]Error:[/bold red] Session '{session_id}' not found\n")
            raise click.Abort()
        profile = ExamCatalog().get(session.exam_id)
        prediction = ScorePredictor().predict(session, profile, target)
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    console.print(f"\n[bold cyan]{profile.name}[/bold cyan] [dim](session {session_id})[/dim]")
    print_prediction(prediction, profile)


@cli.command()
@click.option("--exam", "-e", help="Only sessions of this exam")
@click.option("--limit", "-l", type=int, default=20, help="Maximum sessions to show")
def sessions(exam, limit):
    """List saved study sessions."""
    try:
        with Database() as db:
            rows = db.list_sessions(exam, limit)
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    if not rows:
        console.print("\n[yellow]No saved sessions.[/yellow]\n")
        return

    table = Table(title="Study Sessions")
    table.add_column("Session", style="cyan", no_wrap=True)
    table.add_column("Exam")
    table.add_column("Mode")
    table.add_column("Started", style="dim")
    table.add_column("Answered", justify="right")
    table.add_column("Score", justify="right", style="green")

    for row in rows:
        table.add_row(
            row["session_id"],
            row["exam_id"],
            row["exam_mode"],
            row["started_at"][:16].replace("T", " "),
            str(row["questions_answered"]),
            f"{row['session_score']:.1f}%",
        )
    console.print(table)
    console.print()


@cli.command()
@click.option("--exam", "-e", required=True, help="Exam ID (e.g., cfa-l1)")
def progress(exam):
    """Show mastery per objective across all saved sessions of an exam."""
    try:
        profile = ExamCatalog().get(exam)
        with Database() as db:
            saved = db.load_sessions(exam)
    except CLI_ERRORS as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    merged = SessionTracker.aggregate_progress(saved, exam)
    if not merged:
        console.print(f"\n[yellow]No saved sessions for {exam}.[/yellow]\n")
        return

    table = Table(title=f"{profile.name} - progress over {len(saved)} sessions")
    table.add_column("Objective", style="cyan", no_wrap=True)
    table.add_column("Answered", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Flashcards", justify="right")
    table.add_column("Mastery", style="green")
    table.add_column("Next review", style="dim")

    for row in merged:
        objective = profile.get_objective(row.objective_id)
        table.add_row(
            objective.title if objective else row.objective_id,
            str(row.questions_attempted),
            f"{row.average_score:.0f}%",
            str(row.flashcards_studied),
            row.mastery_level.value,
            row.next_review_date.strftime("%Y-%m-%d") if row.next_review_date else "-",
        )
    console.print(table)
    console.print()


if __name__ == "__main__":
    cli()
