from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from assessment_engine.assessment.errors import AssessmentError, IncompleteSubmission
from assessment_engine.assessment.reporting import (
    best_attempt,
    is_overdue,
    result_to_markdown,
    summarize_attempts,
    time_remaining_label,
)
from assessment_engine.assessment.session import AssessmentSession
from assessment_engine.assessment.timer import AsyncioScheduler
from assessment_engine.config import Settings, load_settings
from assessment_engine.config.loader import read_yaml
from assessment_engine.storage import FileBackend
from assessment_engine.utils.logging import configure_logging, learner_context

app = typer.Typer(help="Run and inspect quiz/assignment attempts stored on local disk.")
console = Console()

load_dotenv(override=False)


def _load(config: Optional[Path]) -> tuple[Settings, FileBackend]:
    """Load settings, configure logging and build the file-backed collaborator."""
    settings = load_settings(config)
    configure_logging(settings.logging.level, settings.logging.json_output)
    backend = FileBackend(
        settings.paths.question_sets_dir,
        settings.paths.attempts_path,
        settings.paths.video_progress_path,
        video_completion_percent=settings.prerequisites.video_completion_percent,
    )
    return settings, backend


def _open_session(
    settings: Settings, backend: FileBackend, subject_id: str, user_id: str
) -> AssessmentSession:
    try:
        return AssessmentSession(
            backend,
            subject_id,
            user_id,
            scheduler=AsyncioScheduler(),
            tick_seconds=settings.engine.tick_seconds,
        )
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.command()
def check(
    subject_id: str = typer.Argument(...),
    user_id: str = typer.Argument(...),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """
    Report whether the learner may start an attempt right now.

    Evaluates the attempt policy (deadline, attempt cap, prerequisite) for the
    subject using stored attempts and prints the decision with the reason.
    """
    settings, backend = _load(config)
    session = _open_session(settings, backend, subject_id, user_id)
    decision = session.check_eligibility()
    prior = session.prior_attempts()
    limit = session.config.attempt_limit
    cap = "unlimited" if limit.is_unlimited else str(limit.maximum)
    console.print(f"Attempts used: {sum(1 for a in prior if a.is_completed)} / {cap}")
    if session.config.due_date is not None:
        console.print(f"Due: {time_remaining_label(session.config.due_date, session.clock())}")
    if decision.allowed:
        console.print("[green]Eligible to start an attempt.[/green]")
    else:
        console.print(f"[yellow]Not eligible: {decision.reason.value}[/yellow]")
        raise typer.Exit(code=2)


async def _run_attempt(session: AssessmentSession, answers: Dict[str, Any]):
    session.start()
    for question_id, value in answers.items():
        session.answer(question_id, value)
    session.submit()
    return session.review()


@app.command()
def take(
    subject_id: str = typer.Argument(...),
    user_id: str = typer.Argument(...),
    answers_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    markdown: Optional[Path] = typer.Option(None, help="Also write the result as markdown."),
    late_ok: bool = typer.Option(
        False, "--late-ok", help="Accept the late penalty when the due date has passed."
    ),
):
    """
    Start an attempt, fill it from a YAML answers file, submit and show the result.

    The answers file maps question ids to answers (option index for multiple
    choice, text otherwise). The attempt is graded, saved to the attempts log
    and the reviewed result is printed, with answer keys only when the
    deadline has passed and the subject allows it.

    Past the due date, a subject that accepts late work is only attempted
    with ``--late-ok``; the score is then reduced per day late.
    """
    settings, backend = _load(config)
    answers = read_yaml(answers_file)
    session = _open_session(settings, backend, subject_id, user_id)
    subject = session.config
    if subject.allow_late_submission and is_overdue(subject, session.clock()) and not late_ok:
        console.print(
            f"[yellow]{subject_id} is past due; late work loses "
            f"{subject.late_penalty_percent_per_day:g}% per day. "
            "Re-run with --late-ok to submit anyway.[/yellow]"
        )
        raise typer.Exit(code=2)
    try:
        with learner_context(user_id, subject_id):
            result = asyncio.run(_run_attempt(session, answers))
    except IncompleteSubmission as exc:
        console.print("[red]Please answer all required questions before submitting.[/red]")
        for question_id in exc.missing_question_ids:
            console.print(f"- {question_id}")
        raise typer.Exit(code=1) from exc
    except AssessmentError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        session.leave()

    attempt = result.attempt
    table = Table(title=f"{session.config.title or subject_id} - attempt {attempt.id[:8]}")
    table.add_column("Question")
    table.add_column("Result")
    table.add_column("Points", justify="right")
    if result.can_view_answers:
        table.add_column("Answer")
    for entry in result.feedback:
        if entry.is_correct is None:
            status = "[blue]pending[/blue]"
        else:
            status = "[green]correct[/green]" if entry.is_correct else "[red]incorrect[/red]"
        row = [entry.question_id, status, f"{entry.points_earned}/{entry.points_possible}"]
        if result.can_view_answers:
            row.append("" if entry.correct_answer is None else str(entry.correct_answer))
        table.add_row(*row)
    console.print(table)
    console.print(
        f"Score: [bold]{attempt.final_score_percent:.0f}%[/bold] "
        f"(raw {attempt.raw_score_percent}%) - {'passed' if attempt.passed else 'not passed'}"
    )
    if attempt.is_late:
        console.print("[yellow]Submitted late: penalty applied.[/yellow]")
    if markdown is not None:
        rendered = result_to_markdown(result, session.config)
        markdown.write_text(rendered, encoding="utf-8")
        console.print(Markdown(f"Result written to `{markdown}`"))


@app.command()
def summary(
    subject_id: str = typer.Argument(...),
    user_id: str = typer.Argument(...),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Show attempt statistics and the best attempt for a learner on a subject."""
    _, backend = _load(config)
    attempts = backend.load_prior_attempts(user_id, subject_id)
    stats = summarize_attempts(attempts)
    console.print(f"Total attempts: {stats.total_attempts}")
    console.print(f"Average score: {stats.average_score}%")
    console.print(f"Pass rate: {stats.pass_rate}%")
    console.print(f"Completion rate: {stats.completion_rate}%")
    best = best_attempt(attempts)
    if best is not None:
        console.print(f"Best attempt: {best.id} ({best.final_score_percent:.0f}%)")


if __name__ == "__main__":
    app()
