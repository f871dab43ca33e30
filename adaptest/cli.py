"""
adaptest CLI - adaptive data-structures quizzes in the terminal.

Usage:
    adaptest take --student ana                   # Generated 5-question session
    adaptest take -s ana --selection Knapsack     # Pick strategies per family
    adaptest review --student ana --attempt ID    # Replay missed questions
    adaptest strategies                           # List registered strategies
    adaptest history --student ana                # Past attempts
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from config import get_settings
from adaptest.algorithms import DEFAULT_STRATEGIES, STRATEGIES
from adaptest.bank import QuestionBank
from adaptest.errors import AdaptestError, ConfigurationAbsentError
from adaptest.finalizer import AttemptFinalizer
from adaptest.generator import TestGenerator, buckets_from_settings
from adaptest.log import configure_logging
from adaptest.models import AlgorithmConfig, FeedbackTag, NavigationPayload, ResultsPayload
from adaptest.session import TestSession
from adaptest.store import JsonAttemptStore

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="adaptest",
    help="🧠 adaptest - adaptive quizzes driven by swappable algorithms",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

StudentOption = Annotated[
    str | None, typer.Option("--student", "-s", help="Learner identifier")
]
QuestionsOption = Annotated[
    Path | None, typer.Option("--questions", "-q", help="Question bank JSON file")
]
AttemptsOption = Annotated[
    Path | None, typer.Option("--attempts-dir", help="Directory for stored attempts")
]


@app.callback()
def main(
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    ] = None,
) -> None:
    configure_logging(log_level or get_settings().log_level)


# =============================================================================
# Session Commands
# =============================================================================


@app.command()
def take(
    student: StudentOption = None,
    selection: Annotated[
        str | None, typer.Option("--selection", help="Question selection strategy")
    ] = None,
    scheduling: Annotated[
        str | None, typer.Option("--scheduling", help="Review scheduling strategy")
    ] = None,
    reward: Annotated[
        str | None, typer.Option("--reward", help="Reward strategy")
    ] = None,
    knowledge: Annotated[
        str | None, typer.Option("--knowledge", help="Knowledge tracing strategy")
    ] = None,
    questions: QuestionsOption = None,
    attempts_dir: AttemptsOption = None,
    seed: Annotated[
        int | None, typer.Option("--seed", help="Random seed for reproducible sessions")
    ] = None,
) -> None:
    """
    Take a generated test session.

    Examples:
        adaptest take -s ana
        adaptest take -s ana --selection Knapsack --reward FenwickTree --knowledge DP
    """
    settings = get_settings()
    config = AlgorithmConfig(
        question_selection=selection or settings.default_selection,
        review_scheduling=scheduling or settings.default_scheduling,
        reward_system=reward or settings.default_reward,
        knowledge_tracing=knowledge or settings.default_knowledge_tracing,
    )
    bank = _load_bank(questions)
    payload = NavigationPayload(algorithms=config)
    _run_session(student, payload, bank, attempts_dir, seed)


@app.command()
def review(
    attempt_id: Annotated[str, typer.Option("--attempt", "-a", help="Attempt to review")],
    student: StudentOption = None,
    attempts_dir: AttemptsOption = None,
) -> None:
    """Spaced repetition: replay the questions missed in a stored attempt."""
    store = JsonAttemptStore(attempts_dir or get_settings().attempts_dir)
    attempt = store.load(attempt_id)
    if attempt is None:
        console.print(f"[red]No attempt found with id {attempt_id}[/]")
        raise typer.Exit(code=1)

    missed = attempt.missed_questions()
    if not missed:
        console.print("[green]Nothing to review - every answer in that attempt was correct.[/]")
        return

    payload = NavigationPayload(
        algorithms=attempt.algorithms_used,
        review_mode=True,
        review_questions=missed,
    )
    _run_session(student or attempt.student_id, payload, QuestionBank(), attempts_dir, None)


def _run_session(
    student: str | None,
    payload: NavigationPayload,
    bank: QuestionBank,
    attempts_dir: Path | None,
    seed: int | None,
) -> None:
    settings = get_settings()
    store = JsonAttemptStore(attempts_dir or settings.attempts_dir)
    # Results are rendered after the last feedback messages are printed
    delivered: list[ResultsPayload] = []
    finalizer = AttemptFinalizer(store=store, on_results=delivered.append)
    generator = TestGenerator(
        buckets=buckets_from_settings(settings),
        session_length=settings.session_length,
        rng=random.Random(seed),
    )

    try:
        session = TestSession(
            student,
            payload,
            bank,
            generator=generator,
            finalizer=finalizer,
            settings=settings,
        )
        with console.status("[cyan]Algorithms are working to create the perfect questions for you..."):
            session.start()
    except ConfigurationAbsentError as e:
        # Equivalent of sending the learner back to the start screen
        console.print(f"[yellow]{e}. Pass --student and pick your algorithms to begin.[/]")
        raise typer.Exit(code=2)
    except AdaptestError as e:
        console.print(f"[red]Could not generate a session: {e}[/]")
        raise typer.Exit(code=1)

    shown = 0
    try:
        while session.is_active:
            question = session.current_question
            _render_question(session, question)

            choice = IntPrompt.ask(
                "Your answer",
                choices=[str(i) for i in range(1, len(question.options) + 1)],
                show_choices=False,
            )
            session.select_answer(choice - 1)
            session.scheduler.run_pending()

            if session.feedback == FeedbackTag.CORRECT:
                console.print("[bold green]✓ Correct![/]")
            else:
                correct = question.options[question.correct_answer]
                console.print(f"[bold red]✗ Incorrect.[/] Correct answer: [green]{correct}[/]")
            if question.explanation:
                console.print(f"[dim]{question.explanation}[/]")

            shown = _print_new_messages(session, shown)
            Prompt.ask("[dim]Press Enter to continue[/]", default="", show_default=False)
            session.scheduler.run_pending()
            session.advance()
            shown = _print_new_messages(session, shown)
    except (KeyboardInterrupt, EOFError):
        session.abandon()
        console.print("\n[yellow]Session abandoned - no attempt recorded.[/]")
        raise typer.Exit(code=130)

    for results in delivered:
        _render_results(results)
    if session.attempt is not None:
        console.print(f"[dim]Attempt saved as {session.attempt.attempt_id}[/]")


# =============================================================================
# Info Commands
# =============================================================================


@app.command()
def strategies() -> None:
    """List registered strategies per algorithm family."""
    table = Table(title="Algorithm Strategies", border_style="cyan")
    table.add_column("Family", style="cyan")
    table.add_column("Strategy")
    table.add_column("Time")
    table.add_column("Space")
    table.add_column("Default", justify="center")

    for family, registered in STRATEGIES.items():
        for name, strategy in registered.items():
            table.add_row(
                family.value,
                name,
                strategy.time_complexity,
                strategy.space_complexity,
                "★" if DEFAULT_STRATEGIES[family] == name else "",
            )

    console.print(table)


@app.command()
def history(
    student: StudentOption = None,
    attempts_dir: AttemptsOption = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Attempts to show")] = 10,
) -> None:
    """Show stored attempts, newest first."""
    store = JsonAttemptStore(attempts_dir or get_settings().attempts_dir)
    attempts = store.list_attempts(student_id=student)[:limit]

    if not attempts:
        console.print("[dim]No attempts recorded yet.[/]")
        return

    table = Table(title="Test Attempts", border_style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Student")
    table.add_column("Completed")
    table.add_column("Type")
    table.add_column("Score", justify="right")
    table.add_column("Time", justify="right")

    for attempt in attempts:
        table.add_row(
            attempt.attempt_id,
            attempt.student_id,
            attempt.completed_at.strftime("%Y-%m-%d %H:%M"),
            attempt.test_type.value,
            f"{attempt.score}/{attempt.total_questions}",
            f"{attempt.time_spent_ms / 1000:.0f}s",
        )

    console.print(table)


# =============================================================================
# Rendering
# =============================================================================


def _load_bank(path: Path | None) -> QuestionBank:
    path = path or get_settings().questions_path
    try:
        return QuestionBank.from_json(path)
    except FileNotFoundError:
        console.print(f"[red]Question bank not found: {path}[/]")
        raise typer.Exit(code=1)
    except AdaptestError as e:
        console.print(f"[red]Invalid question bank: {e}[/]")
        raise typer.Exit(code=1)


def _render_question(session: TestSession, question) -> None:
    lines = [f"[bold]{question.prompt}[/]", ""]
    for i, option in enumerate(question.options, start=1):
        lines.append(f"  [cyan]{i}.[/] {option}")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"Question {session.current_index + 1}/{len(session.questions)} · {question.title}",
            subtitle=(
                f"{question.topic.value} · {question.difficulty.value} · "
                f"{session.elapsed_ms // 1000}s"
            ),
            border_style="blue",
        )
    )


def _print_new_messages(session: TestSession, shown: int) -> int:
    for message in session.channel.history[shown:]:
        console.print(f"  [magenta]{message.text}[/]")
    return len(session.channel.history)


def _render_results(results: ResultsPayload) -> None:
    console.print(
        Panel(
            f"[bold]{results.correct_answers}/{len(results.questions)}[/] correct "
            f"({results.percentage}%) in {results.time_spent_ms / 1000:.1f}s\n"
            f"Session type: {results.test_type.value}",
            title="Test Results",
            border_style="green" if results.percentage >= 60 else "yellow",
        )
    )

    answers = Table(border_style="dim")
    answers.add_column("#", justify="right")
    answers.add_column("Question")
    answers.add_column("Your answer")
    answers.add_column("", justify="center")
    for i, (question, answer) in enumerate(zip(results.questions, results.answers), start=1):
        answers.add_row(
            str(i),
            question.title,
            question.options[answer],
            "[green]✓[/]" if question.is_correct(answer) else "[red]✗[/]",
        )
    console.print(answers)

    if results.execution_results:
        algos = Table(title="Algorithm Execution", border_style="dim")
        algos.add_column("Topic")
        algos.add_column("Algorithm")
        algos.add_column("Time (ms)", justify="right")
        algos.add_column("Complexity")
        for result in results.execution_results:
            algos.add_row(
                result.topic or "",
                result.algorithm_name,
                f"{result.execution_time:.3f}",
                f"{result.time_complexity} / {result.space_complexity}",
            )
        console.print(algos)


def run() -> None:
    """Entry point for the console script."""
    app()


if __name__ == "__main__":
    run()
