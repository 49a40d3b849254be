"""Utility functions for terminal UI and user input."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..client.models import Problem, Verdict, VerdictStatus
from ..session.state import Notice, NoticeLevel, SessionState

console = Console()

NOTICE_STYLES = {
    NoticeLevel.INFO: "cyan",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "red",
}


def choose_index(prompt: str, options: list, max_attempts: int = 3) -> Optional[int]:
    """
    Let user choose an index from a list of options.
    Returns the selected index or None if invalid.
    """
    for _ in range(max_attempts):
        try:
            choice = input(f"{prompt} (0-{len(options) - 1}): ")
            idx = int(choice)
            if 0 <= idx < len(options):
                return idx
            console.print(
                f"[red]Please enter a number between 0 and {len(options) - 1}[/red]"
            )
        except ValueError:
            console.print("[red]Please enter a valid number[/red]")
        except (KeyboardInterrupt, EOFError):
            console.print("\n[yellow]Cancelled[/yellow]")
            return None

    console.print("[red]Too many invalid attempts[/red]")
    return None


def create_table(title: Optional[str], headers: list) -> Table:
    """Create a formatted table for display."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for header in headers:
        table.add_column(header)
    return table


def format_result_color(result: str) -> str:
    """Format a verdict or test result with appropriate color."""
    result_upper = result.upper()

    if result_upper in ["AC", "PASS"]:
        return f"[green]{result}[/green]"
    elif result_upper in ["WA", "RE", "CE", "FAIL"]:
        return f"[red]{result}[/red]"
    elif result_upper in ["TLE", "MLE"]:
        return f"[magenta]{result}[/magenta]"
    elif result_upper in ["JUDGING", "PENDING"]:
        return f"[yellow]{result}[/yellow]"
    else:
        return result


def render_verdict(verdict: Verdict) -> None:
    """Print a verdict. Hidden test cases only show up as a count."""
    if verdict.is_error:
        title = (
            "Compilation Error"
            if verdict.status is VerdictStatus.CE
            else "Runtime Error"
        )
        console.print(f"\n[bold red]{title}[/bold red]")
        console.print(escape(verdict.error_message or "No error details available"))
    else:
        console.print(
            f"\n[bold]Result:[/bold] {format_result_color(verdict.status.value)}"
        )
        console.print(
            f"[bold]Passed:[/bold] {verdict.test_cases_passed} / {verdict.total_test_cases}"
        )
        if verdict.persisted and verdict.time_consumed:
            console.print(f"[bold]Time:[/bold] {verdict.time_consumed}ms")

        visible = verdict.visible_test_cases
        if visible:
            table = create_table("Test Case Results", ["Test", "Result"])
            for tc in visible:
                table.add_row(
                    f"TC #{tc.test_case}",
                    format_result_color("PASS" if tc.passed else "FAIL"),
                )
            console.print(table)
        if verdict.hidden_count:
            console.print(
                f"[dim]+ {verdict.hidden_count} hidden test case(s)[/dim]"
            )

    if not verdict.persisted:
        console.print("[yellow]This was a test run - not saved[/yellow]")
    else:
        console.print("[green]Submission saved (updates previous if exists)[/green]")


def render_notice(notice: Notice) -> None:
    style = NOTICE_STYLES.get(notice.level, "white")
    console.print(f"[{style}]{escape(notice.text)}[/{style}]")


def render_output(state: SessionState) -> None:
    """Print whatever sits in the session's output area."""
    if isinstance(state.output, Verdict):
        render_verdict(state.output)
    elif isinstance(state.output, Notice):
        render_notice(state.output)


def render_problem(problem: Problem) -> None:
    """Print a problem statement."""
    console.print(f"\n[bold cyan]{escape(problem.title)}[/bold cyan]")
    limits = []
    if problem.time_limit is not None:
        limits.append(f"Time limit: {problem.time_limit}s")
    if problem.memory_limit is not None:
        limits.append(f"Memory limit: {problem.memory_limit}MB")
    if limits:
        console.print(f"[dim]{'  '.join(limits)}[/dim]")

    console.print(f"\n{escape(problem.description)}")
    sections = [
        ("Input Format", problem.input_format),
        ("Output Format", problem.output_format),
        ("Constraints", problem.constraints),
    ]
    for title, text in sections:
        if text:
            console.print(f"\n[bold]{title}[/bold]\n{escape(text)}")
    for number, example in enumerate(problem.examples, start=1):
        console.print(f"\n[bold]Example {number}[/bold]\n{escape(example)}")
    for url in problem.image_urls:
        console.print(f"[blue]{escape(url)}[/blue]")


def render_banner(state: SessionState) -> None:
    """Print the contest lock banner, if it is up."""
    if state.show_banner:
        console.print(f"\n[bold red]{escape(state.banner_text)}[/bold red]")
        console.print("[yellow]Browse contests to continue.[/yellow]")


def describe_status(state: SessionState) -> str:
    """One line with contest name, liveness and time left."""
    status = state.contest_status
    if state.not_found:
        return "[red]Problem Not Found[/red]"
    if status is None:
        return "[yellow]Contest status unknown[/yellow]"

    name = escape(status.contest_name or "Contest")
    liveness = "[green]active[/green]" if status.active else "[red]deactivated[/red]"
    line = f"{name}: {liveness}"
    if state.time_remaining:
        line += f"  [magenta]{state.time_remaining}[/magenta]"
    return line
