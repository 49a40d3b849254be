"""Command-line interface for codecombat_py."""

import asyncio
import getpass
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.text import Text

from . import __version__
from .client import AuthError, ClampRefusal, CodeCombatClient, Language
from .config import GlobalConfig, LocalConfig
from .session import SessionController, SessionPhase
from .session.countdown import ENDED
from .utils.terminal import (
    choose_index,
    create_table,
    describe_status,
    render_banner,
    render_output,
    render_problem,
)


console = Console()

LANGUAGE_CHOICE = click.Choice([lang.value for lang in Language], case_sensitive=False)

EXTENSIONS = {
    ".java": Language.JAVA,
    ".cpp": Language.CPP,
    ".cc": Language.CPP,
    ".cxx": Language.CPP,
    ".py": Language.PYTHON,
    ".js": Language.JAVASCRIPT,
    ".c": Language.C,
}


def language_from_path(path: Path) -> Optional[Language]:
    """Guess the language from a file extension."""
    return EXTENSIONS.get(path.suffix.lower())


def load_config() -> Optional[GlobalConfig]:
    """Load global config, or explain how to log in."""
    config = GlobalConfig.load()
    if not config.has_credentials():
        console.print("[yellow]Not logged in. Run 'codecombat_py login' first.[/yellow]")
        return None
    return config


def make_controller(config: GlobalConfig) -> SessionController:
    """Build a session controller from global and local config."""
    client = CodeCombatClient(config.base_url, credentials=config.bearer_token)
    local = LocalConfig.load()
    language = local.get_language() if local else Language.JAVA
    return SessionController(
        client, default_language=language, poll_interval=config.poll_interval
    )


async def open_session(controller: SessionController, problem_id: int) -> bool:
    """Open a problem and wait for it; False if there is nothing to work on."""
    controller.open(problem_id)
    with console.status("[cyan]Loading problem...[/cyan]"):
        await controller.wait_loaded()

    state = controller.state
    if state.not_found:
        console.print("[red]Problem Not Found[/red]")
        console.print(
            "The problem you're looking for doesn't exist or has been removed."
        )
        return False
    if state.load_error:
        console.print(f"[red]Failed to load problem: {escape(state.load_error)}[/red]")
        return False
    return True


@click.group()
@click.version_option(version=__version__)
def cli():
    """codecombat_py - CLI client for the CodeCombat contest platform."""
    pass


@cli.command()
@click.option("--base-url", help="API base URL (default: keep current)")
def login(base_url: Optional[str]):
    """Save CodeCombat credentials for future use."""
    config = GlobalConfig.load()
    if base_url:
        config.base_url = base_url

    username = input("Username: ").strip()
    token = getpass.getpass("API token: ").strip()
    if not token:
        console.print("[red]No token given, nothing saved[/red]")
        return

    config.username = username
    config.token = token
    config.save()
    console.print(f"[green]Credentials saved for {username or 'anonymous'}[/green]")


@cli.command(name="set-language")
def set_language():
    """Choose the default language for this directory."""
    languages = list(Language)

    config = LocalConfig.load()
    if config is None:
        config = LocalConfig()
    current = config.get_language()

    table = create_table("Available Languages", ["#", "Language"])
    for idx, language in enumerate(languages):
        marker = "*" if language is current else ""
        table.add_row(f"{idx}{marker}", language.value)
    console.print(table)

    idx = choose_index("Select default language", languages)
    if idx is None:
        return

    config.default_language = languages[idx].value
    config.save()
    console.print(f"[green]Default language set to: {languages[idx].value}[/green]")


@cli.command()
@click.argument("problem_id", type=int)
def show(problem_id: int):
    """Display a problem with contest status and navigation."""
    config = load_config()
    if config is None:
        return
    try:
        asyncio.run(_show(make_controller(config), problem_id))
    except AuthError as e:
        console.print(f"[red]{escape(str(e))}. Please login again.[/red]")


async def _show(controller: SessionController, problem_id: int) -> None:
    try:
        if not await open_session(controller, problem_id):
            return
        state = controller.state
        render_problem(state.problem)

        console.print(f"\n[bold cyan]Contest:[/bold cyan] {describe_status(state)}")
        if state.snippets:
            names = ", ".join(lang.value for lang in state.snippets)
            console.print(f"[bold cyan]Starter code:[/bold cyan] {names}")
        console.print(f"[bold cyan]Language:[/bold cyan] {state.language.value}")
        render_output(state)

        if state.can_go_prev:
            console.print(f"[dim]Previous: {state.problem_ids[state.index - 1]}[/dim]")
        if state.can_go_next:
            console.print(f"[dim]Next: {state.problem_ids[state.index + 1]}[/dim]")
        render_banner(state)
    finally:
        controller.close()


@cli.command()
@click.argument("problem_id", type=int)
@click.option("-l", "--lang", type=LANGUAGE_CHOICE, help="Language of the starter code")
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output file path")
def starter(problem_id: int, lang: Optional[str], output: Optional[Path]):
    """Fetch your last submission, or the starter code if there is none."""
    config = load_config()
    if config is None:
        return
    try:
        asyncio.run(_starter(make_controller(config), problem_id, lang, output))
    except AuthError as e:
        console.print(f"[red]{escape(str(e))}. Please login again.[/red]")


async def _starter(
    controller: SessionController,
    problem_id: int,
    lang: Optional[str],
    output: Optional[Path],
) -> None:
    try:
        if not await open_session(controller, problem_id):
            return
        selected = Language.parse(lang)
        if selected is not None and selected is not controller.state.language:
            controller.select_language(selected)
        code = controller.state.code
        if output is None:
            click.echo(code)
            return
        output.write_text(code, encoding="utf-8")
        console.print(
            f"[green]Saved {controller.state.language.value} code to {output}[/green]"
        )
    finally:
        controller.close()


def _dispatch_command(problem_id: int, file: Path, lang: Optional[str], persist: bool):
    config = load_config()
    if config is None:
        return
    language = Language.parse(lang) or language_from_path(file)
    try:
        asyncio.run(
            _dispatch(make_controller(config), problem_id, file, language, persist)
        )
    except AuthError as e:
        console.print(f"[red]{escape(str(e))}. Please login again.[/red]")


async def _dispatch(
    controller: SessionController,
    problem_id: int,
    file: Path,
    language: Optional[Language],
    persist: bool,
) -> None:
    try:
        if not await open_session(controller, problem_id):
            return
        if language is not None:
            controller.select_language(language)
        controller.set_code(file.read_text(encoding="utf-8"))

        state = controller.state
        console.print(
            f"[cyan]{'Submitting' if persist else 'Testing'} {file.name}[/cyan]"
        )
        console.print(
            f"[yellow]Problem: {problem_id}  [magenta]Language: {state.language.value}[/magenta][/yellow]"
        )
        try:
            with console.status("[bold green]Running tests..."):
                if persist:
                    await controller.submit()
                else:
                    await controller.run_tests()
        except ClampRefusal as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            render_banner(controller.state)
            return
        render_output(controller.state)
    finally:
        controller.close()


@cli.command()
@click.argument("problem_id", type=int)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-l", "--lang", type=LANGUAGE_CHOICE, help="Language (default: from extension)")
def test(problem_id: int, file: Path, lang: Optional[str]):
    """Run a solution against the tests without saving it."""
    _dispatch_command(problem_id, file, lang, persist=False)


@cli.command()
@click.argument("problem_id", type=int)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-l", "--lang", type=LANGUAGE_CHOICE, help="Language (default: from extension)")
def submit(problem_id: int, file: Path, lang: Optional[str]):
    """Submit a solution, replacing any earlier one for the problem."""
    _dispatch_command(problem_id, file, lang, persist=True)


@cli.command()
@click.argument("problem_id", type=int)
def watch(problem_id: int):
    """Watch contest status and time remaining until the contest ends."""
    config = load_config()
    if config is None:
        return
    try:
        asyncio.run(_watch(make_controller(config), problem_id))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")
    except AuthError as e:
        console.print(f"[red]{escape(str(e))}. Please login again.[/red]")


async def _watch(controller: SessionController, problem_id: int) -> None:
    try:
        if not await open_session(controller, problem_id):
            return
        with Live(console=console, refresh_per_second=4) as live:
            while True:
                state = controller.state
                title = state.problem.title if state.problem else f"Problem {problem_id}"
                live.update(
                    Text.from_markup(f"[bold]{escape(title)}[/bold]  {describe_status(state)}")
                )
                if state.not_found or state.time_remaining == ENDED:
                    break
                await asyncio.sleep(0.5)
        if controller.state.phase is SessionPhase.LOCKED:
            render_banner(controller.state)
    finally:
        controller.close()


@cli.command()
def version():
    """Show version information."""
    console.print(f"[bold cyan]codecombat_py[/bold cyan] version [green]{__version__}[/green]")
    console.print("CLI client for the CodeCombat contest platform")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
