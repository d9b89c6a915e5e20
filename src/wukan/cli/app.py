"""Main CLI application using Typer.

The wizard's three steps map onto commands: ``form-template`` and a form
file cover input, ``prompt`` previews the generated prompt, and ``analyze``
streams the report and optional follow-ups.
"""
import asyncio
import contextlib
import logging
import signal
from collections.abc import Awaitable, Callable
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.table import Table

from ..conversation import ConversationSession
from ..export import export_markdown, export_transcript, report_filename
from ..llm import AIConfig, AggregatorError, ConfigurationError, ServiceProvider, StreamResult, StreamState
from ..prompts import FormData, render_strategy_prompt
from ..settings import SettingsStore, apply_env_overrides
from .render import render_message

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="wukan",
    help="Automotive product strategy analysis assistant backed by streaming LLMs",
    no_args_is_help=True,
    add_completion=True,
)
config_app = typer.Typer(help="Show or edit the AI provider settings", no_args_is_help=True)
app.add_typer(config_app, name="config")

# Console for rich output
console = Console()
err_console = Console(stderr=True)


def _mask(secret: str) -> str:
    if not secret:
        return "[dim](未设置)[/dim]"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:3]}…{secret[-4:]}"


def _load_form(form: Path | None) -> FormData:
    if form is None:
        return FormData()
    try:
        return FormData.from_file(form)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: cannot read form {form}: {e}[/red]")
        raise typer.Exit(code=1)


def _render_prompt(form: FormData) -> str:
    try:
        return render_strategy_prompt(form)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def _runtime_config() -> AIConfig:
    try:
        return apply_env_overrides(SettingsStore().load())
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """WuKan: five-looks strategy analysis with streamed AI reports."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@config_app.command("show")
def config_show():
    """Show the settings analyze will use (API key masked, env overrides marked)."""
    store = SettingsStore()
    stored = store.load()
    config = _runtime_config()

    def _source(field: str) -> str:
        return "[yellow]env[/yellow]" if getattr(config, field) != getattr(stored, field) else ""

    table = Table(title="AI 模型配置", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_column("Source")
    table.add_row("Provider", config.provider.value, _source("provider"))
    table.add_row("API Key", _mask(config.api_key), _source("api_key"))
    table.add_row("Model", config.resolved_model, _source("model_name"))
    table.add_row("Base URL", config.base_url or "[dim]-[/dim]", _source("base_url"))
    table.add_row("File", str(store.path), "")
    console.print(table)


@config_app.command("set")
def config_set(
    provider: ServiceProvider | None = typer.Option(
        None, "--provider", "-p", case_sensitive=False,
        help="Provider (switching applies its default model and URL)"
    ),
    api_key: str | None = typer.Option(None, "--api-key", "-k", help="API key"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name"),
    base_url: str | None = typer.Option(None, "--base-url", "-u", help="Base URL for OpenAI-compatible providers"),
):
    """Edit and persist the provider settings."""
    store = SettingsStore()
    config = store.update(provider=provider, api_key=api_key, model_name=model, base_url=base_url)
    console.print(
        f"[green]Saved {config.provider.value} settings "
        f"(model: {config.resolved_model}) to {store.path}[/green]"
    )


@app.command("form-template")
def form_template(
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the template to a file")
):
    """Print an empty product form to fill in."""
    template = FormData().to_yaml()
    if output:
        output.write_text(template, encoding="utf-8")
        console.print(f"[green]Form template written to {output}[/green]")
    else:
        console.print(template, markup=False, highlight=False)


@app.command()
def prompt(
    form: Path = typer.Argument(..., exists=True, dir_okay=False, help="Product form (YAML or JSON)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Save the prompt for editing"),
):
    """Preview the analysis prompt generated from a form."""
    text = _render_prompt(_load_form(form))
    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Prompt written to {output}[/green]")
        console.print(f"[dim]Edit it, then run: wukan analyze --prompt-file {output}[/dim]")
    else:
        console.print(text, markup=False, highlight=False)


async def _stream_turn(
    session: ConversationSession,
    start: Callable[[], Awaitable[StreamResult]],
) -> StreamResult:
    """Run one streamed answer with live rendering; Ctrl-C stops the stream."""
    loop = asyncio.get_running_loop()
    with Live(console=console, refresh_per_second=8, vertical_overflow="visible") as live:
        session.on_update = lambda message: live.update(render_message(message, active=True))
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, session.request_stop)
        try:
            return await start()
        finally:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)
            session.on_update = None
            conversation = session.conversation
            if conversation is not None and conversation.last is not None and conversation.last.role == "assistant":
                live.update(render_message(conversation.last, active=False))


@app.command()
def analyze(
    form: Path | None = typer.Argument(None, exists=True, dir_okay=False, help="Product form (YAML or JSON)"),
    prompt_file: Path | None = typer.Option(
        None, "--prompt-file", "-P", exists=True, dir_okay=False,
        help="Send an edited prompt instead of generating one from the form"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Save the report as Markdown"),
    transcript: bool = typer.Option(
        False, "--transcript", "-t", help="With --output, save the whole conversation instead of the report"
    ),
    follow_up: bool = typer.Option(False, "--follow-up", "-f", help="Ask follow-up questions after the report"),
):
    """Stream the strategy analysis report for a form."""
    if form is None and prompt_file is None:
        console.print("[red]Error: provide a form file or --prompt-file[/red]")
        raise typer.Exit(code=1)

    form_data = _load_form(form)
    text = prompt_file.read_text(encoding="utf-8") if prompt_file else _render_prompt(form_data)
    config = _runtime_config()

    async def _analyze() -> ConversationSession:
        session = ConversationSession()
        result = await _stream_turn(session, lambda: session.start(text, config))
        if result.state is StreamState.ABORTED:
            console.print("[dim]Stopped.[/dim]")

        while follow_up:
            question = await asyncio.to_thread(console.input, "\n[bold]追问> [/bold]")
            if not question.strip():
                break
            result = await _stream_turn(session, lambda: session.ask(question, config))
            if result.state is StreamState.ABORTED:
                console.print("[dim]Stopped.[/dim]")
        return session

    try:
        session = asyncio.run(_analyze())
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[dim]Configure the provider with: wukan config set --api-key <key>[/dim]")
        raise typer.Exit(code=1)
    except AggregatorError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    conversation = session.conversation
    if output and conversation is not None:
        if transcript:
            path = export_transcript(conversation, output)
        else:
            answers = [m for m in conversation.messages if m.role == "assistant"]
            if not answers:
                return
            path = export_markdown(answers[0], output)
        console.print(f"[green]Saved {path}[/green]")
    elif conversation is not None:
        console.print(f"[dim]Tip: save with --output {report_filename(form_data)}[/dim]")


if __name__ == "__main__":
    app()
