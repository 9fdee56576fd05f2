"""
MoxMuse - CLI Entry Point.

Usage:
    moxmuse validate answers.json     Check a consultation step by step
    moxmuse generate answers.json     Generate a deck from a consultation
    moxmuse steps                     List the wizard steps
    moxmuse health                    Check configuration
    moxmuse serve                     Run the HTTP API
    moxmuse --help                    Show help
"""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table

app = typer.Typer(
    name="moxmuse",
    help="MoxMuse - consultation-driven Commander deck tutor.",
    add_completion=False,
)
console = Console()


def _load_answers(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not read {path}: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print(f"[red]{path} must contain a JSON object[/red]")
        raise typer.Exit(1)
    return data


def _load_record(path: Path):
    from pydantic import ValidationError

    from consultation.record import ConsultationRecord

    try:
        return ConsultationRecord.model_validate(_load_answers(path))
    except ValidationError as e:
        console.print(f"[red]Invalid consultation data:[/red]\n{e}")
        raise typer.Exit(1)


@app.command()
def validate(
    answers: Path = typer.Argument(..., help="JSON file with consultation answers"),
) -> None:
    """Run every step validator against a consultation record."""
    from consultation.steps import STEP_DEFINITIONS

    record = _load_record(answers)

    table = Table(title="Consultation Check")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Notes")

    blocking = 0
    for step in STEP_DEFINITIONS:
        if step.is_skipped(record):
            table.add_row(str(step.index), step.title, "[dim]skipped[/dim]", "")
            continue
        result = step.validator(record)
        if not result.is_valid:
            blocking += 1
        status = "[green]ok[/green]" if result.is_valid else "[red]error[/red]"
        notes = "\n".join(
            [f"[red]{e}[/red]" for e in result.errors] + [f"[yellow]{w}[/yellow]" for w in result.warnings]
        )
        table.add_row(str(step.index), step.title, status, notes)

    console.print(table)

    if blocking:
        console.print(f"\n[red]{blocking} step(s) need attention before generation.[/red]")
        raise typer.Exit(1)
    console.print("\n[green]Ready for deck generation.[/green]")


@app.command()
def generate(
    answers: Path = typer.Argument(..., help="JSON file with consultation answers"),
    commander: str = typer.Option(None, "--commander", "-c", help="Override the commander"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the deck JSON here"),
) -> None:
    """Generate a deck from a finished consultation."""
    from consultation.steps import SUMMARY_STEP
    from consultation.validation import validate_step
    from moxmuse.generation import DeckServiceClient, GenerationOrchestrator

    record = _load_record(answers)
    verdict = validate_step(SUMMARY_STEP, record)
    if not verdict.is_valid:
        for error in verdict.errors:
            console.print(f"[red]- {error}[/red]")
        raise typer.Exit(1)

    commander = commander or record.commander
    if not commander:
        console.print("[red]A commander is required (set it in the answers or pass --commander)[/red]")
        raise typer.Exit(1)

    spinner = Spinner("dots", text="Starting...")
    failures = []

    def on_progress(progress) -> None:
        retry = f" (retry {progress.retry_count})" if progress.retry_count else ""
        spinner.update(text=f"{progress.name} {progress.progress}%{retry}")

    async def run():
        async with DeckServiceClient.from_settings() as client:
            orchestrator = GenerationOrchestrator.from_settings(
                client,
                on_progress=on_progress,
                on_error=failures.append,
            )
            return await orchestrator.generate(record, commander)

    with Live(spinner, console=console, transient=True):
        deck = asyncio.run(run())

    if deck is None:
        message = failures[-1].message if failures else "generation did not complete"
        console.print(f"[red]Deck generation failed: {message}[/red]")
        raise typer.Exit(1)

    stats = deck.statistics
    console.print(
        Panel.fit(
            f"[bold]{deck.name}[/bold]\n"
            f"{deck.card_count} cards, {stats.land_count} lands, "
            f"average CMC {stats.average_cmc}, value ${stats.total_value:.2f}",
            title="Deck Generated",
            border_style="green",
        )
    )
    for category in deck.categories:
        console.print(f"  {category.name}: {category.actual_count} (target {category.target_count})")
    for weakness in deck.weaknesses:
        console.print(f"  [yellow]! {weakness}[/yellow]")

    if output:
        output.write_text(json.dumps(deck.to_wire(), indent=2), encoding="utf-8")
        console.print(f"\n[dim]Deck written to {output}[/dim]")


@app.command()
def steps() -> None:
    """List the consultation wizard steps."""
    from consultation.steps import STEP_DEFINITIONS

    for step in STEP_DEFINITIONS:
        skippable = " [dim](conditional)[/dim]" if step.skip_predicate else ""
        console.print(f"{step.index}. {step.title}{skippable}")


@app.command()
def health() -> None:
    """Check system health and configuration."""
    from moxmuse.config import get_settings

    console.print("\n[bold]MoxMuse Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.moxmuse_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.generation_service_url.startswith(("http://", "https://")):
            console.print(f"✅ Deck service: {settings.generation_service_url}")
        else:
            console.print("❌ GENERATION_SERVICE_URL missing or invalid")
            raise typer.Exit(1)

        if settings.generation_api_key:
            console.print("✅ Deck service API key configured")
        else:
            console.print("ℹ️  No deck service API key")

        console.print(f"✅ Wizard storage: {settings.wizard_storage_backend}")
        if settings.wizard_storage_backend == "supabase":
            if settings.supabase_url and settings.supabase_service_role_key:
                console.print("✅ Supabase configured")
            else:
                console.print("❌ Supabase storage selected but SUPABASE_URL / key missing")
                raise typer.Exit(1)

        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from moxmuse.config import settings
    from moxmuse.log import setup_logging

    setup_logging(settings.log_level)
    uvicorn.run("moxmuse.web.app:app", host=host, port=port, reload=reload)


@app.command()
def version() -> None:
    """Show version information."""
    from moxmuse import __version__

    console.print(f"MoxMuse version {__version__}")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    from moxmuse.config import settings
    from moxmuse.log import setup_logging

    setup_logging("DEBUG" if verbose else settings.log_level)


if __name__ == "__main__":
    app()
