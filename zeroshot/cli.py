"""Command-line interface for zero-shot source separation.

Provides commands for:
- create-feature: Build a sound feature from example recordings
- separate: Extract the sound described by a feature from mixtures
- features: List the sound features on disk
- delete-feature: Remove a sound feature
- info: Show audio file information
"""

import logging
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .config import SeparationConfig
from .core.constants import EXTRACTOR_MODEL_FILE, SAMPLE_RATE, SEPARATOR_MODEL_FILE
from .core.errors import SeparationToolError
from .core.paths import OutputPaths
from .input import AudioLoader
from .jobs import JobOrchestrator
from .logging_utils import setup_logging

app = typer.Typer(
    name="zeroshot",
    help="Zero-shot audio source separation",
    rich_markup_mode="markdown",
)
console = Console()


class ConsoleSink:
    """Shows job events on the console."""

    def __init__(self, progress: Progress, description: str):
        self.progress = progress
        self.task = progress.add_task(description, total=100)
        self.results: List[Path] = []
        self.errors: List[str] = []

    def on_progress(self, percent: int) -> None:
        self.progress.update(self.task, completed=percent)

    def on_error(self, message: str) -> None:
        self.errors.append(message)
        self.progress.console.print(f"[red]{escape(message)}[/red]")

    def on_finished(self, paths: List[Path]) -> None:
        self.results = list(paths)
        self.progress.update(self.task, completed=100)


def _configure(verbose: bool) -> None:
    setup_logging(logging.DEBUG if verbose else logging.WARNING)


def _run_job(orchestrator: JobOrchestrator, description: str, submit) -> ConsoleSink:
    """Submit a job through ``submit`` and block until it finishes."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        sink = ConsoleSink(progress, description)
        orchestrator.subscribe(sink)
        if not submit():
            console.print("[red]Error: Another job is already running[/red]")
            raise typer.Exit(1)
        orchestrator.wait()
    return sink


@app.command("create-feature")
def create_feature(
    query_files: List[Path] = typer.Argument(..., help="Example recordings of the target sound"),
    name: str = typer.Option(..., "--name", "-n", help="Name of the new sound feature"),
    model: Path = typer.Option(
        Path(EXTRACTOR_MODEL_FILE), "--model", "-m", help="TorchScript embedding model"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", "-r", help="Directory holding output_features/ (default: cwd)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    Create a sound feature from one or more query recordings.

    Files that can't be decoded are skipped; the feature is the mean
    embedding of the rest.

    Example:
        zeroshot create-feature guitar1.wav guitar2.wav --name guitar
    """
    _configure(verbose)

    missing = [f for f in query_files if not f.exists()]
    for f in missing:
        console.print(f"[yellow]Warning: File not found: {f}[/yellow]")
    if len(missing) == len(query_files):
        console.print("[red]Error: None of the query files exist[/red]")
        raise typer.Exit(1)

    config = SeparationConfig(extractor_model_path=model, output_root=root)
    orchestrator = JobOrchestrator(config)

    console.print(f"[blue]Creating feature:[/blue] {name} from {len(query_files)} file(s)")
    start_time = time.time()
    sink = _run_job(
        orchestrator,
        "Extracting embeddings",
        lambda: orchestrator.submit_feature(query_files, name),
    )

    if not sink.results:
        raise typer.Exit(1)

    feature_path = sink.results[0]
    console.print(f"[green][OK] Feature saved:[/green] {feature_path}")
    console.print(f"   Processing time: {time.time() - start_time:.1f}s")
    console.print(f"\n[dim]Next: zeroshot separate <mixture>.wav --feature {name}[/dim]")


@app.command()
def separate(
    mixture_files: List[Path] = typer.Argument(..., help="Mixture audio files"),
    feature: str = typer.Option(..., "--feature", "-f", help="Sound feature to extract"),
    model: Path = typer.Option(
        Path(SEPARATOR_MODEL_FILE), "--model", "-m", help="TorchScript separator model"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", "-r", help="Directory holding the feature and result folders (default: cwd)"
    ),
    memory_budget: float = typer.Option(
        1024.0, "--memory-budget", help="MB of separated chunks kept in RAM per file (0 = no limit)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    Separate the sound described by a feature out of each mixture.

    Results are written to separated_results/<mixture>_<feature>.wav.

    Example:
        zeroshot separate band.wav live.flac --feature guitar
    """
    _configure(verbose)

    config = SeparationConfig(
        separator_model_path=model,
        output_root=root,
        chunk_memory_budget_mb=memory_budget,
    )
    orchestrator = JobOrchestrator(config)

    console.print(f"[blue]Separating:[/blue] {len(mixture_files)} file(s) with feature '{feature}'")
    start_time = time.time()
    sink = _run_job(
        orchestrator,
        "Separating",
        lambda: orchestrator.submit_separation(mixture_files, feature),
    )

    for path in sink.results:
        console.print(f"   Saved: {path}")

    if sink.errors:
        console.print(
            f"\n[yellow]{len(sink.results)} of {len(mixture_files)} file(s) separated[/yellow]"
        )
        raise typer.Exit(1)

    console.print(f"\n[green][OK] Separation complete![/green]")
    console.print(f"   Processing time: {time.time() - start_time:.1f}s")


@app.command()
def features(
    root: Optional[Path] = typer.Option(
        None, "--root", "-r", help="Directory holding output_features/ (default: cwd)"
    ),
):
    """List the available sound features."""
    paths = OutputPaths(root)
    entries = paths.list_features()
    if not entries:
        console.print(f"[yellow]No features in {paths.features_dir}[/yellow]")
        return

    table = Table(title="Sound Features")
    table.add_column("Name", style="cyan")
    table.add_column("File", style="green")
    table.add_column("Modified", style="yellow")

    for entry in entries:
        table.add_row(entry.name, entry.path.name, entry.modified.strftime("%Y-%m-%d %H:%M:%S"))

    console.print(table)


@app.command("delete-feature")
def delete_feature(
    name: str = typer.Argument(..., help="Feature name (or file name without .txt)"),
    root: Optional[Path] = typer.Option(
        None, "--root", "-r", help="Directory holding output_features/ (default: cwd)"
    ),
):
    """Delete a sound feature (the newest file if several share the name)."""
    try:
        path = OutputPaths(root).delete_feature(name)
    except SeparationToolError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Deleted:[/green] {path.name}")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    loader = AudioLoader()
    try:
        audio_info = loader.get_info(input_file)
    except SeparationToolError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Format: {audio_info.format} ({audio_info.subtype})")
    console.print(f"  Duration: {audio_info.duration:.2f} seconds")
    console.print(f"  Sample rate: {audio_info.sample_rate} Hz")
    console.print(f"  Channels: {audio_info.channels}")
    console.print(f"  Frames: {audio_info.frames:,}")
    if audio_info.sample_rate != SAMPLE_RATE:
        console.print(f"  [dim]Will be resampled to {SAMPLE_RATE} Hz for processing[/dim]")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
