"""Main annotate command."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from ..annotation import AnnotationSummary, Processor
from ..exceptions import AnnotatorError
from ..logging_config import get_logger, setup_logging
from . import app
from ._common import console, resolve_config


def _output_rich(summary: AnnotationSummary, root: Path) -> None:
    if summary.dry_run:
        for path in summary.changed_paths:
            console.print(f"[yellow]would annotate[/yellow] {escape(_display_path(path, root))}")
        console.print(
            f"[bold]{summary.files_changed}[/bold] of {summary.files_scanned} files "
            f"would be annotated ({summary.protocols_found} protocols declared)"
        )
        return

    for path in summary.changed_paths:
        console.print(f"[green]annotated[/green] {escape(_display_path(path, root))}")
    console.print(
        f"Annotated [bold]{summary.files_changed}[/bold] of {summary.files_scanned} files "
        f"({summary.protocols_found} protocols declared)"
    )


def _display_path(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


@app.command()
def annotate(
    path: Path = typer.Argument(
        Path("."),
        help="Top-level directory where Swift files are located",
        file_okay=False,
        dir_okay=True,
    ),
    allow: Optional[List[str]] = typer.Option(
        None,
        "--allow",
        "-a",
        help="Treat an externally declared protocol as annotatable (repeatable)",
    ),
    no_default_protocols: bool = typer.Option(
        False,
        "--no-default-protocols",
        help="Do not annotate the built-in table of standard library protocols",
    ),
    check: bool = typer.Option(
        False,
        "--check",
        help="Write nothing; exit 1 if any file would be annotated",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the run summary as JSON",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=32,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every parsed file and every inserted annotation",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Insert [bold]any[/bold] before every existential use of a protocol.

    All files are parsed and searched for protocol declarations first; only
    then is each file rewritten, so protocols declared anywhere in the tree
    are annotated everywhere. Files without changes are left untouched.

    [bold cyan]Examples:[/bold cyan]

      existential-annotator .

      existential-annotator Sources --allow AnalyticsTracking

      existential-annotator --check --json
    """
    from .. import __version__

    if version:
        console.print(
            f"[bold cyan]Existential Annotator[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)

    logger = get_logger()

    try:
        settings = resolve_config(
            config=config,
            allow=allow,
            no_default_protocols=no_default_protocols,
            check=check,
            workers=workers,
            verbose=verbose,
            quiet=quiet,
        )
        setup_logging(
            "quiet" if json_output else settings.verbosity,
            log_file=str(log_file) if log_file else None,
        )

        root = path.resolve()
        summary = Processor(settings).process_directory(root)

        if json_output:
            typer.echo(json.dumps(summary.to_dict(), indent=2))
        else:
            _output_rich(summary, root)

        if check and summary.files_changed:
            raise typer.Exit(1)

    except typer.Exit:
        raise

    except AnnotatorError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        if json_output:
            typer.echo(json.dumps(e.to_dict(), indent=2))
            raise typer.Exit(1)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Annotation interrupted by user")
        console.print("\n[yellow]Annotation interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during annotation")
        console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
