"""CLI entry point; registers the annotate command."""

import typer

app = typer.Typer(
    name="existential-annotator",
    help="Existential Annotator - Mark existential protocol types in Swift code with 'any'",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import commands to register them
from .annotate import annotate as _annotate  # noqa: F401, E402
