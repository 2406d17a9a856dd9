"""Model gateway CLI - Main entry point."""

import typer
from rich.console import Console

from model_gateway import __version__
from model_gateway.cli.commands import check, db, seed, simulate

console = Console()

app = typer.Typer(
    name="model-gateway",
    help="Model gateway CLI - configuration checks, selection dry-runs and setup tools.",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(check.app, name="check")
app.add_typer(simulate.app, name="simulate")
app.add_typer(seed.app, name="seed")
app.add_typer(db.app, name="db")


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]Model Gateway[/bold] v{__version__}")


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from model_gateway.core.config import settings

    uvicorn.run("model_gateway.main:app", host=settings.host, port=settings.port, reload=reload)


if __name__ == "__main__":
    app()
