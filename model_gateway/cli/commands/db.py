"""Database schema commands."""

import asyncio
import typer
from rich.console import Console

console = Console()
app = typer.Typer(help="Database schema management.")


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


@app.command()
def init():
    """Create all tables (ai_models, rules, default pointers, usage logs, branding, widgets)."""
    console.print("[cyan]Creating tables...[/cyan]")

    result = run_async(_create_tables())

    if result["success"]:
        console.print("[green]Database initialized.[/green]")
    else:
        console.print(f"[red]Error:[/red] {result['error']}")
        raise typer.Exit(1)


async def _create_tables() -> dict:
    from model_gateway.db.session import close_db, create_tables

    try:
        await create_tables()
        return {"success": True}
    except Exception as e:
        return {"success": False, "error": str(e)}
    finally:
        await close_db()
