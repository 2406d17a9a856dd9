"""Configuration and connectivity checks."""

import asyncio
import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import make_url

from model_gateway.core.config import settings

console = Console()
app = typer.Typer(help="Configuration and connectivity checks.")


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


@app.command()
def config():
    """Show effective settings and validate models, rules and fallback chains."""
    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("environment", settings.environment)
    table.add_row("config_source", settings.config_source)
    table.add_row("database_url", make_url(settings.database_url).render_as_string(hide_password=True))
    if settings.config_source == "admin_api":
        table.add_row("admin_api_url", settings.admin_api_url)
    table.add_row("cascade_timeout_seconds", str(settings.cascade_timeout_seconds))
    table.add_row("max_cascade_depth", str(settings.max_cascade_depth))
    table.add_row("default_confidence_threshold", str(settings.default_confidence_threshold))
    table.add_row("mock_providers", str(settings.mock_providers))
    table.add_row("log_usage", str(settings.log_usage))
    console.print(table)

    for warning in settings.validate_production_settings():
        console.print(f"[yellow]{warning}[/yellow]")

    result = run_async(_validate_configuration())
    if not result["success"]:
        console.print(f"[red]Configuration FAILED:[/red] {result['error']}")
        raise typer.Exit(1)

    console.print(
        f"Loaded {result['models']} models, {result['rules']} rules, "
        f"default model: {result['default_model_id']}"
    )

    issues = result["issues"]
    if not issues:
        console.print("[green]Configuration OK[/green]")
        return

    issues_table = Table(title="Configuration issues")
    issues_table.add_column("Severity")
    issues_table.add_column("Code", style="cyan")
    issues_table.add_column("Model")
    issues_table.add_column("Rule")
    issues_table.add_column("Message")
    for issue in issues:
        color = "red" if issue.severity.value == "error" else "yellow"
        issues_table.add_row(
            f"[{color}]{issue.severity.value}[/{color}]",
            issue.code,
            str(issue.model_id or ""),
            str(issue.rule_id or ""),
            issue.message,
        )
    console.print(issues_table)

    if any(issue.severity.value == "error" for issue in issues):
        raise typer.Exit(1)


@app.command()
def db():
    """Check database connection."""
    ok, msg = run_async(_check_db())
    if ok:
        console.print(f"[green]Database OK:[/green] {msg}")
    else:
        console.print(f"[red]Database FAILED:[/red] {msg}")
        raise typer.Exit(1)


async def _validate_configuration() -> dict:
    """Load a snapshot from the configured source and validate it."""
    from model_gateway.application.factory import create_config_source
    from model_gateway.db.session import close_db, get_db_context
    from model_gateway.domain.errors import ConfigurationError
    from model_gateway.domain.validation import validate_snapshot

    try:
        async with get_db_context() as session:
            snapshot = await create_config_source(session).load_snapshot()
    except ConfigurationError as e:
        return {"success": False, "error": e.message}
    except Exception as e:
        return {"success": False, "error": str(e)}
    finally:
        await close_db()

    return {
        "success": True,
        "models": len(snapshot.models),
        "rules": len(snapshot.rules),
        "default_model_id": snapshot.default_model_id,
        "issues": validate_snapshot(snapshot),
    }


async def _check_db() -> tuple[bool, str]:
    """Check database connectivity."""
    from model_gateway.db.session import close_db, engine, ping_database

    try:
        latency = await ping_database()
        return True, f"{engine.dialect.name} connected ({latency:.1f}ms)"
    except Exception as e:
        return False, str(e)
    finally:
        await close_db()
