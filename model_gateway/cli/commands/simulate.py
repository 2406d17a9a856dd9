"""Selection dry-runs against the live configuration."""

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()
app = typer.Typer(help="Simulate model selection and fallback cascades.")


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def parse_attributes(pairs: List[str]) -> dict[str, str]:
    """Parse repeated --attr key=value options."""
    attributes = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--attr")
        attributes[key.strip()] = value.strip()
    return attributes


@app.command()
def select(
    query_type: Optional[str] = typer.Option(None, "--query-type", "-q", help="Query type"),
    use_case: Optional[str] = typer.Option(None, "--use-case", "-u", help="Use case"),
    tenant_id: Optional[int] = typer.Option(None, "--tenant-id", "-t", help="Tenant ID"),
    widget_id: Optional[int] = typer.Option(None, "--widget-id", "-w", help="Widget ID"),
    attr: List[str] = typer.Option([], "--attr", "-a", help="Request attribute key=value"),
):
    """Show which model a request would be routed to, without calling any provider."""
    from model_gateway.application import RouteChatCommand

    command = RouteChatCommand(
        messages=[],
        query_type=query_type,
        use_case=use_case,
        tenant_id=tenant_id,
        attributes=parse_attributes(attr),
        widget_id=widget_id,
    )
    result = run_async(_preview(command))

    if not result["success"]:
        console.print(f"[red]{result['code']}:[/red] {result['error']}")
        raise typer.Exit(1)

    preview = result["preview"]
    selection = preview.selection
    table = Table(title="Selection")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Model", f"{selection.model.id} - {selection.model.name}")
    table.add_row("Provider", selection.model.provider.value)
    table.add_row("Reason", selection.reason.value)
    if selection.rule is not None:
        table.add_row("Rule", f"{selection.rule.id} - {selection.rule.name} (priority {selection.rule.priority})")
    table.add_row("Fallback chain", " -> ".join(str(model_id) for model_id in preview.fallback_chain))
    console.print(table)


@app.command()
def chat(
    message: str = typer.Argument(..., help="User message"),
    query_type: Optional[str] = typer.Option(None, "--query-type", "-q"),
    use_case: Optional[str] = typer.Option(None, "--use-case", "-u"),
    tenant_id: Optional[int] = typer.Option(None, "--tenant-id", "-t"),
    attr: List[str] = typer.Option([], "--attr", "-a", help="Request attribute key=value"),
    fail: List[int] = typer.Option([], "--fail", "-f", help="Model ID whose mock call fails"),
    confidence: Optional[float] = typer.Option(None, "--confidence", "-c", help="Mock confidence"),
):
    """Run the fallback cascade with mock providers and print every attempt."""
    from model_gateway.application import RouteChatCommand

    command = RouteChatCommand(
        messages=[{"role": "user", "content": message}],
        query_type=query_type,
        use_case=use_case,
        tenant_id=tenant_id,
        attributes=parse_attributes(attr),
    )
    result = run_async(_mock_chat(command, fail, confidence))

    table = Table(title=f"Cascade ({result.outcome.value})")
    table.add_column("#")
    table.add_column("Model", style="cyan")
    table.add_column("Provider")
    table.add_column("Status")
    table.add_column("Confidence")
    table.add_column("Latency (ms)")
    attempts = result.cascade.attempts if result.cascade else []
    for index, attempt in enumerate(attempts, start=1):
        if attempt.success:
            state = "[green]ok[/green]" if attempt.met_threshold else "[yellow]low confidence[/yellow]"
        else:
            state = f"[red]{attempt.error_kind}[/red]"
        table.add_row(
            str(index),
            str(attempt.model_id),
            attempt.provider,
            state,
            "" if attempt.confidence is None else f"{attempt.confidence:.2f}",
            f"{attempt.latency_ms:.1f}",
        )
    console.print(table)

    if result.response_text is not None:
        console.print(f"[bold]Response:[/bold] {result.response_text}")
    else:
        console.print(f"[red]{result.error_code}:[/red] {result.error_message}")
        raise typer.Exit(1)


async def _preview(command) -> dict:
    from model_gateway.application.factory import create_route_chat_request_use_case
    from model_gateway.db.session import close_db, get_db_context
    from model_gateway.domain.errors import ModelGatewayError

    try:
        async with get_db_context() as session:
            use_case = create_route_chat_request_use_case(session=session, enable_usage_log=False)
            return {"success": True, "preview": await use_case.preview(command)}
    except ModelGatewayError as e:
        return {"success": False, "code": e.code, "error": e.message}
    finally:
        await close_db()


async def _mock_chat(command, fail: List[int], confidence: Optional[float]):
    from model_gateway.adapters.providers import MockAdapter, ProviderRegistry
    from model_gateway.application.factory import create_route_chat_request_use_case
    from model_gateway.db.session import close_db, get_db_context
    from model_gateway.domain.models import ProviderType

    mock = MockAdapter(failing_models=set(fail), confidence=confidence)
    registry = ProviderRegistry({provider: mock for provider in ProviderType})

    try:
        async with get_db_context() as session:
            use_case = create_route_chat_request_use_case(
                session=session, providers=registry, enable_usage_log=False
            )
            return await use_case.execute(command)
    finally:
        await close_db()
