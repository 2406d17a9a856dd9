"""Seed data commands."""

import asyncio
import typer
from rich.console import Console

console = Console()
app = typer.Typer(help="Seed data management.")


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


DEMO_SYSTEM_PROMPT = "You are a friendly support assistant. Answer concisely."


@app.command()
def demo():
    """Seed a demo configuration: three models with a fallback chain, rules, a widget and a theme."""
    console.print("[cyan]Seeding demo configuration...[/cyan]")

    result = run_async(_seed_demo())

    if result["success"]:
        console.print("[green]Demo configuration seeded.[/green]")
        for line in result["summary"]:
            console.print(f"  {line}")
    else:
        console.print(f"[red]Error:[/red] {result['error']}")
        raise typer.Exit(1)


async def _seed_demo() -> dict:
    """Seed the demo configuration through the management use cases."""
    from model_gateway.application import (
        BrandingCommand,
        CreateModelCommand,
        RuleCommand,
        UpdateModelCommand,
    )
    from model_gateway.application.factory import (
        create_config_repository,
        create_manage_branding_use_case,
        create_manage_models_use_case,
        create_manage_rules_use_case,
    )
    from model_gateway.db.session import close_db, get_db_context
    from model_gateway.domain.errors import ModelGatewayError
    from model_gateway.domain.models import WidgetSettings

    try:
        async with get_db_context() as session:
            models = create_manage_models_use_case(session)
            if await models.list_models():
                return {
                    "success": False,
                    "error": "Models already exist; the demo seed only runs on an empty configuration",
                }

            # Created first: becomes the default
            gpt = await models.create_model(
                CreateModelCommand(
                    name="GPT-4o mini",
                    provider="openai",
                    settings={"model_name": "gpt-4o-mini", "temperature": 0.7, "max_tokens": 1024},
                    confidence_threshold=0.7,
                )
            )
            claude = await models.create_model(
                CreateModelCommand(
                    name="Claude Haiku",
                    provider="anthropic",
                    settings={"model_name": "claude-3-5-haiku-latest", "temperature": 0.5, "max_tokens": 1024},
                    confidence_threshold=0.6,
                )
            )
            gemini = await models.create_model(
                CreateModelCommand(
                    name="Gemini Flash",
                    provider="gemini",
                    settings={"model_name": "gemini-2.0-flash", "temperature": 0.4},
                    fallback_model_id=gpt.id,
                )
            )
            await models.update_model(UpdateModelCommand(model_id=gpt.id, fallback_model_id=claude.id))

            rules = create_manage_rules_use_case(session)
            await rules.create_rule(
                RuleCommand(model_id=gemini.id, name="Support questions", priority=10, query_type="support")
            )
            await rules.create_rule(
                RuleCommand(
                    model_id=claude.id,
                    name="Enterprise plan",
                    priority=5,
                    conditions=[{"field": "plan", "operator": "equals", "value": "enterprise"}],
                )
            )

            await create_config_repository(session).save_widget_settings(
                WidgetSettings(id=1, name="Website widget", system_prompt=DEMO_SYSTEM_PROMPT)
            )

            theme = await create_manage_branding_use_case(session).create_setting(
                BrandingCommand(
                    user_id=1,
                    name="Default theme",
                    colors={"primary": "#4f46e5", "background": "#ffffff", "text": "#111827"},
                    typography={"font-family": "Inter, sans-serif", "font-size": "14px"},
                    elements={"border-radius": "8px"},
                )
            )

        return {
            "success": True,
            "summary": [
                f"Default model: {gpt.id} ({gpt.name}) -> fallback {claude.id} ({claude.name})",
                f"Support rule: {gemini.id} ({gemini.name}) -> fallback {gpt.id}",
                f"Enterprise rule: {claude.id} ({claude.name})",
                "Widget 1 with system prompt",
                f"Branding preset {theme.id} ({theme.name})",
            ],
        }
    except ModelGatewayError as e:
        return {"success": False, "error": e.message}
    except Exception as e:
        return {"success": False, "error": str(e)}
    finally:
        await close_db()
