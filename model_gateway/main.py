from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from model_gateway import __version__
from model_gateway.api import health
from model_gateway.api.v1 import chat, selection
from model_gateway.api.admin import analytics, branding, models
from model_gateway.application import get_provider_registry
from model_gateway.core.config import settings
from model_gateway.db.session import close_db, ping_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Model gateway starting on {settings.environment} environment "
        f"(config_source={settings.config_source})"
    )

    # Tables are created by `model-gateway db init`, never at startup
    if settings.config_source == "database":
        try:
            latency = await ping_database()
            logger.info(f"Database connected ({latency:.1f}ms)")
        except Exception as e:
            logger.error(f"Database connection failed: {e}")

    registry = get_provider_registry()
    logger.info(f"Provider clients: {', '.join(p.value for p in registry.providers())}")

    yield

    logger.info("Model gateway shutting down")
    await close_db()


DESCRIPTION = """
## Model Gateway

**Model selection and fallback engine for the AI chat widget platform.**

### Key Features

| Feature | Description |
|---------|-------------|
| **Activation Rules** | Route by query type, use case, tenant and attribute conditions |
| **Default Model** | Single active default when no rule matches |
| **Fallback Cascade** | Failure or low confidence moves to the next model in the chain |
| **Multi-Provider** | OpenAI, Anthropic, Gemini, Grok, OpenRouter, Mistral, DeepSeek, Hugging Face, Cohere |
| **Usage Analytics** | Success rate, fallback rate and latency per model |

### Error Codes

| Code | HTTP | Description |
|------|------|-------------|
| `NOT_FOUND` | 404 | Unknown model, rule or branding preset |
| `DEFAULT_CONFLICT` | 409 | Operation would leave no active default |
| `CONFIGURATION_ERROR` | 422 | Invalid model, rule or fallback chain |
| `PROVIDER_ERROR` | 502 | Every model in the cascade failed |
| `NO_MODEL_AVAILABLE` | 503 | No rule matched and no default model |
| `CASCADE_TIMEOUT` | 504 | Time budget exhausted before any reply |

### Links

* [API Documentation](/docs)
* [ReDoc](/redoc)
* [OpenAPI Spec](/openapi.json)
"""

TAGS_METADATA = [
    {
        "name": "Health",
        "description": "Health checks and readiness probes for monitoring and orchestration.",
    },
    {
        "name": "Chat",
        "description": """Route chat requests through the selection engine.

**Optional body fields:** `queryType`, `useCase`, `tenantId`, `widgetId`, `attributes`, `timeoutSeconds`""",
    },
    {
        "name": "Admin - Models",
        "description": """Manage AI models and activation rules.

Configure providers, parameters, the default model and fallback chains.""",
    },
    {
        "name": "Admin - Branding",
        "description": "Manage branding presets and generate widget CSS variables.",
    },
    {
        "name": "Admin - Analytics",
        "description": "Per-model usage statistics from the usage log.",
    },
]

app = FastAPI(
    title="Model Gateway",
    description=DESCRIPTION,
    version=__version__,
    lifespan=lifespan,
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS (admin dashboard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes - Selection engine
app.include_router(health.router, tags=["Health"])
app.include_router(chat.router, prefix="/v1", tags=["Chat"])
app.include_router(selection.router, prefix="/v1", tags=["Chat"])

# Routes - Admin API
ADMIN_PREFIX = "/api"
app.include_router(models.router, prefix=ADMIN_PREFIX, tags=["Admin - Models"])
app.include_router(branding.router, prefix=ADMIN_PREFIX, tags=["Admin - Branding"])
app.include_router(analytics.router, prefix=ADMIN_PREFIX, tags=["Admin - Analytics"])
