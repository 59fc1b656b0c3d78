from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError

from partner_portal.api.health import router as health_router
from partner_portal.api.v1 import articles, cron, documents, partners, portal, products, prospects, webhooks
from partner_portal.core.config import settings
from partner_portal.core.database import engine, init_db
from partner_portal.core.logging import get_logger, setup_logging
from partner_portal.core.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "startup",
        version=settings.APP_VERSION,
        docuseal_configured=bool(settings.DOCUSEAL_API_KEY),
        webhook_signing=bool(settings.DOCUSEAL_WEBHOOK_SECRET),
    )

    # Startup - create tables (migrations own the schema in production)
    try:
        await init_db()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("create_tables_failed", error=str(e))

    yield

    # Shutdown
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Partner pipeline, e-signature and portal backend",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

Instrumentator(excluded_handlers=["/health.*", "/metrics"]).instrument(app).expose(app, include_in_schema=False)

# Add middleware (order matters - last added = first executed)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(partners.router, prefix="/api/v1/partners", tags=["partners"])
app.include_router(documents.router, prefix="/api/v1/documents", tags=["documents"])
app.include_router(webhooks.router, prefix="/api/v1/webhooks", tags=["webhooks"])
app.include_router(prospects.router, prefix="/api/v1/crm/prospects", tags=["crm"])
app.include_router(articles.router, prefix="/api/v1/articles", tags=["articles"])
app.include_router(products.router, prefix="/api/v1/products", tags=["products"])
app.include_router(portal.router, prefix="/api/v1/portal", tags=["portal"])
app.include_router(cron.router, prefix="/api/v1/cron", tags=["cron"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
