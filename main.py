import logging

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from starlette.middleware.sessions import SessionMiddleware

import models  # noqa: F401  registers every table on Base.metadata
from core.celery import celery_app
from core.config import settings
from core.db import Base, engine
from core.errors import register_exception_handlers
from core.logging_config import setup_logging
from routes.addresses import router as addresses_router
from routes.admin import router as admin_router
from routes.auth import router as auth_router
from routes.delivery import router as delivery_router
from routes.health import router as health_router
from routes.notifications import router as notifications_router
from routes.oauth import router as oauth_router
from routes.orders import router as orders_router
from routes.payments import router as payments_router
from routes.products import router as products_router
from routes.users import router as users_router
from routes.vendor import router as vendor_router
from routes.vendors import router as vendors_router
from routes.webhooks import router as webhooks_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Authlib keeps the OAuth state in the session
app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET)
register_exception_handlers(app)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

# Ensure tables exist (for dev/test; in prod use migrations)
Base.metadata.create_all(bind=engine)

for router in (
    auth_router,
    oauth_router,
    users_router,
    addresses_router,
    notifications_router,
    products_router,
    vendors_router,
    vendor_router,
    orders_router,
    delivery_router,
    payments_router,
    webhooks_router,
    admin_router,
    health_router,
):
    app.include_router(router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.APP_NAME}


@app.get("/celery-health")
async def celery_health_check():
    """Check Celery worker status"""
    try:
        stats = celery_app.control.inspect().stats()
    except Exception as e:
        logger.warning("Celery inspect failed: %s", e)
        return {"status": "unhealthy", "error": str(e)}
    if stats:
        return {"status": "healthy", "workers": len(stats)}
    return {"status": "no_workers", "message": "No Celery workers running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
