import os
from fastapi import FastAPI
from dotenv import load_dotenv

from core.config import settings
from core.db import init_db
from core.errors import register_exception_handlers
from core.logging import configure_logging, log_startup_config
from routes.auth import router as auth_router
from routes.orders import router as orders_router
from routes.pix_payment import router as pix_payment_router

load_dotenv()
configure_logging()
log_startup_config(
    [
        "APP_ENV",
        "NODE_ENV",
        "DEBUG",
        "PAYONHUB_BASE_URL",
        "PAYONHUB_PUBLIC_KEY",
        "PAYONHUB_SECRET_KEY",
        "HTTP_TIMEOUT_SECONDS",
    ]
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)
register_exception_handlers(app)

# Ensure tables exist (for dev/test; in prod use Alembic)
init_db()

app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(pix_payment_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG,
    )
