"""
Storefront - Backend API
Point of sale + WhatsApp catalog ordering
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from storefront.api import analytics, orders, products, webhook  # noqa: E402
from storefront.connectors.whatsapp_connector import WhatsAppConnector  # noqa: E402
from storefront.core.config import Settings, get_settings  # noqa: E402
from storefront.core.database import Database  # noqa: E402

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    whatsapp: Optional[WhatsAppConnector] = None,
) -> FastAPI:
    """
    Build the FastAPI application

    The database handle is opened when the app starts and disposed when it
    stops; tests pass their own handle and connector.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    database = database or Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    whatsapp = whatsapp or WhatsAppConnector(
        access_token=settings.WHATSAPP_ACCESS_TOKEN,
        phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID,
        api_version=settings.WHATSAPP_API_VERSION,
        app_secret=settings.WHATSAPP_APP_SECRET,
        catalog_id=settings.WHATSAPP_CATALOG_ID,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.open()
        if settings.AUTO_CREATE_TABLES:
            database.create_all()
        if not settings.whatsapp_configured:
            logger.warning("WhatsApp credentials not configured, replies will fail")
        yield
        database.close()

    # Crear aplicación FastAPI
    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION,
        debug=settings.API_DEBUG,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.whatsapp = whatsapp

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies answer 400 {error} like checkout rejections"""
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    # Include API routers
    app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(analytics.router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(webhook.router)

    @app.get("/")
    async def root():
        """Endpoint raíz - Verificación de estado de la API"""
        return {
            "message": "Storefront API",
            "status": "online",
            "version": settings.API_VERSION,
        }

    @app.get("/health")
    def health():
        """Health check endpoint para monitoreo - tests database connectivity"""
        try:
            latency_ms = database.ping(max_retries=1)
            return {"status": "healthy", "database": "connected", "database_latency_ms": latency_ms}
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "database": "error", "error": str(e)},
            )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("storefront.main:app", host=_settings.API_HOST, port=_settings.API_PORT)
