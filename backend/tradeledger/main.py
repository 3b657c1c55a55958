"""
Heights Ledger - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from tradeledger.config import settings
from tradeledger.api.v1.router import api_router
from tradeledger.core.trading.fees import FeeCalculator, FeeConfig
from tradeledger.core.trading.notifications import SettlementNotifier
from tradeledger.core.trading.settlement import SettlementService
from tradeledger.db.database import async_session_maker, engine, init_db
from tradeledger.market.price_cache import PriceCache, PriceCacheConfig
from tradeledger.utils.exceptions import LedgerException
from tradeledger.utils.logger import setup_logging


def build_settlement_service(session_maker, notifier: SettlementNotifier | None = None) -> SettlementService:
    """Wire the settlement service from settings."""
    return SettlementService(
        session_maker,
        fee_calculator=FeeCalculator(FeeConfig.from_settings(settings)),
        currency=settings.BASE_CURRENCY,
        max_retries=settings.SETTLEMENT_MAX_RETRIES,
        notifier=notifier or SettlementNotifier(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events handler."""
    # Startup
    setup_logging(settings)
    logger.info("🚀 Starting Heights Ledger...")

    await init_db()
    logger.info("✅ Database initialized")

    app.state.session_maker = async_session_maker
    app.state.price_cache = PriceCache(PriceCacheConfig.from_settings(settings))
    app.state.settlement_service = build_settlement_service(async_session_maker)
    logger.info(
        f"✅ Settlement ready (currency={settings.BASE_CURRENCY}, "
        f"fee={settings.FEE_RATE} clamped to [{settings.MIN_FEE}, {settings.MAX_FEE}])"
    )

    yield

    # Shutdown
    logger.info("🛑 Shutting down Heights Ledger...")
    await engine.dispose()
    logger.info("👋 Goodbye!")


async def ledger_exception_handler(request: Request, exc: LedgerException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "INVALID_INPUT", "message": "Request validation failed", "details": {"errors": errors}},
    )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Position ledger and trade settlement engine",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerException, ledger_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": "1.0.0"
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness check - verifies the database is reachable."""
        from sqlalchemy import text

        try:
            async with request.app.state.session_maker() as session:
                await session.execute(text("SELECT 1"))
            database = "connected"
        except Exception as e:
            database = f"error: {str(e)[:50]}"

        return {
            "status": "ready" if database == "connected" else "degraded",
            "checks": {"database": database},
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tradeledger.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
