# backend/app/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db, check_database_health
from app.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from app.routers import (
    trades_router,
    holdings_router,
    profit_loss_router,
    market_router,
)
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.services.exceptions import (
    ServiceError,
    ValidationError,
    InsufficientHoldingsError,
    NotFoundError,
    DerivedRecordInconsistencyError,
    PersistenceError,
    TradeLockTimeoutError,
    ComputationError,
    AuthenticationError,
    TokenExpiredError,
)
from app.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} starting (environment={settings.environment})")
    yield
    from app.dependencies import clear_service_caches
    clear_service_caches()
    logger.info(f"{settings.app_name} stopped")


# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Trade journal API: trades, holdings, realized and unrealized P&L",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS must be added before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Order matters: last added = first executed
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions carry no HTTP knowledge; they are mapped to
# status codes here. Starlette picks the handler of the most specific
# class, so ServiceError only catches what nothing else claims.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def _error_response(
    status_code: int,
    exc: ServiceError,
    details: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=details,
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(400, exc, {"field": exc.field} if exc.field else None)


@app.exception_handler(InsufficientHoldingsError)
async def insufficient_holdings_handler(
    request: Request, exc: InsufficientHoldingsError
) -> JSONResponse:
    """Handle sells exceeding the position (400)."""
    logger.warning(f"Insufficient holdings: {exc}")
    return _error_response(
        400,
        exc,
        {
            "stock_symbol": exc.stock_symbol,
            "requested": str(exc.requested),
            "available": str(exc.available),
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle missing resources (404)."""
    logger.warning(f"Not found: {exc}")
    return _error_response(
        404,
        exc,
        {"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(DerivedRecordInconsistencyError)
async def derived_record_handler(
    request: Request, exc: DerivedRecordInconsistencyError
) -> JSONResponse:
    """Handle trade / profit-loss bookkeeping conflicts (409)."""
    logger.error(f"Derived record inconsistency: {exc}")
    return _error_response(
        409,
        exc,
        {"trade_id": exc.trade_id, "stock_symbol": exc.stock_symbol},
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Handle failed writes (500); the driver error was logged by the service."""
    return _error_response(500, exc, {"operation": exc.operation})


@app.exception_handler(TradeLockTimeoutError)
async def trade_lock_timeout_handler(request: Request, exc: TradeLockTimeoutError) -> JSONResponse:
    """Handle writes that waited too long for the position (409)."""
    logger.warning(f"Trade lock timeout after {exc.timeout}s (user={exc.user_id}, symbol={exc.stock_symbol})")
    return _error_response(409, exc, {"stock_symbol": exc.stock_symbol})


@app.exception_handler(ComputationError)
async def computation_error_handler(request: Request, exc: ComputationError) -> JSONResponse:
    """Handle failed aggregations (500)."""
    return _error_response(500, exc)


@app.exception_handler(TokenExpiredError)
async def token_expired_handler(request: Request, exc: TokenExpiredError) -> JSONResponse:
    """Handle token expired errors (401)."""
    logger.warning(f"Expired token used: {exc.token_type}")
    return _error_response(
        401, exc, {"token_type": exc.token_type}, headers={"WWW-Authenticate": "Bearer"}
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    """Handle invalid credentials and other authentication errors (401)."""
    logger.warning(f"Authentication error: {exc}")
    return _error_response(401, exc, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, exc)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to ErrorDetail.
    """
    error_types = {
        400: "BadRequestError",
        401: "UnauthorizedError",
        403: "ForbiddenError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        429: "RateLimitExceeded",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and query strings (422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=errors).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(trades_router)  # /trades/*
app.include_router(holdings_router)  # /holdings/*
app.include_router(profit_loss_router)  # /profit-loss/*
app.include_router(market_router)  # /market/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health of the service and its dependencies.

    - 200: healthy, or degraded when only the quote provider has trouble
    - 503: the database (critical) is unreachable
    """
    from app.dependencies import get_price_service

    checks = {"database": check_database_health(db)}
    overall_status = "healthy" if checks["database"]["status"] == "healthy" else "unhealthy"

    stats = get_price_service().get_stats()
    price_status = "healthy" if stats["available"] else "unhealthy"
    checks["market_prices"] = {"status": price_status, "critical": False, **stats}
    if price_status != "healthy" and overall_status == "healthy":
        overall_status = "degraded"

    response_data = {"status": overall_status, "checks": checks}
    if overall_status == "unhealthy":
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """
    Liveness probe: 200 whenever the process is running.

    Does NOT check dependencies - use /health/ready for that.
    """
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Readiness probe: 503 while the database is unreachable."""
    if check_database_health(db)["status"] != "healthy":
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
