"""
FastAPI app assembly: logging, middleware, error envelope and router wiring.
"""
import logging
import os
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from billing.api.activity_monitoring import router as activity_monitoring_router
from billing.api.billing_cycles import router as billing_cycles_router
from billing.api.countries import router as countries_router
from billing.api.currencies import router as currencies_router
from billing.api.employee_licenses import router as employee_licenses_router
from billing.api.exchange_rates import router as exchange_rates_router
from billing.api.fraud_detection_logs import router as fraud_detection_logs_router
from billing.api.global_licenses import router as global_licenses_router
from billing.api.languages import router as languages_router
from billing.api.license_adjustments import router as license_adjustments_router
from billing.api.payment_methods import router as payment_methods_router
from billing.api.payment_transactions import router as payment_transactions_router
from billing.api.responses import ApiError, error_response, success, timestamp
from billing.api.tax_rules import router as tax_rules_router
from billing.api.tenants import router as tenants_router
from billing.db.database import SessionLocal, engine, ensure_sqlite_schema
from billing.db.registry import TableInitializer
from billing.domain.reference import Country, Currency, ExchangeRate, Language, TaxRule
from billing.utils.runtime import cors_origins, environment, is_production

STARTED_AT = time.monotonic()

# Tables whose revision is reported by /health
REVISIONED = {
    "country": Country,
    "currency": Currency,
    "exchange_rate": ExchangeRate,
    "language": Language,
    "tax_rule": TaxRule,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_sqlite_schema()
    TableInitializer.initialize(engine)
    logger.info("table_initializer_stats: %s", TableInitializer.get_stats())
    yield


app = FastAPI(
    title="Billing Service",
    description="Multi-tenant billing and reference data API: tenants, licenses, billing cycles and payments.",
    version="1.0.0",
    lifespan=lifespan,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    if not is_production():
        logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.code, exc.message, exc.extra)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "route_not_found",
            f"Route {request.method} {request.url.path} not found",
        )
    return error_response(exc.status_code, "http_error", str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    return error_response(status.HTTP_400_BAD_REQUEST, "invalid_request", message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error: %s %s", request.method, request.url.path)
    if is_production():
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_server_error", "Internal server error")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_server_error",
        str(exc) or type(exc).__name__,
        {"stack": traceback.format_exception(type(exc), exc, exc.__traceback__)},
    )


ROUTERS = (
    countries_router,
    currencies_router,
    exchange_rates_router,
    languages_router,
    tax_rules_router,
    tenants_router,
    global_licenses_router,
    employee_licenses_router,
    billing_cycles_router,
    payment_methods_router,
    payment_transactions_router,
    license_adjustments_router,
    fraud_detection_logs_router,
    activity_monitoring_router,
)

for router in ROUTERS:
    app.include_router(router)


@app.get("/health")
def health_check():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        revisions = {name: domain.revision(db) for name, domain in REVISIONED.items()}
        database = "connected"
    except SQLAlchemyError as exc:
        logger.error("health_database_error: %s", exc)
        revisions = {}
        database = "disconnected"
    finally:
        db.close()
    return success({
        "status": "ok" if database == "connected" else "degraded",
        "timestamp": timestamp(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": environment(),
        "database": database,
        "tables": TableInitializer.get_stats(),
        "revision": revisions,
    })


@app.get("/")
def index():
    return success({
        "message": "Billing service is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": ["/health"] + [router.prefix for router in ROUTERS],
    })
