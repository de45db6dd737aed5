"""
Main FastAPI application for authflow
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from authflow import metrics
from authflow.api.v1.endpoints import auth, two_factor
from authflow.core.config import settings
from authflow.core.database import init_db, dispose_db, ping_db
from authflow.core.logging import configure_logging
from authflow.exceptions import AuthFlowError, StoreError
from authflow.middleware import RequestIDMiddleware, HTTPMetricsMiddleware


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    metrics.app_info.info({"version": settings.VERSION, "environment": settings.ENVIRONMENT})

    # Idempotent: existing tables are left untouched
    init_db()

    yield

    logger.info("Shutting down...")
    dispose_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Two-step authentication: password, then TOTP second factor",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)
app.add_middleware(HTTPMetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as {"error": message}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing body fields are a 400, not FastAPI's default 422"""
    details = [
        {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"error": "Invalid request body", "details": details})
    )


@app.exception_handler(AuthFlowError)
async def authflow_exception_handler(request: Request, exc: AuthFlowError):
    """Errors not mapped by an endpoint"""
    status_code = 500 if isinstance(exc, StoreError) else 400
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Database failures never leak details to the client"""
    logger.exception("Unhandled database error")
    return JSONResponse(status_code=500, content={"error": "Internal error"})


@app.get("/health")
def health_check():
    """Health check endpoint"""
    try:
        database_status = "healthy" if ping_db() else "unhealthy"
    except SQLAlchemyError:
        logger.warning("Database health check failed")
        database_status = "unhealthy"

    return {
        "status": "healthy" if database_status == "healthy" else "degraded",
        "version": settings.VERSION,
        "checks": {
            "database": database_status,
        }
    }


@app.get("/metrics")
def prometheus_metrics():
    """Prometheus exposition"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "API running",
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


app.include_router(auth.router, tags=["authentication"])
app.include_router(two_factor.router, prefix="/2fa", tags=["2fa"])
