from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from datetime import datetime
from contextlib import asynccontextmanager

from app.config import settings
from app.models.schemas import ErrorResponse
from app.api.routes import router
from app.api.shopify_routes import router as shopify_router
from app.api.webhook_routes import router as webhook_router
from app.services.exceptions import DashboardError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema changes run through `alembic upgrade head` at deploy time, not here
    logger.info("Application starting up...")
    yield
    logger.info("Application shutting down...")

app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes with prefix
app.include_router(router, prefix="/api")
app.include_router(shopify_router, prefix="/api/shopify", tags=["Shopify Sync"])
app.include_router(webhook_router, prefix="/api/webhooks", tags=["Webhooks"])


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "endpoints": {
            "health": "/api/health",
            "tenants": "/api/tenants",
            "dashboard": "/api/dashboard/{tenant_id}",
            "dashboard_customers": "/api/dashboard/{tenant_id}/customers",
            "dashboard_products": "/api/dashboard/{tenant_id}/products",
            "sync_all": "/api/shopify/sync/{tenant_id}",
            "sync_type": "/api/shopify/sync/{tenant_id}/{data_type}",
            "shopify_health": "/api/shopify/health/{tenant_id}",
            "webhooks": "/api/webhooks/shopify"
        },
        "timestamp": datetime.utcnow()
    }


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            status_code=status_code
        ).model_dump(mode="json")
    )


# Global exception handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    message = exc.detail if isinstance(exc, HTTPException) else "The requested resource was not found"
    return _error_response(404, "Not Found", message)


@app.exception_handler(500)
async def internal_server_error_handler(request: Request, exc):
    logger.error(f"Internal server error on {request.url.path}: {exc}")
    return _error_response(500, "Internal Server Error", "An internal server error occurred")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(exc.status_code, "HTTP Error", str(exc.detail))


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, type(exc).__name__, exc.message)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
