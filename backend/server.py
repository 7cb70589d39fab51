"""
Material Delivery Tracker
Foremen order materials, suppliers dispatch drivers, drivers confirm delivery
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
from pathlib import Path
import logging

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from database import app_settings, init_postgres_db, close_postgres_db
from app.requests.domain.errors import (
    DomainError,
    DuplicateUsername,
    NotFound,
    Unauthorized,
)

# ==================== Logging Configuration ====================
logging.basicConfig(
    level=app_settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(
    title="Material Delivery Tracker",
    description="Material delivery requests for construction sites",
    version="1.0.0"
)

# Health check endpoint at root level (for Kubernetes)
@app.get("/health")
async def root_health_check():
    """Health check endpoint for Kubernetes liveness/readiness probes"""
    return {"status": "healthy", "database": "PostgreSQL"}

# ==================== Routes ====================
from routes.auth_routes import auth_router
from routes.users_routes import users_router
from routes.requests_routes import requests_router

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(requests_router)

# ==================== CORS Configuration ====================
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=app_settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Error Handlers ====================
def domain_error_status(exc: DomainError) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, Unauthorized):
        return 403
    if isinstance(exc, DuplicateUsername):
        return 409
    return 400


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = domain_error_status(exc)
    content = {"message": exc.message}
    if status_code != 404:
        content["field"] = exc.field
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {"msg": "Invalid request", "loc": ()}
    location = [str(part) for part in first.get("loc", ())]
    if location and location[0] in ("body", "query", "path"):
        location = location[1:]
    return JSONResponse(
        status_code=400,
        content={"message": first["msg"], "field": ".".join(location) or None},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})

# ==================== Startup & Shutdown Events ====================
@app.on_event("startup")
async def startup_db_client():
    """Initialize PostgreSQL database on startup"""
    logger.info("Starting Material Delivery Tracker...")
    await init_postgres_db()
    logger.info("PostgreSQL database initialized successfully")

@app.on_event("shutdown")
async def shutdown_db_client():
    """Close database connections on shutdown"""
    logger.info("Shutting down...")
    await close_postgres_db()
    logger.info("Database connections closed")
