import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import init_database
from .config import settings
from .database import get_db_session
from .errors import ApiError
from .routes import api_router

# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
ENDPOINTS = {
    "auth": "/api/auth",
    "users": "/api/users",
    "superadmin": "/api/superadmin",
    "messages": "/api/messages",
    "analytics": "/api/analytics",
    "students": "/api/students",
    "classes": "/api/classes",
    "teachers": "/api/teachers",
    "enrollments": "/api/enrollments",
    "schools": "/api/schools",
    "branches": "/api/branches",
    "lesson_plans": "/api/lesson-plans",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.uses_default_secret:
        logger.warning("JWT_SECRET is not set; using the default development secret")
    try:
        logger.info("Initializing Database...")
        init_database()
        logger.info("Database Initialized.")
    except Exception as e:
        logger.error(f"Startup DB Error: {e}")
    yield
    logger.info("Shutting down...")


app = FastAPI(title="Class Management System API", version=API_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"error": "Not Found", "path": request.url.path, "message": "Route not found"},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


app.include_router(api_router)


@app.get("/")
def index():
    return {"message": "Class Management System API", "version": API_VERSION, "endpoints": ENDPOINTS}


@app.get("/api/health")
def health_check(db: Session = Depends(get_db_session)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database error: {e}")
        db_status = "unavailable"
    return {
        "status": "ok",
        "database": db_status,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
