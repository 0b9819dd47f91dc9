# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from admin.routes import router as admin_router
from auth.routes import router as auth_router
from config import settings
from content.routes import router as content_router
from database import init_db
from errors import ServiceError
from feed.routes import router as feed_router
from friends.routes import router as friends_router
from messaging.routes import router as messaging_router
from responses import envelope

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create missing tables on startup."""
    init_db()
    yield

app = FastAPI(
    title="Storygrid Backend",
    description="API for stories, friends, feeds and messaging",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(content_router, prefix=settings.API_PREFIX)
app.include_router(friends_router, prefix=settings.API_PREFIX)
app.include_router(messaging_router, prefix=settings.API_PREFIX)
app.include_router(feed_router, prefix=settings.API_PREFIX)
app.include_router(admin_router, prefix=settings.API_PREFIX)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return envelope(exc.message, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = envelope(str(exc.detail), status_code=exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        msg = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        msg = "Invalid request"
    return envelope(msg, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Custom 500 handler"""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    detail = str(exc) if settings.DEBUG else "Internal Server Error"
    return envelope(detail, status_code=500)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to Storygrid Backend!"}
