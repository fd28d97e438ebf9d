"""
Survey Studio API - Main Application

- Conditional API docs (disabled in production by default)
- Request IDs on every log line and error body
- problem+json error responses
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.api.v2.router import api_router
from app.config import settings
from app.database import init_db
from app.exceptions import SurveyAppException, create_exception_handlers
from app.middleware import RequestIdMiddleware, RequestIdLogFilter
from app.services.ai_gateway import ai_gateway
# Import models to register them with SQLAlchemy metadata before init_db()
from app.models import Survey, SurveyResponse  # noqa: F401

VERSION = "1.0.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(RequestIdLogFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Survey Studio API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    # Don't log the full database URL, it may carry credentials
    if settings.DATABASE_URL:
        logger.info(f"Database URL prefix: {settings.DATABASE_URL[:30]}...")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set - generation and synthesis will fail")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - survey storage will not work")
    yield
    # Shutdown
    logger.info("Shutting down Survey Studio API...")
    await ai_gateway.close()


docs_url = "/docs" if settings.docs_enabled else None
redoc_url = "/redoc" if settings.docs_enabled else None

app = FastAPI(
    title="Survey Studio API",
    description="Generate surveys from prompts or text, collect responses and analyse results",
    version=VERSION,
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

# CORS: the configured frontend plus local dev servers
allowed_origins = [settings.FRONTEND_URL]
for origin in (
    "http://localhost:3000",  # Next.js dev server
    "http://localhost:5173",  # Vite dev server
):
    if origin not in allowed_origins:
        allowed_origins.append(origin)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIdMiddleware)

handlers = create_exception_handlers(allowed_origins)
app.add_exception_handler(SurveyAppException, handlers["survey"])
app.add_exception_handler(StarletteHTTPException, handlers["http"])
app.add_exception_handler(RequestValidationError, handlers["validation"])
app.add_exception_handler(SQLAlchemyError, handlers["database"])
app.add_exception_handler(Exception, handlers["generic"])

# Include routers
app.include_router(api_router, prefix="/api/v2")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "Survey Studio API",
        "version": VERSION,
        "health": "/health",
    }
    if settings.docs_enabled:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": VERSION,
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=5001,
        reload=settings.DEBUG,
    )
