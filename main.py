"""
Slidesmith - AI Slide Deck Generator API
Main entry point for the FastAPI application.

Endpoints:
- POST /api/generate: topic + backend + optional document -> Deck JSON
- GET  /api/image: rate-limited stock image search for a slide's image query
- GET  /api/images/{folder}/{filename}: serves images extracted from documents
- GET  /api/health, /health, /version, /
"""

import datetime
import pathlib
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

# Load environment variables
load_dotenv()

# Configure Logfire early in startup
from src.utils.logfire_config import configure_logfire, instrument_app
configure_logfire()

from config.settings import Settings, get_settings
from src.core.deck_generator import DeckGenerator
from src.core.errors import RateLimitedError, SlidesmithError
from src.models.api import ErrorResponse, ImageSearchResult
from src.services.backend_registry import BackendType
from src.services.image_search import ImageSearchService
from src.storage.image_store import ImageStore
from src.storage.uploads import temporary_upload
from src.utils.error_classifier import classify_error
from src.utils.logger import setup_logger

SERVICE_NAME = "slidesmith"
SERVICE_VERSION = "1.0.0"

# Initialize
logger = setup_logger(__name__)
settings = get_settings()

# Process-wide instances (the image search gate must be shared by all requests)
_generator_instance = None
_image_search_instance = None


def get_app_settings() -> Settings:
    return settings


def get_generator() -> DeckGenerator:
    """Get or create the global deck generator."""
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = DeckGenerator.from_settings(settings)
        logger.info("DeckGenerator initialized")
    return _generator_instance


def get_image_search_service() -> ImageSearchService:
    """Get or create the global image search service."""
    global _image_search_instance
    if _image_search_instance is None:
        _image_search_instance = ImageSearchService.from_settings(settings)
    return _image_search_instance


def get_image_store() -> ImageStore:
    return get_generator().image_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info(f"Starting Slidesmith API ({settings.APP_ENV})...")

    try:
        settings.validate_settings()
        logger.info("Backend configuration validated")
    except ValueError as e:
        logger.error(f"FATAL: {str(e)}")
        raise RuntimeError("Cannot start with inconsistent backend configuration. See logs for details.")

    pathlib.Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    pathlib.Path(settings.TEMP_IMAGE_DIR).mkdir(parents=True, exist_ok=True)

    logger.info(f"Hosted backend: {'configured' if settings.has_hosted_credentials else 'not configured'}")
    logger.info(f"Local backend: {settings.LOCAL_MODEL_URL}")
    logger.info(f"Image search: {'configured' if settings.has_image_search else 'not configured'}")

    yield
    logger.info("Shutting down Slidesmith API...")

app = FastAPI(
    title="Slidesmith API",
    version=SERVICE_VERSION,
    description="Generates slide decks from a topic and an optional source document",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

instrument_app(app)


def error_response(exc: BaseException) -> JSONResponse:
    """Build the JSON error response for any exception."""
    status, message, details = classify_error(exc, debug=settings.DEBUG)
    body = ErrorResponse(error=message, details=details)
    headers = None

    if isinstance(exc, RateLimitedError):
        body.retry_after = exc.retry_after_seconds
        headers = {"Retry-After": str(exc.retry_after_seconds)}

    return JSONResponse(status_code=status, content=body.to_body(), headers=headers)


@app.exception_handler(SlidesmithError)
async def slidesmith_error_handler(request: Request, exc: SlidesmithError):
    logger.warning(
        f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}",
        extra={"status_code": exc.status_code}
    )
    return error_response(exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(exc)


@app.post("/api/generate")
async def generate_slides(
    topic: str = Form(""),
    ai_model: str = Form("Gemini", alias="aiModel"),
    file: Optional[UploadFile] = File(None),
    generator: DeckGenerator = Depends(get_generator),
    app_settings: Settings = Depends(get_app_settings)
):
    """
    Generate a deck.

    Multipart fields: ``topic``, ``aiModel`` (Gemini or LMStudio) and an
    optional ``file`` (.pdf, .docx or .txt, at most MAX_UPLOAD_BYTES).
    """
    logger.info(f"Generation request: topic='{topic[:80]}', backend={ai_model}, file={bool(file and file.filename)}")

    # Fail fast on topic and backend before touching the upload
    generator.preflight(topic, ai_model)

    if file is None or not file.filename:
        deck = await generator.generate(topic, ai_model)
        return deck.to_response()

    async with temporary_upload(
        file,
        upload_dir=app_settings.UPLOAD_DIR,
        max_bytes=app_settings.MAX_UPLOAD_BYTES,
        allowed=app_settings.ALLOWED_UPLOAD_EXTENSIONS
    ) as path:
        deck = await generator.generate(topic, ai_model, document_path=path)
    return deck.to_response()


@app.get("/api/image", response_model=ImageSearchResult, response_model_by_alias=True, response_model_exclude_none=True)
async def search_image(
    q: Optional[str] = Query(None),
    service: ImageSearchService = Depends(get_image_search_service)
):
    """Find a stock photo for a slide's image query."""
    return await service.search(q)


@app.get("/api/images/{folder}/{filename}")
async def serve_image(
    folder: str,
    filename: str,
    store: ImageStore = Depends(get_image_store)
):
    """Serve an image persisted from an uploaded document."""
    return FileResponse(store.resolve(folder, filename))


@app.get("/api/health")
@app.get("/health")
async def health_check(
    generator: DeckGenerator = Depends(get_generator),
    image_search: ImageSearchService = Depends(get_image_search_service),
    app_settings: Settings = Depends(get_app_settings)
):
    """Report which services are configured. Makes no backend calls."""
    hosted = await generator.registry.adapters[BackendType.HOSTED].health_check()

    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "environment": app_settings.APP_ENV,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "services": {
            "server": "running",
            "hosted": "configured" if hosted["configured"] else "not configured",
            "local": app_settings.LOCAL_MODEL_URL,
            "imageSearch": "configured" if image_search.configured else "not configured",
            "uploads": "available" if pathlib.Path(app_settings.UPLOAD_DIR).exists() else "missing"
        }
    }


# Version verification endpoint
@app.get("/version")
async def version_check():
    """Return deployed code version information."""
    # VERSION holds "key: value" lines written at deploy time
    version_file = pathlib.Path(__file__).parent / "VERSION"
    version_info = {}

    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if ':' in line:
                key, value = line.split(':', 1)
                version_info[key.strip()] = value.strip()

    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "commit": version_info.get("commit", "unknown"),
        "deployed_status": version_info.get("deployed", "unknown"),
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "environment": settings.APP_ENV,
        "version_file_found": version_file.exists()
    }


# API info endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Slidesmith API",
        "description": "AI-powered slide deck generation from a topic and an optional document",
        "version": SERVICE_VERSION,
        "backends": ["Gemini", "LMStudio"],
        "endpoints": {
            "generate": "POST /api/generate (multipart: topic, aiModel, file)",
            "image": "/api/image?q={query}",
            "images": "/api/images/{folder}/{filename}",
            "health": "/api/health",
            "version": "/version"
        }
    }


if __name__ == "__main__":
    log_level = "debug" if settings.DEBUG else "info"

    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=log_level,
        reload=settings.DEBUG
    )
