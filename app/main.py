import logging.config
import traceback
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.router import api_router
from app.config import get_settings
from app.database import MongoDatabase
from app.errors import EventAPIError, UploadRejected
from app.logging_config import configure_logging
from app.middleware import RequestLoggingMiddleware
from app.uploads import UPLOAD_URL_PREFIX, ImageStorage, get_image_storage

# Configure logging
logging.config.dictConfig(configure_logging())
logger = logging.getLogger("app.main")

# Get settings
settings = get_settings()

# Initialize FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    debug=settings.DEBUG,
)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.exception_handler(EventAPIError)
async def event_api_error_handler(request: Request, exc: EventAPIError):
    """Render a known failure with the status its kind maps to."""
    if isinstance(exc, UploadRejected):
        logger.warning(f"Upload rejected on {request.method} {request.url.path}: {exc.kind.value}")
    elif exc.status_code >= 500:
        logger.error(f"{exc.error}: {exc.details.get('detail')}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_internal=not settings.is_production),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unmatched routes get a hint; other HTTP errors keep their detail."""
    # A known path with the wrong method is still an unmatched route
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "message": f"Cannot {request.method} {request.url.path}",
                "hint": "Check the API documentation for valid endpoints",
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last resort: a generic 500, with diagnostics outside production."""
    logger.error(f"Error occurred on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    content = {"error": "Internal Server Error"}
    if not settings.is_production:
        content["message"] = str(exc)
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


@app.on_event("startup")
async def on_startup():
    """Startup tasks for the application."""
    logger.info(f"Starting {settings.PROJECT_NAME}")
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

    database = MongoDatabase.from_settings(settings)
    database.connect()
    app.state.database = database

    logger.info("=" * 50)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Health check: http://localhost:{settings.PORT}/health")
    logger.info(f"API base URL: http://localhost:{settings.PORT}{settings.API_PREFIX}")
    logger.info("=" * 50)


@app.on_event("shutdown")
async def on_shutdown():
    """Shutdown tasks for the application."""
    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    database = getattr(app.state, "database", None)
    if database is not None:
        database.close()


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe."""
    return {
        "status": "OK",
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", tags=["Health"])
async def api_metadata():
    """Describe the API and where its endpoints live."""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "endpoints": {
            "health": "/health",
            "events": f"{settings.API_PREFIX}/events",
        },
    }


@app.get(UPLOAD_URL_PREFIX + "/{filename}", include_in_schema=False)
def serve_upload(filename: str, storage: ImageStorage = Depends(get_image_storage)):
    """Serve a stored image from the same directory uploads are written to."""
    path = storage.path_for(filename)
    if not path.is_file():
        raise StarletteHTTPException(status_code=404)
    return FileResponse(path)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
