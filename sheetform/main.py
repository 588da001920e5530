# File: sheetform/main.py
import os
import time
import logging
from typing import Callable
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sheetform.api.deps import get_store
from sheetform.api.v1.api import api_router
from sheetform.core.config import settings
from sheetform.core.errors import InvalidOperationError, NotFoundError
from sheetform.services.submission_store import SubmissionStore

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL))
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# In production, get allowed origins from environment
if settings.is_production:
    frontend_urls = os.getenv("ALLOWED_ORIGINS", "").split(",")
    if frontend_urls and frontend_urls[0]:
        allowed_origins = [url.strip() for url in frontend_urls if url.strip()]

# Cookie auth needs credentials, so origins are listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time", "Content-Disposition"],
    max_age=3600,
)


# Request logging middleware (AFTER CORS)
@app.middleware("http")
async def log_requests(request: Request, call_next: Callable) -> Response:
    """Log all requests with timing"""
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"❌ {request.method} {request.url.path} - "
            f"Error: {str(e)} - "
            f"Time: {process_time:.4f}s"
        )
        logger.exception("Full error traceback:")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "path": request.url.path,
                "method": request.method
            }
        )

    process_time = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.4f}s"
    )
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.on_event("startup")
async def startup_event():
    """Load sheet configurations and submissions once per process"""
    logger.info(f"🚀 Starting {settings.PROJECT_NAME}")
    logger.info(f"🌍 Environment: {settings.ENVIRONMENT}")
    logger.info(f"📁 Workbook: {settings.workbook_path}")
    logger.info(f"📁 Sheet configuration: {settings.sheet_config_path}")
    get_store().ensure_loaded()


# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


# Basic routes
@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "docs_url": "/docs",
        "status": "running",
    }


@app.get("/health")
def health_check(store: SubmissionStore = Depends(get_store)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "workbook": "present" if settings.workbook_path.exists() else "not written yet",
        "sheets": len(store.list_sheets()),
        "timestamp": time.time(),
    }


# Error handlers
@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": exc.message}
    )


@app.exception_handler(InvalidOperationError)
async def invalid_operation_handler(request: Request, exc: InvalidOperationError):
    logger.warning(f"Rejected operation on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": exc.message}
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    """Handle internal server errors"""
    logger.error(f"Internal server error: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Something went wrong on our end",
            "status_code": 500
        }
    )


# For local development
if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    host = "0.0.0.0" if settings.is_production else "127.0.0.1"

    logger.info(f"🚀 Starting server on {host}:{port}")
    uvicorn.run(
        "sheetform.main:app",
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.is_development
    )
