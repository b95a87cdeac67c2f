from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import uvicorn
import os
from dotenv import load_dotenv

# Load environment variables before importing settings
load_dotenv()
from mentara.core.config import settings
from mentara.core.db import kv_store
from mentara.core.exceptions import failure
from mentara.api.router import api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# routes answering errors as {success: false, error}
FAILURE_ENVELOPE_PREFIXES = (
    "/admin/users",
    "/admin/audit-logs",
    "/admin/login",
    "/counselor/login",
    "/auth/verify-password-token",
    "/auth/set-password-with-token",
    "/auth/change-temp-password",
    "/profile",
    "/sessions",
    "/notifications",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await kv_store.connect()
    yield
    await kv_store.close()


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend for Mentara: AI chat, counselor sessions, content catalogs and admin password management.",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Include API routes
app.include_router(api_router)


# Health check endpoints
@app.get("/", tags=["Health Check"])
async def root():
    return {
        "message": "Mentara API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "status": "healthy",
    }


@app.get("/health", tags=["Health Check"])
async def health():
    return {"status": "ok"}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", [])[1:])
    message = first.get("msg", "Invalid request")
    error = f"{field}: {message}" if field else message
    if request.url.path.startswith(FAILURE_ENVELOPE_PREFIXES):
        return failure(400, error)
    return JSONResponse(status_code=400, content={"error": error})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "error": str(exc) if settings.ENVIRONMENT == "development" else "An error occurred"
        }
    )

if __name__ == "__main__":
    uvicorn.run(
        "mentara.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
