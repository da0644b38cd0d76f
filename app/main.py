from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from .core.config import settings
from .api.v1 import api_router
from app.core.database import engine
from app.core.exceptions import StorefrontError
from app.core.logging_config import setup_logging, get_logger
from app.core.middleware import RequestIDMiddleware

# Setup logging
setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Storefront Back Office API",
    description="Inventory analytics, purchasing and receiving for storefront operators",
    version="1.0.0"
)

# Request ID middleware (add first for request tracking)
if settings.LOG_REQUEST_ID:
    app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": "Validation error",
            "message": "; ".join(f"{d['field']}: {d['message']}" for d in details),
            "details": details,
        },
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {"message": "Storefront Back Office API", "version": "1.0.0"}

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}

@app.get("/health/detailed")
def health_detailed():
    """Health check including database connectivity"""
    health_info = {
        "status": "healthy",
        "service": "Storefront Back Office API",
        "version": "1.0.0"
    }
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        health_info["database"] = "connected"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        health_info["database"] = "unavailable"
        health_info["status"] = "degraded"
    return health_info
