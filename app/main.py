"""
FastAPI application entry point for the member onboarding review service.
"""
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import api_router
from app.core.config import settings
from app.core.exceptions import OnboardingBaseException
from app.utils.logging import get_logger, log_request_response, setup_logging

# Setup structured logging
setup_logging()

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Admin review workflow for member onboarding applications",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    log_request_response(
        method=request.method,
        url=request.url.path,
        status_code=response.status_code,
        duration=time.perf_counter() - started,
    )
    return response


@app.exception_handler(OnboardingBaseException)
async def onboarding_exception_handler(request: Request, exc: OnboardingBaseException):
    """Render service errors in the error envelope."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are reported as 400 with the error envelope."""
    content = {"error": "Invalid request"}
    errors = exc.errors()
    if errors:
        content["message"] = str(errors[0].get("msg", ""))
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    """Catch-all for unanticipated faults; no internal detail is returned."""
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "member-onboarding-review"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
