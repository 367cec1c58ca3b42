import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Models must be imported before create_all so their tables are registered
from . import (
    models,  # noqa: F401
    models_google_calendar,  # noqa: F401
    models_invoice,  # noqa: F401
)
from .config import FRONTEND_URL
from .database import Base, engine
from .domain.calendar_sync.router import router as calendar_sync_router
from .domain.clients.router import router as clients_router
from .domain.dashboard.router import router as dashboard_router
from .domain.expenses.router import router as expenses_router
from .domain.invoices.router import router as invoices_router
from .domain.jobs.router import router as jobs_router
from .domain.quotes.router import router as quotes_router
from .routes.google_calendar import router as google_calendar_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Token refreshes and event calls would otherwise log every request line
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

NOT_AUTHENTICATED = "Not authenticated. Please provide a valid Bearer token in the Authorization header."


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Back office API starting")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Database schema ready")
    except Exception as e:
        # Several workers may race on the first start
        message = str(e)
        if "already exists" in message or "duplicate key" in message:
            logger.info("ℹ️ Tables were created by another worker")
        else:
            logger.error(f"❌ Could not create database tables: {e}")
    yield
    logger.info("👋 Back office API stopped")


app = FastAPI(title="Roferlim Back Office API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 for invalid input; a malformed Authorization header is reported as 401"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"⚠️ Rejected {request.url.path}: missing or invalid Authorization header")
        return JSONResponse(status_code=401, content={"detail": NOT_AUTHENTICATED})

    logger.warning(f"⚠️ Invalid input for {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": "Validation error", "errors": jsonable_encoder(errors)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} raised {type(e).__name__}: {e}")
        raise
    if response.status_code >= 500:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.error(f"❌ {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")
    if origin.strip()
]
logger.info(f"ℹ️ CORS origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

for router in (
    clients_router,
    quotes_router,
    invoices_router,
    jobs_router,
    calendar_sync_router,
    expenses_router,
    dashboard_router,
    google_calendar_router,
):
    app.include_router(router)


@app.get("/")
def root():
    return {"message": "Roferlim Back Office API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
