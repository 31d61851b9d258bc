import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_scheduler.api.routes import appointments, auth, availability, calendar, slots
from clinic_scheduler.core.config import _ENV_FILE, settings
from clinic_scheduler.core.errors import BackendError, InvalidArgument

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info("Clinic backend: %s (timeout %.1fs)", settings.backend_url, settings.backend_timeout_seconds)
    logger.info(
        "Slots: %d-minute grid, %d-minute default duration, %d-day fully-booked horizon",
        settings.slot_step_minutes,
        settings.default_duration_minutes,
        settings.fully_booked_horizon_days,
    )
    yield


app = FastAPI(
    title="Clinic Scheduler API",
    description="Availability, conflict detection and booking for the clinic calendar",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(slots.router, prefix="/api/v1")
app.include_router(calendar.router, prefix="/api/v1")
app.include_router(availability.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")


def _error_response(request: Request, status_code: int, detail) -> JSONResponse:
    """JSON error body carrying CORS headers, so the browser shows the real error instead of a CORS failure."""
    allowed = settings.cors_origins_list
    origin = request.headers.get("origin")
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if allowed:
        headers["Access-Control-Allow-Origin"] = origin if origin in allowed else allowed[0]
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    return _error_response(request, 400, str(exc))


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    logger.error("Clinic backend error on %s: %s", request.url.path, exc)
    return _error_response(request, 502, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return _error_response(request, exc.status_code, exc.detail)
    logger.exception("Unhandled exception on %s", request.url.path)
    return _error_response(request, 500, f"{type(exc).__name__}: {exc}")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
