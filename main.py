from __future__ import annotations
import datetime as dt
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.responses import JSONResponse
from contextlib import asynccontextmanager

from api_router import router
from schemas import ErrorResponse, ErrorEnvelope, ErrorDetail
from settings import (
    APP_NAME, APP_VERSION, CORS_ALLOW_ORIGINS, TRUSTED_HOSTS, GZIP_MIN_SIZE, REQUEST_LOGGING,
    EPHE_PATH, LOG_LEVEL,
)
from middleware import RequestIDMiddleware, LoggingMiddleware
from kundali_core.ephemeris import configure_ephemeris_path
from kundali_core.errors import (
    GenerationFailed,
    IncompleteBirthDetails,
    KundaliError,
    UnsupportedDivision,
)
from utils.logging_utils import configure_logging

configure_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

CHART_FAILED_MESSAGE = "Could not generate chart, please verify birth details."


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup tasks
    configure_ephemeris_path(EPHE_PATH)
    logger.info("startup", extra={"app": APP_NAME, "version": APP_VERSION, "ephe_path": EPHE_PATH or "-"})
    yield
    # Shutdown tasks
    logger.info("shutdown")


app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description="Vedic birth chart (Kundali) generation: planets, houses, lagna, yogas, Vimshottari dasha and divisional charts.",
    lifespan=lifespan,
)

# --- Middleware ---
app.add_middleware(RequestIDMiddleware)
app.add_middleware(LoggingMiddleware, mode=REQUEST_LOGGING)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=GZIP_MIN_SIZE)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=TRUSTED_HOSTS or ["*"])


# --- Exception handlers -> uniform envelope ---


def _envelope(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    err = ErrorEnvelope(code=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=err).model_dump())


@app.exception_handler(StarletteHTTPException)
async def on_http_exception(request: Request, exc: StarletteHTTPException):
    status_code = int(getattr(exc, "status_code", 500))
    detail = getattr(exc, "detail", None)
    message = detail if isinstance(detail, str) and detail else str(exc)

    if status_code == status.HTTP_400_BAD_REQUEST:
        code = "BAD_REQUEST"
    elif status_code == status.HTTP_401_UNAUTHORIZED:
        code = "UNAUTHORIZED"
    elif status_code == status.HTTP_403_FORBIDDEN:
        code = "FORBIDDEN"
    elif status_code == status.HTTP_404_NOT_FOUND:
        code = "NOT_FOUND"
    elif status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code = "METHOD_NOT_ALLOWED"
    else:
        code = f"HTTP_{status_code}"

    return _envelope(status_code, code, message)


@app.exception_handler(RequestValidationError)
async def on_validation_error(request: Request, exc: RequestValidationError):
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "UNPROCESSABLE_ENTITY",
        "Validation error",
        details=[ErrorDetail(issue=str(exc))],
    )


@app.exception_handler(UnsupportedDivision)
async def on_unsupported_division(request: Request, exc: UnsupportedDivision):
    return _envelope(
        status.HTTP_404_NOT_FOUND,
        "UNSUPPORTED_DIVISION",
        str(exc),
        details=[ErrorDetail(field="code", issue=exc.code)],
    )


@app.exception_handler(KundaliError)
async def on_kundali_error(request: Request, exc: KundaliError):
    if exc.user_correctable:
        cause = exc.cause if isinstance(exc, GenerationFailed) else exc
        field = cause.field if isinstance(cause, IncompleteBirthDetails) else None
        details = [ErrorDetail(field=field, issue=str(cause))]
        if isinstance(exc, GenerationFailed):
            details.append(ErrorDetail(field="stage", issue=exc.stage))
        return _envelope(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "CHART_GENERATION_FAILED",
            CHART_FAILED_MESSAGE,
            details=details,
        )
    # Internal normalization failure: logged in full, nothing internal in the body
    logger.error(
        "kundali.internal_error",
        extra={"rid": getattr(request.state, "request_id", "-"), "error": repr(exc)},
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "SERVER_ERROR",
        "Could not generate chart due to an internal error.",
    )


@app.exception_handler(Exception)
async def on_any_error(request: Request, exc: Exception):
    logger.exception("unhandled_error", extra={"rid": getattr(request.state, "request_id", "-")})
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "SERVER_ERROR", "Internal server error.")

@app.get("/")
async def landing():
    return {"Welcome to Kundali Engine": True, "ts": dt.datetime.now(dt.timezone.utc).isoformat()}

# --- Liveness/Readiness ---
@app.get("/healthz")
async def healthz():
    return {"Kundali Engine is OK": True, "ts": dt.datetime.now(dt.timezone.utc).isoformat()}


@app.get("/readyz")
async def readyz():
    return {"ready": True}


# --- Routes ---
app.include_router(router)


# Optional: dev run
if __name__ == "__main__":
    try:
        import uvicorn  # type: ignore
    except ImportError:
        raise SystemExit("Uvicorn is required. Install dependencies first.")
    uvicorn.run("main:app", host="127.0.0.1", port=8787, reload=True)
