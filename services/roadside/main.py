"""
Roadside FastAPI service -- travel routes and recommended stops with proximity search.

Entrypoint: uvicorn services.roadside.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from services.roadside.config import settings
from services.roadside.db.pool import create_pool
from services.roadside.middleware.cors import setup_cors
from services.roadside.middleware.sentry import setup_sentry
from services.roadside.routers import health, routes, stops
from services.roadside.stores.errors import ConstraintViolation, InvalidGeometry, StoreFault
from services.roadside.stores.factory import build_stores

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    setup_sentry()

    # One pool and one pair of stores for the life of the process
    db_pool = None
    if settings.store_backend == "postgis":
        try:
            db_pool = await create_pool(settings)
        except Exception:
            logger.exception("DB pool failed to connect")
            raise

    app.state.settings = settings
    app.state.db = db_pool
    app.state.stores = build_stores(settings, db_pool)

    yield

    if db_pool:
        await db_pool.close()


app = FastAPI(
    title="Roadside API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# -- Middleware (order matters: last added = outermost in Starlette) --

# Routers first (innermost)
app.include_router(health.router)
app.include_router(routes.router)
app.include_router(stops.router)

# CORS (needs to be outermost to handle preflight)
setup_cors(app)


# Request ID injection
@app.middleware("http")
async def request_envelope_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# -- Exception Handlers --

def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message},
            "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
        },
    )


@app.exception_handler(InvalidGeometry)
async def invalid_geometry_handler(request: Request, exc: InvalidGeometry) -> JSONResponse:
    return _error(request, 422, "INVALID_GEOMETRY", str(exc))


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation) -> JSONResponse:
    return _error(request, 409, "CONFLICT", str(exc))


@app.exception_handler(StoreFault)
async def store_fault_handler(request: Request, exc: StoreFault) -> JSONResponse:
    logger.error("Store fault surfaced to client: %s", exc)
    return _error(request, 503, "STORE_UNAVAILABLE", "The data store is temporarily unavailable.")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return _error(request, 422, "VALIDATION_ERROR", message or "Validation error.")


@app.exception_handler(404)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    detail = getattr(exc, "detail", None)
    message = detail if isinstance(detail, str) and detail != "Not Found" else "Resource not found."
    return _error(request, 404, "NOT_FOUND", message)


@app.exception_handler(422)
async def validation_error_handler(request: Request, exc) -> JSONResponse:
    return _error(
        request,
        422,
        "VALIDATION_ERROR",
        str(exc.detail) if hasattr(exc, "detail") else "Validation error.",
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    return _error(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")
