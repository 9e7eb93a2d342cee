"""FastAPI application entry point for the URL shortener service.

Application Lifecycle Diagram
===========================
::
    ┌──────────────┐
    │  uvicorn     │
    │  startup     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan():  │
    │ open logs,   │
    │ init_db(),   │
    │ start click  │
    │ worker       │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Serve HTTP   │
    │ requests     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan():  │
    │ drain clicks,│
    │ close_db(),  │
    │ close logs   │
    └──────────────┘

How to Use
===========
**Step 1 — Run**::
    python -m shorturls.main
    # or
    uvicorn shorturls.main:app --port 4000

**Step 2 — Make API calls**::
    curl -X POST http://localhost:4000/shorturls \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com", "validity": 1}'

    curl -i http://localhost:4000/<code>
    curl http://localhost:4000/shorturls/<code>

Key Behaviours
===============
- CORS admits only the configured frontend origin.
- Core errors map to ``{"error": ...}`` with their own status code.
- Malformed bodies are answered with ``400`` rather than ``422``.
- Prometheus metrics are exposed at ``/metrics``.
"""

__all__ = ["app", "run"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from shorturls.config import get_settings
from shorturls.dependencies import _service_manager
from shorturls.errors import ShortenerError
from shorturls.middleware import AccessLogMiddleware
from shorturls.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await _service_manager.initialize(settings)
    yield
    # Shutdown
    await _service_manager.cleanup()


async def shortener_error_handler(request: Request, exc: ShortenerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request body."})


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="URL shortener with click tracking and statistics",
    lifespan=lifespan,
)

app.add_exception_handler(ShortenerError, shortener_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)

app.add_middleware(AccessLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOW_ORIGIN],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
