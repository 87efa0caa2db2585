from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers

from civicrag.api.routes import router
from civicrag.api.services import Services
from civicrag.errors import CivicRagError

_logger = structlog.get_logger()

_BODY_HEADERS = {"content-length", "content-type"}


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORS handling whose preflight answers carry the headers but no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        answered = super().preflight_response(request_headers)
        headers = {k: v for k, v in answered.headers.items() if k not in _BODY_HEADERS}
        return Response(status_code=answered.status_code, headers=headers)


def _civicrag_error_handler(request: Request, exc: CivicRagError) -> JSONResponse:
    if exc.status_code >= 500:
        _logger.error(
            "request_failed", path=request.url.path, error=exc.message, kind=type(exc).__name__
        )
    else:
        _logger.info("request_rejected", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = [".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in errors]
    message = f"Invalid request: {', '.join(f for f in fields if f) or 'body'}"
    _logger.info("request_rejected", path=request.url.path, error=message)
    return JSONResponse(status_code=400, content={"error": message})


def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _logger.exception("request_crashed", path=request.url.path, kind=type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


def create_app(services: Services) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        _logger.info("api_starting")
        yield
        services.close()
        _logger.info("api_stopped")

    app = FastAPI(title="civicrag", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        EmptyPreflightCORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CivicRagError, _civicrag_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unexpected_error_handler)
    app.include_router(router)
    return app
