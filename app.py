from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

from errors import ClubSiteError

logger = logging.getLogger(__name__)


async def club_site_error_handler(request: Request, exc: ClubSiteError) -> JSONResponse:
    # Internal detail (provider status/body, keys) goes to the log only.
    if exc.status_code >= 500:
        logger.error("%s %s -> %s %s: %s", request.method, request.url.path, exc.status_code, exc.code, exc)
    else:
        logger.info("%s %s -> %s %s: %s", request.method, request.url.path, exc.status_code, exc.code, exc)
    return JSONResponse(exc.to_response_body(), status_code=exc.status_code)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        if loc and loc not in fields:
            fields.append(loc)
    body = {"error": "validation_error", "message": "Invalid request body: expected a JSON object"}
    if fields:
        body["fields"] = fields
    return JSONResponse(body, status_code=400)


def create_app() -> FastAPI:
    load_dotenv("local.env")

    from endpoints.contact_endpoints import router as contact_router
    from endpoints.dependencies import get_app_settings
    from endpoints.diagnostics_endpoints import router as diagnostics_router
    from endpoints.document_endpoints import router as document_router

    settings = get_app_settings()

    app = FastAPI(title=f"{settings.club_name} site API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug_log_requests:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            logger.info(
                "REQUEST %s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response

    app.add_exception_handler(ClubSiteError, club_site_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(document_router)
    app.include_router(contact_router)
    app.include_router(diagnostics_router)

    return app


app = create_app()
