from __future__ import annotations

from typing import Any, Sequence

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def add_method_fallback(router: APIRouter, path: str, allowed: Sequence[str]) -> None:
    """
    Answer every other method on `path` with 405 and an Allow header listing
    all supported methods (not just those of the first matching route).
    """
    allowed = [m.upper() for m in allowed]
    others = [m for m in HTTP_METHODS if m not in allowed]

    async def method_not_allowed(request: Request) -> JSONResponse:
        return JSONResponse(
            {"error": "method_not_allowed", "message": f"Method {request.method} Not Allowed"},
            status_code=405,
            headers={"Allow": ", ".join(allowed)},
        )

    router.add_api_route(path, method_not_allowed, methods=others, include_in_schema=False)


def saved(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": True, "message": message, **extra}
