"""Map Vied exceptions to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vied.errors import ExecutionError, ModelError, PlanningError, ViedError

_STATUS_CODES: list[tuple[type[ViedError], int]] = [
    (ModelError, 409),
    (PlanningError, 422),
    (ExecutionError, 502),
]


def status_code_for(exc: ViedError) -> int:
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return 500


async def vied_error_handler(request: Request, exc: ViedError) -> JSONResponse:
    """Render a ViedError as ``{"detail": message, "error": class name}``."""
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ViedError, vied_error_handler)
