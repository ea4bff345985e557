from datetime import datetime, UTC
from fastapi.responses import JSONResponse
from ..models.responses import ErrorResponse


def error_response(status_code: int, error: str, details: str | None = None, debug: dict | None = None, headers: dict | None = None) -> JSONResponse:
    """JSON error body shared by every endpoint: {error, details[, timestamp, debug]}."""
    body = ErrorResponse(
        error=error,
        details=details,
        timestamp=datetime.now(UTC).isoformat() if status_code >= 500 else None,
        debug=debug,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )
