from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(APIException):
    """A referenced doctor, branch, service or appointment does not exist."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class ValidationError(APIException):
    """Malformed input or a request the schedule cannot accommodate."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class ConflictError(APIException):
    """The requested slot collides with an existing reservation.

    Callers should re-query availability and let the user pick again
    instead of retrying the same write.
    """

    def __init__(self, detail: str = "This time slot is no longer available. Please select another time."):
        super().__init__(status_code=409, detail=detail)


class UpstreamError(APIException):
    """The store failed for a reason unrelated to booking rules."""

    def __init__(self, detail: str = "Upstream storage failure"):
        super().__init__(status_code=502, detail=detail)


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

def create_success_response(data) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
