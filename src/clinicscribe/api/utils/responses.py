from typing import Any, Optional
from starlette.requests import HTTPConnection
from ..schemas.common import ApiResponse, ErrorResponse

def ok(request: HTTPConnection, data: Any = None, message: str = "") -> ApiResponse[Any]:
    req_id = getattr(request.state, "request_id", None)
    return ApiResponse(success=True, message=message, request_id=req_id or "", data=data)

def fail(request: HTTPConnection, error: str, message: str, details: Optional[dict] = None) -> ErrorResponse:
    req_id = getattr(request.state, "request_id", None)
    return ErrorResponse(error=error, message=message, request_id=req_id or "", details=details or {})
