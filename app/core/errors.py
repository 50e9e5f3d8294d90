import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# User-facing messages (Vietnamese, kept verbatim for frontend parity)
MSG_MISSING_FIELDS = "Thiếu thông tin"
MSG_EMAIL_EXISTS = "Email đã tồn tại"
MSG_BAD_CREDENTIALS = "Email hoặc mật khẩu không đúng"
MSG_NOT_LOGGED_IN = "Chưa đăng nhập"
MSG_CART_EMPTY = "Giỏ hàng trống"
MSG_SESSION_DESTROY_FAILED = "Không thể huỷ session"
MSG_SERVER_ERROR = "Lỗi server"


class BadRequest(HTTPException):
    """Missing or invalid input (400)."""

    def __init__(self, message: str = MSG_MISSING_FIELDS):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class Unauthorized(HTTPException):
    """No session, or bad credentials (401)."""

    def __init__(self, message: str = MSG_NOT_LOGGED_IN):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


class Conflict(HTTPException):
    """Duplicate email on registration (409)."""

    def __init__(self, message: str = MSG_EMAIL_EXISTS):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=message)


class ServerError(HTTPException):
    """I/O or session-layer failure (500)."""

    def __init__(self, message: str = MSG_SERVER_ERROR):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message
        )


def error_envelope(status_code: int, message: str) -> JSONResponse:
    """Build the `{ok: false, message}` body every failure uses."""
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "message": message},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    response = error_envelope(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_envelope(status.HTTP_400_BAD_REQUEST, MSG_MISSING_FIELDS)


async def io_exception_handler(request: Request, exc: OSError) -> JSONResponse:
    # File store failures; the in-memory snapshot is not rolled back
    logger.exception("Store I/O failed on %s %s", request.method, request.url.path)
    err = ServerError()
    return error_envelope(err.status_code, err.detail)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to the JSON envelope:

      - HTTPException (ours and the framework's 404/405) -> its status
      - request validation errors -> 400
      - OSError from the user store -> 500
      - anything else -> logged, 500
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OSError, io_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
