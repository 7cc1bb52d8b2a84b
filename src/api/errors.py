"""Domain error kinds raised by the request handlers.

``main`` registers a single exception handler that turns any of these into the
error envelope, so handlers never build error responses themselves.
"""


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(ApiError):
    status_code = 400


class UnauthorizedError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class UpstreamError(ApiError):
    """The media store rejected or failed an upload/delete."""
    status_code = 500


def first_error_message(errors: list) -> str:
    """Human readable text for the first pydantic error in ``errors``."""
    if not errors:
        return "Invalid request"
    error = errors[0]
    message = str(error.get("msg", "Invalid request")).removeprefix("Value error, ")
    field = next((str(part) for part in reversed(error.get("loc", ())) if isinstance(part, str)), None)
    if field and field not in ("body", "query", "path") and error.get("type") == "missing":
        return f"{field} is required"
    return message
