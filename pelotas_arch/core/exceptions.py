"""Query errors raised by the repository layer and their FastAPI handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class QueryError(Exception):
    """Base class for errors caused by a caller-supplied query."""

    def __init__(self, message: str, status_code: int = 400, code: str = "INVALID_QUERY"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class UnknownFieldError(QueryError):
    def __init__(self, entity: str, path: str):
        self.entity = entity
        self.path = path
        super().__init__(f"Unknown field '{path}' on {entity}", code="UNKNOWN_FIELD")


class InvalidFilterValueError(QueryError):
    def __init__(self, path: str, value: object, expected: str):
        self.path = path
        self.value = value
        super().__init__(
            f"Invalid value {value!r} for field '{path}' (expected {expected})",
            code="INVALID_FILTER_VALUE",
        )


class UnsortableFieldError(QueryError):
    def __init__(self, entity: str, path: str):
        self.entity = entity
        self.path = path
        super().__init__(
            f"Cannot sort {entity} by '{path}': path crosses a collection",
            code="UNSORTABLE_FIELD",
        )


def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the query error handler to a FastAPI app."""

    @app.exception_handler(QueryError)
    async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message),
        )
