"""Error taxonomy shared by every route.

Each error is an ``HTTPException`` so handlers raise them the same way they
would raise a plain HTTP error, and FastAPI renders them as ``{"detail": ...}``.
"""

from fastapi import HTTPException, status


class InvalidInput(HTTPException):
    def __init__(self, detail: str = 'Invalid input.') -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Unauthorized(HTTPException):
    def __init__(self, detail: str = 'Not authorized.') -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={'WWW-Authenticate': 'Bearer'},
        )


class Forbidden(HTTPException):
    def __init__(self, detail: str = 'Forbidden: Access is restricted to administrators.') -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = 'Not found.') -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str = 'Conflict.') -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class Internal(HTTPException):
    def __init__(self, detail: str = 'Internal server error.') -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
