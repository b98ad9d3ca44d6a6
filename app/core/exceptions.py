# app/core/exceptions.py

from fastapi import HTTPException, status


class WorkforceError(HTTPException):
    def __init__(self, detail="An error occurred", status_code=status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class ValidationFailed(WorkforceError):
    def __init__(self, detail="Invalid input"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class AuthenticationError(WorkforceError):
    def __init__(self, detail="Authentication failed"):
        super().__init__(detail=detail, status_code=status.HTTP_401_UNAUTHORIZED)


class PermissionDenied(WorkforceError):
    def __init__(self, detail="Insufficient permissions"):
        super().__init__(detail=detail, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(WorkforceError):
    def __init__(self, detail="Resource not found"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(WorkforceError):
    def __init__(self, detail="Resource already exists"):
        super().__init__(detail=detail, status_code=status.HTTP_409_CONFLICT)


class InternalError(WorkforceError):
    def __init__(self, detail="Internal server error"):
        super().__init__(detail=detail, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class InvalidInviteToken(WorkforceError):
    """
    Token-state failure. Callers always see the same message; `reason`
    (not_found / already_used / expired) is for logs only.
    """

    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"

    def __init__(self, reason: str):
        super().__init__(
            detail="Invalid or expired invitation",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        self.reason = reason


class RateLimited(WorkforceError):
    def __init__(self, detail="Too many requests, please try again later"):
        super().__init__(detail=detail, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
