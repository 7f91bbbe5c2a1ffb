from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    """Referenced class/schedule/teacher/assignment/semester does not exist (or is out of the caller's scope)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class BadRequestError(ServiceError):
    """Missing required fields or malformed ranges."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    """Business-rule violation such as a duplicate teacher-class assignment."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class ServerError(ServiceError):
    """Unexpected store failure. The message never carries storage detail."""

    def __init__(self, message: str = "Unexpected server error") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
