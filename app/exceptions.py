class BlogError(Exception):
    """Base error for the blog core; carries the HTTP status it maps to."""

    def __init__(self, message: str, code: int = 500, payload: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload

    def to_dict(self) -> dict:
        rv = dict(self.payload or ())
        rv["message"] = self.message
        rv["code"] = self.code
        rv["success"] = False
        return rv


class ValidationError(BlogError):
    """Malformed input, or input rejected by a storage constraint."""

    def __init__(self, message: str = "Invalid data", payload: dict | None = None) -> None:
        super().__init__(message, code=422, payload=payload)


class ForbiddenError(BlogError):
    def __init__(self, message: str = "Admin role required", payload: dict | None = None) -> None:
        super().__init__(message, code=403, payload=payload)


class NotFoundError(BlogError):
    def __init__(self, message: str = "Not found", payload: dict | None = None) -> None:
        super().__init__(message, code=404, payload=payload)


class StorageUnavailableError(BlogError):
    def __init__(self, message: str = "Database not available", payload: dict | None = None) -> None:
        super().__init__(message, code=500, payload=payload)
