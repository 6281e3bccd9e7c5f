class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised for missing or malformed input: bad day, bad time, inverted range."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str | None = None, message: str | None = None):
        if message is None:
            message = f"{resource_type} with id {resource_id} not found"
        super().__init__(message, status_code=404, details={"resource": resource_type})

class SlotConflictError(AppError):
    """Raised when an allocation would overlap an existing one.

    ``report`` is the full conflict report so callers can show which
    dimension (room, teacher or section) collided.
    """
    def __init__(self, report: dict, message: str = "Timetable conflict detected"):
        self.report = report
        super().__init__(message, status_code=409, details={"conflicts": report})

class InternalError(AppError):
    """Raised when the store fails in a way the caller cannot correct."""
    def __init__(self, message: str = "Internal error while updating the timetable"):
        super().__init__(message, status_code=500)
