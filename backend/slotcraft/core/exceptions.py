class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(AppError):
    """Raised when a prerequisite for generation is missing (no rooms, no time preferences, ...)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ConstraintValidationError(AppError):
    """Raised when a scheduling rule is rejected before submission."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class GenerationError(AppError):
    """Raised when the external generator fails. Never retried locally."""
    def __init__(self, message: str, details: dict = None):
        details = dict(details or {})
        details.setdefault("guidance", "Review the constraints and entity data, then try generating again.")
        super().__init__(message, status_code=502, details=details)


class DataQualityError(AppError):
    """Raised when generated rows cannot be joined back to known entities."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
