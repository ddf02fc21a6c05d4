class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class MalformedMutationError(AppError):
    """Raised when an inbound frame cannot be decoded into a mutation."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class UnknownMutationError(AppError):
    """Raised when a frame names a mutation kind outside the protocol."""
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown action type received: {kind}", status_code=400, details={"type": kind})

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class PersistenceError(AppError):
    """Raised when the state document cannot be written."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

class TransportError(AppError):
    """Raised when a client transport cannot deliver a frame."""
    def __init__(self, message: str):
        super().__init__(message, status_code=503)
