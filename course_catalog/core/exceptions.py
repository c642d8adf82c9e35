"""
Error kinds raised by the catalog services.

Endpoints let these propagate; main.py turns each kind into an HTTP
response. Storage failures are never wrapped in one of these.
"""


class CatalogError(Exception):
    code = "catalog-error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(CatalogError, ValueError):
    """Input is malformed, missing, or collides with existing data"""
    code = "invalid-input"


class NotFoundError(CatalogError, LookupError):
    """An id, slug, or referenced parent does not resolve to a live record"""
    code = "not-found"


class CycleError(ValidationError):
    """Re-parenting would make a category its own ancestor"""
    code = "cycle"
