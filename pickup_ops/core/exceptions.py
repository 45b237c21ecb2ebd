"""
Pickup Ops Exceptions

Custom exception classes for booking, status and provider error handling.
"""

from typing import Optional


class PickupOpsError(Exception):
    """Base exception for pickup portal errors"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(PickupOpsError):
    """Local pre-flight check failed; nothing was sent to the store"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="validation")
        self.field = field


class Forbidden(PickupOpsError):
    """Requester may not perform this action on the record"""

    def __init__(self, message: str):
        super().__init__(message, code="forbidden")


class InvalidTransition(PickupOpsError):
    """Requested status does not immediately follow the current one"""

    def __init__(self, current: Optional[str], requested: Optional[str]):
        super().__init__(
            f"Cannot move pickup from '{current}' to '{requested}'",
            code="invalid-transition",
        )
        self.current = current
        self.requested = requested


class RecordNotFound(PickupOpsError):
    """Exception for missing store documents"""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found", code="not-found")
        self.collection = collection
        self.doc_id = doc_id


class StoreWriteError(PickupOpsError):
    """Exception for failed create/update/delete calls against the store"""
    pass


class ProfileLoadError(PickupOpsError):
    """Exception for profile documents that could not be fetched"""
    pass


class GeocodeError(PickupOpsError):
    """Exception for map pins that could not be resolved to an address"""
    pass


class AuthError(PickupOpsError):
    """Exception for auth provider failures, carrying the user-facing message"""

    def __init__(self, code: Optional[str], user_message: str):
        super().__init__(user_message, code=code)
        self.user_message = user_message


class ConfigurationError(PickupOpsError):
    """Exception for missing or invalid configuration"""
    pass
