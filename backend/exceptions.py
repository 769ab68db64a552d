"""
exception types shared by the vitals tracker services and repositories.
"""


class VitalsTrackerError(Exception):
    """base exception for the vitals tracker."""
    pass


class ValidationError(VitalsTrackerError):
    """raised when a submitted reading is malformed or carries no vitals."""
    pass


class StorageError(VitalsTrackerError):
    """raised when the reading store fails to read or write."""
    pass
