"""
Custom exceptions for the Medicine Cabinet API.
Provides specific error types for different failure scenarios.
"""
from typing import List, Optional


class MedicineCabinetException(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationException(MedicineCabinetException):
    """
    Raised when caller input fails validation.

    Carries the offending field and, when several fields failed at once,
    the full list of field errors.
    """
    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.field = field
        if errors is not None:
            self.errors = errors
        elif field is not None:
            self.errors = [{"field": field, "message": message}]
        else:
            self.errors = []


class InvalidSortFieldException(ValidationException):
    """Raised when a sort field is not in the whitelist."""
    def __init__(self, sort_field: str):
        super().__init__(f"Unknown sort field: {sort_field}", field="sort")
        self.sort_field = sort_field


class InvalidSortDirectionException(ValidationException):
    """Raised when a sort direction is neither ASC nor DESC."""
    def __init__(self, direction: str):
        super().__init__(f"Invalid sort direction: {direction}. Allowed: ASC, DESC", field="sort")
        self.direction = direction


class InvalidDrugFormException(ValidationException):
    """Raised when a drug form does not match any known form."""
    def __init__(self, form: str, allowed: List[str]):
        super().__init__(f"Invalid drug form: {form}. Allowed: {', '.join(allowed)}", field="form")
        self.form = form


class PageSizeExceededException(ValidationException):
    """Raised when the requested page size is above the allowed maximum."""
    def __init__(self, size: int, max_size: int):
        super().__init__(f"Maximum page size exceeded. Allowed maximum is {max_size}, got {size}", field="size")
        self.size = size
        self.max_size = max_size


class InvalidDateRangeException(ValidationException):
    """Raised when an expiration year/month filter or value is invalid."""
    pass


class DrugNotFoundException(MedicineCabinetException):
    """Raised when a drug is not found for the requesting owner."""
    pass


class UserNotFoundException(MedicineCabinetException):
    """Raised when a user account does not exist."""
    pass


class UserAlreadyExistsException(MedicineCabinetException):
    """Raised when registering a username that is already taken."""
    pass


class InvalidCredentialsException(MedicineCabinetException):
    """Raised when a password confirmation does not match."""
    pass


class NotificationException(MedicineCabinetException):
    """Raised when an alert notification cannot be delivered."""
    pass


class RepositoryException(MedicineCabinetException):
    """Raised when a storage operation fails."""
    pass
