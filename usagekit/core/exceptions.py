"""Shared exceptions module."""

from typing import Optional


class UsageKitException(Exception):
    """Base exception for usagekit services."""

    pass


class PermissionException(UsageKitException):
    """Exception raised when a caller does not have the necessary permissions."""

    def __init__(
        self,
        message: Optional[str] = "Caller does not have the right to perform this action",
    ):
        """Create a new PermissionException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class NotFoundException(UsageKitException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class InvalidStateError(UsageKitException):
    """Exception raised when an object is in an invalid state.

    Used when an operation would leave the ledger or a customer outside the
    bounds the configuration allows.
    """

    def __init__(self, message: Optional[str] = "Object is in an invalid state"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class InvalidConfigurationError(UsageKitException):
    """Raised when features or overrides are registered inconsistently."""

    def __init__(self, message: Optional[str] = "Invalid configuration"):
        """Create a new InvalidConfigurationError instance."""
        self.message = message
        super().__init__(self.message)
