"""Usage domain exceptions."""

from typing import Optional

from usagekit.core.exceptions import (
    InvalidStateError,
    PermissionException,
    UsageKitException,
)


class UnauthorizedError(PermissionException):
    """Raised when a caller is unauthenticated or a feature's authorize predicate refuses."""

    def __init__(self, feature_key: Optional[str] = None, message: Optional[str] = None) -> None:
        """Initialize with the feature that refused, if any."""
        if message is None:
            message = (
                f"Customer unauthorized by feature {feature_key}"
                if feature_key
                else "Request carries no authenticated principal"
            )
        self.feature_key = feature_key
        super().__init__(message)


class UsageConflictError(UsageKitException):
    """Raised when a concurrent append to the same stream won the race.

    The ledger retries the read-modify-write a bounded number of times; this
    surfaces to the caller only once retries are exhausted, signalling that
    the whole operation may be retried.
    """

    def __init__(self, stream: str, message: Optional[str] = None) -> None:
        """Initialize with the contended stream."""
        if message is None:
            message = f"Concurrent usage append on stream {stream}"
        self.stream = stream
        self.message = message
        super().__init__(message)


class HookFailedError(UsageKitException):
    """Raised when a feature's before-hook fails, aborting the consumption."""

    def __init__(self, stage: str, feature_key: str, message: Optional[str] = None) -> None:
        """Initialize with the hook stage and feature key."""
        if message is None:
            message = f"{stage}-hook of feature {feature_key} failed"
        self.stage = stage
        self.feature_key = feature_key
        self.message = message
        super().__init__(message)


class ReservedEventError(UsageKitException):
    """Raised when a caller tries to record an event with a reserved tag."""

    def __init__(self, event: str) -> None:
        """Initialize with the offending tag."""
        self.event = event
        super().__init__(f"Event tag '{event}' is reserved for scheduled resets")


class UsageLimitExceededError(InvalidStateError):
    """Raised when a consumption would leave a feature's configured bounds."""

    def __init__(
        self,
        feature_key: str,
        status: str,
        value: float,
        limit: Optional[float],
        message: Optional[str] = None,
    ) -> None:
        """Initialize with feature key, limit status, projected value, and the crossed limit."""
        if message is None:
            message = f"Usage limit exceeded for {feature_key}: {value} ({status}, limit {limit})"
        self.feature_key = feature_key
        self.status = status
        self.value = value
        self.limit = limit
        super().__init__(message)
