"""Exception hierarchy for the anfsample workflow."""

from __future__ import annotations

from typing import Any, Optional


class ANFSampleError(Exception):
    """Base exception for every error raised by anfsample."""


class InvalidArgumentError(ANFSampleError, ValueError):
    """A required argument was blank or otherwise unusable."""


class InvalidServiceLevelError(ANFSampleError, ValueError):
    """Service level is not one of the supported tiers."""


class InvalidProtocolError(ANFSampleError, ValueError):
    """Volume protocol list is empty, has more than one entry or is unknown."""


class AuthFailureError(ANFSampleError):
    """Credentials could not be loaded from the authentication file."""


class ApiError(ANFSampleError):
    """Control-plane call failed."""

    def __init__(
        self,
        message: str = "",
        *,
        status_code: Optional[int] = None,
        resource_id: Optional[str] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.resource_id = resource_id
        super().__init__(message)


class ResourceNotFoundError(ApiError):
    """Target resource does not exist."""

    def __init__(self, message: str = "Resource not found", **kwargs: Any) -> None:
        kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)


class WaitTimeoutError(ANFSampleError):
    """Existence poll gave up before the resource reached the wanted state."""

    def __init__(self, resource_id: str, iterations: int, interval_seconds: float) -> None:
        self.resource_id = resource_id
        self.iterations = iterations
        self.interval_seconds = interval_seconds
        super().__init__(
            f"gave up waiting on {resource_id} after {iterations} polls "
            f"({interval_seconds}s apart)"
        )


class StageFailedError(ANFSampleError):
    """A provisioning or cleanup stage failed."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"stage {stage!r} failed: {cause}")
