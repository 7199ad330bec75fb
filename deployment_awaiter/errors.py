from enum import Enum
from typing import Optional

from deployment_awaiter.models import DeploymentStatus


class FailureReason(str, Enum):
    deployment_failed = "DeploymentFailed"
    fetch_failed = "FetchFailed"
    timeout = "Timeout"


class DeploymentAwaitError(Exception):
    """Base error for a deployment that could not be awaited to READY."""

    reason: FailureReason


class DeploymentFailedError(DeploymentAwaitError):
    reason = FailureReason.deployment_failed

    def __init__(self, endpoint: str, deployment: Optional[DeploymentStatus] = None) -> None:
        super().__init__(f"Deployment {endpoint} failed")
        self.endpoint = endpoint
        self.deployment = deployment


class FetchFailedError(DeploymentAwaitError):
    reason = FailureReason.fetch_failed

    def __init__(self, endpoint: str, consecutive_errors: int) -> None:
        super().__init__(
            f"Fetching deployment status failed for {endpoint} "
            f"({consecutive_errors} consecutive errors)"
        )
        self.endpoint = endpoint
        self.consecutive_errors = consecutive_errors


class DeploymentTimeoutError(DeploymentAwaitError, TimeoutError):
    reason = FailureReason.timeout

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Deployment was not ready within {timeout_ms} ms")
        self.timeout_ms = timeout_ms
