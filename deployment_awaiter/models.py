import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt

VERCEL_BASE_API_ENDPOINT = "https://api.vercel.com"


class ReadyState(str, Enum):
    QUEUED = "QUEUED"
    INITIALIZING = "INITIALIZING"
    BUILDING = "BUILDING"
    READY = "READY"
    ERROR = "ERROR"
    CANCELED = "CANCELED"


class DeploymentStatus(BaseModel):
    """Deployment payload as returned by the status API"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ready_state: str = Field(alias="readyState")
    id: Optional[str] = None
    url: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = Field(default=None, alias="createdAt")


class PollOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    TRANSIENT_FAILURE = "transient_failure"
    PENDING = "pending"

    @classmethod
    def classify(cls, status: Optional[DeploymentStatus]) -> "PollOutcome":
        if status is None:
            return cls.TRANSIENT_FAILURE
        if status.ready_state == ReadyState.READY:
            return cls.SUCCESS
        if status.ready_state == ReadyState.ERROR:
            return cls.FAILURE
        return cls.PENDING


class AwaitConfig(BaseModel):
    poll_interval_ms: PositiveInt = 5000
    tolerated_fetch_errors: NonNegativeInt = 1


class FetcherConfig(BaseModel):
    token: str
    base_url: str = VERCEL_BASE_API_ENDPOINT
    request_timeout: float = 30.0  # seconds

    @classmethod
    def from_env(cls) -> "FetcherConfig":
        token = os.environ.get("VERCEL_TOKEN")
        if not token:
            raise ValueError("VERCEL_TOKEN environment variable is not set")
        return cls(
            token=token,
            base_url=os.environ.get("VERCEL_API_URL", VERCEL_BASE_API_ENDPOINT),
        )
