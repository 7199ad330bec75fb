import inspect
from typing import Any, Callable, Dict, Optional, Sequence

from loguru import logger

from deployment_awaiter.clock import Clock, LoopClock
from deployment_awaiter.errors import (
    DeploymentFailedError,
    DeploymentTimeoutError,
    FetchFailedError,
)
from deployment_awaiter.models import (
    AwaitConfig,
    DeploymentStatus,
    FetcherConfig,
    PollOutcome,
)
from deployment_awaiter.status_fetcher import StatusFetcher, VercelStatusFetcher


class DeploymentAwaiter:
    def __init__(
        self,
        fetcher: StatusFetcher,
        config: Optional[AwaitConfig] = None,
        clock: Optional[Clock] = None,
        on_status_change: Optional[Callable[[str, DeploymentStatus], Any]] = None,
    ):
        self.fetcher = fetcher
        self.config = config or AwaitConfig()
        self.clock = clock or LoopClock()
        self.logger = logger
        self.on_status_change = on_status_change

    async def _handle_status_change(
        self, endpoint: str, status: DeploymentStatus, last_states: Dict[str, str]
    ) -> None:
        """Invoke the status change callback if the endpoint's state has changed"""
        if last_states.get(endpoint) == status.ready_state:
            return
        last_states[endpoint] = status.ready_state
        self.logger.debug(f"Deployment {endpoint} is now {status.ready_state}")
        if self.on_status_change is None:
            return
        try:
            result = self.on_status_change(endpoint, status)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.logger.exception(f"Status change callback failed for {endpoint}")

    async def await_deployment(
        self, endpoints: Sequence[str], timeout_ms: int
    ) -> DeploymentStatus:
        """Poll the endpoints in order until one is READY.

        Raises DeploymentFailedError as soon as any endpoint reports ERROR,
        FetchFailedError once more than ``tolerated_fetch_errors`` fetches in a
        row have failed (counted across all endpoints), and
        DeploymentTimeoutError when the deadline passes first.
        """
        if isinstance(endpoints, (str, bytes)):
            raise ValueError("endpoints must be a sequence of deployment identifiers, not a string")
        endpoints = list(endpoints)
        if not endpoints:
            raise ValueError("At least one deployment endpoint is required")
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")

        deadline = self.clock.now() + timeout_ms
        consecutive_errors = 0
        last_states: Dict[str, str] = {}

        while self.clock.now() < deadline:
            for endpoint in endpoints:
                if self.clock.now() >= deadline:
                    break

                self.logger.debug(f"Fetching deployment status for {endpoint}")
                status = await self.fetcher.fetch(endpoint)
                if self.clock.now() >= deadline:
                    self.logger.debug(f"Status for {endpoint} arrived after the deadline")
                    break
                outcome = PollOutcome.classify(status)

                if outcome is PollOutcome.TRANSIENT_FAILURE:
                    consecutive_errors += 1
                    if consecutive_errors > self.config.tolerated_fetch_errors:
                        self.logger.error(f"Fetching deployment status failed for {endpoint}")
                        raise FetchFailedError(endpoint, consecutive_errors)
                    self.logger.debug(
                        f"Fetching deployment status failed for {endpoint}, retrying..."
                    )
                else:
                    consecutive_errors = 0
                    await self._handle_status_change(endpoint, status, last_states)

                    if outcome is PollOutcome.SUCCESS:
                        self.logger.info(f"Deployment {endpoint} is ready")
                        return status
                    if outcome is PollOutcome.FAILURE:
                        self.logger.error(f"Deployment {endpoint} failed")
                        raise DeploymentFailedError(endpoint, status)

                await self.clock.delay(self.config.poll_interval_ms)

        self.logger.error(f"Timeout of {timeout_ms} ms has been reached")
        raise DeploymentTimeoutError(timeout_ms)


async def await_deployment(
    endpoints: Sequence[str],
    timeout_ms: int,
    fetcher_config: FetcherConfig,
    config: Optional[AwaitConfig] = None,
) -> DeploymentStatus:
    """Await the deployments against the status API with a fresh HTTP session"""
    async with VercelStatusFetcher(fetcher_config) as fetcher:
        awaiter = DeploymentAwaiter(fetcher, config=config)
        return await awaiter.await_deployment(endpoints, timeout_ms)
