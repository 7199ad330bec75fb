import asyncio
from types import TracebackType
from typing import Optional, Protocol, Type
from urllib.parse import quote

import aiohttp
from loguru import logger
from pydantic import ValidationError

from deployment_awaiter.models import DeploymentStatus, FetcherConfig


class StatusFetcher(Protocol):
    async def fetch(self, endpoint: str) -> Optional[DeploymentStatus]:
        """Returns the deployment status, or None if it could not be fetched"""
        ...


class VercelStatusFetcher:
    def __init__(self, config: FetcherConfig):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.logger = logger
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "VercelStatusFetcher":
        self._session = aiohttp.ClientSession(
            headers={"Authorization": f"Bearer {self.config.token}"},
            timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _deployment_url(self, endpoint: str) -> str:
        deployment = endpoint.split("://", 1)[-1].rstrip("/")
        return f"{self.base_url}/v13/deployments/{quote(deployment, safe='')}"

    async def fetch(self, endpoint: str) -> Optional[DeploymentStatus]:
        """Fetches the deployment status for a single endpoint"""
        if self._session is None:
            raise RuntimeError("VercelStatusFetcher must be used as an async context manager")

        url = self._deployment_url(endpoint)
        try:
            async with self._session.get(url) as response:
                if not response.ok:
                    self.logger.debug(
                        f"Error while fetching deployment status: HTTP {response.status} {response.reason}"
                    )
                    return None
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.debug(f"Error while fetching deployment status: {e!r}")
            return None

        self.logger.debug(f"Received data from {url}: {data}")
        try:
            return DeploymentStatus.model_validate(data)
        except ValidationError as e:
            self.logger.debug(f"Malformed deployment status payload: {e}")
            return None
