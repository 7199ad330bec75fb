import asyncio
from typing import Any, Dict, List, Optional, Union

from aiohttp import web
from loguru import logger

MALFORMED = "<malformed>"
INVALID_UTF8 = "<invalid-utf8>"
SLOW = "<slow>"


class Payload:
    """A 200 response carrying exactly this JSON body"""

    def __init__(self, body: Any):
        self.body = body


Step = Union[str, int, Payload]


class DeploymentStatusServer:
    """Local stand-in for the deployment status API.

    Each deployment follows a script of steps: a readyState string, an HTTP
    error status, a Payload sent verbatim, MALFORMED for a body that is not
    JSON, INVALID_UTF8 for a body that cannot be decoded, or SLOW for a READY
    answer sent only after ``slow_delay`` seconds. The last step repeats once
    the script is exhausted.
    """

    def __init__(self, token: str = "test-token", slow_delay: float = 1.0):
        self.token = token
        self.slow_delay = slow_delay
        self.scripts: Dict[str, List[Step]] = {}
        self.requests: List[str] = []
        self.app = web.Application()
        self.app.router.add_get("/v13/deployments/{deployment_id}", self.handle_deployment)
        self.logger = logger
        self.runner: Optional[web.AppRunner] = None

    def script(self, deployment_id: str, *steps: Step) -> None:
        self.scripts[deployment_id] = list(steps)

    def _next_step(self, deployment_id: str) -> Optional[Step]:
        steps = self.scripts.get(deployment_id)
        if not steps:
            return None
        return steps.pop(0) if len(steps) > 1 else steps[0]

    async def handle_deployment(self, request: web.Request) -> web.Response:
        deployment_id = request.match_info["deployment_id"]
        self.requests.append(deployment_id)

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            self.logger.info(f"Rejecting unauthorized request for {deployment_id}")
            return web.json_response({"error": {"code": "forbidden"}}, status=403)

        step = self._next_step(deployment_id)
        if step is None:
            return web.json_response({"error": {"code": "not_found"}}, status=404)
        if isinstance(step, int):
            self.logger.info(f"Returning HTTP {step} for {deployment_id}")
            return web.json_response({"error": {"code": "scripted"}}, status=step)
        if step == MALFORMED:
            self.logger.info(f"Returning malformed body for {deployment_id}")
            return web.Response(text="{not json", content_type="application/json")
        if step == INVALID_UTF8:
            self.logger.info(f"Returning undecodable body for {deployment_id}")
            return web.Response(
                body=b'{"readyState": "\xff\xfe"}', content_type="application/json", charset="utf-8"
            )
        if isinstance(step, Payload):
            self.logger.info(f"Returning raw payload {step.body!r} for {deployment_id}")
            return web.json_response(step.body)
        if step == SLOW:
            self.logger.info(f"Delaying response for {deployment_id} by {self.slow_delay}s")
            await asyncio.sleep(self.slow_delay)
            step = "READY"

        self.logger.info(f"Returning {step} for {deployment_id}")
        return web.json_response(
            {
                "id": f"dpl_{deployment_id.split('.')[0]}",
                "url": deployment_id,
                "name": deployment_id.split(".")[0],
                "readyState": step,
                "createdAt": 1700000000000,
            }
        )

    async def start(self, port: int = 8080) -> web.TCPSite:
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self) -> None:
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
