import argparse
import asyncio
import sys

from deployment_awaiter.deployment_awaiter import DeploymentAwaiter
from deployment_awaiter.errors import DeploymentAwaitError
from deployment_awaiter.models import AwaitConfig, FetcherConfig
from deployment_awaiter.status_fetcher import VercelStatusFetcher
from status_server import DeploymentStatusServer


async def status_changed(endpoint, status):
    print(f"{endpoint}: {status.ready_state}")


async def run(deployments, timeout_ms, fetcher_config, config):
    async with VercelStatusFetcher(fetcher_config) as fetcher:
        awaiter = DeploymentAwaiter(fetcher, config, on_status_change=status_changed)
        try:
            deployment = await awaiter.await_deployment(deployments, timeout_ms)
        except DeploymentAwaitError as e:
            print(f"{e.reason.value}: {e}", file=sys.stderr)
            return 1
    print(deployment.model_dump_json(by_alias=True, exclude_none=True))
    return 0


async def main(argv=None):
    parser = argparse.ArgumentParser(description="Wait for deployments to be ready")
    parser.add_argument("deployments", nargs="*", help="deployment urls or ids")
    parser.add_argument("--timeout", type=float, default=60.0, help="seconds")
    args = parser.parse_args(argv)
    timeout_ms = int(args.timeout * 1000)

    if args.deployments:
        return await run(args.deployments, timeout_ms, FetcherConfig.from_env(), AwaitConfig())

    PORT = 8000
    server = DeploymentStatusServer(token="demo-token")
    server.script("demo-app.vercel.app", "QUEUED", "BUILDING", "BUILDING", "READY")
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")
    try:
        return await run(
            ["https://demo-app.vercel.app"],
            timeout_ms,
            FetcherConfig(token="demo-token", base_url=f"http://localhost:{PORT}"),
            AwaitConfig(poll_interval_ms=500),
        )
    finally:
        await server.stop()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
