import asyncio
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time in milliseconds"""
        ...

    async def delay(self, milliseconds: float) -> None: ...


class LoopClock:
    """Monotonic clock backed by the running event loop"""

    def now(self) -> float:
        return asyncio.get_running_loop().time() * 1000

    async def delay(self, milliseconds: float) -> None:
        await asyncio.sleep(milliseconds / 1000)
