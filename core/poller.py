"""
Fixed-interval polling primitive
固定间隔的轮询原语，支持取消与注入等待函数（便于测试）
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

from .errors import PollCancelledError

SleepFunc = Callable[[float], Awaitable[object]]


class Poller:
    """按固定间隔产出轮询序号，最多 max_attempts 次。

    每次产出前先等待 interval 秒；取消后下一步抛出 PollCancelledError。
    """

    def __init__(
        self,
        interval: float,
        max_attempts: int,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.interval = max(0.0, float(interval))
        self.max_attempts = max(1, int(max_attempts))
        self._sleep = sleep
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """请求停止轮询。"""
        self._cancelled = True

    def _raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise PollCancelledError("Polling was cancelled")

    async def attempts(self) -> AsyncIterator[int]:
        for attempt in range(1, self.max_attempts + 1):
            self._raise_if_cancelled()
            await self._sleep(self.interval)
            self._raise_if_cancelled()
            yield attempt
