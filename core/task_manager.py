from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from astrbot.api import logger

from .constants import LOG_PREFIX


class TaskManager:
    """后台任务管理器：跟踪一次性任务与定时循环任务，卸载时统一取消。"""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self._loop_tasks: dict[str, asyncio.Task] = {}

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def create_task(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task:
        """创建后台任务并在结束时自动移除。"""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"{LOG_PREFIX} 后台任务 {task.get_name()} 异常结束: {exc}",
                exc_info=exc,
            )

    def start_loop_task(
        self,
        name: str,
        coro_func: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        run_immediately: bool = False,
    ) -> asyncio.Task:
        """按固定间隔循环执行任务，同名任务会先被取消。"""
        if (old := self._loop_tasks.pop(name, None)) is not None:
            old.cancel()

        async def _loop():
            if not run_immediately:
                await asyncio.sleep(interval_seconds)
            while True:
                try:
                    await coro_func()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error(f"{LOG_PREFIX} 定时任务 {name} 执行失败: {exc}")
                await asyncio.sleep(interval_seconds)

        task = asyncio.create_task(_loop(), name=name)
        self._loop_tasks[name] = task
        return task

    async def cancel_all(self) -> None:
        """取消所有任务并等待其结束。"""
        tasks = [*self._tasks, *self._loop_tasks.values()]
        self._tasks.clear()
        self._loop_tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
