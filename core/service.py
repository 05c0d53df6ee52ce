from __future__ import annotations

import asyncio
import datetime
from collections.abc import Coroutine
from typing import Any

from astrbot.api import logger

from .config import PluginConfig
from .constants import LOG_PREFIX
from .generator import LoraLabGenerator
from .poller import SleepFunc
from .task_manager import TaskManager


class LoraLabService:
    """长生命周期的服务对象，持有生成器与后台任务。"""

    service_type = "loralab"
    capability_description = "Image & video generation service using LoraLab API."

    def __init__(self, config: PluginConfig, sleep: SleepFunc = asyncio.sleep):
        self.config = config
        self.generator = LoraLabGenerator(config, sleep=sleep)
        self.task_manager = TaskManager()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """启动服务，重复调用无副作用。"""
        if self._running:
            return
        logger.info(
            f"{LOG_PREFIX} 启动 LoraLab 生成服务: {datetime.datetime.now().isoformat()}"
        )
        self._running = True

        if self.config.max_cache_count > 0:
            self.task_manager.start_loop_task(
                name="cache_cleanup",
                coro_func=self._cleanup_cache,
                interval_seconds=self.config.cleanup_interval_hours * 3600,
                run_immediately=True,
            )

    async def stop(self) -> None:
        """停止服务：取消进行中的任务并关闭会话。"""
        logger.info(f"{LOG_PREFIX} 停止 LoraLab 生成服务")
        self.generator.cancel_video_polls()
        await self.task_manager.cancel_all()
        await self.generator.close()
        self._running = False
        logger.info(f"{LOG_PREFIX} LoraLab 服务已停止")

    async def _cleanup_cache(self) -> None:
        """执行缓存清理。"""
        await asyncio.to_thread(
            self.generator.downloader.cleanup, self.config.max_cache_count
        )

    def create_background_task(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task:
        """创建后台任务并添加到管理器中。"""
        return self.task_manager.create_task(coro, name=name)

    def status(self) -> dict[str, str]:
        """配置状态，供状态查询路由返回。"""
        if self.config.has_api_key:
            return {
                "status": "configured",
                "message": "LoraLab image & video generation plugin is properly configured",
            }
        return {
            "status": "not_configured",
            "message": "LoraLab API key is not configured",
        }
