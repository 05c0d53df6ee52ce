from __future__ import annotations

import json
from typing import Any

import aiohttp

from .config import PluginConfig
from .constants import API_KEY_HEADER, LOG_PREFIX


class BaseLoraLabClient:
    """LoraLab 接口客户端基类。"""

    def __init__(self, config: PluginConfig):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    async def close(self) -> None:
        """关闭底层的 HTTP 会话。"""

        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        """获取或创建 HTTP 会话。"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            API_KEY_HEADER: self.config.api_key,
        }

    def _endpoint(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _get_log_prefix(self, task_id: str | None = None) -> str:
        """获取统一的日志前缀。"""
        client_name = self.__class__.__name__.replace("Client", "")
        prefix = f"{LOG_PREFIX} [{client_name}]"
        if task_id:
            prefix += f" [{task_id}]"
        return prefix

    @staticmethod
    def _loads_object(text: str) -> dict[str, Any] | None:
        """解析 JSON 对象，失败或不是对象时返回 None。"""
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            return None
        return data if isinstance(data, dict) else None
