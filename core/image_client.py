from __future__ import annotations

import time

from astrbot.api import logger

from .base_client import BaseLoraLabClient
from .constants import IMAGE_GENERATION_PATH
from .errors import MalformedResponseError, MissingResultURLError, raise_for_status
from .types import ImageGenerationRequest, ImageGenerationResult


class ImageClient(BaseLoraLabClient):
    """图片生成客户端，单次请求，不重试。"""

    async def generate(
        self, request: ImageGenerationRequest, task_id: str | None = None
    ) -> ImageGenerationResult:
        """提交图片生成请求并返回结果地址。"""
        prefix = self._get_log_prefix(task_id)
        payload = request.to_payload()
        logger.debug(f"{prefix} 请求 -> {IMAGE_GENERATION_PATH}, 参数: {payload}")
        start_time = time.time()

        async with self._get_session().post(
            self._endpoint(IMAGE_GENERATION_PATH),
            json=payload,
            headers=self._headers(),
        ) as resp:
            duration = time.time() - start_time
            body = await resp.text()
            logger.info(f"{prefix} 状态 -> {resp.status} (耗时: {duration:.2f}s)")

            if not 200 <= resp.status < 300:
                logger.error(f"{prefix} API 错误 ({resp.status}): {body}")
                raise_for_status(resp.status, body)

        logger.debug(f"{prefix} 响应: {body}")
        data = self._loads_object(body)
        if data is None:
            logger.error(f"{prefix} 响应无法解析: {body[:200]}")
            raise MalformedResponseError("Failed to parse API response")

        url = data.get("url")
        if not url or not isinstance(url, str):
            logger.error(f"{prefix} 响应中缺少 URL: {data}")
            raise MissingResultURLError("API response missing URL")

        logger.info(f"{prefix} 生成成功: {url}")
        return ImageGenerationResult(
            url=url,
            enhanced_prompt=request.prompt,
            generation_id=data.get("generation_id") or None,
            raw=data,
        )
