from __future__ import annotations

import time

from astrbot.api import logger

from .base_client import BaseLoraLabClient
from .constants import PROMPT_ENHANCE_PATH


class PromptEnhancerClient(BaseLoraLabClient):
    """提示词增强客户端，失败时总是回退到原始提示词。"""

    async def enhance(self, prompt: str, task_id: str | None = None) -> str:
        """返回增强后的提示词（原始提示词 + option_1）。"""
        prefix = self._get_log_prefix(task_id)
        logger.info(f"{prefix} 增强提示词: {prompt!r}")
        start_time = time.time()

        try:
            async with self._get_session().post(
                self._endpoint(PROMPT_ENHANCE_PATH),
                json={"prompt": prompt, "enhance_prompt": True},
                headers=self._headers(),
            ) as resp:
                duration = time.time() - start_time
                if not 200 <= resp.status < 300:
                    logger.error(
                        f"{prefix} 增强失败 ({resp.status}, 耗时: {duration:.2f}s)，使用原始提示词"
                    )
                    return prompt

                text = await resp.text()
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"{prefix} 增强请求异常 (耗时: {duration:.2f}s): {e}，使用原始提示词")
            return prompt

        data = self._loads_object(text)
        if data is None:
            logger.error(f"{prefix} 增强响应无法解析，使用原始提示词")
            return prompt

        option = data.get("option_1")
        if not option or not isinstance(option, str):
            logger.info(f"{prefix} 增强响应中没有 option_1，使用原始提示词")
            return prompt

        enhanced = f"{prompt}{option}"
        logger.info(f"{prefix} 使用增强后的提示词 (耗时: {duration:.2f}s): {enhanced!r}")
        return enhanced
