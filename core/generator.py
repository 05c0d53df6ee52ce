from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from astrbot.api import logger

from .config import PluginConfig
from .constants import LOG_PREFIX
from .downloader import VideoDownloader
from .errors import DownloadError
from .image_client import ImageClient
from .poller import SleepFunc
from .prompt_enhancer import PromptEnhancerClient
from .types import ImageGenerationRequest, ImageGenerationResult, VideoGenerationResult
from .video_client import VideoClient


class LoraLabGenerator:
    """编排提示词增强、图片生成、视频提交/轮询/下载。"""

    def __init__(
        self,
        config: PluginConfig,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.enhancer = PromptEnhancerClient(config)
        self.image_client = ImageClient(config)
        self.video_client = VideoClient(config, sleep=sleep)
        self.downloader = VideoDownloader(config.cache_dir, clock=clock)

    async def generate_image(
        self, prompt: str, task_id: str | None = None
    ) -> ImageGenerationResult:
        """增强提示词后生成图片。"""
        enhanced = await self.enhancer.enhance(prompt, task_id)
        request = ImageGenerationRequest(
            prompt=enhanced,
            # 提示词已在上一步增强
            enhance_prompt=False,
            output_format=self.config.image_output_format,
            aspect_ratio=self.config.image_aspect_ratio,
            model_type=self.config.image_model_type,
        )
        return await self.image_client.generate(request, task_id)

    async def generate_video(
        self, prompt: str, task_id: str | None = None
    ) -> VideoGenerationResult:
        """提交视频任务、轮询至完成并尝试下载到本地。"""
        job = await self.video_client.submit(prompt, task_id)
        video_url, polls = await self.video_client.wait_for_completion(job, task_id)
        result = VideoGenerationResult(
            prompt=prompt,
            video_id=job.video_id,
            remote_url=video_url,
            polls=polls,
        )

        try:
            data = await self.video_client.download(video_url, task_id)
            path = await asyncio.to_thread(self.downloader.save, data)
            result.local_path = str(path)
        except DownloadError as e:
            logger.error(f"{LOG_PREFIX} 下载视频失败，改用远程地址: {e}")

        return result

    def cancel_video_polls(self) -> None:
        self.video_client.cancel_polls()

    async def close(self) -> None:
        """关闭所有客户端。"""
        await self.enhancer.close()
        await self.image_client.close()
        await self.video_client.close()
