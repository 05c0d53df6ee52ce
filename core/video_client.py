from __future__ import annotations

import asyncio
import time

from astrbot.api import logger

from .base_client import BaseLoraLabClient
from .config import PluginConfig
from .constants import VIDEO_GENERATION_PATH, VIDEO_STATUS_PATH
from .errors import (
    DownloadError,
    MalformedResponseError,
    VideoGenerationFailedError,
    VideoGenerationTimeoutError,
    raise_for_status,
)
from .poller import Poller, SleepFunc
from .types import VideoJob, VideoStatus, VideoStatusReport


class VideoClient(BaseLoraLabClient):
    """视频生成客户端：提交任务、轮询状态、下载结果。"""

    def __init__(self, config: PluginConfig, sleep: SleepFunc = asyncio.sleep):
        super().__init__(config)
        self._sleep = sleep
        self._pollers: set[Poller] = set()

    async def submit(self, prompt: str, task_id: str | None = None) -> VideoJob:
        """提交视频生成任务，失败立即抛出，不重试。"""
        prefix = self._get_log_prefix(task_id)
        payload = {
            "prompt": prompt,
            "enhance_prompt": self.config.video_enhance_prompt,
            "model_type": self.config.video_model_type.value,
        }
        logger.info(f"{prefix} 提交视频任务: {prompt!r}")
        start_time = time.time()

        async with self._get_session().post(
            self._endpoint(VIDEO_GENERATION_PATH),
            json=payload,
            headers=self._headers(),
        ) as resp:
            duration = time.time() - start_time
            body = await resp.text()
            if not 200 <= resp.status < 300:
                logger.error(
                    f"{prefix} 提交失败 ({resp.status}, 耗时: {duration:.2f}s): {body}"
                )
                raise_for_status(resp.status, body, action="Video generation request")

        data = self._loads_object(body)
        if data is None or not data.get("video_id"):
            logger.error(f"{prefix} 提交响应缺少 video_id: {body[:200]}")
            raise MalformedResponseError("Video generation response missing video_id")

        job = VideoJob(
            video_id=str(data["video_id"]),
            status=str(data.get("status") or VideoStatus.SUBMITTED.value),
            prompt=prompt,
            message=data.get("message") or "",
        )
        logger.info(f"{prefix} 视频任务已提交, ID: {job.video_id}, 状态: {job.status}")
        return job

    async def check_status(
        self, video_id: str, task_id: str | None = None
    ) -> VideoStatusReport | None:
        """查询一次任务状态；非 2xx 视为暂时性失败，返回 None。"""
        prefix = self._get_log_prefix(task_id)
        async with self._get_session().get(
            self._endpoint(VIDEO_STATUS_PATH.format(video_id=video_id)),
            headers=self._headers(),
        ) as resp:
            body = await resp.text()
            if not 200 <= resp.status < 300:
                logger.error(f"{prefix} 状态查询失败 ({resp.status}): {body}")
                return None

        data = self._loads_object(body)
        if data is None:
            logger.error(f"{prefix} 状态响应无法解析: {body[:200]}")
            return None

        return VideoStatusReport(
            video_id=str(data.get("id") or video_id),
            status=str(data.get("status") or ""),
            video_url=data.get("video_url") or None,
            raw=data,
        )

    async def wait_for_completion(
        self, job: VideoJob, task_id: str | None = None
    ) -> tuple[str, int]:
        """轮询直到终止状态或次数用尽，返回 (视频地址, 轮询次数)。"""
        prefix = self._get_log_prefix(task_id)
        poller = Poller(
            self.config.poll_interval_seconds,
            self.config.max_poll_attempts,
            sleep=self._sleep,
        )
        status = job.status
        video_url: str | None = None
        polls = 0

        self._pollers.add(poller)
        try:
            if not VideoStatus.is_terminal(status):
                async for attempt in poller.attempts():
                    polls = attempt
                    report = await self.check_status(job.video_id, task_id)
                    if report is None:
                        continue

                    status = report.status
                    logger.info(
                        f"{prefix} 状态查询 ({attempt}/{poller.max_attempts}): {status}"
                    )
                    if status == VideoStatus.COMPLETED.value and report.video_url:
                        video_url = report.video_url
                        break
                    if VideoStatus.is_terminal(status):
                        break
        finally:
            self._pollers.discard(poller)

        if status == VideoStatus.FAILED.value:
            raise VideoGenerationFailedError("Video generation failed")
        if video_url:
            logger.info(f"{prefix} 视频生成完成 ({polls} 次轮询): {video_url}")
            return video_url, polls
        if status == VideoStatus.COMPLETED.value:
            raise MalformedResponseError("Video generation completed but no URL was provided")
        raise VideoGenerationTimeoutError(
            f"Video generation timed out after {polls} status checks"
        )

    def cancel_polls(self) -> None:
        """取消所有进行中的轮询。"""
        for poller in list(self._pollers):
            poller.cancel()

    async def download(self, url: str, task_id: str | None = None) -> bytes:
        """下载视频文件内容。"""
        prefix = self._get_log_prefix(task_id)
        logger.info(f"{prefix} 下载视频: {url}")
        try:
            async with self._get_session().get(url) as resp:
                if resp.status != 200:
                    raise DownloadError(f"Failed to download video: {resp.status}")
                data = await resp.read()
        except DownloadError:
            raise
        except Exception as e:
            raise DownloadError(f"Failed to download video: {e}") from e

        logger.debug(f"{prefix} 视频下载成功: {len(data)} bytes")
        return data
