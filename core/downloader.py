from __future__ import annotations

import fnmatch
import os
import time
from collections.abc import Callable
from pathlib import Path

from astrbot.api import logger

from .constants import LOG_PREFIX, VIDEO_FILE_PATTERN
from .errors import DownloadError


class VideoDownloader:
    """将下载好的视频写入本地缓存目录。"""

    def __init__(self, cache_dir: str, clock: Callable[[], float] = time.time):
        self.cache_dir = cache_dir
        self._clock = clock

    def _ensure_dir(self) -> None:
        """确保缓存目录存在。"""
        if not os.path.isdir(self.cache_dir):
            os.makedirs(self.cache_dir, exist_ok=True)
            logger.info(f"{LOG_PREFIX} 已创建缓存目录: {self.cache_dir}")

    def save(self, data: bytes) -> Path:
        """写入视频文件并返回绝对路径。"""
        try:
            self._ensure_dir()
            file_name = VIDEO_FILE_PATTERN.format(timestamp=int(self._clock() * 1000))
            path = Path(self.cache_dir, file_name).resolve()
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise DownloadError(f"Failed to save video: {e}") from e

        logger.info(f"{LOG_PREFIX} 视频已保存到 {path}")
        return path

    def cleanup(self, max_count: int) -> int:
        """按修改时间删除多余的旧视频，返回删除数量。

        只处理本插件写入的 generated_video_*.mp4，目录中的其他文件不受影响。
        """
        if max_count <= 0 or not os.path.isdir(self.cache_dir):
            return 0

        pattern = VIDEO_FILE_PATTERN.format(timestamp="*")
        files = []
        for name in os.listdir(self.cache_dir):
            if not fnmatch.fnmatch(name, pattern):
                continue
            path = os.path.join(self.cache_dir, name)
            if os.path.isfile(path):
                files.append((path, os.path.getmtime(path)))

        if len(files) <= max_count:
            return 0

        # 按修改时间排序（旧的在前）
        files.sort(key=lambda x: x[1])
        removed = 0
        for path, _ in files[: len(files) - max_count]:
            try:
                os.remove(path)
                removed += 1
            except OSError as e:
                logger.warning(f"{LOG_PREFIX} 删除缓存文件失败 {path}: {e}")

        logger.info(f"{LOG_PREFIX} 已清理 {removed} 个旧缓存文件")
        return removed
