"""
Plugin configuration loading
插件配置加载
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from astrbot.api import logger

from .constants import (
    API_KEY_ENV,
    CACHE_SUBDIR,
    DATA_DIR,
    DEFAULT_CLEANUP_INTERVAL_HOURS,
    DEFAULT_MAX_CACHE_COUNT,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    LOG_PREFIX,
    LORALAB_DEFAULT_BASE_URL,
)
from .types import AspectRatio, ImageModelType, OutputFormat, VideoModelType

E = TypeVar("E", bound=Enum)


@dataclass
class PluginConfig:
    """插件运行配置。

    API Key 作为显式字段在各客户端之间传递，不写回进程环境变量。
    """

    api_key: str = ""
    base_url: str = LORALAB_DEFAULT_BASE_URL
    enable_llm_tool: bool = True

    image_output_format: OutputFormat = OutputFormat.WEBP
    image_aspect_ratio: AspectRatio = AspectRatio.SQUARE
    image_model_type: ImageModelType | None = None

    video_model_type: VideoModelType = VideoModelType.WAN
    video_enhance_prompt: bool = True
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS

    cache_dir: str = field(default_factory=lambda: os.path.join(DATA_DIR, CACHE_SUBDIR))
    max_cache_count: int = DEFAULT_MAX_CACHE_COUNT
    cleanup_interval_hours: int = DEFAULT_CLEANUP_INTERVAL_HOURS

    @property
    def has_api_key(self) -> bool:
        """是否配置了 API Key"""
        return bool(self.api_key)

    @property
    def masked_api_key(self) -> str:
        key = self.api_key
        return key[:4] + "****" + key[-4:] if len(key) > 8 else "****"


def _parse_enum(enum_cls: type[E], value: Any, default: E | None, key: str) -> E | None:
    """解析枚举配置项，非法值回退到默认值。"""
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"{LOG_PREFIX} 配置项 {key} 的值无效: {value}，使用默认值 {default}")
        return default


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    return section if isinstance(section, Mapping) else {}


def _clean_base_url(url: str) -> str:
    """清理 Base URL，移除末尾的 /"""
    return (url or "").strip().rstrip("/") or LORALAB_DEFAULT_BASE_URL


def load_config(raw: Mapping[str, Any] | None) -> PluginConfig:
    """从宿主提供的配置字典构建 PluginConfig。"""
    raw = raw or {}
    image_cfg = _section(raw, "image")
    video_cfg = _section(raw, "video")
    cache_cfg = _section(raw, "cache")

    api_key = (raw.get("api_key") or "").strip() or os.environ.get(API_KEY_ENV, "").strip()

    config = PluginConfig(
        api_key=api_key,
        base_url=_clean_base_url(raw.get("base_url") or ""),
        enable_llm_tool=bool(raw.get("enable_llm_tool", True)),
        image_output_format=_parse_enum(
            OutputFormat, image_cfg.get("output_format"), OutputFormat.WEBP, "image.output_format"
        ),
        image_aspect_ratio=_parse_enum(
            AspectRatio, image_cfg.get("aspect_ratio"), AspectRatio.SQUARE, "image.aspect_ratio"
        ),
        image_model_type=_parse_enum(
            ImageModelType, image_cfg.get("model_type"), None, "image.model_type"
        ),
        video_model_type=_parse_enum(
            VideoModelType, video_cfg.get("model_type"), VideoModelType.WAN, "video.model_type"
        ),
        video_enhance_prompt=bool(video_cfg.get("enhance_prompt", True)),
        poll_interval_seconds=max(
            0, video_cfg.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS)
        ),
        max_poll_attempts=max(
            1, int(video_cfg.get("max_poll_attempts", DEFAULT_MAX_POLL_ATTEMPTS))
        ),
        cache_dir=(cache_cfg.get("cache_dir") or "").strip()
        or os.path.join(DATA_DIR, CACHE_SUBDIR),
        max_cache_count=max(0, int(cache_cfg.get("max_cache_count", DEFAULT_MAX_CACHE_COUNT))),
        cleanup_interval_hours=max(
            1, int(cache_cfg.get("cleanup_interval_hours", DEFAULT_CLEANUP_INTERVAL_HOURS))
        ),
    )

    if config.has_api_key:
        logger.info(f"{LOG_PREFIX} API Key 已配置: {config.masked_api_key}")
    else:
        logger.error(f"{LOG_PREFIX} 未配置 api_key（或环境变量 {API_KEY_ENV}），图片与视频生成不可用")

    return config
