"""
Core module for LoraLab generation plugin
LoraLab 图片 / 视频生成插件的核心模块
"""

from .actions import (
    Capability,
    GenerateImageAction,
    GenerateVideoAction,
    HandlerCallback,
    describe_image_error,
    describe_video_error,
)
from .base_client import BaseLoraLabClient
from .config import PluginConfig, load_config
from .constants import (
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    LOG_PREFIX,
    LORALAB_DEFAULT_BASE_URL,
    STATUS_ROUTE,
)
from .downloader import VideoDownloader
from .errors import (
    APIStatusError,
    AuthenticationError,
    BadRequestError,
    ContentRestrictedError,
    DownloadError,
    EmptyPromptError,
    LoraLabError,
    MalformedResponseError,
    MissingCredentialError,
    MissingResultURLError,
    PollCancelledError,
    VideoGenerationFailedError,
    VideoGenerationTimeoutError,
)
from .generator import LoraLabGenerator
from .image_client import ImageClient
from .poller import Poller
from .prompt_enhancer import PromptEnhancerClient
from .service import LoraLabService
from .task_manager import TaskManager
from .types import (
    ActionRequest,
    AspectRatio,
    Attachment,
    Content,
    ImageGenerationRequest,
    ImageGenerationResult,
    ImageModelType,
    OutputFormat,
    VideoGenerationResult,
    VideoJob,
    VideoModelType,
    VideoStatus,
    VideoStatusReport,
)
from .video_client import VideoClient

__all__ = [
    # 能力与服务
    "Capability",
    "GenerateImageAction",
    "GenerateVideoAction",
    "HandlerCallback",
    "LoraLabService",
    "LoraLabGenerator",
    "TaskManager",
    # 客户端
    "BaseLoraLabClient",
    "PromptEnhancerClient",
    "ImageClient",
    "VideoClient",
    "VideoDownloader",
    "Poller",
    # 配置
    "PluginConfig",
    "load_config",
    # 数据类型
    "ActionRequest",
    "AspectRatio",
    "Attachment",
    "Content",
    "ImageGenerationRequest",
    "ImageGenerationResult",
    "ImageModelType",
    "OutputFormat",
    "VideoGenerationResult",
    "VideoJob",
    "VideoModelType",
    "VideoStatus",
    "VideoStatusReport",
    # 异常
    "LoraLabError",
    "APIStatusError",
    "AuthenticationError",
    "BadRequestError",
    "ContentRestrictedError",
    "DownloadError",
    "EmptyPromptError",
    "MalformedResponseError",
    "MissingCredentialError",
    "MissingResultURLError",
    "PollCancelledError",
    "VideoGenerationFailedError",
    "VideoGenerationTimeoutError",
    # 工具函数
    "describe_image_error",
    "describe_video_error",
    # 常量
    "LOG_PREFIX",
    "LORALAB_DEFAULT_BASE_URL",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_MAX_POLL_ATTEMPTS",
    "STATUS_ROUTE",
]
