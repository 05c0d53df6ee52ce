"""常量定义模块。

集中管理项目中使用的常量，避免魔法字符串分散在代码中。
"""

from __future__ import annotations

# ========================== 日志常量 ==========================

LOG_PREFIX = "[LoraLab]"
"""统一的日志前缀。"""


# ========================== API 端点 ==========================

LORALAB_DEFAULT_BASE_URL = "https://api.ta-da.io/tadzagent/api/v1"
"""LoraLab API 默认 Base URL。"""

PROMPT_ENHANCE_PATH = "/previews/image-prompt"
"""提示词增强接口。"""

IMAGE_GENERATION_PATH = "/direct/images"
"""图片生成接口。"""

VIDEO_GENERATION_PATH = "/direct/videos"
"""视频生成提交接口。"""

VIDEO_STATUS_PATH = "/generations/videos/{video_id}"
"""视频任务状态查询接口。"""

API_KEY_HEADER = "X-API-Key"
"""携带 API Key 的请求头。"""

API_KEY_ENV = "LORALAB_API_KEY"
"""未在插件配置中填写时读取的环境变量。"""


# ========================== 默认配置值 ==========================

DEFAULT_POLL_INTERVAL_SECONDS = 10
"""视频状态轮询间隔（秒）。"""

DEFAULT_MAX_POLL_ATTEMPTS = 30
"""视频状态最大轮询次数（约 5 分钟）。"""

DEFAULT_MAX_CACHE_COUNT = 100
"""默认最大缓存文件数量。"""

DEFAULT_CLEANUP_INTERVAL_HOURS = 24
"""默认缓存清理间隔（小时）。"""


# ========================== 文件路径 ==========================

DATA_DIR = "data/plugin_data/astrbot_plugin_loralab"
"""插件数据目录。"""

CACHE_SUBDIR = "content_cache"
"""视频下载缓存子目录名称。"""

VIDEO_FILE_PATTERN = "generated_video_{timestamp}.mp4"
"""下载视频的文件名模板，timestamp 为毫秒时间戳。"""


# ========================== 动作与附件 ==========================

IMAGE_ACTION_NAME = "GENERATE_IMAGE"
VIDEO_ACTION_NAME = "GENERATE_VIDEO"

IMAGE_ATTACHMENT_SOURCE = "loraLabImageGeneration"
VIDEO_ATTACHMENT_SOURCE = "loraLabVideoGeneration"

VIDEO_CONTENT_TYPE = "video/mp4"

ERROR_ATTACHMENT_ID = "error-image"
"""从错误中恢复出的图片附件 ID。"""

STATUS_ROUTE = "/loralab/status"
"""配置状态查询路由。"""
