"""
Core type definitions for LoraLab generation plugin
定义 LoraLab 生成插件的核心数据类型
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ImageModelType(str, Enum):
    """图片模型枚举"""

    FLUX = "flux"
    GEMINI = "gemini"
    IMAGEN = "imagen"


class AspectRatio(str, Enum):
    """宽高比枚举"""

    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    MOBILE = "9:16"
    WIDESCREEN = "16:9"


class OutputFormat(str, Enum):
    """输出格式枚举"""

    WEBP = "webp"
    PNG = "png"
    JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"


class VideoModelType(str, Enum):
    """视频模型枚举"""

    WAN = "wan"


class VideoStatus(str, Enum):
    """视频任务状态"""

    SUBMITTED = "submitted"
    PENDING = "pending"
    PROCESSING = "processing"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def is_terminal(cls, status: str | None) -> bool:
        """completed / failed 为终止状态。"""
        return status in (cls.COMPLETED.value, cls.FAILED.value)


@dataclass
class ImageGenerationRequest:
    """图片生成请求"""

    prompt: str
    enhance_prompt: bool = False
    output_format: OutputFormat = OutputFormat.WEBP
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    model_type: ImageModelType | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": self.prompt,
            "enhance_prompt": self.enhance_prompt,
            "output_format": self.output_format.value,
            "aspect_ratio": self.aspect_ratio.value,
        }
        # 未指定模型时由服务端使用默认模型
        if self.model_type is not None:
            payload["model_type"] = self.model_type.value
        return payload


@dataclass
class ImageGenerationResult:
    """图片生成结果"""

    url: str
    enhanced_prompt: str
    generation_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class VideoJob:
    """已提交的视频生成任务"""

    video_id: str
    status: str
    prompt: str
    message: str = ""


@dataclass
class VideoStatusReport:
    """一次状态查询的结果"""

    video_id: str
    status: str
    video_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class VideoGenerationResult:
    """视频生成结果"""

    prompt: str
    video_id: str
    remote_url: str
    local_path: str | None = None
    polls: int = 0

    @property
    def is_local(self) -> bool:
        """视频是否已下载到本地缓存"""
        return self.local_path is not None


def new_attachment_id() -> str:
    """生成无语义的随机附件 ID。"""
    return uuid.uuid4().hex


@dataclass
class Attachment:
    """返回给宿主的媒体附件"""

    url: str
    title: str
    source: str
    description: str
    content_type: str
    text: str
    id: str = field(default_factory=new_attachment_id)

    @property
    def is_local_file(self) -> bool:
        return self.url.startswith("file://")

    @property
    def local_path(self) -> str | None:
        if not self.is_local_file:
            return None
        return self.url[len("file://"):]


@dataclass
class Content:
    """通过回调发送给宿主的消息内容"""

    text: str
    actions: list[str] = field(default_factory=list)
    source: str | None = None
    attachments: list[Attachment] = field(default_factory=list)


@dataclass
class ActionRequest:
    """一次能力调用的入参"""

    text: str = ""
    source: str | None = None
    options: dict[str, Any] = field(default_factory=dict)
    task_id: str | None = None

    @property
    def explicit_prompt(self) -> str:
        prompt = self.options.get("prompt") if self.options else None
        return prompt.strip() if isinstance(prompt, str) else ""
