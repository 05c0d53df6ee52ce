"""
Host-facing capabilities (GENERATE_IMAGE / GENERATE_VIDEO)
面向宿主的能力定义：校验、处理、回调与错误提示
"""

from __future__ import annotations

import abc
import re
from typing import TYPE_CHECKING, Protocol

from astrbot.api import logger

from .constants import (
    ERROR_ATTACHMENT_ID,
    IMAGE_ACTION_NAME,
    IMAGE_ATTACHMENT_SOURCE,
    LOG_PREFIX,
    VIDEO_ACTION_NAME,
    VIDEO_ATTACHMENT_SOURCE,
    VIDEO_CONTENT_TYPE,
)
from .errors import (
    AuthenticationError,
    BadRequestError,
    ContentRestrictedError,
    EmptyPromptError,
    LoraLabError,
    MalformedResponseError,
    MissingCredentialError,
    MissingResultURLError,
    VideoGenerationFailedError,
    VideoGenerationTimeoutError,
)
from .types import ActionRequest, Attachment, Content

if TYPE_CHECKING:
    from .service import LoraLabService


class HandlerCallback(Protocol):
    """宿主提供的异步回调，用于发送消息内容及本地文件。"""

    async def __call__(self, content: Content, files: list[str] | None = None) -> None: ...


# 按顺序匹配，子类需排在父类之前
IMAGE_ERROR_MESSAGES: list[tuple[type[BaseException], str]] = [
    (EmptyPromptError, "❌ 请提供图片生成的提示词！"),
    (
        ContentRestrictedError,
        "❌ 无法生成这张图片，内容可能违反了内容政策（如真实人物、露骨内容等），请换一个主题试试。",
    ),
    (BadRequestError, "❌ 请求参数有误，请换一种描述再试一次。"),
    (AuthenticationError, "❌ API 配置有问题，请联系管理员检查 API Key。"),
    (MissingCredentialError, "❌ API 配置有问题，请联系管理员检查 API Key。"),
    (MissingResultURLError, "❌ 图片已生成，但获取结果时出现问题，请重试。"),
    (MalformedResponseError, "❌ 处理图片结果时出现问题，请换一种描述再试一次。"),
]
IMAGE_DEFAULT_ERROR = "❌ 抱歉，图片生成失败。"

VIDEO_ERROR_MESSAGES: list[tuple[type[BaseException], str]] = [
    (EmptyPromptError, "❌ 请提供视频生成的提示词！"),
    (VideoGenerationTimeoutError, "❌ 视频生成耗时过长，请使用更简单的提示词重试。"),
    (AuthenticationError, "❌ API 配置有问题，请联系管理员检查 API Key。"),
    (MissingCredentialError, "❌ API 配置有问题，请联系管理员检查 API Key。"),
    (VideoGenerationFailedError, "❌ 视频生成失败，请换一种描述再试一次。"),
    (LoraLabError, "❌ 视频生成失败，请换一种描述再试一次。"),
]
VIDEO_DEFAULT_ERROR = "❌ 抱歉，视频生成失败。"

_VIDEO_COMMAND_RE = re.compile(
    r"generate video|create video|make video|render video|animate", re.IGNORECASE
)


def _describe(
    exc: BaseException, table: list[tuple[type[BaseException], str]], default: str
) -> str:
    for exc_type, message in table:
        if isinstance(exc, exc_type):
            return message
    return default


def describe_image_error(exc: BaseException) -> str:
    """将图片生成异常转换为面向用户的提示。"""
    return _describe(exc, IMAGE_ERROR_MESSAGES, IMAGE_DEFAULT_ERROR)


def describe_video_error(exc: BaseException) -> str:
    """将视频生成异常转换为面向用户的提示。"""
    return _describe(exc, VIDEO_ERROR_MESSAGES, VIDEO_DEFAULT_ERROR)


def clean_video_prompt(text: str) -> str:
    """去掉消息中的视频生成指令词。"""
    return _VIDEO_COMMAND_RE.sub("", text or "").strip()


class Capability(abc.ABC):
    """宿主可调用的能力接口。"""

    name: str = ""
    similes: tuple[str, ...] = ()
    description: str = ""
    example_prompt: str = ""

    def __init__(self, service: LoraLabService):
        self.service = service

    @property
    def config(self):
        return self.service.config

    @property
    def generator(self):
        return self.service.generator

    def validate(self, request: ActionRequest | None = None) -> bool:
        """API Key 已配置时才允许执行。"""
        if not self.config.has_api_key:
            logger.error(f"{LOG_PREFIX} 未配置 API Key，{self.name} 不可用")
            return False
        return True

    def _require_api_key(self) -> None:
        if not self.config.has_api_key:
            raise MissingCredentialError(
                f"LORALAB_API_KEY is not provided. Cannot run {self.name}."
            )

    @abc.abstractmethod
    def extract_prompt(self, request: ActionRequest) -> str:
        """从请求中提取提示词。"""

    @abc.abstractmethod
    async def handle(self, request: ActionRequest, callback: HandlerCallback) -> Content:
        """执行能力并通过回调发送结果，总会返回一条内容。"""

    async def _send_error(
        self, request: ActionRequest, callback: HandlerCallback, content: Content
    ) -> Content:
        logger.info(f"{LOG_PREFIX} 发送错误提示: {content.text!r}")
        try:
            await callback(content)
        except Exception as e:
            logger.error(f"{LOG_PREFIX} 发送错误提示失败: {e}")
        return content


class GenerateImageAction(Capability):
    """GENERATE_IMAGE：增强提示词后生成图片。"""

    name = IMAGE_ACTION_NAME
    similes = (
        "CREATE_IMAGE",
        "MAKE_IMAGE",
        "DRAW_IMAGE",
        "GENERATE_A",
        "DRAW",
        "DRAW_A",
        "MAKE_A",
    )
    description = "Generates an image using the LoraLab API based on a text prompt"
    example_prompt = "a sunset over mountains"

    def extract_prompt(self, request: ActionRequest) -> str:
        return request.explicit_prompt or (request.text or "").strip()

    async def handle(self, request: ActionRequest, callback: HandlerCallback) -> Content:
        try:
            logger.info(f"{LOG_PREFIX} 处理 {self.name}")
            self._require_api_key()

            prompt = self.extract_prompt(request)
            if not prompt:
                raise EmptyPromptError("No prompt provided for image generation")

            result = await self.generator.generate_image(prompt, request.task_id)
            attachment = Attachment(
                url=result.url,
                title="Generated Image",
                source=IMAGE_ATTACHMENT_SOURCE,
                description=f'Image generated from prompt: "{result.enhanced_prompt}"',
                content_type=self.config.image_output_format.mime_type,
                text="Here's your generated image.",
            )
            if result.generation_id:
                attachment.id = result.generation_id

            content = Content(
                text=f'已根据提示词生成图片: "{result.enhanced_prompt}"',
                actions=[self.name],
                source=request.source,
                attachments=[attachment],
            )

            try:
                await callback(content)
            except Exception as e:
                # 附件发送失败时退化为纯文本链接
                logger.error(f"{LOG_PREFIX} 发送图片失败: {e}")
                await callback(
                    Content(
                        text=f"图片已生成，但显示时出现问题，可以直接访问: {result.url}",
                        actions=[self.name],
                        source=request.source,
                    )
                )
            return content
        except Exception as exc:
            logger.error(f"{LOG_PREFIX} {self.name} 执行失败: {exc}")
            return await self._send_error(request, callback, self._error_content(exc, request))

    def _error_content(self, exc: BaseException, request: ActionRequest) -> Content:
        content = Content(
            text=describe_image_error(exc),
            actions=[self.name],
            source=request.source,
        )
        partial_url = getattr(exc, "partial_url", None)
        if partial_url:
            content.text += f"\n\n可以尝试直接访问图片: {partial_url}"
            content.attachments = [
                Attachment(
                    id=ERROR_ATTACHMENT_ID,
                    url=partial_url,
                    title="Generated Image (Error Recovery)",
                    source=IMAGE_ATTACHMENT_SOURCE,
                    description="Image recovered from error response",
                    content_type=self.config.image_output_format.mime_type,
                    text="Here's the image that was generated before the error.",
                )
            ]
        return content


class GenerateVideoAction(Capability):
    """GENERATE_VIDEO：提交视频任务，轮询完成后下载并发送。"""

    name = VIDEO_ACTION_NAME
    similes = ("CREATE_VIDEO", "MAKE_VIDEO", "RENDER_VIDEO", "VIDEO_GEN", "ANIMATE")
    description = "Generates a video using the LoraLab API based on a text prompt"
    example_prompt = "a sunset over mountains"

    def extract_prompt(self, request: ActionRequest) -> str:
        return request.explicit_prompt or clean_video_prompt(request.text)

    async def handle(self, request: ActionRequest, callback: HandlerCallback) -> Content:
        try:
            logger.info(f"{LOG_PREFIX} 处理 {self.name}")
            self._require_api_key()

            prompt = self.extract_prompt(request)
            if not prompt:
                raise EmptyPromptError("No prompt provided for video generation")

            await callback(
                Content(
                    text=f'正在根据提示词生成视频: "{prompt}"，大约需要一分钟……',
                    actions=[self.name],
                    source=request.source,
                )
            )

            result = await self.generator.generate_video(prompt, request.task_id)

            if result.local_path:
                content = self._video_content(request, prompt, f"file://{result.local_path}")
                try:
                    await callback(content, [result.local_path])
                    logger.info(f"{LOG_PREFIX} 本地视频已发送: {result.local_path}")
                    return content
                except Exception as e:
                    logger.error(f"{LOG_PREFIX} 发送本地视频失败，改用远程地址: {e}")

            content = self._video_content(request, prompt, result.remote_url, remote=True)
            await callback(content)
            logger.info(f"{LOG_PREFIX} 远程视频链接已发送: {result.remote_url}")
            return content
        except Exception as exc:
            logger.error(f"{LOG_PREFIX} {self.name} 执行失败: {exc}")
            return await self._send_error(
                request,
                callback,
                Content(
                    text=describe_video_error(exc),
                    actions=[self.name],
                    source=request.source,
                ),
            )

    def _video_content(
        self, request: ActionRequest, prompt: str, url: str, remote: bool = False
    ) -> Content:
        suffix = " (remote link)" if remote else ""
        return Content(
            text=f'这是根据提示词生成的视频: "{prompt}"',
            actions=[self.name],
            source=request.source,
            attachments=[
                Attachment(
                    url=url,
                    title="Generated Video (Remote Link)" if remote else "Generated Video",
                    source=VIDEO_ATTACHMENT_SOURCE,
                    description=f'Video generated from prompt: "{prompt}"{suffix}',
                    content_type=VIDEO_CONTENT_TYPE,
                    text=f"Here's your generated video{suffix}.",
                )
            ],
        )
