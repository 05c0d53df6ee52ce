from __future__ import annotations

import hashlib
import time
from typing import Any

import astrbot.api.message_components as Comp
from astrbot.api import logger
from astrbot.api.event import AstrMessageEvent, MessageChain, filter
from astrbot.api.star import Context, Star
from astrbot.core.config.astrbot_config import AstrBotConfig

from .core.actions import Capability, GenerateImageAction, GenerateVideoAction
from .core.config import load_config
from .core.constants import LOG_PREFIX, STATUS_ROUTE
from .core.llm_tool import ImageGenerationTool, VideoGenerationTool
from .core.service import LoraLabService
from .core.types import ActionRequest, Content


class LoraLabPlugin(Star):
    """LoraLab 图片 / 视频生成插件"""

    def __init__(self, context: Context, config: AstrBotConfig | None = None):
        super().__init__(context)
        self.context = context
        self.config = config or AstrBotConfig()

        self.plugin_config = load_config(self.config)
        self.service = LoraLabService(self.plugin_config)
        self.image_action = GenerateImageAction(self.service)
        self.video_action = GenerateVideoAction(self.service)
        self.actions: dict[str, Capability] = {
            action.name: action for action in (self.image_action, self.video_action)
        }

        if self.plugin_config.enable_llm_tool:
            self.context.add_llm_tools(
                ImageGenerationTool(plugin=self), VideoGenerationTool(plugin=self)
            )
            logger.info(f"{LOG_PREFIX} 已注册图片 / 视频生成工具")

        self.context.register_web_api(
            STATUS_ROUTE, self.status_api, ["GET"], "LoraLab 插件配置状态"
        )

        logger.info(
            f"{LOG_PREFIX} 插件加载完成，API Key: {'已配置' if self.plugin_config.has_api_key else '未配置'}"
        )

    async def initialize(self):
        """插件启用时启动服务。"""
        await self.service.start()

    # --------------------------- 指令处理 ----------------------------
    @filter.command(
        "生成图片", alias={"generate_image", "create_image", "make_image", "draw_image", "draw"}
    )
    async def generate_image_command(self, event: AstrMessageEvent):
        """根据提示词生成图片。"""
        async for result in self._run_command(
            event, self.image_action, "生成图片", started_message="已开始生图任务"
        ):
            yield result

    @filter.command(
        "生成视频", alias={"generate_video", "create_video", "make_video", "render_video", "animate"}
    )
    async def generate_video_command(self, event: AstrMessageEvent):
        """根据提示词生成视频。"""
        async for result in self._run_command(event, self.video_action, "生成视频"):
            yield result

    @filter.event_message_type(filter.EventMessageType.ALL)
    async def on_message_received(self, event: AstrMessageEvent):
        """消息监听，仅记录日志。"""
        logger.debug(f"{LOG_PREFIX} 收到消息事件")

    async def status_api(self):
        """配置状态查询路由。"""
        return self.service.status()

    # ----------------------------- 辅助方法 ---------------------------
    async def _run_command(
        self,
        event: AstrMessageEvent,
        action: Capability,
        command: str,
        started_message: str | None = None,
    ):
        user_id = event.unified_msg_origin
        masked_uid = user_id[:4] + "****" + user_id[-4:] if len(user_id) > 8 else user_id

        user_input = (event.message_str or "").strip()
        logger.info(f"{LOG_PREFIX} 收到 {action.name} 指令 - 用户: {masked_uid}, 输入: {user_input}")

        if not action.validate():
            yield event.plain_result("❌ 未配置 API Key，请先在插件配置中填写 api_key")
            return

        cmd_parts = user_input.split(maxsplit=1)
        text = cmd_parts[1].strip() if len(cmd_parts) > 1 else ""
        if not text:
            yield event.plain_result(f"❌ 请提供提示词，例如: /{command} {action.example_prompt}")
            return

        # 视频能力会自行发送进度提示
        if started_message:
            yield event.plain_result(started_message)

        self.launch_action(
            action,
            unified_msg_origin=user_id,
            text=text,
            source=event.get_platform_name(),
        )

    def get_action(self, name: str) -> Capability:
        return self.actions[name]

    def launch_action(
        self,
        action: Capability,
        unified_msg_origin: str,
        text: str = "",
        options: dict[str, Any] | None = None,
        source: str | None = None,
    ) -> str:
        """在后台执行能力，返回任务 ID。"""
        task_id = hashlib.md5(f"{time.time()}{unified_msg_origin}".encode()).hexdigest()[:8]
        request = ActionRequest(
            text=text,
            source=source,
            options=options or {},
            task_id=task_id,
        )
        self.service.create_background_task(
            action.handle(request, self._make_callback(unified_msg_origin)),
            name=f"{action.name}-{task_id}",
        )
        logger.info(f"{LOG_PREFIX} 已启动 {action.name} 任务 {task_id}")
        return task_id

    def _make_callback(self, unified_msg_origin: str):
        async def callback(content: Content, files: list[str] | None = None) -> None:
            await self.context.send_message(unified_msg_origin, self._to_message_chain(content))

        return callback

    @staticmethod
    def _to_message_chain(content: Content) -> MessageChain:
        """将 Content 转换为 AstrBot 消息链。"""
        chain = MessageChain().message(content.text)
        for attachment in content.attachments:
            local_path = attachment.local_path
            if attachment.content_type.startswith("video/"):
                chain.chain.append(
                    Comp.Video.fromFileSystem(local_path)
                    if local_path
                    else Comp.Video.fromURL(attachment.url)
                )
            elif local_path:
                chain.file_image(local_path)
            else:
                chain.url_image(attachment.url)
        return chain

    async def terminate(self):
        """插件卸载时清理资源。"""
        try:
            await self.service.stop()
            logger.info(f"{LOG_PREFIX} 插件已卸载")
        except Exception as exc:
            logger.error(f"{LOG_PREFIX} 卸载清理出错: {exc}")
