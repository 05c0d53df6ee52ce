"""
LLM 可调用的图片 / 视频生成工具模块
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic.dataclasses import dataclass as pydantic_dataclass

from astrbot.api import logger
from astrbot.core.agent.run_context import ContextWrapper
from astrbot.core.agent.tool import FunctionTool, ToolExecResult
from astrbot.core.astr_agent_context import AstrAgentContext

from .constants import LOG_PREFIX


def _prompt_parameters(description: str) -> dict:
    return {
        "type": "object",
        "properties": {
            "prompt": {
                "type": "string",
                "description": description,
            },
        },
        "required": ["prompt"],
    }


def _resolve_event(context: Any):
    """从工具调用上下文中取出消息事件。"""
    if hasattr(context, "context") and isinstance(context.context, AstrAgentContext):
        return context.context.event
    if isinstance(context, dict):
        return context.get("event")
    return None


async def _launch(plugin: Any, action_name: str, context: Any, kwargs: dict) -> str:
    prompt = (kwargs.get("prompt") or "").strip()
    if not prompt:
        return "❌ 请提供生成所需的提示词"

    if not plugin:
        return "❌ 插件未正确初始化 (Plugin instance missing)"

    event = _resolve_event(context)
    if not event:
        logger.warning(f"{LOG_PREFIX} 工具调用上下文缺少事件。上下文类型: {type(context)}")
        return "❌ 无法获取当前消息上下文"

    action = plugin.get_action(action_name)
    if not action.validate():
        logger.warning(
            f"{LOG_PREFIX} 工具调用失败: 未配置 API Key (用户: {event.unified_msg_origin})"
        )
        return "❌ 未配置 API Key，无法生成"

    task_id = plugin.launch_action(
        action,
        unified_msg_origin=event.unified_msg_origin,
        options={"prompt": prompt},
        source=event.get_platform_name(),
    )
    return f"✅ 已启动 {action_name} 任务 (任务ID: {task_id})，结果稍后发送"


@pydantic_dataclass
class ImageGenerationTool(FunctionTool[AstrAgentContext]):
    """LLM 可调用的图片生成工具。"""

    name: str = "loralab_generate_image"
    description: str = "使用 LoraLab 根据文字描述生成一张图片"
    parameters: dict = Field(
        default_factory=lambda: _prompt_parameters(
            "生图时使用的提示词(要将用户的意图原样传达给模型)。"
        )
    )

    # 实际类型为 LoraLabPlugin
    plugin: Any = None

    async def call(
        self, context: ContextWrapper[AstrAgentContext], **kwargs: Any
    ) -> ToolExecResult:
        """执行工具调用。"""
        return await _launch(self.plugin, "GENERATE_IMAGE", context, kwargs)


@pydantic_dataclass
class VideoGenerationTool(FunctionTool[AstrAgentContext]):
    """LLM 可调用的视频生成工具。"""

    name: str = "loralab_generate_video"
    description: str = "使用 LoraLab 根据文字描述生成一段短视频，耗时约一到五分钟"
    parameters: dict = Field(
        default_factory=lambda: _prompt_parameters("视频内容的描述，尽量具体地描述画面与动作。")
    )

    plugin: Any = None

    async def call(
        self, context: ContextWrapper[AstrAgentContext], **kwargs: Any
    ) -> ToolExecResult:
        """执行工具调用。"""
        return await _launch(self.plugin, "GENERATE_VIDEO", context, kwargs)
