"""Tests for the LLM-callable generation tools."""
from unittest.mock import MagicMock

import pytest

from astrbot.core.astr_agent_context import AstrAgentContext

from core.llm_tool import ImageGenerationTool, VideoGenerationTool


USER_ORIGIN = "aiocqhttp:GroupMessage:987654321"


@pytest.fixture
def event():
    evt = MagicMock()
    evt.unified_msg_origin = USER_ORIGIN
    evt.get_platform_name.return_value = "aiocqhttp"
    return evt


@pytest.fixture
def plugin():
    plg = MagicMock()
    plg.get_action.return_value.validate.return_value = True
    plg.launch_action.return_value = "abcd1234"
    return plg


def agent_context(event):
    """Tool context as the agent runner passes it."""
    wrapper = MagicMock()
    wrapper.context = MagicMock(spec=AstrAgentContext)
    wrapper.context.event = event
    return wrapper


class TestToolDefinitions:

    def test_names_and_parameters(self):
        image_tool = ImageGenerationTool()
        video_tool = VideoGenerationTool()

        assert image_tool.name == "loralab_generate_image"
        assert video_tool.name == "loralab_generate_video"
        for tool in (image_tool, video_tool):
            assert tool.parameters["required"] == ["prompt"]
            assert tool.parameters["properties"]["prompt"]["type"] == "string"


class TestToolCall:

    @pytest.mark.asyncio
    async def test_image_tool_launches_with_prompt_option(self, plugin, event):
        result = await ImageGenerationTool(plugin=plugin).call(
            agent_context(event), prompt="  a lighthouse at dusk  "
        )

        plugin.get_action.assert_called_once_with("GENERATE_IMAGE")
        plugin.launch_action.assert_called_once_with(
            plugin.get_action.return_value,
            unified_msg_origin=USER_ORIGIN,
            options={"prompt": "a lighthouse at dusk"},
            source="aiocqhttp",
        )
        assert "abcd1234" in result

    @pytest.mark.asyncio
    async def test_video_tool_routes_to_video_action(self, plugin, event):
        await VideoGenerationTool(plugin=plugin).call({"event": event}, prompt="a paper boat")

        plugin.get_action.assert_called_once_with("GENERATE_VIDEO")
        assert plugin.launch_action.call_args.kwargs["options"] == {"prompt": "a paper boat"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [{}, {"prompt": ""}, {"prompt": "   "}, {"prompt": None}])
    async def test_empty_prompt(self, plugin, event, kwargs):
        result = await ImageGenerationTool(plugin=plugin).call(agent_context(event), **kwargs)

        assert result == "❌ 请提供生成所需的提示词"
        plugin.launch_action.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_plugin(self, event):
        result = await VideoGenerationTool().call(agent_context(event), prompt="a boat")

        assert "插件未正确初始化" in result

    @pytest.mark.asyncio
    @pytest.mark.parametrize("context", [{}, object(), None])
    async def test_missing_event(self, plugin, context):
        result = await ImageGenerationTool(plugin=plugin).call(context, prompt="a cat")

        assert result == "❌ 无法获取当前消息上下文"
        plugin.launch_action.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_api_key(self, plugin, event):
        plugin.get_action.return_value.validate.return_value = False

        result = await ImageGenerationTool(plugin=plugin).call(agent_context(event), prompt="a cat")

        assert result == "❌ 未配置 API Key，无法生成"
        plugin.launch_action.assert_not_called()
