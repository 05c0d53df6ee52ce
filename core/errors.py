"""
Error taxonomy for LoraLab generation plugin
LoraLab 生成插件的异常类型
"""

from __future__ import annotations

import json
import re


_URL_RE = re.compile(r'https?://[^\s"]+')


class LoraLabError(Exception):
    """插件异常基类。

    partial_url 用于携带在出错前已经拿到的结果地址，
    上层处理器可据此尽量向用户返回部分结果。
    """

    def __init__(self, message: str, *, partial_url: str | None = None):
        super().__init__(message)
        self.message = message
        self.partial_url = partial_url


class MissingCredentialError(LoraLabError):
    """未配置 API Key。"""


class EmptyPromptError(LoraLabError):
    """未提供提示词。"""


class APIStatusError(LoraLabError):
    """上游接口返回非 2xx 状态码。"""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        detail: str = "",
        body: str = "",
        partial_url: str | None = None,
    ):
        super().__init__(message, partial_url=partial_url)
        self.status = status
        self.detail = detail
        self.body = body


class ContentRestrictedError(APIStatusError):
    """HTTP 500：通常是内容限制或提示词过于复杂。"""


class BadRequestError(APIStatusError):
    """HTTP 400：请求参数有误。"""


class AuthenticationError(APIStatusError):
    """HTTP 401 / 403：API Key 无效或无权限。"""


class MalformedResponseError(LoraLabError):
    """响应无法解析或缺少必要字段。"""


class MissingResultURLError(MalformedResponseError):
    """响应解析成功但没有结果地址。"""


class VideoGenerationFailedError(LoraLabError):
    """视频任务状态变为 failed。"""


class VideoGenerationTimeoutError(LoraLabError):
    """轮询次数用尽仍未完成。"""


class PollCancelledError(LoraLabError):
    """轮询被调用方取消。"""


class DownloadError(LoraLabError):
    """下载或保存结果文件失败，由调用方就地恢复。"""


def _find_url(text: str | None) -> str | None:
    """在错误文本中查找第一个结果地址。"""
    match = _URL_RE.search(text or "")
    return match.group(0) if match else None


def parse_error_detail(body: str) -> tuple[str, str | None]:
    """从错误响应体中提取 detail 以及可能存在的结果地址。

    优先使用 JSON 中的 url 字段，其次在 detail（非 JSON 时为原始响应体）中查找链接。
    """
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return body or "Unknown error", _find_url(body)

    if not isinstance(data, dict):
        return "Unknown API error", None

    detail = data.get("detail") or "Unknown API error"
    if not isinstance(detail, str):
        detail = json.dumps(detail, ensure_ascii=False)
    url = data.get("url")
    if not isinstance(url, str) or not url:
        url = _find_url(detail)
    return detail, url


def raise_for_status(status: int, body: str, *, action: str = "Image generation") -> None:
    """将非 2xx 响应映射为对应的异常类型。"""
    if 200 <= status < 300:
        return

    detail, partial_url = parse_error_detail(body)
    kwargs = {
        "status": status,
        "detail": detail,
        "body": body,
        "partial_url": partial_url,
    }

    if status == 500:
        raise ContentRestrictedError(
            f"{action} failed. This may be due to content restrictions or prompt "
            f"complexity. Please try a different prompt. API message: {detail}",
            **kwargs,
        )
    if status == 400:
        raise BadRequestError(f"Invalid request: {detail}", **kwargs)
    if status in (401, 403):
        raise AuthenticationError(
            "Authentication failed. Please check your API key.", **kwargs
        )
    raise APIStatusError(f"{action} failed ({status}): {detail}", **kwargs)
