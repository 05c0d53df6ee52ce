"""Shared test fixtures for the LoraLab plugin tests."""
import importlib
import importlib.util
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from core.config import PluginConfig
from core.constants import LORALAB_DEFAULT_BASE_URL


BASE_URL = LORALAB_DEFAULT_BASE_URL
VIDEO_URL = "https://cdn.example.com/videos/vid-1.mp4"

PLUGIN_ROOT = Path(__file__).resolve().parent.parent
PLUGIN_PACKAGE = "astrbot_plugin_loralab"


def import_plugin_module(name: str):
    """Import a plugin module through its package, the way AstrBot loads plugins.

    main.py uses relative imports, so it can only be imported as a submodule
    of the plugin package rooted at the repository directory.
    """
    if PLUGIN_PACKAGE not in sys.modules:
        spec = importlib.util.spec_from_file_location(
            PLUGIN_PACKAGE,
            PLUGIN_ROOT / "__init__.py",
            submodule_search_locations=[str(PLUGIN_ROOT)],
        )
        package = importlib.util.module_from_spec(spec)
        sys.modules[PLUGIN_PACKAGE] = package
        spec.loader.exec_module(package)
    return importlib.import_module(f"{PLUGIN_PACKAGE}.{name}")


# =============================================================================
# Fake aiohttp session
# =============================================================================

class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(
        self,
        status: int = 200,
        body: str = "",
        json_body: Any = None,
        data: Optional[bytes] = None,
    ):
        if json_body is not None:
            body = json.dumps(json_body)
        self.status = status
        self._body = body
        self._data = data if data is not None else body.encode()

    async def text(self) -> str:
        return self._body

    async def read(self) -> bytes:
        return self._data

    async def json(self) -> Any:
        return json.loads(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Scripted session: responses are queued per (method, url suffix).

    The last queued response for a route repeats once the queue is drained.
    Queued exceptions are raised when the request is made.
    """

    def __init__(self):
        self.closed = False
        self.requests: List[Dict[str, Any]] = []
        self._routes: List[Tuple[str, str, List[Any]]] = []

    def add(self, method: str, url_suffix: str, *responses: Any) -> "FakeSession":
        self._routes.append((method, url_suffix, list(responses)))
        return self

    def requests_to(self, method: str, url_suffix: str) -> List[Dict[str, Any]]:
        return [
            r for r in self.requests
            if r["method"] == method and r["url"].endswith(url_suffix)
        ]

    def _dispatch(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        for route_method, suffix, queue in self._routes:
            if route_method == method and url.endswith(suffix):
                item = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(item, BaseException):
                    raise item
                return item
        raise AssertionError(f"Unexpected request: {method} {url}")

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("POST", url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("GET", url, **kwargs)

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Injectable sleep that records delays without waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def attach_session(generator, session: FakeSession) -> FakeSession:
    """Point every client owned by a LoraLabGenerator at the same fake session."""
    generator.enhancer._session = session
    generator.image_client._session = session
    generator.video_client._session = session
    return session


def status_response(status: str, video_url: Optional[str] = None) -> FakeResponse:
    body: Dict[str, Any] = {"id": "vid-1", "generation_id": "gen-1", "status": status}
    if video_url:
        body["video_url"] = video_url
    return FakeResponse(json_body=body)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def config(tmp_path) -> PluginConfig:
    return PluginConfig(api_key="test-api-key", cache_dir=str(tmp_path / "content_cache"))


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
