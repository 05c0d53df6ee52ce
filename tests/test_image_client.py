"""Tests for the image generation client and HTTP error mapping."""
import pytest

from core.errors import (
    APIStatusError,
    AuthenticationError,
    BadRequestError,
    ContentRestrictedError,
    MalformedResponseError,
    MissingResultURLError,
    parse_error_detail,
    raise_for_status,
)
from core.image_client import ImageClient
from core.types import ImageGenerationRequest, ImageModelType

from conftest import FakeResponse


IMAGE_PATH = "/direct/images"


@pytest.fixture
def image_client(config, session):
    client = ImageClient(config)
    client._session = session
    return client


class TestImageClientSuccess:
    """Successful image generation."""

    @pytest.mark.asyncio
    async def test_returns_url_and_generation_id(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(json_body={
            "url": "https://cdn.example.com/img.webp",
            "generation_id": "gen-42",
        }))

        result = await image_client.generate(ImageGenerationRequest(prompt="a cat, detailed"))

        assert result.url == "https://cdn.example.com/img.webp"
        assert result.generation_id == "gen-42"
        assert result.enhanced_prompt == "a cat, detailed"

    @pytest.mark.asyncio
    async def test_fixed_request_parameters(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(json_body={"url": "https://x/y.webp"}))

        await image_client.generate(ImageGenerationRequest(prompt="a cat"))

        request = session.requests_to("POST", IMAGE_PATH)[0]
        assert request["json"] == {
            "prompt": "a cat",
            "enhance_prompt": False,
            "output_format": "webp",
            "aspect_ratio": "1:1",
        }
        assert request["headers"]["X-API-Key"] == "test-api-key"

    @pytest.mark.asyncio
    async def test_model_type_sent_when_set(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(json_body={"url": "https://x/y.webp"}))

        await image_client.generate(
            ImageGenerationRequest(prompt="a cat", model_type=ImageModelType.FLUX)
        )

        assert session.requests[0]["json"]["model_type"] == "flux"

    @pytest.mark.asyncio
    async def test_generation_id_optional(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(json_body={"url": "https://x/y.webp"}))

        result = await image_client.generate(ImageGenerationRequest(prompt="a cat"))

        assert result.generation_id is None


class TestImageClientMalformedResponse:
    """2xx responses that cannot be used."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"url": ""}, {"url": None}, {"generation_id": "g"}])
    async def test_missing_url(self, image_client, session, body):
        session.add("POST", IMAGE_PATH, FakeResponse(json_body=body))

        with pytest.raises(MissingResultURLError) as exc_info:
            await image_client.generate(ImageGenerationRequest(prompt="a cat"))

        assert not isinstance(exc_info.value, APIStatusError)
        assert "missing URL" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["<html>oops</html>", "", "[]"])
    async def test_unparseable_body(self, image_client, session, body):
        session.add("POST", IMAGE_PATH, FakeResponse(body=body))

        with pytest.raises(MalformedResponseError) as exc_info:
            await image_client.generate(ImageGenerationRequest(prompt="a cat"))

        assert not isinstance(exc_info.value, MissingResultURLError)
        assert not isinstance(exc_info.value, APIStatusError)


class TestImageClientStatusErrors:
    """Non-2xx responses map to distinct error categories."""

    @pytest.mark.asyncio
    async def test_500_is_content_restricted(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(status=500, json_body={"detail": "blocked"}))

        with pytest.raises(ContentRestrictedError) as exc_info:
            await image_client.generate(ImageGenerationRequest(prompt="a cat"))

        assert exc_info.value.status == 500
        assert exc_info.value.detail == "blocked"
        assert "content restrictions" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_400_is_bad_request(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(status=400, json_body={"detail": "prompt too long"}))

        with pytest.raises(BadRequestError, match="Invalid request: prompt too long"):
            await image_client.generate(ImageGenerationRequest(prompt="a cat"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    @pytest.mark.parametrize("body", ["", "plain text", '{"detail": "content restrictions"}'])
    async def test_401_403_are_authentication(self, image_client, session, status, body):
        session.add("POST", IMAGE_PATH, FakeResponse(status=status, body=body))

        with pytest.raises(AuthenticationError, match="API key"):
            await image_client.generate(ImageGenerationRequest(prompt="a cat"))

    @pytest.mark.asyncio
    async def test_other_status_is_generic(self, image_client, session):
        session.add("POST", IMAGE_PATH, FakeResponse(status=429, body="slow down"))

        with pytest.raises(APIStatusError) as exc_info:
            await image_client.generate(ImageGenerationRequest(prompt="a cat"))

        error = exc_info.value
        assert type(error) is APIStatusError
        assert error.status == 429
        assert "(429)" in str(error)
        assert "slow down" in str(error)


class TestErrorDetailParsing:
    """Error body parsing used by raise_for_status."""

    def test_json_detail(self):
        assert parse_error_detail('{"detail": "nope"}') == ("nope", None)

    def test_json_without_detail(self):
        assert parse_error_detail('{"error": "x"}') == ("Unknown API error", None)

    def test_raw_body(self):
        assert parse_error_detail("Gateway Timeout") == ("Gateway Timeout", None)

    def test_empty_body(self):
        assert parse_error_detail("") == ("Unknown error", None)

    def test_partial_url_is_kept(self):
        detail, url = parse_error_detail('{"detail": "late", "url": "https://x/img.webp"}')
        assert detail == "late"
        assert url == "https://x/img.webp"

    def test_url_embedded_in_detail(self):
        detail, url = parse_error_detail(
            '{"detail": "Upload timed out, image at https://cdn.example.com/img.webp was kept"}'
        )
        assert detail.startswith("Upload timed out")
        assert url == "https://cdn.example.com/img.webp"

    def test_url_embedded_in_raw_body(self):
        detail, url = parse_error_detail("gateway error, partial result: http://cdn.example.com/a.webp")
        assert detail.startswith("gateway error")
        assert url == "http://cdn.example.com/a.webp"

    def test_explicit_url_field_wins(self):
        _, url = parse_error_detail(
            '{"detail": "see https://docs.example.com", "url": "https://cdn.example.com/img.webp"}'
        )
        assert url == "https://cdn.example.com/img.webp"

    def test_detail_without_url(self):
        assert parse_error_detail('{"detail": "prompt rejected"}')[1] is None

    def test_2xx_does_not_raise(self):
        raise_for_status(200, "")
        raise_for_status(204, "")

    def test_partial_url_on_error(self):
        with pytest.raises(ContentRestrictedError) as exc_info:
            raise_for_status(500, '{"detail": "late", "url": "https://x/img.webp"}')

        assert exc_info.value.partial_url == "https://x/img.webp"
