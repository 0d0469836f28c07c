import json

import httpx
import pytest
from unittest.mock import patch

from app.core.errors import SummarizerError
from app.core.providers.pipeline import PipelineProvider

API_URL = "https://pipeline.example.com/run"
RealAsyncClient = httpx.AsyncClient


def mock_transport(handler):
    """Patch the provider's AsyncClient so requests go to ``handler``."""
    return patch(
        "app.core.providers.pipeline.httpx.AsyncClient",
        side_effect=lambda **kwargs: RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs),
    )


class TestPipelineProvider:

    @pytest.fixture
    def provider(self):
        return PipelineProvider(api_url=API_URL, api_key="secret-key", timeout=5.0, verbose=False)

    def test_provider_name(self, provider):
        assert provider.get_provider_name() == "pipeline"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_health_check(self, provider):
        assert await provider.health_check() is True

    @pytest.mark.asyncio
    async def test_ask_sends_sync_request(self, provider):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers.get("X-API-KEY")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": "A short summary", "isBackupPipeline": True})

        with mock_transport(handler):
            answer = await provider.ask("Summarize this: hello")

        assert answer.result == "A short summary"
        assert answer.is_backup_pipeline is True
        assert seen == {
            "url": API_URL,
            "api_key": "secret-key",
            "body": {"userInput": "Summarize this: hello", "asyncOutput": False},
        }

    @pytest.mark.asyncio
    async def test_error_status(self, provider):
        with mock_transport(lambda request: httpx.Response(503, text="unavailable")):
            with pytest.raises(SummarizerError) as exc_info:
                await provider.ask("hello")

        assert exc_info.value.status_code == 503
        assert "503" in exc_info.value.user_message()

    @pytest.mark.asyncio
    async def test_invalid_json(self, provider):
        with mock_transport(lambda request: httpx.Response(200, text="<html>oops</html>")):
            with pytest.raises(SummarizerError) as exc_info:
                await provider.ask("hello")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_connection_error(self, provider):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with mock_transport(handler):
            with pytest.raises(SummarizerError, match="request failed"):
                await provider.ask("hello")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        provider = PipelineProvider(verbose=False)
        provider.api_url = ""

        with pytest.raises(SummarizerError, match="not configured"):
            await provider.ask("hello")


class TestParseAnswer:

    def test_result_field(self):
        assert PipelineProvider.parse_answer({"result": "done"}).result == "done"

    @pytest.mark.parametrize("field", ["answer", "response", "output"])
    def test_alternate_fields(self, field):
        answer = PipelineProvider.parse_answer({field: "done"})

        assert answer.result == "done"
        assert answer.is_backup_pipeline is False

    def test_plain_string_body(self):
        assert PipelineProvider.parse_answer("done").result == "done"

    @pytest.mark.parametrize("payload", [{}, {"result": ""}, {"result": 42}, [], None])
    def test_missing_result(self, payload):
        with pytest.raises(SummarizerError, match="result"):
            PipelineProvider.parse_answer(payload)
