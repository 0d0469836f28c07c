"""
Tests for the ChatProcessor class.
"""

import pytest
from unittest.mock import Mock, AsyncMock
from app.core.chat_processor import ChatProcessor
from app.core.errors import SummarizerError
from app.core.providers.models import AnswerResult


class TestChatProcessor:
    """Test cases for ChatProcessor."""

    @pytest.fixture
    def mock_provider(self):
        provider = Mock()
        provider.is_available = Mock(return_value=True)
        provider.get_provider_name = Mock(return_value="pipeline")
        provider.ask = AsyncMock(return_value=AnswerResult(result="Atlanta", is_backup_pipeline=True))
        return provider

    @pytest.fixture
    def chat_processor(self, mock_provider):
        """Create a ChatProcessor instance for testing."""
        return ChatProcessor(provider=mock_provider)

    @pytest.mark.asyncio
    async def test_process_message_success(self, chat_processor, mock_provider):
        result = await chat_processor.process_message("What is the capital of Georgia?", user_id="U123")

        mock_provider.ask.assert_awaited_once_with("What is the capital of Georgia?")
        assert result["response"] == "Atlanta"
        assert result["result"] == "Atlanta"
        assert result["is_backup_pipeline"] is True
        assert result["provider"] == "pipeline"
        assert "error" not in result

    @pytest.mark.asyncio
    async def test_process_message_provider_unavailable(self, chat_processor, mock_provider):
        mock_provider.is_available.return_value = False

        result = await chat_processor.process_message("Hello")

        mock_provider.ask.assert_not_called()
        assert result["error"] == "Provider not available"
        assert "not currently available" in result["response"]

    @pytest.mark.asyncio
    async def test_process_message_error_status(self, chat_processor, mock_provider):
        mock_provider.ask.side_effect = SummarizerError("AI API returned error: 502", status_code=502)

        result = await chat_processor.process_message("Hello")

        assert result["status_code"] == 502
        assert result["response"] == "AI error: 502"
        assert result["result"] is None

    @pytest.mark.asyncio
    async def test_process_message_malformed_response(self, chat_processor, mock_provider):
        mock_provider.ask.side_effect = SummarizerError('AI response missing expected "result" field')

        result = await chat_processor.process_message("Hello")

        assert result["status_code"] is None
        assert result["response"].startswith("Sorry, I encountered an error:")

    def test_format_slash_reply(self, chat_processor):
        text = chat_processor.format_slash_reply({"result": "Atlanta", "is_backup_pipeline": False})

        assert text == "Result from AI Assistant:\n*Atlanta*\nIs Backup Pipeline: No"

    def test_format_dm_reply(self, chat_processor):
        text = chat_processor.format_dm_reply("Capital?", {"result": "Atlanta", "is_backup_pipeline": True})

        assert text == 'You asked: "Capital?"\n\nResult: *Atlanta*\nIs Backup Pipeline: Yes'

    def test_format_mention_reply(self, chat_processor):
        text = chat_processor.format_mention_reply("Capital?", {"result": "Atlanta"})

        assert text == 'You asked: "Capital?"\n\n*Atlanta*\nIs Backup Pipeline: No'

    def test_format_modal_reply(self, chat_processor):
        assert chat_processor.format_modal_reply("Capital?", {"result": "Atlanta"}) == 'You asked: "Capital?"\n\n*Atlanta*'
