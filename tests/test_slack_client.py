import pytest
from unittest.mock import Mock

from slack_sdk.errors import SlackApiError

from app.slack.client import SlackApi


def slack_response(data):
    response = Mock()
    response.data = data
    response.get = data.get
    return response


class TestSlackApi:

    @pytest.fixture
    def web_client(self):
        return Mock()

    @pytest.fixture
    def interactive_client(self):
        return Mock()

    @pytest.fixture
    def api(self, web_client, interactive_client):
        return SlackApi(client=web_client, interactive_client=interactive_client, verbose=False)

    @pytest.mark.asyncio
    async def test_successful_call(self, api, web_client):
        web_client.chat_postMessage.return_value = slack_response({"ok": True, "ts": "1700000000.000100"})

        result = await api.call("chat_postMessage", channel="C123", text="hi")

        assert result.ok
        assert result.data["ts"] == "1700000000.000100"
        web_client.chat_postMessage.assert_called_once_with(channel="C123", text="hi")

    @pytest.mark.asyncio
    async def test_slack_error_becomes_result(self, api, web_client):
        response = slack_response({"ok": False, "error": "invalid_arguments"})
        web_client.conversations_replies.side_effect = SlackApiError("invalid_arguments", response)

        result = await api.conversation_replies("C123", "1700000000.000100")

        assert not result.ok
        assert result.error == "invalid_arguments"
        assert result.messages == []

    @pytest.mark.asyncio
    async def test_network_error_becomes_result(self, api, web_client):
        web_client.users_info.side_effect = TimeoutError("timed out")

        result = await api.user_info("U1")

        assert not result.ok
        assert result.error == "request_failed"

    @pytest.mark.asyncio
    async def test_interactive_calls_use_short_timeout_client(self, api, web_client, interactive_client):
        interactive_client.views_open.return_value = slack_response({"ok": True})

        result = await api.call("views_open", interactive=True, trigger_id="T1", view={})

        assert result.ok
        interactive_client.views_open.assert_called_once_with(trigger_id="T1", view={})
        web_client.views_open.assert_not_called()

    @pytest.mark.asyncio
    async def test_history_window_parameters(self, api, web_client):
        web_client.conversations_history.return_value = slack_response({"ok": True, "messages": [{"ts": "1.1"}]})

        result = await api.conversation_history("C123", limit=3, latest="1700000000.000100")

        assert result.messages == [{"ts": "1.1"}]
        web_client.conversations_history.assert_called_once_with(
            channel="C123", limit=3, inclusive=False, latest="1700000000.000100"
        )

    @pytest.mark.asyncio
    async def test_helpers(self, api, web_client):
        web_client.conversations_join.return_value = slack_response({"ok": True})
        web_client.conversations_open.return_value = slack_response({"ok": True, "channel": {"id": "D1"}})

        await api.join_channel("C123")
        dm = await api.open_dm("U1")

        web_client.conversations_join.assert_called_once_with(channel="C123")
        web_client.conversations_open.assert_called_once_with(users="U1")
        assert dm.data["channel"]["id"] == "D1"
