"""
Async adapter over the synchronous slack_sdk WebClient.

Calls run in a thread pool so they don't block the event loop, and Slack
errors come back as an ``ApiResult`` carrying Slack's error code instead of
an exception, so callers can branch on codes like ``invalid_arguments``.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.client import WebClient

from app.config import get_settings
from app.core.models import ApiResult

logger = logging.getLogger(__name__)


class SlackApi:

    def __init__(
        self,
        client: Optional[WebClient] = None,
        interactive_client: Optional[WebClient] = None,
        verbose: Optional[bool] = None,
    ):
        settings = get_settings()
        self.client = client or WebClient(token=settings.slack_bot_token)
        # views.open must answer before the trigger_id expires
        self.interactive_client = interactive_client or WebClient(
            token=settings.slack_bot_token,
            timeout=settings.interactive_timeout_seconds,
        )
        self.verbose = settings.verbose if verbose is None else verbose
        self.executor = ThreadPoolExecutor(max_workers=8)

    async def call(self, method: str, interactive: bool = False, **kwargs) -> ApiResult:
        client = self.interactive_client if interactive else self.client
        api_method = getattr(client, method)

        if self.verbose:
            logger.info(f"[SLACK API] {method} {kwargs}")

        try:
            response = await asyncio.get_event_loop().run_in_executor(
                self.executor,
                lambda: api_method(**kwargs)
            )
        except SlackApiError as e:
            error = e.response.get("error", "unknown_error") if e.response is not None else "unknown_error"
            logger.warning(f"[SLACK API] {method} failed: {error}")
            data = dict(e.response.data) if e.response is not None and isinstance(e.response.data, dict) else {}
            return ApiResult(ok=False, error=error, data=data)
        except OSError as e:
            # urllib connection errors and socket timeouts
            logger.error(f"[SLACK API] {method} request failed: {str(e)}")
            return ApiResult(ok=False, error="request_failed")

        data = response.data if isinstance(response.data, dict) else {}
        if not data.get("ok", False):
            return ApiResult(ok=False, error=data.get("error", "unknown_error"), data=data)
        return ApiResult(ok=True, data=data)

    async def conversation_history(
        self,
        channel: str,
        limit: int,
        latest: Optional[str] = None,
        oldest: Optional[str] = None,
        inclusive: bool = False,
    ) -> ApiResult:
        params: Dict[str, Any] = {"channel": channel, "limit": limit, "inclusive": inclusive}
        if latest:
            params["latest"] = latest
        if oldest:
            params["oldest"] = oldest
        return await self.call("conversations_history", **params)

    async def conversation_replies(self, channel: str, ts: str) -> ApiResult:
        return await self.call("conversations_replies", channel=channel, ts=ts)

    async def user_info(self, user: str) -> ApiResult:
        return await self.call("users_info", user=user)

    async def join_channel(self, channel: str) -> ApiResult:
        return await self.call("conversations_join", channel=channel)

    async def open_dm(self, user: str) -> ApiResult:
        return await self.call("conversations_open", users=user)


_slack_api_instance = None


def get_slack_api() -> SlackApi:
    global _slack_api_instance
    if _slack_api_instance is None:
        _slack_api_instance = SlackApi()
    return _slack_api_instance
