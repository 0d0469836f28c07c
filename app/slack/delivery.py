import logging
from typing import Any, Optional

from app.core.errors import InvalidThreadTimestamp
from app.core.models import ApiResult
from app.core.timestamps import normalize
from app.slack.client import SlackApi, get_slack_api

logger = logging.getLogger(__name__)


class SlackDelivery:
    """Posts regular and ephemeral messages, validating thread timestamps first."""

    def __init__(self, api: Optional[SlackApi] = None):
        self.api = api or get_slack_api()

    async def post_message(
        self,
        channel: str,
        text: str,
        reply_to_ts: Optional[str] = None,
        **kwargs: Any
    ) -> ApiResult:
        params = {"channel": channel, "text": text, **kwargs}

        if reply_to_ts:
            thread_ts = normalize(reply_to_ts)
            if not thread_ts:
                logger.warning(f"[SLACK POST] Invalid thread_ts format: {reply_to_ts!r}")
                raise InvalidThreadTimestamp(
                    f"Invalid thread_ts format: {reply_to_ts}",
                    error_code="invalid_thread_ts"
                )
            if thread_ts != reply_to_ts:
                logger.info(f"[SLACK POST] Repaired thread_ts {reply_to_ts!r} -> {thread_ts}")
            params["thread_ts"] = thread_ts

        logger.info(f"[SLACK POST] channel={channel} thread_ts={params.get('thread_ts')}")
        result = await self.api.call("chat_postMessage", **params)

        if not result.ok:
            logger.error(f"Failed to send message: {result.error}")
        return result

    async def post_ephemeral(
        self,
        channel: str,
        user: str,
        text: str,
        reply_to_ts: Optional[str] = None
    ) -> ApiResult:
        params = {"channel": channel, "user": user, "text": text}

        if reply_to_ts:
            thread_ts = normalize(reply_to_ts)
            if thread_ts:
                params["thread_ts"] = thread_ts
            else:
                logger.warning(
                    f"[SLACK EPHEMERAL] Invalid thread_ts format: {reply_to_ts!r} - "
                    "ephemeral will appear in main channel"
                )

        result = await self.api.call("chat_postEphemeral", **params)
        if not result.ok:
            logger.warning(f"[SLACK EPHEMERAL] Failed to send ephemeral message: {result.error}")
        return result


_delivery_instance = None


def get_delivery() -> SlackDelivery:
    global _delivery_instance
    if _delivery_instance is None:
        _delivery_instance = SlackDelivery()
    return _delivery_instance
