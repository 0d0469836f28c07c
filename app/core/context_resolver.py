"""
Decides what a "Summarize" action should summarize.

Resolution is an ordered list of strategies. Each one either returns a
``ConversationScope`` or ``TryNext``; ``resolve`` walks the list and stops at
the first scope. A strategy fails the request by raising
``NoContentAvailable`` only when recent channel history is empty or
unreadable, or when Slack reports the channel itself as unreadable
(``TERMINAL_ERRORS``).
"""

import logging
from typing import Awaitable, Callable, List, Optional, Union

from app.config import get_settings
from app.core.errors import NoContentAvailable
from app.core.models import (
    ApiResult,
    ContextScope,
    ConversationScope,
    Message,
    MessageReference,
    RecentScope,
    ThreadScope,
    TryNext,
    chronological,
)
from app.core.timestamps import normalize
from app.slack.client import SlackApi, get_slack_api

logger = logging.getLogger(__name__)

StrategyOutcome = Union[ThreadScope, ContextScope, RecentScope, TryNext]
Strategy = Callable[[MessageReference], Awaitable[StrategyOutcome]]

# Errors meaning Slack did not accept the thread root we sent.
THREAD_RETRY_ERRORS = {"invalid_arguments", "thread_not_found"}
# Errors meaning the channel itself is unreadable; no strategy can succeed.
TERMINAL_ERRORS = {"channel_not_found", "not_in_channel", "missing_scope"}


class ContextResolver:

    def __init__(
        self,
        api: Optional[SlackApi] = None,
        before_limit: Optional[int] = None,
        after_limit: Optional[int] = None,
        recent_limit: Optional[int] = None,
        verbose: bool = False,
    ):
        settings = get_settings()
        self.api = api or get_slack_api()
        self.before_limit = before_limit if before_limit is not None else settings.context_before_limit
        self.after_limit = after_limit if after_limit is not None else settings.context_after_limit
        self.recent_limit = recent_limit if recent_limit is not None else settings.recent_history_limit
        self.verbose = verbose

    @property
    def strategies(self) -> List[Strategy]:
        return [self.resolve_thread, self.resolve_with_context, self.resolve_recent]

    async def resolve(self, ref: MessageReference) -> ConversationScope:
        for strategy in self.strategies:
            outcome = await strategy(ref)
            if isinstance(outcome, TryNext):
                logger.info(f"[SUMMARY] {strategy.__name__}: skipped ({outcome.reason})")
                continue
            logger.info(
                f"[SUMMARY] {strategy.__name__}: resolved {outcome.kind} scope "
                f"with {len(outcome.messages)} messages"
            )
            return outcome

        raise NoContentAvailable("No messages available to summarize")

    async def resolve_thread(self, ref: MessageReference) -> StrategyOutcome:
        if not ref.thread_ts:
            return TryNext(reason="not a thread message")

        root_ts = normalize(ref.thread_ts)
        if not root_ts:
            return TryNext(reason=f"thread_ts {ref.thread_ts!r} is not repairable")

        target_ts = normalize(ref.message_ts) or None
        result = await self.api.conversation_replies(ref.channel_id, root_ts)

        if not result.ok and result.error in THREAD_RETRY_ERRORS and target_ts and target_ts != root_ts:
            logger.info(f"[SUMMARY] Thread fetch failed with {result.error}, retrying with target ts {target_ts}")
            root_ts = target_ts
            result = await self.api.conversation_replies(ref.channel_id, root_ts)

        if not result.ok:
            self._raise_if_terminal(result)
            return TryNext(reason=f"thread fetch failed: {result.error}")

        if len(result.messages) <= 1:
            return TryNext(reason="thread has no replies")

        return ThreadScope(
            thread_root_ts=root_ts,
            fallback_ts=target_ts,
            messages=self._convert(result, target_ts),
        )

    async def resolve_with_context(self, ref: MessageReference) -> StrategyOutcome:
        if not ref.message_ts:
            return TryNext(reason="no target message")

        target_ts = normalize(ref.message_ts)
        if not target_ts:
            return TryNext(reason=f"message_ts {ref.message_ts!r} is not repairable")

        before = await self.api.conversation_history(
            ref.channel_id, limit=self.before_limit, latest=target_ts, inclusive=False
        )
        if not before.ok:
            self._raise_if_terminal(before)
            return TryNext(reason=f"context before target unavailable: {before.error}")

        target = await self.api.conversation_history(
            ref.channel_id, limit=1, latest=target_ts, inclusive=True
        )
        if not target.ok:
            self._raise_if_terminal(target)
            return TryNext(reason=f"target message unavailable: {target.error}")
        # history returns the nearest earlier message when the target isn't in it
        if not target.messages or normalize(target.messages[0].get("ts")) != target_ts:
            return TryNext(reason="target message unavailable")

        after = await self.api.conversation_history(
            ref.channel_id, limit=self.after_limit, oldest=target_ts, inclusive=False
        )
        if not after.ok:
            self._raise_if_terminal(after)
            return TryNext(reason=f"context after target unavailable: {after.error}")

        messages = {}
        for result in (before, target, after):
            for message in self._convert(result, target_ts):
                messages[message.ts] = message

        return ContextScope(target_ts=target_ts, messages=chronological(list(messages.values())))

    async def resolve_recent(self, ref: MessageReference) -> StrategyOutcome:
        result = await self.api.conversation_history(ref.channel_id, limit=self.recent_limit)

        if not result.ok:
            raise NoContentAvailable(f"Could not fetch recent messages: {result.error}", error_code=result.error)
        if not result.messages:
            raise NoContentAvailable("Channel has no messages to summarize")

        return RecentScope(messages=self._convert(result))

    def _raise_if_terminal(self, result: ApiResult) -> None:
        if result.error in TERMINAL_ERRORS:
            raise NoContentAvailable(f"Channel is not readable: {result.error}", error_code=result.error)

    def _convert(self, result: ApiResult, target_ts: Optional[str] = None) -> List[Message]:
        if self.verbose:
            logger.info(f"[SUMMARY-VERBOSE] Raw messages: {result.messages}")
        return chronological([Message.from_slack(raw, target_ts) for raw in result.messages])
