"""
Summarization pipeline behind the "Summarize" message action.

    resolve scope -> resolve identities -> summarize -> deliver

Each stage runs after the previous one; identity lookups are the only
concurrent step. Delivery walks a fallback cascade (threaded reply, alternate
thread root, plain message, simplified message) before giving up.
"""

import logging
from typing import Dict, List, Optional, Tuple

from app.config import get_settings
from app.core.context_resolver import ContextResolver
from app.core.errors import DeliveryError, RelayError
from app.core.identity import IdentityResolver
from app.core.models import (
    ContextScope,
    ConversationScope,
    DeliveryTarget,
    MessageReference,
    ThreadScope,
)
from app.core.providers.base import BasePipelineProvider
from app.core.providers.pipeline import get_pipeline_provider
from app.slack.client import SlackApi, get_slack_api
from app.slack.delivery import SlackDelivery

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... (truncated)"
SIMPLIFIED_LIMIT = 1000
THREAD_NOTE = "*Note: This summary was meant to be posted in the thread but failed. Thread summary:*\n\n"
REPLY_NOTE = "*Note: This should have been a reply but failed. Message summary:*\n\n"
PROCESSING_TEXT = ":thinking_face: Processing your summary request..."


class SummarizationOrchestrator:

    def __init__(
        self,
        api: Optional[SlackApi] = None,
        provider: Optional[BasePipelineProvider] = None,
        resolver: Optional[ContextResolver] = None,
        identities: Optional[IdentityResolver] = None,
        delivery: Optional[SlackDelivery] = None,
        max_chars: Optional[int] = None,
        verbose: Optional[bool] = None,
    ):
        settings = get_settings()
        self.verbose = settings.verbose if verbose is None else verbose
        self.api = api or get_slack_api()
        self.provider = provider or get_pipeline_provider()
        self.resolver = resolver or ContextResolver(api=self.api, verbose=self.verbose)
        self.identities = identities or IdentityResolver(api=self.api, verbose=self.verbose)
        self.delivery = delivery or SlackDelivery(api=self.api)
        self.max_chars = max_chars or settings.summary_max_chars

    async def run(self, ref: MessageReference) -> bool:
        """Summarize the conversation around ``ref`` and post the result.

        Returns ``True`` once a summary was delivered. Terminal failures are
        logged and reported to the invoking user with one ephemeral message.
        """
        logger.info(f"[SUMMARY] Processing summarize request in {ref.channel_id} for {ref.user_id}")
        await self.delivery.post_ephemeral(
            ref.channel_id,
            ref.user_id,
            PROCESSING_TEXT,
            reply_to_ts=ref.thread_ts or ref.message_ts
        )

        try:
            await self._join_channel(ref.channel_id)
            scope = await self.resolver.resolve(ref)
            identities = await self.identities.resolve(scope.author_ids())
            summary = await self.summarize(scope, identities)
            target = await self.deliver(scope, ref, summary)
        except RelayError as e:
            logger.error(f"[SUMMARY] Error: {e}")
            await self.notify_failure(ref, e.user_message())
            return False
        except Exception as e:
            logger.error(f"[SUMMARY] Unexpected error: {str(e)}", exc_info=True)
            await self.notify_failure(ref, f"Error summarizing content: {str(e)}")
            return False

        logger.info(
            f"[SUMMARY-SUCCESS] Posted {scope.kind} summary of {len(scope.messages)} messages "
            f"(reply_to={target.reply_to_ts or 'none (new message)'})"
        )
        return True

    def render(self, scope: ConversationScope, identities: Dict[str, str]) -> str:
        highlight = isinstance(scope, ContextScope) and scope.has_context
        lines = []
        for message in scope.messages:
            name = identities.get(message.author_id, message.author_id) if message.author_id else "User"
            line = f"{name}: {message.text}"
            if highlight and message.is_target:
                line = f">> {line} <<"
            lines.append(line)

        text = "\n".join(lines)
        if len(text) > self.max_chars:
            text = text[:self.max_chars] + TRUNCATION_MARKER
        return text

    async def summarize(self, scope: ConversationScope, identities: Dict[str, str]) -> str:
        rendered = self.render(scope, identities)
        logger.info(f"[SUMMARY] Summarizing {len(scope.messages)} messages ({scope.kind} context)")
        if self.verbose:
            logger.info(f"[SUMMARY-VERBOSE] Prompt text: {rendered}")

        answer = await self.provider.ask(f"{scope.instruction()} {rendered}")
        return answer.result

    async def deliver(self, scope: ConversationScope, ref: MessageReference, summary: str) -> DeliveryTarget:
        text = f"{scope.heading()}\n{summary}"
        last_error = None

        for reply_to_ts in self._reply_candidates(scope):
            ok, error = await self._try_post(ref.channel_id, text, reply_to_ts)
            if ok:
                return DeliveryTarget(channel_id=ref.channel_id, reply_to_ts=reply_to_ts)
            logger.warning(f"[SUMMARY] Failed to post as reply to {reply_to_ts}: {error}")
            last_error = error

        if scope.reply_to_ts:
            logger.warning("[SUMMARY] All reply attempts failed, sending as new message")
            note = THREAD_NOTE if isinstance(scope, ThreadScope) else REPLY_NOTE
            text = note + text

        ok, error = await self._try_post(ref.channel_id, text)
        if ok:
            return DeliveryTarget(channel_id=ref.channel_id)
        last_error = error or last_error

        simplified = (
            f"*Summary* (Error posting full response: {last_error})\n\n"
            f"{summary[:SIMPLIFIED_LIMIT]}..."
        )
        ok, error = await self._try_post(ref.channel_id, simplified)
        if ok:
            logger.info("[SUMMARY] Posted simplified summary after errors")
            return DeliveryTarget(channel_id=ref.channel_id)

        raise DeliveryError(f"Failed to post any summary: {error}", error_code=error)

    def _reply_candidates(self, scope: ConversationScope) -> List[str]:
        candidates = []
        if scope.reply_to_ts:
            candidates.append(scope.reply_to_ts)
        if isinstance(scope, ThreadScope) and scope.fallback_ts and scope.fallback_ts not in candidates:
            candidates.append(scope.fallback_ts)
        return candidates

    async def _try_post(self, channel: str, text: str, reply_to_ts: Optional[str] = None) -> Tuple[bool, Optional[str]]:
        try:
            result = await self.delivery.post_message(channel, text, reply_to_ts=reply_to_ts)
        except DeliveryError as e:
            return False, e.error_code or str(e)
        return result.ok, result.error

    async def _join_channel(self, channel: str) -> None:
        # Private channels and DMs can't be joined; reading may still work.
        result = await self.api.join_channel(channel)
        if not result.ok:
            logger.info(f"[SUMMARY] Channel join skipped: {result.error}")

    async def notify_failure(self, ref: MessageReference, text: str) -> None:
        try:
            result = await self.delivery.post_ephemeral(ref.channel_id, ref.user_id, text)
            if not result.ok:
                logger.error(f"[SUMMARY] Failed to notify user of error: {result.error}")
        except Exception as e:
            logger.error(f"[SUMMARY] Failed to notify user of error: {str(e)}")


_orchestrator_instance = None


def get_summarization_orchestrator() -> SummarizationOrchestrator:
    global _orchestrator_instance
    if _orchestrator_instance is None:
        _orchestrator_instance = SummarizationOrchestrator()
    return _orchestrator_instance
