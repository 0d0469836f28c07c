import logging
import re
from typing import Dict, Any, Optional
import httpx
from slack_sdk.signature import SignatureVerifier
from app.config import get_settings
from app.core.chat_processor import get_chat_processor
from app.core.errors import InputShapeError
from app.core.models import MessageReference, recover_identity
from app.core.summarizer import get_summarization_orchestrator
from app.slack.client import get_slack_api
from app.slack.delivery import get_delivery
from app.slack.views import build_home_view, build_question_modal, build_unfurl, QUESTION_MODAL_ID

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+>")


class SlackBot:

    def __init__(self):
        self.settings = get_settings()
        self.api = get_slack_api()
        self.delivery = get_delivery()
        self.signature_verifier = (
            SignatureVerifier(self.settings.slack_signing_secret)
            if self.settings.slack_signing_secret else None
        )
        self.chat_processor = get_chat_processor()
        self.summarizer = get_summarization_orchestrator()

    def verify_signature(self, body: str, headers: Dict[str, str]) -> bool:
        if self.signature_verifier is None:
            logger.warning("[SLACK] Signing secret not set - skipping signature verification")
            return True

        timestamp = headers.get("x-slack-request-timestamp", "")
        signature = headers.get("x-slack-signature", "")

        return self.signature_verifier.is_valid(body, timestamp, signature)

    async def handle_slash_command(self, payload: Dict[str, Any]) -> None:
        """Answer a slash command through its response_url."""
        question = payload.get("text", "").strip()
        response_url = payload.get("response_url")
        logger.info(f"[SLASH] Processing slash command from {payload.get('user_id')}")

        result = await self.chat_processor.process_message(question, user_id=payload.get("user_id"))
        if result.get("error"):
            if result.get("status_code") is not None:
                text = f"AI API returned an error: {result['status_code']}"
            else:
                text = result["response"]
        else:
            text = self.chat_processor.format_slash_reply(result)

        if not response_url:
            logger.error("[SLASH] Missing response_url in slash command payload")
            return

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(response_url, json={"text": text}, timeout=10.0)
                response.raise_for_status()
            logger.info("[SLASH] Done sending slash command result")
        except httpx.HTTPError as e:
            logger.error(f"[SLASH] Error posting to response_url: {str(e)}")

    async def handle_direct_message(self, event: Dict[str, Any]) -> None:
        channel = event.get("channel")
        text = (event.get("text") or "").strip()
        if not channel or not text:
            return

        logger.info(f"[DM] Processing message from {event.get('user')} in {channel}")
        result = await self.chat_processor.process_message(text, user_id=event.get("user"))

        reply = result["response"] if result.get("error") else self.chat_processor.format_dm_reply(text, result)
        await self.delivery.post_message(channel, reply)

    async def handle_mention(self, event: Dict[str, Any]) -> None:
        channel = event.get("channel")
        user = event.get("user")
        if not channel:
            return
        question = MENTION_PATTERN.sub("", event.get("text") or "").strip()
        thread_ts = event.get("thread_ts") or event.get("ts")

        if user:
            await self.delivery.post_ephemeral(channel, user, ":thinking_face: Working on it...", reply_to_ts=thread_ts)

        result = await self.chat_processor.process_message(question, user_id=user)
        reply = result["response"] if result.get("error") else self.chat_processor.format_mention_reply(question, result)
        await self.delivery.post_message(channel, reply)
        logger.info(f"[MENTION] Replied to mention from {user}")

    async def update_home_tab(self, event: Dict[str, Any]) -> None:
        user = event.get("user")
        result = await self.api.call("views_publish", user_id=user, view=build_home_view(self.settings.slash_command))
        if result.ok:
            logger.info(f"[HOME] Updated home tab for user {user}")
        else:
            logger.error(f"[HOME] Failed to publish home tab: {result.error}")

    async def open_question_modal(self, payload: Dict[str, Any]) -> None:
        trigger_id = payload.get("trigger_id")
        if not trigger_id:
            logger.error("[SHORTCUT] Missing trigger_id in payload")
            return

        result = await self.api.call(
            "views_open",
            interactive=True,
            trigger_id=trigger_id,
            view=build_question_modal()
        )
        if result.ok:
            logger.info(f"[SHORTCUT] Modal opened with view ID {result.data.get('view', {}).get('id')}")
        elif result.error == "trigger_expired":
            logger.error("[SHORTCUT] Trigger ID expired (response took too long)")
        else:
            logger.error(f"[SHORTCUT] Failed to open modal: {result.error}")

    async def handle_view_submission(self, payload: Dict[str, Any]) -> None:
        view = payload.get("view") or {}
        user_id = (payload.get("user") or {}).get("id")
        if view.get("callback_id") != QUESTION_MODAL_ID:
            logger.info(f"[MODAL] Unknown modal type: {view.get('callback_id')}")
            return

        question = extract_question(view)
        if not question or not user_id:
            logger.info("[MODAL] Empty question submitted or question not found in payload")
            return

        dm = await self.api.open_dm(user_id)
        if not dm.ok:
            logger.error(f"[MODAL] Failed to open DM channel: {dm.error}")
            return
        channel = dm.data["channel"]["id"]

        await self.delivery.post_message(channel, f':thinking_face: Processing your question: "{question}"')
        result = await self.chat_processor.process_message(question, user_id=user_id)

        if result.get("error"):
            if result.get("status_code") is not None:
                text = (
                    f"Error processing your question: API returned status {result['status_code']}. "
                    "Please try again later."
                )
            else:
                text = f"Error calling AI service: {result['error']}. Please try again later."
        else:
            text = self.chat_processor.format_modal_reply(question, result)

        await self.delivery.post_message(channel, text)
        logger.info("[MODAL] Replied to user question via DM")

    async def summarize_message(self, payload: Dict[str, Any]) -> None:
        """Entry point of the "Summarize" message action."""
        if self.settings.verbose:
            logger.info(f"[SUMMARY-VERBOSE] Full payload: {payload}")

        try:
            ref = MessageReference.from_action_payload(payload)
        except InputShapeError as e:
            logger.error(f"[SUMMARY] Invalid action payload: {e}")
            identity = recover_identity(payload)
            if identity["channel_id"] and identity["user_id"]:
                await self.delivery.post_ephemeral(
                    identity["channel_id"], identity["user_id"], f"Error summarizing content: {e}"
                )
            return

        await self.summarizer.run(ref)

    async def handle_workflow_step(self, payload: Dict[str, Any]) -> None:
        step = payload.get("workflow_step") or {}
        step_type = payload.get("type")

        if step_type == "workflow_step_edit":
            result = await self.api.call(
                "workflows_updateStep",
                workflow_step_edit_id=step.get("workflow_step_edit_id"),
                inputs={"prompt": {"value": "{{workflow_step_input}}", "skip_variable_replacement": True}},
                outputs=[{"name": "response", "type": "text", "label": "AI Response"}]
            )
            if not result.ok:
                logger.error(f"[WORKFLOW] Failed to update step: {result.error}")
            return

        execute_id = step.get("workflow_step_execute_id")
        prompt = ((step.get("inputs") or {}).get("prompt") or {}).get("value")
        if not prompt:
            await self._fail_workflow_step(execute_id, "Workflow step has no prompt input")
            return

        result = await self.chat_processor.process_message(prompt)
        if result.get("error"):
            await self._fail_workflow_step(execute_id, f"AI API error: {result['error']}")
            return

        completed = await self.api.call(
            "workflows_stepCompleted",
            workflow_step_execute_id=execute_id,
            outputs={"response": result["result"]}
        )
        if completed.ok:
            logger.info("[WORKFLOW] Workflow step completed successfully")
        else:
            logger.error(f"[WORKFLOW] Failed to complete step: {completed.error}")

    async def _fail_workflow_step(self, execute_id: Optional[str], message: str) -> None:
        result = await self.api.call(
            "workflows_stepFailed",
            workflow_step_execute_id=execute_id,
            error={"message": message}
        )
        if not result.ok:
            logger.error(f"[WORKFLOW] Failed to report workflow step failure: {result.error}")

    async def unfurl_links(self, event: Dict[str, Any]) -> None:
        domain = self.settings.unfurl_domain
        if not domain:
            return

        unfurls = {
            link["url"]: build_unfurl(link["url"])
            for link in event.get("links", [])
            if link.get("domain") == domain and link.get("url")
        }
        if not unfurls:
            return

        result = await self.api.call(
            "chat_unfurl",
            channel=event.get("channel"),
            ts=event.get("message_ts"),
            unfurls=unfurls
        )
        if result.ok:
            logger.info("[UNFURL] Links unfurled successfully")
        else:
            logger.error(f"[UNFURL] Failed to unfurl links: {result.error}")

    def is_bot_message(self, event: Dict[str, Any]) -> bool:
        return bool(event.get("bot_id") or event.get("subtype") == "bot_message")


def extract_question(view: Dict[str, Any]) -> str:
    values = (view.get("state") or {}).get("values") or {}
    question = (values.get("question_block") or {}).get("question", {}).get("value")
    if question:
        return question.strip()

    for block in values.values():
        for action in block.values():
            value = action.get("value") if isinstance(action, dict) else None
            if value and value.strip():
                return value.strip()
    return ""


_slack_bot_instance = None


def get_slack_bot() -> SlackBot:
    global _slack_bot_instance
    if _slack_bot_instance is None:
        _slack_bot_instance = SlackBot()
    return _slack_bot_instance
