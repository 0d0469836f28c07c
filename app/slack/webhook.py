"""
Slack webhook endpoint for receiving and routing Slack requests.

Every handler acknowledges immediately and leaves the real work to a
detached task, since Slack gives up on a request after about three seconds.
"""

import json
import logging
from typing import Dict, Any, Optional
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from app.config import get_settings
from app.core.tasks import get_task_runner
from app.slack.bot import get_slack_bot
from app.slack.events import get_event_handler
from app.slack.views import QUESTION_MODAL_ID

logger = logging.getLogger(__name__)

SUMMARIZE_CALLBACK_ID = "summarize_thread"
SHORTCUT_CALLBACK_ID = "ask_ai_shortcut"
INTERACTIVE_TYPES = {
    "message_action",
    "block_actions",
    "shortcut",
    "workflow_step",
    "workflow_step_edit",
    "view_submission",
}


class SlackWebhook:
    """Handles Slack webhook requests."""

    def __init__(self):
        self.settings = get_settings()
        self.bot = get_slack_bot()
        self.event_handler = get_event_handler()
        self.runner = get_task_runner()

    async def handle_webhook(self, request: Request) -> Response:
        """Handle incoming Slack webhook requests."""
        body = await request.body()
        try:
            body_str = body.decode("utf-8")
        except UnicodeDecodeError:
            logger.error("[SLACK] Request body is not valid UTF-8")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")

        # URL verification happens before a signing secret may be configured
        challenge = self._url_verification_challenge(body_str)
        if challenge is not None:
            logger.info("[SLACK] Handling URL verification challenge")
            return JSONResponse({"challenge": challenge})

        if not self.bot.verify_signature(body_str, dict(request.headers)):
            logger.warning("Invalid Slack signature")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid signature"
            )

        payload = await self._parse_payload(request, body_str)
        if self.settings.verbose:
            logger.info(f"[SLACK-VERBOSE] Payload: {payload}")

        if payload.get("type") == "url_verification":
            return JSONResponse({"challenge": payload.get("challenge")})

        if payload.get("command"):
            return self._handle_command(payload)

        if payload.get("type") in INTERACTIVE_TYPES:
            return self._handle_interactive(payload)

        if payload.get("type") == "event_callback":
            return self._handle_event_callback(payload.get("event") or {})

        logger.warning(f"[SLACK] Unhandled payload type: {payload.get('type')}")
        return PlainTextResponse("Unhandled Slack payload", status_code=status.HTTP_400_BAD_REQUEST)

    def _url_verification_challenge(self, body_str: str) -> Optional[str]:
        try:
            data = json.loads(body_str)
        except ValueError:
            return None
        if isinstance(data, dict) and data.get("type") == "url_verification":
            return data.get("challenge")
        return None

    async def _parse_payload(self, request: Request, body_str: str) -> Dict[str, Any]:
        content_type = request.headers.get("content-type", "")

        if "application/json" in content_type:
            try:
                payload = json.loads(body_str)
            except ValueError:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
        elif "application/x-www-form-urlencoded" in content_type:
            form_data = await request.form()
            payload = dict(form_data)
            # Interactive components wrap their JSON in a "payload" field
            if payload.get("payload"):
                try:
                    payload = json.loads(payload["payload"])
                except ValueError:
                    logger.error("[SLACK] Error parsing payload JSON")
                    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload JSON")
        else:
            logger.error(f"[SLACK] Invalid content type: {content_type}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request format")

        if not isinstance(payload, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request format")
        return payload

    def _handle_command(self, payload: Dict[str, Any]) -> Response:
        command = payload.get("command")
        if command != self.settings.slash_command:
            logger.warning(f"[SLASH] Unknown command: {command}")
            return PlainTextResponse(f"Unknown command: {command}")

        logger.info(f"[SLASH] {command} slash command")
        self.runner.spawn(self.bot.handle_slash_command(payload), name="slash_command")
        return Response(status_code=status.HTTP_200_OK)

    def _handle_interactive(self, payload: Dict[str, Any]) -> Response:
        payload_type = payload.get("type")
        callback_id = payload.get("callback_id")
        logger.info(f"[INTERACTIVE] Interactive component triggered: {payload_type} ({callback_id})")

        if payload_type == "message_action" and callback_id == SUMMARIZE_CALLBACK_ID:
            self.runner.spawn(self.bot.summarize_message(payload), name="summarize")
        elif payload_type == "shortcut" and callback_id == SHORTCUT_CALLBACK_ID:
            self.runner.spawn(self.bot.open_question_modal(payload), name="question_modal")
        elif payload_type in ("workflow_step", "workflow_step_edit"):
            payload = {**payload, "type": "workflow_step_edit"}
            self.runner.spawn(self.bot.handle_workflow_step(payload), name="workflow_step_edit")
        elif payload_type == "view_submission":
            view_id = (payload.get("view") or {}).get("callback_id")
            if view_id == QUESTION_MODAL_ID:
                self.runner.spawn(self.bot.handle_view_submission(payload), name="view_submission")
            else:
                logger.info(f"[MODAL] Unknown modal type: {view_id}")
        else:
            logger.info(f"[INTERACTIVE] Unhandled interactive component: {payload_type}")

        # An empty JSON object keeps Slack from showing an error dialog
        return JSONResponse({})

    def _handle_event_callback(self, event: Dict[str, Any]) -> Response:
        if self.bot.is_bot_message(event):
            logger.info("[SLACK EVENT] Bot message, ignoring")
            return PlainTextResponse("Bot message ignored")

        if not self.event_handler.is_valid_event(event):
            logger.warning(f"Invalid event data: {event}")
            return PlainTextResponse("Invalid event", status_code=status.HTTP_400_BAD_REQUEST)

        if self.event_handler.handle_event(event):
            return PlainTextResponse("OK")
        return PlainTextResponse("Unhandled event", status_code=status.HTTP_400_BAD_REQUEST)


_webhook_handler_instance = None


def get_webhook_handler() -> SlackWebhook:
    """Get the global webhook handler instance."""
    global _webhook_handler_instance
    if _webhook_handler_instance is None:
        _webhook_handler_instance = SlackWebhook()
    return _webhook_handler_instance
