import logging
from typing import Dict, Any
from app.core.tasks import get_task_runner
from app.slack.bot import get_slack_bot

logger = logging.getLogger(__name__)


class SlackEventHandler:
    """Routes Events API callbacks to the bot as detached tasks."""

    def __init__(self):
        self.bot = get_slack_bot()
        self.runner = get_task_runner()

    def handle_event(self, event: Dict[str, Any]) -> bool:
        """Schedule work for ``event``; returns False for unhandled event types."""
        event_type = event.get("type")

        if event_type == "app_home_opened":
            logger.info(f"[SLACK EVENT] app_home_opened for user {event.get('user')}")
            self.runner.spawn(self.bot.update_home_tab(event), name="home_tab")
        elif event_type == "message" and event.get("channel_type") == "im":
            self.runner.spawn(self.bot.handle_direct_message(event), name="direct_message")
        elif event_type == "app_mention":
            self.runner.spawn(self.bot.handle_mention(event), name="mention")
        elif event_type == "link_shared":
            self.runner.spawn(self.bot.unfurl_links(event), name="link_unfurl")
        elif event_type == "workflow_step_execute":
            self.runner.spawn(self.bot.handle_workflow_step(event), name="workflow_step_execute")
        else:
            logger.warning(f"[SLACK EVENT] Unhandled event type: {event_type}")
            return False
        return True

    def is_valid_event(self, event: Dict[str, Any]) -> bool:
        required_fields = ["type"]
        return all(field in event for field in required_fields)


_event_handler_instance = None


def get_event_handler() -> SlackEventHandler:
    global _event_handler_instance
    if _event_handler_instance is None:
        _event_handler_instance = SlackEventHandler()
    return _event_handler_instance
