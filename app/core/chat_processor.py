from typing import Any, Dict, Optional
import logging
from app.config import get_settings
from app.core.errors import SummarizerError
from app.core.providers.base import BasePipelineProvider
from app.core.providers.pipeline import get_pipeline_provider

logger = logging.getLogger(__name__)


class ChatProcessor:
    """Relays a user's question to the AI pipeline and formats the answer for Slack."""

    def __init__(self, provider: Optional[BasePipelineProvider] = None):
        self.settings = get_settings()
        self.provider = provider or get_pipeline_provider()

        if not self.provider.is_available():
            logger.warning("AI pipeline API URL is not configured; questions will fail")

    async def process_message(self, message: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        logger.info(f"Processing question from {user_id or 'unknown user'}")

        if not self.provider.is_available():
            return {
                "response": "Sorry, the AI service is not currently available. Please check the configuration.",
                "result": None,
                "is_backup_pipeline": False,
                "error": "Provider not available"
            }

        try:
            answer = await self.provider.ask(message)
        except SummarizerError as e:
            logger.error(f"Error processing message: {str(e)}")
            if e.status_code is not None:
                text = f"AI error: {e.status_code}"
            else:
                text = f"Sorry, I encountered an error: {str(e)}"
            return {
                "response": text,
                "result": None,
                "is_backup_pipeline": False,
                "error": str(e),
                "status_code": e.status_code
            }

        return {
            "response": answer.result,
            "result": answer.result,
            "is_backup_pipeline": answer.is_backup_pipeline,
            "provider": self.provider.get_provider_name()
        }

    @staticmethod
    def backup_flag(result: Dict[str, Any]) -> str:
        return "Yes" if result.get("is_backup_pipeline") else "No"

    def format_slash_reply(self, result: Dict[str, Any]) -> str:
        return (
            f"Result from AI Assistant:\n*{result['result']}*\n"
            f"Is Backup Pipeline: {self.backup_flag(result)}"
        )

    def format_dm_reply(self, question: str, result: Dict[str, Any]) -> str:
        return (
            f'You asked: "{question}"\n\nResult: *{result["result"]}*\n'
            f"Is Backup Pipeline: {self.backup_flag(result)}"
        )

    def format_mention_reply(self, question: str, result: Dict[str, Any]) -> str:
        return (
            f'You asked: "{question}"\n\n*{result["result"]}*\n'
            f"Is Backup Pipeline: {self.backup_flag(result)}"
        )

    def format_modal_reply(self, question: str, result: Dict[str, Any]) -> str:
        return f'You asked: "{question}"\n\n*{result["result"]}*'


_chat_processor_instance = None


def get_chat_processor() -> ChatProcessor:
    global _chat_processor_instance
    if _chat_processor_instance is None:
        _chat_processor_instance = ChatProcessor()
    return _chat_processor_instance
