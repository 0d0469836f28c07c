import json
import logging
from typing import Any, Optional

import httpx

from app.config import get_settings
from app.core.errors import SummarizerError
from app.core.providers.base import BasePipelineProvider
from app.core.providers.models import RESULT_FIELDS, AnswerResult

logger = logging.getLogger(__name__)


class PipelineProvider(BasePipelineProvider):
    """Client for the remote AI pipeline API (synchronous-output mode)."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        verbose: Optional[bool] = None,
    ):
        settings = get_settings()
        self.api_url = api_url or settings.ai_api_url
        self.api_key = api_key or settings.ai_api_key
        self.timeout = timeout or settings.ai_request_timeout
        self.verbose = settings.verbose if verbose is None else verbose

    async def ask(self, user_input: str) -> AnswerResult:
        if not self.is_available():
            raise SummarizerError("AI pipeline API is not configured")

        request_data = {"userInput": user_input, "asyncOutput": False}
        headers = {"X-API-KEY": self.api_key or "", "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.api_url,
                    json=request_data,
                    headers=headers,
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            logger.error(f"AI pipeline request failed: {str(e)}")
            raise SummarizerError(f"AI pipeline request failed: {str(e)}") from e

        if self.verbose:
            logger.info(f"[AI] Raw response ({response.status_code}): {response.text[:2000]}")

        if not response.is_success:
            logger.error(f"AI pipeline returned {response.status_code} {response.reason_phrase}")
            raise SummarizerError(
                f"AI API returned error: {response.status_code}",
                status_code=response.status_code
            )

        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise SummarizerError("AI response is not valid JSON") from e

        return self.parse_answer(payload)

    @staticmethod
    def parse_answer(payload: Any) -> AnswerResult:
        if isinstance(payload, str) and payload:
            return AnswerResult(result=payload)
        if not isinstance(payload, dict):
            raise SummarizerError('AI response missing expected "result" field')

        for field in RESULT_FIELDS:
            value = payload.get(field)
            if isinstance(value, str) and value:
                if field != "result":
                    logger.warning(f'AI response has no "result" field, using "{field}"')
                return AnswerResult(
                    result=value,
                    is_backup_pipeline=bool(payload.get("isBackupPipeline")),
                    raw=payload
                )

        raise SummarizerError('AI response missing expected "result" field')

    def is_available(self) -> bool:
        return bool(self.api_url)


_provider_instance = None


def get_pipeline_provider() -> PipelineProvider:
    global _provider_instance
    if _provider_instance is None:
        _provider_instance = PipelineProvider()
    return _provider_instance
