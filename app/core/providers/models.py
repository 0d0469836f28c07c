from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field

# Field names checked, in order, for the answer text.
RESULT_FIELDS = ("result", "answer", "response", "output")


class AnswerResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    result: str
    is_backup_pipeline: bool = False
    raw: Dict[str, Any] = Field(default_factory=dict)
