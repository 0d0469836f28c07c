"""
Request-scoped data model of the summarization pipeline.

Everything here is built fresh for one inbound Slack action and thrown away
once the detached task that handles it finishes.
"""

from typing import Any, ClassVar, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from app.core.errors import InputShapeError
from app.core.timestamps import as_float


class ApiResult(BaseModel):
    """Outcome of a Slack Web API call, successful or not."""

    ok: bool
    error: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def messages(self) -> List[Dict[str, Any]]:
        return self.data.get("messages") or []


class MessageReference(BaseModel):
    channel_id: str
    user_id: str
    message_ts: Optional[str] = None
    thread_ts: Optional[str] = None
    reply_count: Optional[int] = None

    @property
    def is_thread_parent(self) -> bool:
        return bool(self.thread_ts) and self.thread_ts == self.message_ts

    @classmethod
    def from_action_payload(cls, payload: Dict[str, Any]) -> "MessageReference":
        message = payload.get("message") or {}
        channel_id = _channel_id(payload)
        user_id = _user_id(payload)

        if not channel_id:
            raise InputShapeError("Could not determine channel ID from payload")
        if not user_id:
            raise InputShapeError("Could not determine user ID from payload")

        message_ts = (
            payload.get("message_ts")
            or message.get("ts")
            or (payload.get("container") or {}).get("message_ts")
        )
        # A message block without a ts means the action payload is malformed.
        if message and not message_ts:
            raise InputShapeError("Could not determine message timestamp from payload")

        return cls(
            channel_id=channel_id,
            user_id=user_id,
            message_ts=message_ts,
            thread_ts=message.get("thread_ts"),
            reply_count=message.get("reply_count"),
        )


def _channel_id(payload: Dict[str, Any]) -> Optional[str]:
    channel = payload.get("channel")
    if isinstance(channel, str):
        return channel
    if isinstance(channel, dict) and channel.get("id"):
        return channel["id"]
    return (payload.get("message") or {}).get("channel")


def _user_id(payload: Dict[str, Any]) -> Optional[str]:
    user = payload.get("user")
    if isinstance(user, str):
        return user
    if isinstance(user, dict) and user.get("id"):
        return user["id"]
    return payload.get("user_id")


def recover_identity(payload: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Best-effort channel/user lookup for error notices on malformed payloads."""
    return {"channel_id": _channel_id(payload), "user_id": _user_id(payload)}


class Message(BaseModel):
    author_id: Optional[str] = None
    text: str = "[no text]"
    ts: str
    is_target: bool = False

    @classmethod
    def from_slack(cls, raw: Dict[str, Any], target_ts: Optional[str] = None) -> "Message":
        ts = str(raw.get("ts", ""))
        return cls(
            author_id=raw.get("user"),
            text=raw.get("text") or "[no text]",
            ts=ts,
            is_target=bool(target_ts) and ts == target_ts,
        )


def chronological(messages: List[Message]) -> List[Message]:
    return sorted(messages, key=lambda m: as_float(m.ts))


class _ScopeBase(BaseModel):
    messages: List[Message] = Field(min_length=1)

    prompt_prefix: ClassVar[str] = "Summarize this:"
    title: ClassVar[str] = "*Summary:*"

    @property
    def reply_to_ts(self) -> Optional[str]:
        return None

    def instruction(self) -> str:
        return self.prompt_prefix

    def heading(self) -> str:
        return self.title

    def author_ids(self) -> List[str]:
        return sorted({m.author_id for m in self.messages if m.author_id})


class ThreadScope(_ScopeBase):
    kind: Literal["thread"] = "thread"
    thread_root_ts: str
    # Target timestamp to retry delivery against if the root is rejected.
    fallback_ts: Optional[str] = None

    prompt_prefix: ClassVar[str] = "Summarize this conversation thread:"
    title: ClassVar[str] = "*Thread Summary:*"

    @property
    def reply_to_ts(self) -> Optional[str]:
        return self.thread_root_ts


class ContextScope(_ScopeBase):
    kind: Literal["context"] = "context"
    target_ts: str

    prompt_prefix: ClassVar[str] = "Summarize this message with its surrounding context:"
    title: ClassVar[str] = "*Message Context Summary:*"

    @property
    def reply_to_ts(self) -> Optional[str]:
        return self.target_ts

    @property
    def has_context(self) -> bool:
        return len(self.messages) > 1

    def instruction(self) -> str:
        return self.prompt_prefix if self.has_context else "Summarize this message:"

    def heading(self) -> str:
        return self.title if self.has_context else "*Message Summary:*"


class RecentScope(_ScopeBase):
    kind: Literal["recent"] = "recent"

    prompt_prefix: ClassVar[str] = "Summarize these recent messages from a conversation:"
    title: ClassVar[str] = "*Conversation Summary:*"


ConversationScope = Union[ThreadScope, ContextScope, RecentScope]


class TryNext(BaseModel):
    """A resolution strategy did not apply; the next one should run."""

    reason: str


class DeliveryTarget(BaseModel):
    channel_id: str
    reply_to_ts: Optional[str] = None
