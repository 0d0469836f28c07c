from typing import Optional


class RelayError(Exception):
    """Base class for errors raised by the relay."""

    def user_message(self) -> str:
        return f"Error summarizing content: {self}"


class InputShapeError(RelayError):
    """The inbound Slack payload is missing a required field."""


class NoContentAvailable(RelayError):

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code

    def user_message(self) -> str:
        return f"Could not summarize this conversation: {explain_error(self.error_code)}"


class SummarizerError(RelayError):

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def user_message(self) -> str:
        if self.status_code is not None:
            return f"The AI service returned an error ({self.status_code}). Please try again later."
        return f"The AI service returned an unexpected response: {self}"


class DeliveryError(RelayError):

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code

    def user_message(self) -> str:
        return f"The summary could not be posted: {explain_error(self.error_code)}"


class InvalidThreadTimestamp(DeliveryError):
    """A thread timestamp could not be repaired into Slack's format."""


ERROR_EXPLANATIONS = {
    "channel_not_found": "I can't see this channel. Please add the bot to this channel and try again.",
    "not_in_channel": "The bot must be added to this channel before it can read messages.",
    "missing_scope": "The bot is missing a permission required to read this conversation.",
    "is_archived": "This channel is archived.",
    "thread_not_found": "The thread could not be found.",
    "invalid_arguments": "Slack rejected the message reference.",
    "msg_too_long": "The message was too long for Slack.",
    "request_failed": "Slack could not be reached.",
}


def explain_error(code: Optional[str]) -> str:
    if not code:
        return "no messages were available."
    return ERROR_EXPLANATIONS.get(code, f"Slack returned `{code}`.")
