"""Block Kit views published by the bot."""

from typing import Any, Dict

QUESTION_MODAL_ID = "ask_ai_assistant_modal"


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def build_home_view(slash_command: str) -> Dict[str, Any]:
    divider = {"type": "divider"}
    return {
        "type": "home",
        "blocks": [
            _section("*Welcome to the AI Assistant!* :wave:\n\nThis bot helps you interact with AI services effortlessly."),
            divider,
            _section("*Available Features:*\n\nHere's how you can use the AI Assistant:"),
            _section(
                f"*1. Slash Command:*\nUse `{slash_command} [your question]` to ask a question directly.\n\n"
                f"_Example:_ `{slash_command} What is the capital of Georgia?`"
            ),
            divider,
            _section(
                "*2. @Mention in a Channel:*\nMention the bot in a channel and ask a question.\n\n"
                "_Example:_ `@AI Assistant What is the weather today?`"
            ),
            divider,
            _section(
                "*3. Direct Message:*\nSend a direct message to the bot with your question.\n\n"
                "_Example:_ `What is machine learning?`"
            ),
            divider,
            _section(
                "*4. Summarize:*\nUse the *Summarize* message shortcut on any message to summarize "
                "its thread, the message with its surrounding context, or the recent conversation."
            ),
            divider,
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": ":gear: *Need help?* Contact your administrator for support."}
                ],
            },
        ],
    }


def build_question_modal() -> Dict[str, Any]:
    return {
        "type": "modal",
        "callback_id": QUESTION_MODAL_ID,
        "title": {"type": "plain_text", "text": "Ask AI Assistant"},
        "submit": {"type": "plain_text", "text": "Ask"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            {
                "type": "input",
                "block_id": "question_block",
                "element": {
                    "type": "plain_text_input",
                    "action_id": "question",
                    "multiline": True,
                    "placeholder": {"type": "plain_text", "text": "What would you like to ask?"},
                },
                "label": {"type": "plain_text", "text": "Question"},
            }
        ],
    }


def build_unfurl(url: str) -> Dict[str, Any]:
    return {
        "blocks": [
            _section(f"*Link Preview from AI Assistant*\n{url}"),
            {"type": "context", "elements": [{"type": "mrkdwn", "text": "Powered by AI Assistant"}]},
        ]
    }
