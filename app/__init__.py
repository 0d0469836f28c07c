"""
Slack AI Relay

A FastAPI application that connects Slack to a remote AI pipeline API:
- Slash command, direct message and @mention questions
- "Summarize" message action for threads, messages and recent history
- Home tab, question modal, workflow step and link unfurling
"""

__version__ = "1.0.0"
__description__ = "Slack relay for an AI pipeline API"
