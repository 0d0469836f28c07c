"""
Repair of Slack message timestamps.

Slack identifies messages by a ``<seconds>.<sequence>`` string. Values that
arrive through interactive payloads are occasionally mangled (commas, stray
characters, a missing dot), and the Web API rejects them with
``invalid_arguments``. ``normalize`` makes a best-effort repair; callers skip
the dependent API call when it returns ``NOT_REPAIRABLE``.
"""

import re
from typing import Any, Union

TIMESTAMP_PATTERN = re.compile(r"^\d+\.\d+$")
MIN_DIGITS = 10


class _NotRepairable:

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_REPAIRABLE"


NOT_REPAIRABLE = _NotRepairable()


def is_valid(ts: Any) -> bool:
    return isinstance(ts, str) and bool(TIMESTAMP_PATTERN.match(ts))


def normalize(raw: Any) -> Union[str, _NotRepairable]:
    if not isinstance(raw, str):
        return NOT_REPAIRABLE

    if is_valid(raw):
        return raw

    candidate = raw.strip().replace(",", ".", 1)
    if is_valid(candidate):
        return candidate

    numbers = re.sub(r"\D", "", candidate)
    if len(numbers) >= MIN_DIGITS:
        dot_pos = min(MIN_DIGITS, len(numbers) // 2)
        candidate = f"{numbers[:dot_pos]}.{numbers[dot_pos:]}"
        if is_valid(candidate):
            return candidate

    return NOT_REPAIRABLE


def as_float(ts: str) -> float:
    """Sort key for normalized timestamps."""
    try:
        return float(ts)
    except (TypeError, ValueError):
        return 0.0
