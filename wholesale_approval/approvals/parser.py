"""Detect wholesale signup notifications and pull the customer out of them.

The upstream workflow bot does not guarantee a stable template: labels may be
bold (``*Name:*``), values may sit on the line after their label, and the
customer id may be wrapped in backticks or other mrkdwn. Everything here is a
pure function over text so it can be exercised without Slack.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Pattern, Sequence

STRICT_TRIGGER = re.compile(r"New wholesale signup, approve directly in this thread:", re.IGNORECASE)
SIGNUP_PHRASE = re.compile(r"New\s+wholesale\s+signup", re.IGNORECASE)
APPROVE_WORD = re.compile(r"approve", re.IGNORECASE)

NAME_LABEL = re.compile(r"^\*?\s*Name\*?\s*:", re.IGNORECASE)
CUSTOMER_ID_LABEL = re.compile(r"^\*?\s*Customer\s*ID\*?\s*:", re.IGNORECASE)
CUSTOMER_ID_FALLBACK = re.compile(r"Customer\s*ID:\s*`?(\d+)`?", re.IGNORECASE | re.ASCII)

_LINE_BREAK = re.compile(r"\r?\n")
_EMPHASIS_EDGES = "* \t"
_MARKUP_CHARS = re.compile(r"[`*_~<>]")
_DIGITS = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class TriggerResult:
    is_trigger: bool
    name: str = ""
    customer_id: str = ""


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in _LINE_BREAK.split(text)]


def _strip_emphasis(value: str) -> str:
    return value.strip(_EMPHASIS_EDGES)


def _inline_value(line: str) -> str:
    """Value written after the label's colon on the same line, if any."""

    _, _, after = line.partition(":")
    after = after.strip()
    return _strip_emphasis(after) if after else ""


def _next_non_empty(lines: Sequence[str], start: int) -> str:
    """First non-empty line from *start* onwards, for values Slack wrapped."""

    for line in lines[start:]:
        value = _strip_emphasis(line)
        if value:
            return value
    return ""


def extract_labeled_value(lines: Sequence[str], label: Pattern[str]) -> str:
    """Return the value for the first line matching *label*, or ``""``."""

    for index, line in enumerate(lines):
        if not label.search(line):
            continue
        return _inline_value(line) or _next_non_empty(lines, index + 1)
    return ""


def normalise_customer_id(raw_value: str, full_text: str = "") -> str:
    """Reduce a labelled id value to its digits.

    Falls back to scanning *full_text* for ``Customer ID: `123``` when the
    labelled value holds no digits (e.g. the id was wrapped onto a line of its
    own behind other content).
    """

    match = _DIGITS.search(_MARKUP_CHARS.sub("", raw_value or "").strip())
    if match:
        return match.group(0)

    fallback = CUSTOMER_ID_FALLBACK.search(full_text or "")
    return fallback.group(1) if fallback else ""


def is_signup_phrase(text: str) -> bool:
    if STRICT_TRIGGER.search(text):
        return True
    # Fallback: the signup phrase plus "approve" anywhere in the text. A
    # message without a resolvable id is still not a trigger.
    return bool(SIGNUP_PHRASE.search(text) and APPROVE_WORD.search(text))


def parse_signup_message(raw_text: str | None) -> TriggerResult:
    text = str(raw_text or "").strip()
    if not text:
        return TriggerResult(is_trigger=False)

    lines = split_lines(text)
    name = extract_labeled_value(lines, NAME_LABEL)
    customer_id = normalise_customer_id(extract_labeled_value(lines, CUSTOMER_ID_LABEL), text)

    return TriggerResult(
        is_trigger=is_signup_phrase(text) and bool(customer_id),
        name=name,
        customer_id=customer_id,
    )
