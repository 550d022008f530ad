"""Flatten Slack message payloads into plain text for trigger matching."""

from __future__ import annotations

from typing import Any, Iterator, List, Mapping

_TEXT_BLOCK_TYPES = {"section", "header"}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, dict) else {}


def _attachment_parts(attachments: list) -> Iterator[str]:
    for attachment in attachments:
        attachment = _as_dict(attachment)
        if attachment.get("title"):
            yield str(attachment["title"])
        if attachment.get("text"):
            yield str(attachment["text"])
        for field in _as_list(attachment.get("fields")):
            field = _as_dict(field)
            if field.get("title"):
                yield str(field["title"])
            if field.get("value"):
                yield str(field["value"])


def _rich_text_parts(block: Mapping[str, Any]) -> Iterator[str]:
    for element in _as_list(block.get("elements")):
        element = _as_dict(element)
        if element.get("type") != "rich_text_section":
            continue
        joined = "".join(str(_as_dict(span).get("text") or "") for span in _as_list(element.get("elements")))
        if joined:
            yield joined


def _block_parts(blocks: list) -> Iterator[str]:
    for block in blocks:
        block = _as_dict(block)
        block_type = block.get("type")
        if block_type in _TEXT_BLOCK_TYPES:
            text = _as_dict(block.get("text")).get("text")
            if text:
                yield str(text)
        if block_type == "section":
            # Workflow bots often lay out "Name" / "Customer ID" as section fields.
            for field in _as_list(block.get("fields")):
                text = _as_dict(field).get("text")
                if text:
                    yield str(text)
        if block_type == "rich_text":
            yield from _rich_text_parts(block)


def collect_message_text(event: Mapping[str, Any] | None) -> str:
    """Return every visible piece of text in *event*, newline separated.

    Sources are read in order: ``text``, legacy ``attachments`` (title, text,
    field titles and values), ``blocks`` (section/header text, section fields,
    rich text sections) and finally the ``initial_comment`` of a file share.
    Anything missing is skipped, so the result may be an empty string.
    """

    event = _as_dict(event)
    parts: List[str] = []

    if event.get("text"):
        parts.append(str(event["text"]))

    parts.extend(_attachment_parts(_as_list(event.get("attachments"))))
    parts.extend(_block_parts(_as_list(event.get("blocks"))))

    comment = _as_dict(event.get("initial_comment")).get("comment")
    if comment:
        parts.append(str(comment))

    return "\n".join(parts).strip()
