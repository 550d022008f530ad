"""Tests for flattening Slack message payloads into text."""

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wholesale_approval.approvals.text import collect_message_text  # noqa: E402


def test_plain_text_only():
    assert collect_message_text({"text": "  hello  "}) == "hello"


def test_empty_event_yields_empty_string():
    assert collect_message_text({}) == ""
    assert collect_message_text(None) == ""


def test_sources_are_joined_in_order():
    event = {
        "text": "top",
        "attachments": [
            {
                "title": "Attachment title",
                "text": "Attachment text",
                "fields": [{"title": "Customer ID", "value": 98765}, {"title": "", "value": ""}],
            }
        ],
        "blocks": [
            {"type": "header", "text": {"type": "plain_text", "text": "Header"}},
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": "Section"},
                "fields": [{"type": "mrkdwn", "text": "*Name:*"}, {"type": "mrkdwn", "text": "Jane"}],
            },
            {
                "type": "rich_text",
                "elements": [
                    {
                        "type": "rich_text_section",
                        "elements": [
                            {"type": "text", "text": "Customer ID: ", "style": {"bold": True}},
                            {"type": "text", "text": "98765", "style": {"code": True}},
                        ],
                    },
                    {"type": "rich_text_list", "elements": [{"type": "text", "text": "skipped"}]},
                ],
            },
        ],
        "initial_comment": {"comment": "File comment"},
    }

    assert collect_message_text(event).split("\n") == [
        "top",
        "Attachment title",
        "Attachment text",
        "Customer ID",
        "98765",
        "Header",
        "Section",
        "*Name:*",
        "Jane",
        "Customer ID: 98765",
        "File comment",
    ]


def test_context_and_action_blocks_are_ignored():
    event = {
        "blocks": [
            {"type": "context", "elements": [{"type": "mrkdwn", "text": "ctx"}]},
            {"type": "actions", "elements": [{"type": "button", "text": {"type": "plain_text", "text": "Approve"}}]},
            {"type": "header", "text": {"type": "plain_text", "text": "Kept"}},
        ]
    }

    assert collect_message_text(event) == "Kept"


def test_malformed_containers_are_skipped():
    event = {
        "text": "",
        "attachments": "not-a-list",
        "blocks": [None, "junk", {"type": "section", "text": None, "fields": None}],
        "initial_comment": "not-a-dict",
    }

    assert collect_message_text(event) == ""


def test_empty_rich_text_sections_are_skipped():
    event = {
        "blocks": [
            {
                "type": "rich_text",
                "elements": [
                    {"type": "rich_text_section", "elements": [{"type": "emoji", "name": "wave"}]},
                    {"type": "rich_text_section", "elements": [{"type": "text", "text": "Hi"}]},
                ],
            }
        ]
    }

    assert collect_message_text(event) == "Hi"
