"""Tests for wholesale signup trigger detection and field extraction."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wholesale_approval.approvals.parser import (  # noqa: E402
    CUSTOMER_ID_LABEL,
    NAME_LABEL,
    TriggerResult,
    extract_labeled_value,
    is_signup_phrase,
    normalise_customer_id,
    parse_signup_message,
    split_lines,
)
from wholesale_approval.approvals.text import collect_message_text  # noqa: E402

STRICT_HEADER = "New wholesale signup, approve directly in this thread:"


def test_plain_notification_is_a_trigger():
    text = f"{STRICT_HEADER}\nName: Jane Doe\nCustomer ID: `98765`"

    assert parse_signup_message(text) == TriggerResult(is_trigger=True, name="Jane Doe", customer_id="98765")


def test_strict_phrase_with_customer_id():
    result = parse_signup_message(f"{STRICT_HEADER}\nCustomer ID: 12345")

    assert result.is_trigger is True
    assert result.customer_id == "12345"
    assert result.name == ""


def test_strict_phrase_is_case_insensitive():
    result = parse_signup_message("NEW WHOLESALE SIGNUP, APPROVE DIRECTLY IN THIS THREAD:\ncustomer id: 7")

    assert result.is_trigger is True
    assert result.customer_id == "7"


def test_fuzzy_phrase_with_reworded_template():
    text = "New  wholesale\tsignup!\nPlease approve below.\n*Name:* Acme Ltd\n*Customer ID:* *555*"

    result = parse_signup_message(text)

    assert result == TriggerResult(is_trigger=True, name="Acme Ltd", customer_id="555")


@pytest.mark.parametrize(
    "text",
    [
        f"{STRICT_HEADER}\nName: Jane Doe",
        f"{STRICT_HEADER}\nName: Jane Doe\nCustomer ID: pending",
        "New wholesale signup, please approve\nCustomer ID:",
        "",
        "   ",
    ],
)
def test_no_identifier_means_no_trigger(text):
    assert parse_signup_message(text).is_trigger is False


@pytest.mark.parametrize(
    "text",
    [
        "New retail signup, approve directly in this thread:\nCustomer ID: 12345",
        "New wholesale signup\nCustomer ID: 12345",
        "Customer ID: 12345",
    ],
)
def test_missing_phrase_means_no_trigger(text):
    result = parse_signup_message(text)

    assert result.is_trigger is False
    assert result.customer_id == "12345"


def test_value_on_following_line():
    text = f"{STRICT_HEADER}\n*Name:*\n\n*Jane Doe*\n*Customer ID:*\n   \n`98765`"

    result = parse_signup_message(text)

    assert result == TriggerResult(is_trigger=True, name="Jane Doe", customer_id="98765")


def test_markup_is_removed_from_identifier():
    for raw in ("`98765`", "*98765*", "_98765_", "~98765~", "<98765>", "ID 98765 (new)"):
        assert normalise_customer_id(raw) == "98765"


def test_first_digit_run_wins():
    assert normalise_customer_id("123 / 456") == "123"


def test_full_text_fallback_when_labelled_value_has_no_digits():
    text = f"{STRICT_HEADER}\nCustomer ID: see below\nCustomer ID: `4242`"

    result = parse_signup_message(text)

    assert result.customer_id == "4242"
    assert result.is_trigger is True


def test_fallback_scan_uses_full_text():
    assert normalise_customer_id("", "prefix Customer ID: `31337` suffix") == "31337"
    assert normalise_customer_id("", "nothing here") == ""


def test_crlf_line_endings():
    text = f"{STRICT_HEADER}\r\nName: Jane\r\nCustomer ID: 1"

    assert parse_signup_message(text) == TriggerResult(is_trigger=True, name="Jane", customer_id="1")


def test_extract_labeled_value_rules():
    lines = split_lines("Intro\n*Name:* *Bold Name*\nCustomer ID:\n\n  99  ")

    assert extract_labeled_value(lines, NAME_LABEL) == "Bold Name"
    assert extract_labeled_value(lines, CUSTOMER_ID_LABEL) == "99"


def test_extract_labeled_value_keeps_colons_in_value():
    lines = split_lines("Name: Shop: The Sequel")

    assert extract_labeled_value(lines, NAME_LABEL) == "Shop: The Sequel"


def test_extract_labeled_value_missing_label_or_value():
    assert extract_labeled_value(split_lines("Company: Acme"), NAME_LABEL) == ""
    assert extract_labeled_value(split_lines("Name:\n\n"), NAME_LABEL) == ""


def test_label_must_start_the_line():
    lines = split_lines("Customer Name: Jane")

    assert extract_labeled_value(lines, NAME_LABEL) == ""


def test_is_signup_phrase_fuzzy_requires_approve():
    assert is_signup_phrase("New wholesale signup received, APPROVE?") is True
    assert is_signup_phrase("New wholesale signup received") is False


def test_structured_message_parses_identically_twice():
    event = {
        "blocks": [
            {"type": "section", "text": {"type": "mrkdwn", "text": STRICT_HEADER}},
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": "*Name:*"},
                    {"type": "mrkdwn", "text": "Jane Doe"},
                    {"type": "mrkdwn", "text": "*Customer ID:*"},
                    {"type": "mrkdwn", "text": "`98765`"},
                ],
            },
        ]
    }

    first = parse_signup_message(collect_message_text(event))
    second = parse_signup_message(collect_message_text(event))

    assert first == second == TriggerResult(is_trigger=True, name="Jane Doe", customer_id="98765")


def test_rich_text_notification():
    event = {
        "blocks": [
            {
                "type": "rich_text",
                "elements": [
                    {"type": "rich_text_section", "elements": [{"type": "text", "text": STRICT_HEADER}]},
                    {
                        "type": "rich_text_section",
                        "elements": [
                            {"type": "text", "text": "Name", "style": {"bold": True}},
                            {"type": "text", "text": ": Jane Doe"},
                        ],
                    },
                    {
                        "type": "rich_text_section",
                        "elements": [
                            {"type": "text", "text": "Customer ID: "},
                            {"type": "text", "text": "98765", "style": {"code": True}},
                        ],
                    },
                ],
            }
        ]
    }

    result = parse_signup_message(collect_message_text(event))

    assert result == TriggerResult(is_trigger=True, name="Jane Doe", customer_id="98765")
