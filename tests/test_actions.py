"""Tests for decision token serialisation and parsing."""

import json
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wholesale_approval.actions import DecisionToken, parse_decision_token  # noqa: E402


def test_token_value_is_compact_json():
    token = DecisionToken(name="Jane Doe", customer_id="98765")

    assert token.to_value() == '{"name":"Jane Doe","customer_id":"98765"}'


def test_parse_decision_token_reads_back_button_value():
    value = DecisionToken(name="Jane Doe", customer_id="98765").to_value()

    assert parse_decision_token(value) == DecisionToken(name="Jane Doe", customer_id="98765")


def test_parse_decision_token_allows_missing_name():
    token = parse_decision_token(json.dumps({"customer_id": "42"}))

    assert token.name == ""
    assert token.display_name == "customer 42"


def test_token_is_immutable():
    token = DecisionToken(name="Jane", customer_id="1")

    with pytest.raises(AttributeError):
        token.customer_id = "2"


@pytest.mark.parametrize(
    "payload",
    [
        "not-json",
        "",
        "{}",
        '["array"]',
        '{"customer_id": 123}',
        '{"customer_id": ""}',
        '{"customer_id": "12a"}',
        '{"customer_id": "12", "name": 5}',
    ],
)
def test_parse_decision_token_invalid(payload):
    with pytest.raises(ValueError):
        parse_decision_token(payload)
