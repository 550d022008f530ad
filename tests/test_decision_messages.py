"""Tests for decision surface and outcome message builders."""

import json
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wholesale_approval.actions import DecisionToken  # noqa: E402
from wholesale_approval.approvals import (  # noqa: E402
    APPROVE_25_ACTION_ID,
    APPROVE_30_ACTION_ID,
    APPROVE_OTHER_ACTION_ID,
    REJECT_ACTION_ID,
    ApprovedAtRate,
    Rejected,
    build_decision_blocks,
    build_decision_message,
    build_outcome_text,
)
from wholesale_approval.approvals.messages import build_decision_handled_update  # noqa: E402
from wholesale_approval.shopify import MutationError  # noqa: E402


@pytest.fixture
def token():
    return DecisionToken(name="Jane Doe", customer_id="98765")


def test_decision_blocks_offer_four_options_in_order(token):
    blocks = build_decision_blocks(token)

    assert len(blocks) == 1
    actions = blocks[0]
    assert actions["type"] == "actions"
    buttons = actions["elements"]
    assert [button["action_id"] for button in buttons] == [
        APPROVE_30_ACTION_ID,
        APPROVE_25_ACTION_ID,
        APPROVE_OTHER_ACTION_ID,
        REJECT_ACTION_ID,
    ]
    assert buttons[0]["text"]["text"] == "Approve at 30% (default)"
    assert buttons[0]["style"] == "primary"
    assert buttons[3]["style"] == "danger"
    assert "style" not in buttons[1]
    assert "style" not in buttons[2]


def test_every_option_carries_the_same_token(token):
    buttons = build_decision_blocks(token)[0]["elements"]

    values = {button["value"] for button in buttons}
    assert values == {token.to_value()}
    assert json.loads(values.pop()) == {"name": "Jane Doe", "customer_id": "98765"}


def test_decision_blocks_are_deterministic(token):
    assert build_decision_blocks(token) == build_decision_blocks(token)


def test_decision_message_text(token):
    message = build_decision_message(token)

    assert message["text"] == "New wholesale signup detected for Jane Doe (ID 98765). Choose an action:"
    assert message["blocks"] == build_decision_blocks(token)


def test_manual_decision_message_text():
    message = build_decision_message(DecisionToken(name="Customer", customer_id="1234"), manual=True)

    assert message["text"] == "Approve/reject wholesale for Customer (ID 1234):"


def test_handled_update_drops_buttons(token):
    update = build_decision_handled_update(token, decided_by="U1", outcome=ApprovedAtRate(30))

    assert all(block["type"] != "actions" for block in update["blocks"])
    assert "<@U1>" in update["text"]
    assert "approved at 30%" in update["text"]


def test_outcome_text_for_approval(token):
    text = build_outcome_text(token, ApprovedAtRate(30))

    assert "*Jane Doe*" in text
    assert "30%" in text
    assert "`wholesale30`" in text
    assert text.startswith(":white_check_mark:")


def test_outcome_text_for_rejection(token):
    text = build_outcome_text(token, Rejected())

    assert text == (
        ":no_entry_sign: Rejected *Jane Doe*. Tag `manual-wholesale-customer` removed. No further action needed."
    )


def test_outcome_text_for_failures(token):
    error = MutationError('tagsAdd errors: [{"field":["id"],"message":"Customer does not exist"}]')

    approval = build_outcome_text(token, ApprovedAtRate(17), error)
    rejection = build_outcome_text(token, Rejected(), MutationError("Shopify HTTP 500: boom"))

    assert approval.startswith(":x: Failed to approve *Jane Doe* at 17%:")
    assert "Customer does not exist" in approval
    assert rejection == ":x: Failed to reject *Jane Doe*: Shopify HTTP 500: boom"


def test_outcome_text_without_name_uses_customer_id():
    text = build_outcome_text(DecisionToken(name="", customer_id="55"), Rejected())

    assert "*customer 55*" in text
