"""Block Kit message builders for wholesale approvals."""

from __future__ import annotations

from typing import Any, Dict, List

from wholesale_approval.actions import DecisionToken

from .state import (
    ALTERNATE_RATE,
    APPROVE_25_ACTION_ID,
    APPROVE_30_ACTION_ID,
    APPROVE_OTHER_ACTION_ID,
    DEFAULT_RATE,
    REJECT_ACTION_ID,
    ApprovalOutcome,
    ApprovedAtRate,
)

DECISION_BLOCK_ID = "wholesale_decision_buttons"


def _button(text: str, action_id: str, value: str, style: str | None = None) -> Dict[str, Any]:
    button: Dict[str, Any] = {
        "type": "button",
        "text": {"type": "plain_text", "text": text, "emoji": True},
        "action_id": action_id,
        "value": value,
    }
    if style:
        button["style"] = style
    return button


def build_decision_blocks(token: DecisionToken) -> List[Dict[str, Any]]:
    """Return the four-option decision surface for *token*."""

    value = token.to_value()
    return [
        {
            "type": "actions",
            "block_id": DECISION_BLOCK_ID,
            "elements": [
                _button(f"Approve at {DEFAULT_RATE}% (default)", APPROVE_30_ACTION_ID, value, style="primary"),
                _button(f"Approve at {ALTERNATE_RATE}%", APPROVE_25_ACTION_ID, value),
                _button("Other (choose %)", APPROVE_OTHER_ACTION_ID, value),
                _button("Reject", REJECT_ACTION_ID, value, style="danger"),
            ],
        }
    ]


def build_decision_message(token: DecisionToken, *, manual: bool = False) -> Dict[str, Any]:
    if manual:
        text = f"Approve/reject wholesale for {token.display_name} (ID {token.customer_id}):"
    else:
        text = f"New wholesale signup detected for {token.display_name} (ID {token.customer_id}). Choose an action:"
    return {"text": text, "blocks": build_decision_blocks(token)}


def build_decision_handled_update(token: DecisionToken, *, decided_by: str, outcome: ApprovalOutcome) -> Dict[str, Any]:
    """Replace the buttons once a reviewer has picked an option."""

    summary = f"{token.display_name} (ID {token.customer_id}) {outcome.label} by <@{decided_by}>"
    return {
        "text": f"Wholesale signup for {summary}.",
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"Wholesale signup for *{token.display_name}* (ID `{token.customer_id}`)",
                },
            },
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f":information_source: {outcome.label.capitalize()} by <@{decided_by}>"}],
            },
        ],
    }


def build_outcome_text(token: DecisionToken, outcome: ApprovalOutcome, error: Exception | None = None) -> str:
    """Status line posted in the thread once the tag mutation finished."""

    name = token.display_name
    if isinstance(outcome, ApprovedAtRate):
        if error is not None:
            return f":x: Failed to approve *{name}* at {outcome.rate}%: {error}"
        return (
            f":white_check_mark: Approved *{name}* at *{outcome.rate}%*. "
            f"Tag `{outcome.tag}` added. No further action needed."
        )

    if error is not None:
        return f":x: Failed to reject *{name}*: {error}"
    return f":no_entry_sign: Rejected *{name}*. Tag `{outcome.tag}` removed. No further action needed."
