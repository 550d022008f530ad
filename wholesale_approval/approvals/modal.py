"""Builder for the custom rate modal."""

from __future__ import annotations

import json
from typing import Dict

CUSTOM_RATE_CALLBACK_ID = "approve_other_modal"
RATE_BLOCK_ID = "pct_block"
RATE_ACTION_ID = "pct"


def build_custom_rate_modal(
    *,
    token_value: str,
    channel_id: str,
    thread_ts: str | None = None,
    message_ts: str | None = None,
) -> Dict:
    """Build the modal asking for a discount percentage.

    ``token_value`` is the button value exactly as received; it is passed
    through untouched so the submission handler sees the same token the
    decision surface carried. Slack does not hand the originating thread back
    on ``view_submission``, so it rides along in the metadata as well.
    """

    metadata = {"token": token_value, "channel_id": channel_id}
    if thread_ts:
        metadata["thread_ts"] = thread_ts
    if message_ts:
        metadata["message_ts"] = message_ts

    return {
        "type": "modal",
        "callback_id": CUSTOM_RATE_CALLBACK_ID,
        "private_metadata": json.dumps(metadata, separators=(",", ":")),
        "title": {"type": "plain_text", "text": "Approve (custom %)", "emoji": True},
        "submit": {"type": "plain_text", "text": "Apply", "emoji": True},
        "close": {"type": "plain_text", "text": "Cancel", "emoji": True},
        "blocks": [
            {
                "type": "input",
                "block_id": RATE_BLOCK_ID,
                "label": {"type": "plain_text", "text": "Enter discount % (1-50)", "emoji": True},
                "element": {
                    "type": "plain_text_input",
                    "action_id": RATE_ACTION_ID,
                    "placeholder": {"type": "plain_text", "text": "e.g., 17"},
                },
            }
        ],
    }
