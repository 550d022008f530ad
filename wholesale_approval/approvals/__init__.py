"""Wholesale signup detection, decision surfaces and approval state."""

from .messages import (
    build_decision_blocks,
    build_decision_message,
    build_outcome_text,
)
from .modal import CUSTOM_RATE_CALLBACK_ID, RATE_ACTION_ID, RATE_BLOCK_ID, build_custom_rate_modal
from .parser import TriggerResult, extract_labeled_value, parse_signup_message
from .state import (
    APPROVE_25_ACTION_ID,
    APPROVE_30_ACTION_ID,
    APPROVE_OTHER_ACTION_ID,
    DECISION_ACTION_IDS,
    REJECT_ACTION_ID,
    ApprovalStage,
    ApprovedAtRate,
    Rejected,
    TagMutationRequest,
    build_tag_mutation,
    select_option,
)
from .submission import RateValidationError, parse_custom_rate, submit_custom_rate
from .text import collect_message_text

__all__ = [
    "APPROVE_25_ACTION_ID",
    "APPROVE_30_ACTION_ID",
    "APPROVE_OTHER_ACTION_ID",
    "CUSTOM_RATE_CALLBACK_ID",
    "DECISION_ACTION_IDS",
    "RATE_ACTION_ID",
    "RATE_BLOCK_ID",
    "REJECT_ACTION_ID",
    "ApprovalStage",
    "ApprovedAtRate",
    "RateValidationError",
    "Rejected",
    "TagMutationRequest",
    "TriggerResult",
    "build_custom_rate_modal",
    "build_decision_blocks",
    "build_decision_message",
    "build_outcome_text",
    "build_tag_mutation",
    "collect_message_text",
    "extract_labeled_value",
    "parse_custom_rate",
    "parse_signup_message",
    "select_option",
    "submit_custom_rate",
]
