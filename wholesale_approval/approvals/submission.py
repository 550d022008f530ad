"""Parsing and validation for the custom rate modal submission."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError

from .modal import RATE_ACTION_ID, RATE_BLOCK_ID
from .state import (
    MAX_CUSTOM_RATE,
    MIN_CUSTOM_RATE,
    ApprovalStage,
    ApprovedAtRate,
    Transition,
)

RATE_ERROR_MESSAGE = f"Please enter an integer between {MIN_CUSTOM_RATE} and {MAX_CUSTOM_RATE}."

_RATE_PATTERN = re.compile(r"[1-9][0-9]?")


class RateValidationError(ValueError):
    """Raised when the custom rate input cannot be accepted."""

    def __init__(self, message: str = RATE_ERROR_MESSAGE, block_id: str = RATE_BLOCK_ID) -> None:
        super().__init__(message)
        self.message = message
        self.block_id = block_id

    def as_ack_payload(self) -> Dict[str, Any]:
        return {"response_action": "errors", "errors": {self.block_id: self.message}}


class SubmissionValue(BaseModel):
    """Represents a single field value coming from Slack modal state."""

    value: str | None = Field(None, alias="value")


class SubmissionState(BaseModel):
    """Model to validate Slack modal state payloads."""

    values: Dict[str, Dict[str, SubmissionValue]]


@dataclass(frozen=True)
class ModalMetadata:
    """Private metadata of the custom rate modal."""

    token: str
    channel_id: str
    thread_ts: str | None = None
    message_ts: str | None = None


def parse_custom_rate(raw: str | None) -> int:
    """Return the rate for *raw* or raise :class:`RateValidationError`."""

    candidate = (raw or "").strip()
    if not _RATE_PATTERN.fullmatch(candidate):
        raise RateValidationError()
    rate = int(candidate)
    if not MIN_CUSTOM_RATE <= rate <= MAX_CUSTOM_RATE:
        raise RateValidationError()
    return rate


def submit_custom_rate(raw: str | None) -> Transition:
    """Transition out of ``AWAITING_CUSTOM_INPUT``; invalid input raises."""

    rate = parse_custom_rate(raw)
    return Transition(stage=ApprovalStage.RESOLVING_OUTCOME, outcome=ApprovedAtRate(rate))


def extract_rate_input(state_payload: Dict[str, Any]) -> str | None:
    """Pull the raw text typed into the rate field out of ``view.state``."""

    try:
        state = SubmissionState.model_validate(state_payload)
    except ValidationError as exc:
        raise ValueError("Invalid submission payload") from exc

    block = state.values.get(RATE_BLOCK_ID, {})
    if RATE_ACTION_ID in block:
        return block[RATE_ACTION_ID].value
    return next(iter(block.values()), SubmissionValue()).value


def parse_modal_metadata(raw: str | None) -> ModalMetadata:
    try:
        payload = json.loads(raw or "")
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid modal metadata.") from exc

    if not isinstance(payload, dict):
        raise ValueError("Invalid modal metadata.")

    token = payload.get("token")
    channel_id = payload.get("channel_id")
    if not isinstance(token, str) or not token:
        raise ValueError("Invalid modal metadata.")
    if not isinstance(channel_id, str) or not channel_id:
        raise ValueError("Invalid modal metadata.")

    return ModalMetadata(
        token=token,
        channel_id=channel_id,
        thread_ts=payload.get("thread_ts") or None,
        message_ts=payload.get("message_ts") or None,
    )
