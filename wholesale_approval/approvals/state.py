"""Approval stages, outcomes and the tag mutation each outcome implies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Union

APPROVE_30_ACTION_ID = "approve_30"
APPROVE_25_ACTION_ID = "approve_25"
APPROVE_OTHER_ACTION_ID = "approve_other"
REJECT_ACTION_ID = "reject"

DEFAULT_RATE = 30
ALTERNATE_RATE = 25
MIN_CUSTOM_RATE = 1
MAX_CUSTOM_RATE = 50

RATE_TAG_PREFIX = "wholesale"
REJECT_TAG = "manual-wholesale-customer"


class ApprovalStage(str, Enum):
    PRESENTED = "PRESENTED"
    AWAITING_CUSTOM_INPUT = "AWAITING_CUSTOM_INPUT"
    RESOLVING_OUTCOME = "RESOLVING_OUTCOME"
    TERMINAL = "TERMINAL"


@dataclass(frozen=True)
class ApprovedAtRate:
    rate: int

    def __post_init__(self) -> None:
        if not MIN_CUSTOM_RATE <= self.rate <= MAX_CUSTOM_RATE:
            raise ValueError(f"rate must be between {MIN_CUSTOM_RATE} and {MAX_CUSTOM_RATE}")

    @property
    def tag(self) -> str:
        return f"{RATE_TAG_PREFIX}{self.rate}"

    @property
    def label(self) -> str:
        return f"approved at {self.rate}%"


@dataclass(frozen=True)
class Rejected:
    @property
    def tag(self) -> str:
        return REJECT_TAG

    @property
    def label(self) -> str:
        return "rejected"


ApprovalOutcome = Union[ApprovedAtRate, Rejected]


@dataclass(frozen=True)
class TagMutationRequest:
    customer_id: str
    tags_to_add: FrozenSet[str] = frozenset()
    tags_to_remove: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if bool(self.tags_to_add) == bool(self.tags_to_remove):
            raise ValueError("exactly one of tags_to_add or tags_to_remove must be non-empty")
        if not self.customer_id:
            raise ValueError("customer_id is required")

    @property
    def operation(self) -> str:
        return "tagsAdd" if self.tags_to_add else "tagsRemove"

    @property
    def tags(self) -> list[str]:
        return sorted(self.tags_to_add or self.tags_to_remove)


@dataclass(frozen=True)
class Transition:
    stage: ApprovalStage
    outcome: ApprovalOutcome | None = None


_PRESET_OUTCOMES: dict[str, ApprovalOutcome] = {
    APPROVE_30_ACTION_ID: ApprovedAtRate(DEFAULT_RATE),
    APPROVE_25_ACTION_ID: ApprovedAtRate(ALTERNATE_RATE),
    REJECT_ACTION_ID: Rejected(),
}

DECISION_ACTION_IDS = (
    APPROVE_30_ACTION_ID,
    APPROVE_25_ACTION_ID,
    APPROVE_OTHER_ACTION_ID,
    REJECT_ACTION_ID,
)


def select_option(action_id: str) -> Transition:
    """Transition out of ``PRESENTED`` for the button a reviewer pressed."""

    if action_id == APPROVE_OTHER_ACTION_ID:
        return Transition(stage=ApprovalStage.AWAITING_CUSTOM_INPUT)

    try:
        outcome = _PRESET_OUTCOMES[action_id]
    except KeyError as exc:
        raise ValueError(f"Unknown decision action '{action_id}'") from exc
    return Transition(stage=ApprovalStage.RESOLVING_OUTCOME, outcome=outcome)


def build_tag_mutation(outcome: ApprovalOutcome, customer_id: str) -> TagMutationRequest:
    if isinstance(outcome, ApprovedAtRate):
        return TagMutationRequest(customer_id=customer_id, tags_to_add=frozenset({outcome.tag}))
    return TagMutationRequest(customer_id=customer_id, tags_to_remove=frozenset({outcome.tag}))
