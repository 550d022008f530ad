"""Decision tokens carried in Slack interaction payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class DecisionToken:
    """Subject identity attached to every option of a decision surface.

    The token is serialised into each button's ``value`` (and into the custom
    rate modal's metadata) so that whichever option a reviewer picks, the
    customer travels with it without any server-side session.
    """

    name: str
    customer_id: str

    @property
    def display_name(self) -> str:
        return self.name or f"customer {self.customer_id}"

    def to_value(self) -> str:
        return json.dumps({"name": self.name, "customer_id": self.customer_id}, separators=(",", ":"))


def parse_decision_token(raw_value: str) -> DecisionToken:
    """Parse a button value or modal metadata string into a token."""

    try:
        payload = json.loads(raw_value)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ValueError("Invalid action payload.") from exc

    if not isinstance(payload, dict):
        raise ValueError("Invalid action payload.")

    customer_id = payload.get("customer_id")
    if not isinstance(customer_id, str) or not (customer_id.isascii() and customer_id.isdigit()):
        raise ValueError("Invalid action payload.")

    name = payload.get("name") or ""
    if not isinstance(name, str):
        raise ValueError("Invalid action payload.")

    return DecisionToken(name=name, customer_id=customer_id)
