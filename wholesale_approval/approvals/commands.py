"""Parsing for the manual ``/wholesale-approve`` slash command."""

from __future__ import annotations

import re

from wholesale_approval.actions import DecisionToken

COMMAND_NAME = "/wholesale-approve"
DEFAULT_COMMAND_NAME_VALUE = "Customer"
USAGE_TEXT = f'Usage: `{COMMAND_NAME} <CustomerID> name="<Customer Name>"`'

_ID_PATTERN = re.compile(r"(\d{4,})", re.ASCII)
_NAME_PATTERN = re.compile(r'name=("([^"]+)"|(\S+))', re.IGNORECASE)


def parse_slash_command(text: str | None) -> DecisionToken:
    """Build a token from ``<CustomerID> name="Some Name"``.

    Raises ``ValueError`` carrying the usage text when no id is present.
    """

    text = (text or "").strip()
    id_match = _ID_PATTERN.search(text)
    if not id_match:
        raise ValueError(USAGE_TEXT)

    name_match = _NAME_PATTERN.search(text)
    name = (name_match.group(2) or name_match.group(3)) if name_match else DEFAULT_COMMAND_NAME_VALUE
    return DecisionToken(name=name, customer_id=id_match.group(1))
