"""Post decision surfaces and outcome reports into Slack threads."""

from __future__ import annotations

from typing import Any, Mapping

from slack_sdk.errors import SlackApiError
import structlog

from wholesale_approval.actions import DecisionToken
from wholesale_approval.shopify import MutationError, ShopifyClient
from wholesale_approval.slack_client import SlackClient

from .messages import build_decision_handled_update, build_decision_message, build_outcome_text
from .state import ApprovalOutcome, ApprovalStage, build_tag_mutation


def _slack_error(exc: SlackApiError) -> tuple[str, int | None]:
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None) if response is not None else None
    error_code = response.get("error") if response is not None else str(exc)
    return error_code, status_code


def publish_decision_message(
    *,
    client,
    token: DecisionToken,
    channel_id: str,
    thread_ts: str | None,
    logger,
    manual: bool = False,
) -> Mapping[str, Any] | None:
    """Reply in the signup thread with the four decision buttons."""

    slack_client = SlackClient(client=client)
    log = structlog.get_logger().bind(customer_id=token.customer_id, channel=channel_id)
    payload = build_decision_message(token, manual=manual)

    try:
        response = slack_client.post_message(
            channel=channel_id,
            thread_ts=thread_ts,
            text=payload["text"],
            blocks=payload["blocks"],
        )
    except SlackApiError as exc:
        error_code, status_code = _slack_error(exc)
        log.error("slack_call_failed", operation="publish_decision_message", error=error_code, status_code=status_code)
        logger.error(
            "Failed to publish wholesale decision message",
            extra={"customer_id": token.customer_id, "channel": channel_id, "error": error_code},
        )
        return None

    log.info("decision_surface_posted", thread_ts=thread_ts, manual=manual)
    return response


def mark_decision_handled(
    *,
    client,
    token: DecisionToken,
    outcome: ApprovalOutcome,
    decided_by: str,
    channel_id: str,
    message_ts: str | None,
    logger,
) -> None:
    """Swap the decision buttons for a note so the surface is not reused."""

    if not message_ts:
        return

    slack_client = SlackClient(client=client)
    payload = build_decision_handled_update(token, decided_by=decided_by, outcome=outcome)
    try:
        slack_client.update_message(channel=channel_id, ts=message_ts, text=payload["text"], blocks=payload["blocks"])
    except SlackApiError as exc:
        error_code, status_code = _slack_error(exc)
        structlog.get_logger().warning(
            "slack_call_failed",
            operation="mark_decision_handled",
            error=error_code,
            status_code=status_code,
            channel=channel_id,
        )
        logger.warning(
            "Failed to update wholesale decision message",
            extra={"customer_id": token.customer_id, "channel": channel_id, "error": error_code},
        )


def resolve_outcome(
    *,
    client,
    shopify: ShopifyClient,
    token: DecisionToken,
    outcome: ApprovalOutcome,
    channel_id: str,
    thread_ts: str | None,
    logger,
    decided_by: str | None = None,
    message_ts: str | None = None,
) -> ApprovalStage:
    """Apply *outcome* to the customer and report it in the thread.

    One tag mutation attempt and one status message, whatever the mutation
    result. Always ends in ``TERMINAL``; failures are reported, not retried.
    """

    log = structlog.get_logger().bind(
        customer_id=token.customer_id,
        outcome=outcome.label,
        channel=channel_id,
        decided_by=decided_by,
    )

    if decided_by:
        mark_decision_handled(
            client=client,
            token=token,
            outcome=outcome,
            decided_by=decided_by,
            channel_id=channel_id,
            message_ts=message_ts,
            logger=logger,
        )

    error: MutationError | None = None
    try:
        shopify.mutate_tags(build_tag_mutation(outcome, token.customer_id))
    except MutationError as exc:
        error = exc
        log.error("tag_mutation_failed", error=exc.detail)
        logger.error(
            "Wholesale tag mutation failed",
            extra={"customer_id": token.customer_id, "outcome": outcome.label, "error": exc.detail},
        )
    else:
        log.info("outcome_applied", tag=outcome.tag)

    text = build_outcome_text(token, outcome, error)
    slack_client = SlackClient(client=client)
    try:
        slack_client.post_message(channel=channel_id, thread_ts=thread_ts, text=text)
    except SlackApiError as exc:
        error_code, status_code = _slack_error(exc)
        log.error("slack_call_failed", operation="resolve_outcome", error=error_code, status_code=status_code)
        logger.error(
            "Failed to post wholesale outcome message",
            extra={"customer_id": token.customer_id, "channel": channel_id, "error": error_code},
        )

    return ApprovalStage.TERMINAL
