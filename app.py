"""Application entry point for the wholesale signup approval bot."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from flask import Flask, jsonify, request
from slack_bolt import App as SlackApp
from slack_bolt.adapter.flask import SlackRequestHandler
from slack_bolt.adapter.socket_mode import SocketModeHandler
from slack_sdk.errors import SlackApiError
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from wholesale_approval.actions import DecisionToken, parse_decision_token
from wholesale_approval.approvals import (
    CUSTOM_RATE_CALLBACK_ID,
    DECISION_ACTION_IDS,
    RATE_BLOCK_ID,
    ApprovalStage,
    RateValidationError,
    build_custom_rate_modal,
    collect_message_text,
    parse_signup_message,
    select_option,
    submit_custom_rate,
)
from wholesale_approval.approvals.commands import COMMAND_NAME, parse_slash_command
from wholesale_approval.approvals.notifications import publish_decision_message, resolve_outcome
from wholesale_approval.approvals.parser import is_signup_phrase
from wholesale_approval.approvals.submission import extract_rate_input, parse_modal_metadata
from wholesale_approval.background import run_async
from wholesale_approval.config import AppSettings, get_settings
from wholesale_approval.logging_config import configure_logging
from wholesale_approval.shopify import ShopifyClient
from wholesale_approval.slack_client import SlackClient

# Edits, deletions and thread broadcasts carry the original text again.
_IGNORED_MESSAGE_SUBTYPES = {"message_changed", "message_deleted", "thread_broadcast"}

_EXPIRED_MODAL_MESSAGE = "This approval could not be matched to a customer. Please start again from the thread."


def _build_shopify_client(settings: AppSettings) -> ShopifyClient:
    return ShopifyClient.from_settings(settings)


def _create_bolt_app(settings: AppSettings) -> SlackApp:
    """Initialise the Slack Bolt application using validated settings."""

    return SlackApp(
        token=settings.bot_token,
        signing_secret=settings.signing_secret,
        token_verification_enabled=False,
    )


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        trace_id = str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _log_message_events(body, next, logger):
    event = (body or {}).get("event") or {}
    if event.get("type") == "message":
        structlog.get_logger().info(
            "message_event_received",
            channel=event.get("channel"),
            subtype=event.get("subtype") or "-",
            ts=event.get("ts"),
            author=event.get("user") or event.get("bot_id") or "-",
            text_preview=(event.get("text") or "")[:120],
        )
    next()


def _handle_message_event(*, event, client, logger, settings: AppSettings) -> None:
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        event = event or {}
        channel_id = event.get("channel")
        if not settings.watch_channel_id or channel_id != settings.watch_channel_id:
            return
        if event.get("subtype") in _IGNORED_MESSAGE_SUBTYPES:
            return

        body_text = collect_message_text(event)
        if not body_text:
            return

        result = parse_signup_message(body_text)
        if not result.is_trigger:
            if is_signup_phrase(body_text):
                log.info("trigger_missing_customer_id", channel=channel_id, ts=event.get("ts"))
            return

        log.info("trigger_detected", name=result.name, customer_id=result.customer_id, channel=channel_id)
        publish_decision_message(
            client=client,
            token=DecisionToken(name=result.name, customer_id=result.customer_id),
            channel_id=channel_id,
            thread_ts=event.get("thread_ts") or event.get("ts"),
            logger=logger,
        )
    finally:
        unbind_contextvars("trace_id")


def _open_modal(client, trigger_id: str, view: dict, logger) -> None:
    logger.info("Opening custom rate modal")
    try:
        SlackClient(client=client).open_view(trigger_id=trigger_id, view=view)
    except SlackApiError as exc:  # pragma: no cover - network dependent
        logger.error(
            "Failed to open custom rate modal",
            extra={"error": exc.response.get("error"), "response": exc.response.data},
        )


def _handle_decision_action(*, ack, body, client, logger, settings: AppSettings) -> None:
    # Acknowledge before any Slack or Shopify round trip.
    ack()

    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        actions = body.get("actions") or []
        action = actions[0] if actions else {}
        action_id = action.get("action_id", "")
        raw_value = action.get("value", "")
        user_id = (body.get("user") or {}).get("id")
        container = body.get("container") or {}
        message = body.get("message") or {}
        channel_id = (body.get("channel") or {}).get("id") or container.get("channel_id")
        message_ts = message.get("ts") or container.get("message_ts")
        thread_ts = message.get("thread_ts") or container.get("thread_ts") or message_ts
        log = log.bind(action_id=action_id, user_id=user_id, channel=channel_id)

        try:
            token = parse_decision_token(raw_value)
            transition = select_option(action_id)
        except ValueError:
            log.warning("invalid_action_payload")
            if channel_id and user_id:
                SlackClient(client=client).post_ephemeral(
                    channel=channel_id,
                    user=user_id,
                    text="This action payload is invalid. Please retry from Slack.",
                )
            return

        log = log.bind(customer_id=token.customer_id)

        if transition.stage is ApprovalStage.AWAITING_CUSTOM_INPUT:
            view = build_custom_rate_modal(
                token_value=raw_value,
                channel_id=channel_id,
                thread_ts=thread_ts,
                message_ts=message_ts,
            )
            log.info("custom_rate_requested")
            run_async(_open_modal, client, body.get("trigger_id"), view, logger, trace_id=trace_id)
            return

        log.info("decision_selected", outcome=transition.outcome.label)
        run_async(
            resolve_outcome,
            client=client,
            shopify=_build_shopify_client(settings),
            token=token,
            outcome=transition.outcome,
            channel_id=channel_id,
            thread_ts=thread_ts,
            logger=logger,
            decided_by=user_id,
            message_ts=message_ts,
            trace_id=trace_id,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_custom_rate_submission(*, ack, body, client, logger, settings: AppSettings) -> None:
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        view = body.get("view") or {}
        try:
            metadata = parse_modal_metadata(view.get("private_metadata"))
            token = parse_decision_token(metadata.token)
        except ValueError:
            ack({"response_action": "errors", "errors": {RATE_BLOCK_ID: _EXPIRED_MODAL_MESSAGE}})
            log.warning("invalid_modal_metadata")
            return

        user_id = (body.get("user") or {}).get("id")
        log = log.bind(customer_id=token.customer_id, user_id=user_id, channel=metadata.channel_id)

        try:
            raw_rate = extract_rate_input({"values": (view.get("state") or {}).get("values", {})})
        except ValueError:
            raw_rate = None

        try:
            transition = submit_custom_rate(raw_rate)
        except RateValidationError as exc:
            ack(exc.as_ack_payload())
            log.info("custom_rate_rejected", raw_rate=raw_rate)
            return

        ack()
        log.info("decision_selected", outcome=transition.outcome.label)
        run_async(
            resolve_outcome,
            client=client,
            shopify=_build_shopify_client(settings),
            token=token,
            outcome=transition.outcome,
            channel_id=metadata.channel_id,
            thread_ts=metadata.thread_ts or metadata.message_ts,
            logger=logger,
            decided_by=user_id,
            message_ts=metadata.message_ts,
            trace_id=trace_id,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_wholesale_command(*, ack, command, client, logger) -> None:
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        log.info("slash_command_received", command=command.get("command"), channel=command.get("channel_id"))
        try:
            token = parse_slash_command(command.get("text"))
        except ValueError as exc:
            ack({"response_type": "ephemeral", "text": str(exc)})
            return

        ack()
        run_async(
            publish_decision_message,
            client=client,
            token=token,
            channel_id=command.get("channel_id"),
            thread_ts=None,
            logger=logger,
            manual=True,
            trace_id=trace_id,
        )
    finally:
        unbind_contextvars("trace_id")


def _register_message_handlers(bolt_app: SlackApp, settings: AppSettings) -> None:
    bolt_app.use(_log_message_events)

    @bolt_app.event("message")
    def handle_message(event, client, logger):
        _handle_message_event(event=event, client=client, logger=logger, settings=settings)


def _register_action_handlers(bolt_app: SlackApp, settings: AppSettings) -> None:
    def handle_decision(ack, body, client, logger):
        _handle_decision_action(ack=ack, body=body, client=client, logger=logger, settings=settings)

    for action_id in DECISION_ACTION_IDS:
        bolt_app.action(action_id)(handle_decision)


def _register_view_handlers(bolt_app: SlackApp, settings: AppSettings) -> None:
    @bolt_app.view(CUSTOM_RATE_CALLBACK_ID)
    def handle_custom_rate(ack, body, client, logger):
        _handle_custom_rate_submission(ack=ack, body=body, client=client, logger=logger, settings=settings)


def _register_slash_handlers(bolt_app: SlackApp) -> None:
    @bolt_app.command(COMMAND_NAME)
    def handle_command(ack, command, client, logger):
        _handle_wholesale_command(ack=ack, command=command, client=client, logger=logger)


def _register_bolt_error_handler(bolt_app: SlackApp) -> None:
    @bolt_app.error
    def handle_listener_error(error, logger):
        structlog.get_logger().error("listener_failed", error=str(error))
        logger.error("Unhandled Slack listener error", exc_info=error)


def create_bolt_app(settings: AppSettings) -> SlackApp:
    """Build the Bolt app with every wholesale approval listener attached."""

    bolt_app = _create_bolt_app(settings)
    _register_message_handlers(bolt_app, settings)
    _register_action_handlers(bolt_app, settings)
    _register_view_handlers(bolt_app, settings)
    _register_slash_handlers(bolt_app)
    _register_bolt_error_handler(bolt_app)
    return bolt_app


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app() -> Flask:
    """Create the Flask application serving Slack's HTTP request URL."""

    configure_logging()

    settings = get_settings()
    bolt_app = create_bolt_app(settings)
    handler = SlackRequestHandler(bolt_app)

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel("INFO")

    _register_error_handlers(flask_app)

    @flask_app.route("/slack/events", methods=["POST"])
    def slack_events():
        # Bolt verifies the signature and returns the ack body (e.g. modal
        # validation errors) as this response.
        return handler.handle(request)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        try:
            current = get_settings()
            health["config"] = "valid"
            health["mode"] = "socket" if current.socket_mode else "http"
            health["watching"] = bool(current.watch_channel_id)
        except RuntimeError as exc:
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


def main() -> None:
    """Run over Socket Mode when an app token is configured, else serve HTTP."""

    configure_logging()
    settings = get_settings()
    log = structlog.get_logger()

    if settings.socket_mode:
        log.info("wholesale_bot_starting", mode="socket", watch_channel=settings.watch_channel_id or "(not set)")
        SocketModeHandler(create_bolt_app(settings), settings.app_token).start()
        return

    log.info("wholesale_bot_starting", mode="http", port=settings.port, watch_channel=settings.watch_channel_id or "(not set)")
    create_app().run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    main()
