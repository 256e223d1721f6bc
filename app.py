"""Application entry point for the Slack Approval Bot."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path
from uuid import uuid4

from flask import Flask, jsonify, request
from slack_bolt import App as SlackApp
from slack_bolt.adapter.flask import SlackRequestHandler
from werkzeug.exceptions import HTTPException
import structlog
from structlog.contextvars import bind_contextvars, bound_contextvars, unbind_contextvars

from slack_approval_bot.approvals import (
    APPROVAL_COMMAND,
    APPROVAL_MODAL_CALLBACK_ID,
    APPROVE_ACTION_ID,
    BOT_CHECK_COMMAND,
    BOT_CHECK_RESPONSE,
    REJECT_ACTION_ID,
    SubmissionError,
    decision_for_action,
    open_approval_modal,
    parse_decision_context,
    parse_submission,
    send_approval_request,
    send_decision,
)
from slack_approval_bot.background import run_async
from slack_approval_bot.config import AppSettings, get_settings
from slack_approval_bot.dispatch import DispatchTable, register_handlers
from slack_approval_bot.logging_config import configure_logging
from slack_approval_bot.security import (
    SLACK_SIGNATURE_HEADER,
    SLACK_TIMESTAMP_HEADER,
    RequestAuthenticator,
    SignedRequest,
    VerificationResult,
)

SLACK_ROUTES = ("/slack/events", "/slack/commands", "/slack/interactions")
HEALTH_TEXT = "Slack Approval Bot is running!"
DISTRIBUTION_NAME = "slack-approval-bot"


def _create_bolt_app(settings: AppSettings) -> SlackApp:
    """Initialise the Slack Bolt application using validated settings.

    Bolt's own signature check is disabled: every request has already passed the
    ``RequestAuthenticator`` by the time it reaches the Bolt handler.
    """

    return SlackApp(
        token=settings.bot_token,
        signing_secret=settings.signing_secret,
        token_verification_enabled=False,
        request_verification_enabled=False,
    )


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        if isinstance(error, HTTPException):
            return error

        trace_id = str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _handle_approval_command(ack, body, client, logger):
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        log.info(
            "slash_command_received",
            command=body.get("command"),
            user_id=body.get("user_id"),
        )
        trigger_id = body.get("trigger_id")
        if not trigger_id:
            ack({"response_type": "ephemeral", "text": "Unable to open the approval form. Please try again."})
            log.warning("trigger_id_missing")
            return

        ack()
        run_async(
            open_approval_modal,
            client=client,
            trigger_id=trigger_id,
            logger=logger,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_bot_check_command(ack, body, client, logger):
    structlog.get_logger().info("bot_check_received", user_id=body.get("user_id"))
    ack(BOT_CHECK_RESPONSE)


def _handle_approval_submission(ack, body, client, logger):
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        requester_id = (body.get("user") or {}).get("id")
        if not requester_id:
            ack({"response_action": "errors", "errors": {"general": "We could not identify the requesting user."}})
            log.warning("missing_user_id")
            return

        view = body.get("view") or {}
        state_payload = {"values": (view.get("state") or {}).get("values", {})}
        try:
            submission = parse_submission(state_payload, requester_id)
        except SubmissionError as exc:
            ack({"response_action": "errors", "errors": exc.errors})
            log.info("submission_rejected", fields=sorted(exc.errors))
            return

        ack({"response_action": "clear"})
        log.info("submission_accepted", requester_id=requester_id, approver_id=submission.approver_id)
        run_async(
            send_approval_request,
            client=client,
            submission=submission,
            logger=logger,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_decision_action(ack, body, client, logger):
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        ack()

        actions = body.get("actions") or []
        try:
            action_payload = actions[0]
        except IndexError:
            log.warning("action_payload_missing")
            return

        try:
            decision = decision_for_action(action_payload.get("action_id", ""))
            context = parse_decision_context(action_payload.get("value", ""))
        except ValueError:
            log.warning("invalid_action_payload", action_id=action_payload.get("action_id"))
            return

        approver_id = (body.get("user") or {}).get("id")
        if not approver_id:
            log.warning("missing_user_id")
            return

        log.info("decision_received", decision=decision, approver_id=approver_id)
        run_async(
            send_decision,
            client=client,
            context=context,
            decision=decision,
            approver_id=approver_id,
            channel_id=(body.get("channel") or {}).get("id"),
            message_ts=(body.get("message") or {}).get("ts"),
            logger=logger,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_app_mention(event, client, logger):
    structlog.get_logger().info(
        "app_mention_received",
        channel=(event or {}).get("channel"),
        user_id=(event or {}).get("user"),
    )


def _handle_message_event(event, client, logger):
    structlog.get_logger().debug(
        "message_received",
        channel=(event or {}).get("channel"),
        user_id=(event or {}).get("user"),
    )


def build_dispatch_table() -> DispatchTable:
    """Return the mapping from every supported Slack interaction to its handler."""

    return DispatchTable(
        commands={
            APPROVAL_COMMAND: _handle_approval_command,
            BOT_CHECK_COMMAND: _handle_bot_check_command,
        },
        views={APPROVAL_MODAL_CALLBACK_ID: _handle_approval_submission},
        actions={
            APPROVE_ACTION_ID: _handle_decision_action,
            REJECT_ACTION_ID: _handle_decision_action,
        },
        events={
            "app_mention": _handle_app_mention,
            "message": _handle_message_event,
        },
    )


def _signed_request_from_flask() -> SignedRequest:
    return SignedRequest(
        method=request.method,
        timestamp=request.headers.get(SLACK_TIMESTAMP_HEADER),
        signature=request.headers.get(SLACK_SIGNATURE_HEADER),
        raw_body=request.get_data(cache=True),
    )


_LOGGING_CONFIGURED = False


def _load_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app(settings: AppSettings | None = None) -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED
    if settings is None:
        settings = get_settings()
    if not _LOGGING_CONFIGURED:
        configure_logging(settings.log_level)
        _LOGGING_CONFIGURED = True

    authenticator = RequestAuthenticator(settings.signing_secret)
    if not authenticator.is_configured:
        structlog.get_logger().error(
            "signing_secret_missing",
            detail="SLACK_SIGNING_SECRET is not set; every request will be rejected",
        )

    bolt_app = _create_bolt_app(settings)
    register_handlers(bolt_app, build_dispatch_table())
    handler = SlackRequestHandler(bolt_app)

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel(settings.log_level)

    _register_error_handlers(flask_app)

    @flask_app.before_request
    def authenticate_slack_request():
        with bound_contextvars(path=request.path):
            result = authenticator.verify(_signed_request_from_flask())
        if result is VerificationResult.REJECTED_MISCONFIGURED:
            response = jsonify({"error": "server_misconfigured"})
            response.status_code = 500
            return response
        if not result.accepted:
            response = jsonify({"error": "invalid_signature"})
            response.status_code = 401
            return response
        return None

    def slack_endpoint():
        return handler.handle(request)

    for rule in SLACK_ROUTES:
        flask_app.add_url_rule(rule, endpoint=rule, view_func=slack_endpoint, methods=["POST"])

    @flask_app.route("/slack/diagnostic", methods=["POST"])
    def slack_diagnostic():
        structlog.get_logger().info("diagnostic_received", content_type=request.content_type)
        return jsonify({"text": "Diagnostic test successful!"})

    @flask_app.route("/", methods=["GET"])
    def index():
        return HEALTH_TEXT, 200

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        try:
            get_settings()
            health["config"] = "valid"
        except RuntimeError as exc:
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False
        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    app_settings = get_settings()
    application = create_app(app_settings)
    application.run(host="0.0.0.0", port=app_settings.port)
