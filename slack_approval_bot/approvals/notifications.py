"""Utilities for delivering approval requests and decisions over Slack."""

from __future__ import annotations

from typing import Any, Mapping

from slack_sdk.errors import SlackApiError
import structlog

from slack_approval_bot.slack_client import SlackClient

from .actions import DecisionContext
from .messages import (
    build_approver_message,
    build_decided_update,
    build_decision_notice,
    build_requester_confirmation,
)
from .requests import ApprovalSubmission


def _log_slack_failure(log, logger, exc: SlackApiError, *, operation: str, message: str, **extra: Any) -> None:
    status_code = getattr(exc.response, "status_code", None) if getattr(exc, "response", None) else None
    error_code = exc.response.get("error") if getattr(exc, "response", None) else str(exc)
    log.error(
        "slack_call_failed",
        operation=operation,
        error=error_code,
        status_code=status_code,
    )
    logger.error(message, extra={**extra, "error": error_code})


def _post(slack_client: SlackClient, channel: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
    return slack_client.post_message(channel=channel, text=payload["text"], blocks=payload["blocks"])


def send_approval_request(*, client, submission: ApprovalSubmission, logger) -> bool:
    """Ask the approver for a decision, then confirm to the requester.

    Returns ``False`` as soon as a Slack call fails; the requester is only told the
    request was sent once the approver's message has been delivered.
    """

    slack_client = SlackClient(client=client)
    log = structlog.get_logger().bind(
        requester_id=submission.requester_id,
        approver_id=submission.approver_id,
    )

    approver_payload = build_approver_message(
        requester_id=submission.requester_id,
        approval_text=submission.approval_text,
    )
    try:
        _post(slack_client, submission.approver_id, approver_payload)
    except SlackApiError as exc:
        _log_slack_failure(
            log,
            logger,
            exc,
            operation="notify_approver",
            message="Failed to send approval request to approver",
            approver_id=submission.approver_id,
        )
        return False

    confirmation = build_requester_confirmation(
        approver_id=submission.approver_id,
        approval_text=submission.approval_text,
    )
    try:
        _post(slack_client, submission.requester_id, confirmation)
    except SlackApiError as exc:
        _log_slack_failure(
            log,
            logger,
            exc,
            operation="confirm_requester",
            message="Failed to confirm approval request to requester",
            requester_id=submission.requester_id,
        )
        return False

    log.info("approval_requested")
    return True


def send_decision(
    *,
    client,
    context: DecisionContext,
    decision: str,
    approver_id: str,
    channel_id: str | None,
    message_ts: str | None,
    logger,
) -> bool:
    """Notify the requester of the decision and update the approver's message."""

    slack_client = SlackClient(client=client)
    log = structlog.get_logger().bind(
        requester_id=context.requester_id,
        approver_id=approver_id,
        decision=decision,
    )

    notice = build_decision_notice(
        approver_id=approver_id,
        approval_text=context.approval_text,
        decision=decision,
    )
    try:
        _post(slack_client, context.requester_id, notice)
    except SlackApiError as exc:
        _log_slack_failure(
            log,
            logger,
            exc,
            operation="notify_requester",
            message="Failed to notify requester of decision",
            requester_id=context.requester_id,
        )
        return False

    if not channel_id or not message_ts:
        log.warning("message_reference_missing", channel=channel_id, ts=message_ts)
        return False

    update = build_decided_update(
        requester_id=context.requester_id,
        approval_text=context.approval_text,
        decision=decision,
    )
    try:
        slack_client.update_message(
            channel=channel_id,
            ts=message_ts,
            text=update["text"],
            blocks=update["blocks"],
        )
    except SlackApiError as exc:
        _log_slack_failure(
            log,
            logger,
            exc,
            operation="update_approver_message",
            message="Failed to update approval request message",
            channel=channel_id,
        )
        return False

    log.info("decision_recorded")
    return True
