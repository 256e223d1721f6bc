"""Slash command helpers for opening the approval modal."""

from __future__ import annotations

from slack_sdk.errors import SlackApiError
import structlog

from slack_approval_bot.slack_client import SlackClient

from .modal import build_approval_modal, selectable_users

APPROVAL_COMMAND = "/approval-test"
BOT_CHECK_COMMAND = "/checkbotworking"
BOT_CHECK_RESPONSE = {"response_type": "in_channel", "text": "✅ Bot is working!"}


def open_approval_modal(*, client, trigger_id: str, logger) -> bool:
    """List workspace members and open the approval modal for *trigger_id*."""

    slack_client = SlackClient(client=client)
    log = structlog.get_logger()

    try:
        users = slack_client.list_users()
    except SlackApiError as exc:
        error_code = exc.response.get("error") if getattr(exc, "response", None) else str(exc)
        log.error("slack_call_failed", operation="list_users", error=error_code)
        logger.error("Failed to list workspace users", extra={"error": error_code})
        return False

    view = build_approval_modal(users)
    log.info("approval_modal_prepared", candidate_count=len(selectable_users(users)))

    try:
        slack_client.open_modal(trigger_id=trigger_id, view=view)
    except SlackApiError as exc:
        error_code = exc.response.get("error") if getattr(exc, "response", None) else str(exc)
        log.error("slack_call_failed", operation="open_modal", error=error_code)
        logger.error("Failed to open approval modal", extra={"error": error_code})
        return False

    log.info("approval_modal_opened")
    return True
