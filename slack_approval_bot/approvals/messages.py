"""Block Kit message builders for approval requests."""

from __future__ import annotations

from typing import Any, Dict, List

from .actions import APPROVE_ACTION_ID, APPROVED, REJECT_ACTION_ID, REJECTED, DecisionContext

DECISION_BUTTONS_BLOCK_ID = "approval_actions"

_DECISION_EMOJI = {
    APPROVED: ":white_check_mark:",
    REJECTED: ":x:",
}


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> Dict[str, Any]:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def _escape(text: str) -> str:
    """Escape the control characters Slack interprets inside mrkdwn."""

    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _request_section(approval_text: str) -> Dict[str, Any]:
    return _section(f"*Request:*\n{_escape(approval_text)}")


def _emoji(decision: str) -> str:
    return _DECISION_EMOJI.get(decision, ":information_source:")


def _decision_buttons(context: DecisionContext) -> Dict[str, Any]:
    value = context.to_value()
    return {
        "type": "actions",
        "block_id": DECISION_BUTTONS_BLOCK_ID,
        "elements": [
            {
                "type": "button",
                "text": {"type": "plain_text", "text": "Approve"},
                "style": "primary",
                "action_id": APPROVE_ACTION_ID,
                "value": value,
            },
            {
                "type": "button",
                "text": {"type": "plain_text", "text": "Reject"},
                "style": "danger",
                "action_id": REJECT_ACTION_ID,
                "value": value,
            },
        ],
    }


def build_approver_message(*, requester_id: str, approval_text: str) -> Dict[str, Any]:
    """Build the direct message asking the approver for a decision."""

    intro = f"You have a new approval request from <@{requester_id}>:"
    context = DecisionContext(requester_id=requester_id, approval_text=approval_text)
    blocks: List[Dict[str, Any]] = [
        _section(intro),
        _request_section(approval_text),
        _decision_buttons(context),
    ]
    return {"text": intro, "blocks": blocks}


def build_requester_confirmation(*, approver_id: str, approval_text: str) -> Dict[str, Any]:
    """Tell the requester their request is on its way to the approver."""

    return {
        "text": f"Your approval request has been sent to <@{approver_id}>",
        "blocks": [
            _section(f"Your approval request has been sent to <@{approver_id}>:"),
            _request_section(approval_text),
            _context("Awaiting response..."),
        ],
    }


def build_decision_notice(*, approver_id: str, approval_text: str, decision: str) -> Dict[str, Any]:
    """Tell the requester what the approver decided."""

    return {
        "text": f"Your approval request has been {decision} by <@{approver_id}>",
        "blocks": [
            _section(
                f"{_emoji(decision)} Your approval request has been *{decision}* by <@{approver_id}>:"
            ),
            _request_section(approval_text),
        ],
    }


def build_decided_update(*, requester_id: str, approval_text: str, decision: str) -> Dict[str, Any]:
    """Return the approver's original message with the buttons replaced by the outcome."""

    return {
        "text": f"Approval request from <@{requester_id}> ({decision.capitalize()})",
        "blocks": [
            _section(f"Approval request from <@{requester_id}>:"),
            _request_section(approval_text),
            _context(f"{_emoji(decision)} You *{decision}* this request."),
        ],
    }
