"""Utilities for building the approval request modal."""

from __future__ import annotations

from typing import Dict, Iterable, List

from slack_approval_bot.slack_client import WorkspaceUser

APPROVAL_MODAL_CALLBACK_ID = "approval_request_modal"
APPROVER_BLOCK_ID = "approver_block"
APPROVER_ACTION_ID = "approver_select"
APPROVAL_TEXT_BLOCK_ID = "approval_text_block"
APPROVAL_TEXT_ACTION_ID = "approval_text_input"

MAX_OPTIONS = 100  # Slack limit for static_select
MAX_OPTION_TEXT_LENGTH = 75
# Keeps the decision button value under Slack's 2000 character limit.
MAX_APPROVAL_TEXT_LENGTH = 900


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def selectable_users(users: Iterable[WorkspaceUser]) -> List[WorkspaceUser]:
    """Return the members that can be picked as approvers."""

    return [user for user in users if user.id and not user.is_bot and not user.is_deleted]


def _user_option(user: WorkspaceUser) -> Dict:
    return {
        "text": {"type": "plain_text", "text": _truncate(user.display_name, MAX_OPTION_TEXT_LENGTH)},
        "value": user.id,
    }


def build_approval_modal(users: Iterable[WorkspaceUser]) -> Dict:
    """Build the modal used to pick an approver and describe the request."""

    options = [_user_option(user) for user in selectable_users(users)][:MAX_OPTIONS]
    approver_element: Dict[str, object] = {
        "type": "static_select",
        "action_id": APPROVER_ACTION_ID,
        "placeholder": {"type": "plain_text", "text": "Select an approver"},
        "options": options,
    }
    blocks: List[Dict] = [
        {
            "type": "input",
            "block_id": APPROVER_BLOCK_ID,
            "label": {"type": "plain_text", "text": "Select Approver"},
            "element": approver_element,
        },
        {
            "type": "input",
            "block_id": APPROVAL_TEXT_BLOCK_ID,
            "label": {"type": "plain_text", "text": "Approval Request"},
            "element": {
                "type": "plain_text_input",
                "action_id": APPROVAL_TEXT_ACTION_ID,
                "multiline": True,
                "max_length": MAX_APPROVAL_TEXT_LENGTH,
                "placeholder": {"type": "plain_text", "text": "What do you need approval for?"},
            },
        },
    ]
    return {
        "type": "modal",
        "callback_id": APPROVAL_MODAL_CALLBACK_ID,
        "title": {"type": "plain_text", "text": "Request Approval", "emoji": True},
        "submit": {"type": "plain_text", "text": "Submit", "emoji": True},
        "close": {"type": "plain_text", "text": "Cancel", "emoji": True},
        "blocks": blocks,
    }
