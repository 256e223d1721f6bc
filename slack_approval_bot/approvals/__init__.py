"""Approval request modal, validation, and message builders."""

from .actions import (
    APPROVE_ACTION_ID,
    REJECT_ACTION_ID,
    DecisionContext,
    decision_for_action,
    parse_decision_context,
)
from .commands import APPROVAL_COMMAND, BOT_CHECK_COMMAND, BOT_CHECK_RESPONSE, open_approval_modal
from .modal import APPROVAL_MODAL_CALLBACK_ID, build_approval_modal
from .notifications import send_approval_request, send_decision
from .requests import ApprovalSubmission, SubmissionError, parse_submission

__all__ = [
    "APPROVE_ACTION_ID",
    "REJECT_ACTION_ID",
    "DecisionContext",
    "decision_for_action",
    "parse_decision_context",
    "APPROVAL_COMMAND",
    "BOT_CHECK_COMMAND",
    "BOT_CHECK_RESPONSE",
    "open_approval_modal",
    "APPROVAL_MODAL_CALLBACK_ID",
    "build_approval_modal",
    "send_approval_request",
    "send_decision",
    "ApprovalSubmission",
    "SubmissionError",
    "parse_submission",
]
