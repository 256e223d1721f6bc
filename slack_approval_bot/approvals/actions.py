"""Utilities for handling approve/reject button payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass

APPROVE_ACTION_ID = "approve_request"
REJECT_ACTION_ID = "reject_request"

APPROVED = "approved"
REJECTED = "rejected"

_DECISIONS = {
    APPROVE_ACTION_ID: APPROVED,
    REJECT_ACTION_ID: REJECTED,
}


@dataclass(frozen=True)
class DecisionContext:
    """Parsed context carried in the value of a decision button."""

    requester_id: str
    approval_text: str

    def to_value(self) -> str:
        payload = {"requester_id": self.requester_id, "approval_text": self.approval_text}
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def parse_decision_context(raw_value: str) -> DecisionContext:
    """Parse the button value into a structured context."""

    try:
        payload = json.loads(raw_value)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ValueError("Invalid action payload.") from exc

    if not isinstance(payload, dict):
        raise ValueError("Invalid action payload.")

    requester_id = payload.get("requester_id")
    approval_text = payload.get("approval_text")
    if not isinstance(requester_id, str) or not requester_id:
        raise ValueError("Invalid action payload.")
    if not isinstance(approval_text, str):
        raise ValueError("Invalid action payload.")

    return DecisionContext(requester_id=requester_id, approval_text=approval_text)


def decision_for_action(action_id: str) -> str:
    """Map a button action id to the decision it records."""

    try:
        return _DECISIONS[action_id]
    except KeyError:
        raise ValueError(f"Unknown decision action: {action_id}") from None
