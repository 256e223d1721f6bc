"""Utilities for parsing and validating approval modal submissions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ValidationError

from .modal import (
    APPROVAL_TEXT_ACTION_ID,
    APPROVAL_TEXT_BLOCK_ID,
    APPROVER_ACTION_ID,
    APPROVER_BLOCK_ID,
)

MISSING_APPROVER = "Please select an approver"
MISSING_TEXT = "Please enter request details"


class SelectedOption(BaseModel):
    value: str | None = None


class SubmissionValue(BaseModel):
    """Represents a single element value coming from Slack modal state."""

    value: str | None = None
    selected_option: SelectedOption | None = None


class SubmissionState(BaseModel):
    """Model to validate Slack modal state payloads."""

    values: Dict[str, Dict[str, SubmissionValue]]


class SubmissionError(ValueError):
    """Raised when a submission is missing fields; ``errors`` maps block id to reason."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        super().__init__("; ".join(f"{block}: {reason}" for block, reason in errors.items()))
        self.errors: Dict[str, str] = dict(errors)


@dataclass(frozen=True)
class ApprovalSubmission:
    requester_id: str
    approver_id: str
    approval_text: str


def _element(state: SubmissionState, block_id: str, action_id: str) -> SubmissionValue | None:
    block = state.values.get(block_id)
    if block is None:
        return None
    return block.get(action_id)


def parse_submission(state_payload: Mapping[str, Any], requester_id: str) -> ApprovalSubmission:
    """Validate the modal state and return the approval request it describes."""

    try:
        state = SubmissionState.model_validate(state_payload)
    except ValidationError as exc:
        raise SubmissionError({"general": "Invalid submission payload."}) from exc

    errors: Dict[str, str] = {}

    approver_id = None
    approver = _element(state, APPROVER_BLOCK_ID, APPROVER_ACTION_ID)
    if approver is not None and approver.selected_option is not None:
        approver_id = approver.selected_option.value
    if approver_id is None or approver_id.strip() == "":
        errors[APPROVER_BLOCK_ID] = MISSING_APPROVER

    approval_text = None
    text_element = _element(state, APPROVAL_TEXT_BLOCK_ID, APPROVAL_TEXT_ACTION_ID)
    if text_element is not None and text_element.value is not None:
        approval_text = text_element.value.strip()
    if approval_text is None or approval_text == "":
        errors[APPROVAL_TEXT_BLOCK_ID] = MISSING_TEXT

    if errors:
        raise SubmissionError(errors)

    return ApprovalSubmission(
        requester_id=requester_id,
        approver_id=approver_id.strip(),
        approval_text=approval_text,
    )
