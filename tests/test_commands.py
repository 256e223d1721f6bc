"""Tests for opening the approval modal from the slash command."""

import logging
from pathlib import Path
import sys

from slack_sdk.errors import SlackApiError
from structlog.testing import capture_logs

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from slack_approval_bot.approvals.commands import open_approval_modal  # noqa: E402

LOGGER = logging.getLogger(__name__)


class DummyWebClient:
    def __init__(self, *, fail_users=False, fail_open=False):
        self.fail_users = fail_users
        self.fail_open = fail_open
        self.opened = []

    def users_list(self, **kwargs):
        if self.fail_users:
            raise SlackApiError("users failed", {"error": "missing_scope"})
        return {
            "members": [
                {"id": "U1", "real_name": "Alice"},
                {"id": "U2", "name": "bob"},
                {"id": "B1", "name": "helper", "is_bot": True},
            ]
        }

    def views_open(self, **kwargs):
        if self.fail_open:
            raise SlackApiError("open failed", {"error": "expired_trigger_id"})
        self.opened.append(kwargs)
        return {"ok": True}


def test_open_approval_modal_lists_people_only():
    client = DummyWebClient()

    assert open_approval_modal(client=client, trigger_id="trigger", logger=LOGGER) is True

    view = client.opened[0]["view"]
    options = view["blocks"][0]["element"]["options"]
    assert [(option["value"], option["text"]["text"]) for option in options] == [("U1", "Alice"), ("U2", "bob")]


def test_open_approval_modal_logs_list_failure():
    client = DummyWebClient(fail_users=True)

    with capture_logs() as logs:
        assert open_approval_modal(client=client, trigger_id="trigger", logger=LOGGER) is False

    assert client.opened == []
    assert logs[0]["operation"] == "list_users"
    assert logs[0]["error"] == "missing_scope"


def test_open_approval_modal_logs_open_failure():
    client = DummyWebClient(fail_open=True)

    with capture_logs() as logs:
        assert open_approval_modal(client=client, trigger_id="trigger", logger=LOGGER) is False

    failures = [entry for entry in logs if entry["event"] == "slack_call_failed"]
    assert failures[0]["operation"] == "open_modal"
    assert failures[0]["error"] == "expired_trigger_id"
