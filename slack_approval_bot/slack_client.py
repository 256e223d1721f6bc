"""Thin wrapper utilities around the Slack WebClient."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence

from slack_sdk import WebClient

USERS_PAGE_SIZE = 200


@dataclass(frozen=True)
class WorkspaceUser:
    """A workspace member as returned by ``users.list``."""

    id: str
    display_name: str
    is_bot: bool = False
    is_deleted: bool = False

    @classmethod
    def from_member(cls, member: Mapping[str, Any]) -> "WorkspaceUser":
        name = member.get("real_name") or member.get("name") or "Unknown User"
        return cls(
            id=member.get("id") or "",
            display_name=name,
            is_bot=bool(member.get("is_bot")),
            is_deleted=bool(member.get("deleted")),
        )


class SlackClient:
    """Encapsulate Slack WebClient interactions for easier testing."""

    def __init__(self, *, token: str | None = None, client: WebClient | None = None) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")
        self._client = client or WebClient(token=token)

    @property
    def client(self) -> WebClient:
        """Expose the underlying WebClient for advanced use cases."""

        return self._client

    def list_users(self) -> List[WorkspaceUser]:
        """Return every workspace member, following pagination cursors."""

        users: List[WorkspaceUser] = []
        cursor: str | None = None
        while True:
            kwargs: dict[str, Any] = {"limit": USERS_PAGE_SIZE}
            if cursor:
                kwargs["cursor"] = cursor
            response = self._client.users_list(**kwargs)
            for member in response.get("members") or []:
                users.append(WorkspaceUser.from_member(member))
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return users

    def open_modal(self, *, trigger_id: str, view: Mapping[str, Any]) -> Mapping[str, Any]:
        """Open a modal in response to a user interaction."""

        return self._client.views_open(trigger_id=trigger_id, view=dict(view))

    def post_message(
        self,
        *,
        channel: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Post a message with Block Kit content to a channel or user."""

        return self._client.chat_postMessage(channel=channel, text=text, blocks=list(blocks))

    def update_message(
        self,
        *,
        channel: str,
        ts: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Update an existing Slack message."""

        return self._client.chat_update(channel=channel, ts=ts, text=text, blocks=list(blocks))
