"""Explicit dispatch table between Slack interaction ids and their handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from slack_bolt import App as SlackApp

Handler = Callable[..., None]


@dataclass(frozen=True)
class DispatchTable:
    """Every interaction the bot supports, keyed by the id Slack sends."""

    commands: Dict[str, Handler] = field(default_factory=dict)
    views: Dict[str, Handler] = field(default_factory=dict)
    actions: Dict[str, Handler] = field(default_factory=dict)
    events: Dict[str, Handler] = field(default_factory=dict)

    def identifiers(self) -> List[Tuple[str, str]]:
        """Return ``(kind, id)`` pairs for every registered interaction."""

        pairs: List[Tuple[str, str]] = []
        for kind, handlers in (
            ("command", self.commands),
            ("view", self.views),
            ("action", self.actions),
            ("event", self.events),
        ):
            pairs.extend((kind, identifier) for identifier in handlers)
        return pairs


def _with_ack(handler: Handler) -> Handler:
    def listener(ack, body, client, logger):
        handler(ack=ack, body=body, client=client, logger=logger)

    return listener


def _without_ack(handler: Handler) -> Handler:
    def listener(event, client, logger):
        handler(event=event, client=client, logger=logger)

    return listener


def register_handlers(bolt_app: SlackApp, table: DispatchTable) -> None:
    """Register every entry of *table* with the Bolt application."""

    for command, handler in table.commands.items():
        bolt_app.command(command)(_with_ack(handler))
    for callback_id, handler in table.views.items():
        bolt_app.view(callback_id)(_with_ack(handler))
    for action_id, handler in table.actions.items():
        bolt_app.action(action_id)(_with_ack(handler))
    for event_type, handler in table.events.items():
        bolt_app.event(event_type)(_without_ack(handler))
