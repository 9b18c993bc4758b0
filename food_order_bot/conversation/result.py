"""
Handler Result.

Conversation and owner-command handlers never talk to the transport. They
return a FlowResult listing the replies to send and the notification events
to dispatch, and the MessageProcessor carries them out.
"""

from dataclasses import dataclass, field
from typing import List

from ..services.notifications import NotificationEvent


@dataclass
class OutboundMessage:
    phone: str
    body: str


@dataclass
class FlowResult:
    """Result from handling one inbound message."""
    messages: List[OutboundMessage] = field(default_factory=list)
    events: List[NotificationEvent] = field(default_factory=list)

    def reply(self, phone: str, body: str) -> "FlowResult":
        self.messages.append(OutboundMessage(phone=phone, body=body))
        return self

    def extend(self, other: "FlowResult") -> "FlowResult":
        self.messages.extend(other.messages)
        self.events.extend(other.events)
        return self

    @property
    def bodies(self) -> List[str]:
        return [m.body for m in self.messages]
