"""
Channels - Public broadcast log and the centralized comparison channel.

BroadcastChannel models the public bulletin the DRA relies on: every
message is delivered to every subscriber, sender included, and recorded
in a BroadcastLog. A recipient's view is simply the log filtered by
recipient, so all honest views agree.

CentralizedChannel models an auctioneer that forwards messages itself.
It may deliver to any subset of subscribers; every skipped recipient is
recorded as an Omission so tests can show who was kept in the dark.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from dra.core.auction.models import Participant, Phase, TransitionReason
from dra.utils.logger import get_logger

logger = get_logger("channel")


AUCTIONEER = "auctioneer"

Identity = Union[Participant, str]


def identity_tag(who: Identity) -> str:
    """Normalize a participant or a raw tag to its string tag."""
    return who.tag if isinstance(who, Participant) else str(who)


# =============================================================================
# Messages
# =============================================================================


class MessageKind(Enum):
    """Types of public messages."""
    COMMITMENT = "commitment"
    REVEAL = "reveal"
    END_PHASE = "end_phase"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Message:
    """
    A public protocol message.

    Attributes:
        kind: Message type
        sender: Tag of the sending identity
        phase: Round phase when the message was sent
        subject: Committer, revealer or timed-out participant tag
        success: Reveal outcome (REVEAL only)
        ended: Phase that closed (END_PHASE only)
        reason: Why the phase closed (END_PHASE only)
        timestamp: Logical clock when sent
    """
    kind: MessageKind
    sender: str
    phase: Phase
    subject: Optional[str] = None
    success: Optional[bool] = None
    ended: Optional[Phase] = None
    reason: Optional[TransitionReason] = None
    timestamp: int = 0

    def to_dict(self) -> dict:
        data = {
            "kind": self.kind.value,
            "sender": self.sender,
            "phase": self.phase.name,
            "timestamp": self.timestamp,
        }
        if self.subject is not None:
            data["subject"] = self.subject
        if self.success is not None:
            data["success"] = self.success
        if self.ended is not None:
            data["ended"] = self.ended.name
        if self.reason is not None:
            data["reason"] = self.reason.value
        return data


def commitment_message(sender: Identity, phase: Phase, timestamp: int = 0) -> Message:
    tag = identity_tag(sender)
    return Message(MessageKind.COMMITMENT, tag, phase, subject=tag, timestamp=timestamp)


def reveal_message(sender: Identity, phase: Phase, success: bool, timestamp: int = 0) -> Message:
    tag = identity_tag(sender)
    return Message(MessageKind.REVEAL, tag, phase, subject=tag, success=success, timestamp=timestamp)


def end_phase_message(
    ended: Phase,
    phase: Phase,
    reason: TransitionReason = TransitionReason.MANUAL,
    timestamp: int = 0,
) -> Message:
    return Message(MessageKind.END_PHASE, AUCTIONEER, phase, ended=ended, reason=reason, timestamp=timestamp)


def timeout_message(target: Identity, phase: Phase, timestamp: int = 0) -> Message:
    return Message(MessageKind.TIMEOUT, AUCTIONEER, phase, subject=identity_tag(target), timestamp=timestamp)


@dataclass(frozen=True)
class Delivery:
    """A message as received by one recipient."""
    recipient: str
    message: Message


@dataclass(frozen=True)
class Omission:
    """A recipient that a centralized forwarder skipped."""
    omitted: str
    message: Message


# =============================================================================
# Broadcast Log
# =============================================================================


class BroadcastLog:
    """Append-only record of published messages and their deliveries."""

    def __init__(self):
        self._messages: List[Message] = []
        self._deliveries: List[Delivery] = []

    def record(self, message: Message, recipients: Iterable[str]) -> int:
        self._messages.append(message)
        count = 0
        for recipient in recipients:
            self._deliveries.append(Delivery(recipient, message))
            count += 1
        return count

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def deliveries(self) -> Tuple[Delivery, ...]:
        return tuple(self._deliveries)

    def per_recipient_view(self, recipient: Identity) -> List[Message]:
        """Messages delivered to `recipient`, in delivery order."""
        tag = identity_tag(recipient)
        return [d.message for d in self._deliveries if d.recipient == tag]

    def to_list(self) -> List[dict]:
        return [m.to_dict() for m in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"BroadcastLog(messages={len(self._messages)}, deliveries={len(self._deliveries)})"


# =============================================================================
# Channels
# =============================================================================


@dataclass
class BroadcastChannel:
    """
    Public broadcast: every message reaches every current subscriber.

    The auctioneer is always subscribed. Participants subscribe when
    they first commit; they receive everything published from then on.
    """
    log: BroadcastLog = field(default_factory=BroadcastLog)
    subscribers: List[str] = field(default_factory=lambda: [AUCTIONEER])

    def subscribe(self, who: Identity) -> None:
        tag = identity_tag(who)
        if tag not in self.subscribers:
            self.subscribers.append(tag)

    def publish(self, message: Message) -> int:
        """
        Deliver a message to all subscribers.

        Returns:
            Number of deliveries
        """
        count = self.log.record(message, list(self.subscribers))
        logger.debug(f"Broadcast {message.kind.value} from {message.sender} to {count} subscribers")
        return count


@dataclass
class CentralizedChannel:
    """
    Auctioneer-forwarded channel with selective delivery.

    Private messages go to a single recipient. Forwarded messages go to
    the allowed subset; every other subscriber except the sender and,
    for relayed commitments and reveals, their originator is recorded
    as omitted.
    """
    subscribers: List[str] = field(default_factory=list)
    log: BroadcastLog = field(default_factory=BroadcastLog)
    omissions: List[Omission] = field(default_factory=list)

    def __post_init__(self):
        self.subscribers = [identity_tag(s) for s in self.subscribers]
        if AUCTIONEER not in self.subscribers:
            self.subscribers.append(AUCTIONEER)

    def register(self, who: Identity) -> None:
        tag = identity_tag(who)
        if tag not in self.subscribers:
            self.subscribers.append(tag)

    def private_message(self, recipient: Identity, message: Message) -> None:
        self.log.record(message, [identity_tag(recipient)])

    def broadcast_subset(self, message: Message, allowed: Iterable[Identity]) -> int:
        """
        Forward a message to an allowed subset of subscribers.

        Returns:
            Number of deliveries made
        """
        allow = {identity_tag(a) for a in allowed}
        skip = {message.sender}
        if message.kind in (MessageKind.COMMITMENT, MessageKind.REVEAL) and message.subject is not None:
            skip.add(message.subject)

        recipients = []
        for subscriber in self.subscribers:
            if subscriber in skip:
                continue
            if subscriber in allow:
                recipients.append(subscriber)
            else:
                self.omissions.append(Omission(subscriber, message))
                logger.debug(f"Withheld {message.kind.value} from {subscriber}")
        return self.log.record(message, recipients)

    @property
    def deliveries(self) -> Tuple[Delivery, ...]:
        return self.log.deliveries

    def per_recipient_view(self, recipient: Identity) -> List[Message]:
        return self.log.per_recipient_view(recipient)

    def omitted_for(self, recipient: Identity) -> List[Message]:
        tag = identity_tag(recipient)
        return [o.message for o in self.omissions if o.omitted == tag]


__all__ = [
    "AUCTIONEER",
    "identity_tag",
    "MessageKind",
    "Message",
    "Delivery",
    "Omission",
    "commitment_message",
    "reveal_message",
    "end_phase_message",
    "timeout_message",
    "BroadcastLog",
    "BroadcastChannel",
    "CentralizedChannel",
]
