"""
DRA Network Module - Message channels for the auction.

Provides the public broadcast log the protocol runs over, and the
centralized forwarding channel used for comparison scenarios.
"""

from dra.network.channel import (
    AUCTIONEER,
    BroadcastChannel,
    BroadcastLog,
    CentralizedChannel,
    Delivery,
    Message,
    MessageKind,
    Omission,
    commitment_message,
    end_phase_message,
    identity_tag,
    reveal_message,
    timeout_message,
)

__all__ = [
    "AUCTIONEER",
    "BroadcastChannel",
    "BroadcastLog",
    "CentralizedChannel",
    "Delivery",
    "Message",
    "MessageKind",
    "Omission",
    "commitment_message",
    "end_phase_message",
    "identity_tag",
    "reveal_message",
    "timeout_message",
]
