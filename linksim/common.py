from enum import IntEnum
from typing import Union


SimTime = Union[int, float]
PacketID = int
PacketSize = int  # in bytes
BufferCapacity = int  # in packets
InterfaceBW = int  # in bits per second

BITS_PER_BYTE = 8
BPS_PER_MBPS = 1_000_000


class EventCategory(IntEnum):
    """
    Kinds of events seen by the link. The values double as the tie-break rank
    for events that share a timestamp:
        ARRIVAL - a packet reaches the link
        DEPARTURE - the packet at the buffer head starts its transmission
        DROPPED - a packet was rejected by a full buffer
    """

    ARRIVAL = 0
    DEPARTURE = 1
    DROPPED = 2


def transmission_delay(size: PacketSize, bandwidth: InterfaceBW) -> float:
    return size * BITS_PER_BYTE / bandwidth
