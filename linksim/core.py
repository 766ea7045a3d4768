from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from heapq import heappop, heappush
from typing import (
    Callable,
    Deque,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    TYPE_CHECKING,
)

from linksim.common import (
    BufferCapacity,
    EventCategory,
    InterfaceBW,
    PacketID,
    PacketSize,
    SimTime,
    transmission_delay,
)
from linksim.errors import (
    BufferOverflowError,
    BufferUnderflowError,
    ConfigError,
    EventCategoryError,
)
from linksim.stat import LinkReport, LinkStat

if TYPE_CHECKING:
    from linksim.trace import TraceRecord


LOG_FMT = "%(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FMT)
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PacketEvent:
    """
    An immutable record of something that happens to a packet at a given simulated time.
    Dropped and Departure events reuse the packet_id of the Arrival they derive from.
    """

    category: EventCategory
    packet_id: PacketID
    size: PacketSize
    time: SimTime

    def __post_init__(self) -> None:
        try:
            category = EventCategory(self.category)
        except ValueError as exc:
            raise EventCategoryError(
                f"Invalid packet event category: {self.category!r}"
            ) from exc
        object.__setattr__(self, "category", category)

    @property
    def sort_key(self) -> Tuple[SimTime, int, PacketID]:
        return self.time, int(self.category), self.packet_id

    def __lt__(self, other: PacketEvent) -> bool:
        return self.sort_key < other.sort_key

    def __repr__(self) -> str:
        return (
            f"{self.category.name.capitalize()}(packet_id={self.packet_id}, "
            f"size={self.size}, time={self.time})"
        )

    def derive(self, category: EventCategory, time: SimTime) -> PacketEvent:
        """
        Create an event of another category for the same packet.
        """
        return PacketEvent(category, self.packet_id, self.size, time)

    def todict(self):
        return {
            "category": self.category.name,
            "packet_id": self.packet_id,
            "size": self.size,
            "time": self.time,
        }


class EventQueue:
    """
    Pending events ordered by (time, category rank, packet_id).
    At equal time an Arrival is always seen before a Departure, and a Departure before a Drop.
    """

    def __init__(self):
        self._queue: List[PacketEvent] = []

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[PacketEvent]:
        return iter(self._queue)

    def is_empty(self) -> bool:
        return not self._queue

    def push(self, event: PacketEvent) -> None:
        heappush(self._queue, event)

    def peek(self) -> Optional[PacketEvent]:
        return self._queue[0] if self._queue else None

    def pop(self) -> Optional[PacketEvent]:
        if self._queue:
            return heappop(self._queue)
        return None


class ServiceBuffer:
    """
    Bounded FIFO of admitted packets. The head is the packet being served or next to be served.
    """

    def __init__(self, capacity: BufferCapacity):
        self.capacity: BufferCapacity = capacity
        self.space_left: BufferCapacity = capacity
        self._queue: Deque[PacketEvent] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[PacketEvent]:
        return iter(self._queue)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(capacity={self.capacity}, space_left={self.space_left})"

    def is_empty(self) -> bool:
        return not self._queue

    def is_full(self) -> bool:
        return self.space_left <= 0

    def admit(self, event: PacketEvent) -> None:
        if self.is_full():
            raise BufferOverflowError(f"Can not admit {event}. {self} is full.")
        self._queue.append(event)
        self.space_left -= 1

    def peek_head(self) -> PacketEvent:
        if not self._queue:
            raise BufferUnderflowError(f"{self} is empty, there is no head packet.")
        return self._queue[0]

    def serve_head(self) -> PacketEvent:
        if not self._queue:
            raise BufferUnderflowError(f"Can not serve the head of an empty {self}.")
        event = self._queue.popleft()
        self.space_left += 1
        return event


class LinkSimulator:
    """
    Discrete-event model of one bottleneck link with a drop-tail buffer.

    Arrival events are loaded once before the run. The run then drains the event queue,
    admitting or dropping arrivals, transmitting the buffer head one packet at a time,
    and scheduling the next departure whenever the link is free.
    """

    def __init__(self, buffer_capacity: BufferCapacity, bandwidth: InterfaceBW):
        """
        Args:
            buffer_capacity: Buffer size in packets.
            bandwidth: Link capacity in bits per second.
        """
        if buffer_capacity <= 0:
            raise ConfigError(f"Buffer capacity must be positive, got {buffer_capacity}")
        if bandwidth <= 0:
            raise ConfigError(f"Link bandwidth must be positive, got {bandwidth}")
        self.bandwidth: InterfaceBW = bandwidth
        self.buffer = ServiceBuffer(buffer_capacity)
        self.stat = LinkStat()
        self.event_counter = 0
        self.tick_callbacks: List[TickCallback] = []
        self._event_queue = EventQueue()
        self._scheduled_departures: Set[PacketID] = set()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bandwidth={self.bandwidth}, buffer={self.buffer})"

    @property
    def now(self) -> SimTime:
        return self.stat.time

    @property
    def event_queue(self) -> EventQueue:
        return self._event_queue

    def add_event(self, event: PacketEvent) -> None:
        self._event_queue.push(event)

    def load_records(self, records: Iterable[TraceRecord]) -> int:
        """
        Turn trace records into Arrival events. Returns the number of events added.
        """
        count = 0
        for record in records:
            self.add_event(
                PacketEvent(EventCategory.ARRIVAL, record.packet_id, record.size, record.time)
            )
            count += 1
        logger.debug("Loaded %s arrivals into %s", count, self)
        return count

    def add_tick_callback(self, callback: TickCallback) -> None:
        self.tick_callbacks.append(callback)

    def exec_tick_callbacks(self, event: PacketEvent) -> None:
        for tick_callback in self.tick_callbacks:
            tick_callback(event)

    def run(self) -> LinkReport:
        started_at = time.time()
        while not self._event_queue.is_empty():
            event = self._event_queue.pop()
            self._process(event)
            self._schedule_departure()
        logger.info(
            "Simulation ended at %s, it took %s wall clock seconds. Executed %s events.",
            self.now,
            time.time() - started_at,
            self.event_counter,
        )
        return self.stat.report()

    def _process(self, event: PacketEvent) -> None:
        logger.debug("Processing %s, now=%s", event, self.now)
        if event.category == EventCategory.ARRIVAL:
            self._handle_arrival(event)
        elif event.category == EventCategory.DROPPED:
            self._handle_dropped(event)
        else:
            self._handle_departure(event)
        self.event_counter += 1
        self.exec_tick_callbacks(event)

    def _handle_arrival(self, event: PacketEvent) -> None:
        self.stat.packet_received()
        if self.buffer.is_full():
            # the drop is observed now, not at the packet's own arrival time
            self.add_event(event.derive(EventCategory.DROPPED, self.now))
        else:
            self.buffer.admit(event)

    def _handle_dropped(self, event: PacketEvent) -> None:
        _ = event
        self.stat.packet_dropped()

    def _handle_departure(self, event: PacketEvent) -> None:
        head = self.buffer.peek_head()
        self.stat.packet_sent(head.time)
        self.stat.advance_time(transmission_delay(event.size, self.bandwidth))

        # Arrivals and drops that happen while the packet is on the link.
        # Another departure is never started before this one is over.
        while (next_event := self._event_queue.peek()) is not None:
            if next_event.category == EventCategory.DEPARTURE or next_event.time > self.now:
                break
            self._process(self._event_queue.pop())

        self.buffer.serve_head()

    def _schedule_departure(self) -> None:
        if self.buffer.is_empty():
            return
        head = self.buffer.peek_head()

        if self.now < head.time:
            # Link is idle until the head packet shows up
            next_event = self._event_queue.peek()
            if next_event is None or next_event.time >= head.time:
                self.stat.fast_forward(head.time)

        if self.now >= head.time and head.packet_id not in self._scheduled_departures:
            self._scheduled_departures.add(head.packet_id)
            self.add_event(head.derive(EventCategory.DEPARTURE, self.now))


TickCallback = Callable[[PacketEvent], None]
