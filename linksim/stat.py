from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict

from linksim.common import SimTime


@dataclass
class LinkStat:
    """
    Clock and running QoS counters of a single link simulation.
    Mutated only by the simulator that owns it.
    """

    time: SimTime = 0
    queueing_delay: float = 0
    packets_in: int = 0
    packets_out: int = 0
    packets_lost: int = 0

    def packet_received(self) -> None:
        self.packets_in += 1

    def packet_dropped(self) -> None:
        self.packets_lost += 1

    def packet_sent(self, arrival_time: SimTime) -> None:
        """
        Account for a packet that starts its transmission now.
        The queueing delay is measured from the packet's own arrival time.
        """
        self.packets_out += 1
        self.queueing_delay += self.time - arrival_time

    def advance_time(self, delay: SimTime) -> None:
        self.time += delay

    def fast_forward(self, newtime: SimTime) -> bool:
        if newtime > self.time:
            self.time = newtime
            return True
        return False

    def report(self) -> LinkReport:
        loss_pct = (
            self.packets_lost / self.packets_in * 100 if self.packets_in else 0.0
        )
        avg_queueing_delay = (
            self.queueing_delay / self.packets_out if self.packets_out else 0.0
        )
        return LinkReport(
            time=self.time,
            packets_in=self.packets_in,
            packets_out=self.packets_out,
            packets_lost=self.packets_lost,
            loss_pct=loss_pct,
            avg_queueing_delay=avg_queueing_delay,
        )

    def todict(self) -> Dict[str, Any]:
        return {fld.name: getattr(self, fld.name) for fld in fields(self)}


@dataclass(frozen=True)
class LinkReport:
    """
    Final QoS metrics of a run.

    Attributes:
        time: Simulated time at which the last event was processed.
        packets_in: Packets that reached the link.
        packets_out: Packets that were transmitted.
        packets_lost: Packets dropped by the full buffer.
        loss_pct: packets_lost / packets_in * 100, 0.0 when nothing arrived.
        avg_queueing_delay: Mean wait between arrival and start of transmission,
            0.0 when nothing was transmitted.
    """

    time: SimTime
    packets_in: int
    packets_out: int
    packets_lost: int
    loss_pct: float
    avg_queueing_delay: float

    def todict(self) -> Dict[str, Any]:
        return {fld.name: getattr(self, fld.name) for fld in fields(self)}


def format_report(report: LinkReport) -> str:
    return "\n".join(
        [
            f"time = {report.time:f}",
            f"packets_in = {report.packets_in}",
            f"packets_out = {report.packets_out}",
            f"packets_lost = {report.packets_lost}",
            f"lost_packets = {report.loss_pct:f}%",
            f"Average queueing delay = {report.avg_queueing_delay:f} seconds",
        ]
    )
