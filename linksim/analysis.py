from __future__ import annotations

from io import TextIOWrapper
from json import loads
from typing import Any, Dict, Iterable, List

import pandas as pd

from linksim.common import EventCategory


TRACE_COLUMNS = [
    "category",
    "packet_id",
    "size",
    "time",
    "now",
    "buffer_len",
    "space_left",
    "packets_in",
    "packets_out",
    "packets_lost",
]

# two-sided 95% normal quantile
Z_95 = 1.96


class EventTraceAnalyser:
    """
    Analyser of the event traces written by the Tracer. Each processed event becomes one
    DataFrame row, and per-packet delays are reconstructed from the Arrival and Departure rows.
    """

    def __init__(self, events: pd.DataFrame):
        self.events: pd.DataFrame = events

    @classmethod
    def init_with_event_trace(cls, fd: TextIOWrapper) -> EventTraceAnalyser:
        """
        Build the analyser from a file descriptor holding one JSON object per line.
        """
        return cls.init_with_records(loads(line) for line in fd if line.strip())

    @classmethod
    def init_with_records(cls, records: Iterable[Dict[str, Any]]) -> EventTraceAnalyser:
        rows: List[Dict[str, Any]] = list(records)
        return cls(pd.DataFrame(rows, columns=TRACE_COLUMNS))

    def _by_category(self, category: EventCategory) -> pd.DataFrame:
        return self.events[self.events["category"] == category.name]

    def packet_table(self) -> pd.DataFrame:
        """
        One row per arrived packet, indexed by packet_id, with columns:
        arrival_time, size, service_start (NaN unless transmitted), dropped, queueing_delay.
        """
        arrivals = (
            self._by_category(EventCategory.ARRIVAL)
            .set_index("packet_id")[["time", "size"]]
            .rename(columns={"time": "arrival_time"})
        )
        service_start = (
            self._by_category(EventCategory.DEPARTURE)
            .set_index("packet_id")["time"]
            .rename("service_start")
        )
        dropped_ids = self._by_category(EventCategory.DROPPED)["packet_id"].tolist()

        table = arrivals.join(service_start, how="left")
        table["dropped"] = table.index.isin(dropped_ids)
        table["queueing_delay"] = table["service_start"] - table["arrival_time"]
        return table.sort_index()

    def delay_summary(self) -> Dict[str, float]:
        """
        Mean, sample standard deviation and 95% confidence half-width of the queueing delay
        of transmitted packets.
        """
        delays = self.packet_table()["queueing_delay"].dropna().astype(float)
        count = len(delays)
        mean = float(delays.mean()) if count else 0.0
        sigma = float(delays.std(ddof=1)) if count > 1 else 0.0
        ci = Z_95 * sigma / count**0.5 if count > 1 else 0.0
        return {"count": count, "mean": mean, "stdev": sigma, "ci": ci}

    def occupancy_summary(self) -> Dict[str, float]:
        """
        Buffer occupancy observed after each processed event.
        """
        occupancy = self.events["buffer_len"].astype(float)
        if occupancy.empty:
            return {"mean": 0.0, "max": 0.0}
        return {"mean": float(occupancy.mean()), "max": float(occupancy.max())}


def format_delay_summary(summary: Dict[str, float]) -> str:
    lines = [
        "Queueing delay",
        f"\tPackets: {summary['count']}",
        f"\tMean: {summary['mean']:.12f}",
        f"\tStdev: {summary['stdev']:.12f}",
        f"\tCI: {summary['ci']:.12f}",
    ]
    if summary["mean"]:
        lines.append(f"\tError %: {summary['ci'] / summary['mean'] * 100:.12f}")
    else:
        lines.append("\tMean is 0")
    return "\n".join(lines)
