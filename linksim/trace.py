from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from linksim.common import PacketID, PacketSize, SimTime
from linksim.errors import TraceFormatError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceRecord:
    """
    One line of an arrival trace. packet_id is assigned in read order across all files.
    """

    packet_id: PacketID
    time: SimTime
    size: PacketSize


def parse_line(
    line: str, filename: Optional[str] = None, lineno: Optional[int] = None
) -> Optional[Tuple[SimTime, PacketSize]]:
    """
    Parse "<arrival-time> <size-in-bytes>". Blank lines give None.

    Raises:
        TraceFormatError: if the line is not a valid time/size pair.
    """
    tokens = line.split()
    if not tokens:
        return None
    if len(tokens) != 2:
        raise TraceFormatError(
            f"expected '<arrival-time> <size>', got {line.strip()!r}", filename, lineno
        )

    time_token, size_token = tokens
    try:
        arrival_time = float(time_token)
    except ValueError as exc:
        raise TraceFormatError(
            f"arrival time {time_token!r} is not a number", filename, lineno
        ) from exc
    if not math.isfinite(arrival_time) or arrival_time < 0:
        raise TraceFormatError(
            f"arrival time must be a finite non-negative number, got {time_token!r}",
            filename,
            lineno,
        )

    try:
        size = int(size_token)
    except ValueError as exc:
        raise TraceFormatError(
            f"packet size {size_token!r} is not an integer", filename, lineno
        ) from exc
    if size <= 0:
        raise TraceFormatError(
            f"packet size must be positive, got {size}", filename, lineno
        )
    return arrival_time, size


def read_trace(
    lines: Iterable[str], first_id: PacketID = 0, filename: Optional[str] = None
) -> Iterator[TraceRecord]:
    packet_id = first_id
    for lineno, line in enumerate(lines, start=1):
        parsed = parse_line(line, filename, lineno)
        if parsed is None:
            continue
        arrival_time, size = parsed
        yield TraceRecord(packet_id, arrival_time, size)
        packet_id += 1


def load_trace_files(paths: Iterable[str]) -> List[TraceRecord]:
    """
    Read every trace file fully, in the order given.

    Args:
        paths: Trace file paths.

    Returns:
        All records, ids increasing in read order.
    """
    records: List[TraceRecord] = []
    for path in paths:
        try:
            with open(path, "r", encoding="ascii") as fd:
                loaded = list(read_trace(fd, first_id=len(records), filename=path))
        except UnicodeDecodeError as exc:
            raise TraceFormatError(f"not an ASCII text file ({exc.reason})", path) from exc
        logger.info("Loaded %s packets from %s", len(loaded), path)
        records.extend(loaded)
    return records
