import math
from typing import List, Tuple

from linksim.trace import TraceRecord


def _close(a: float, b: float, *, rel: float = 1e-9, abs_: float = 1e-12) -> None:
    assert math.isclose(a, b, rel_tol=rel, abs_tol=abs_), f"{a=} {b=}"


def _records(pairs: List[Tuple[float, int]]) -> List[TraceRecord]:
    """Number (time, size) pairs in the given order."""
    return [TraceRecord(idx, time, size) for idx, (time, size) in enumerate(pairs)]
