from __future__ import annotations

import dataclasses
import os
from json import dumps
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from linksim.core import LinkSimulator, PacketEvent


class Tracer:
    """
    Writes JSON lines to a trace file, one record per call.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        file_path: Optional[str] = None,
        dir_path: str = "",
    ):
        """
        Args:
            name: Optional name used to build the file name ("<name>_trace.jsonl").
            file_path: Explicit file path, takes precedence over name and dir_path.
            dir_path: Directory where the trace file is created.
        """
        self.name: Optional[str] = name
        if file_path:
            path = file_path
        else:
            filename = f"{name}_trace.jsonl" if name else "trace.jsonl"
            path = os.path.join(dir_path, filename)
        self.path = path
        self.fd = open(path, "w", encoding="utf8")

    def __enter__(self) -> Tracer:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.fd.close()

    def dump_data(self, data: Any) -> None:
        if dataclasses.is_dataclass(data):
            if hasattr(data, "todict"):
                data = dumps(data.todict())
            else:
                data = dumps(dataclasses.asdict(data))
        elif isinstance(data, dict):
            data = dumps(data)
        else:
            data = str(data)

        self.fd.write(data + "\n")
        self.fd.flush()

    def get_event_dumper(self, sim: LinkSimulator) -> Callable[[PacketEvent], None]:
        """
        Return a tick callback that records every processed event together with
        the link state right after processing it.
        """

        def event_dumper(event: PacketEvent) -> None:
            record = event.todict()
            record.update(
                {
                    "now": sim.now,
                    "buffer_len": len(sim.buffer),
                    "space_left": sim.buffer.space_left,
                    "packets_in": sim.stat.packets_in,
                    "packets_out": sim.stat.packets_out,
                    "packets_lost": sim.stat.packets_lost,
                }
            )
            self.dump_data(record)

        return event_dumper
