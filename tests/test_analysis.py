import io
import math

from linksim.analysis import EventTraceAnalyser, format_delay_summary
from linksim.core import LinkSimulator
from linksim.tracer import Tracer

from tests.common import _close, _records


def _analyser(tmp_path, capacity, pairs) -> EventTraceAnalyser:
    trace_path = tmp_path / "events.jsonl"
    sim = LinkSimulator(capacity, 8_000_000)
    sim.load_records(_records(pairs))
    with Tracer(file_path=str(trace_path)) as tracer:
        sim.add_tick_callback(tracer.get_event_dumper(sim))
        sim.run()
    with open(trace_path, "r", encoding="utf8") as fd:
        return EventTraceAnalyser.init_with_event_trace(fd)


def test_packet_table_with_drops(tmp_path):
    pairs = [(0.0, 1000), (0.0002, 1000), (0.0004, 1000), (0.002, 1000)]
    table = _analyser(tmp_path, 1, pairs).packet_table()

    assert list(table.index) == [0, 1, 2, 3]
    assert list(table["dropped"]) == [False, True, True, False]
    assert math.isnan(table.loc[1, "service_start"])
    _close(table.loc[3, "service_start"], 0.002)
    _close(table.loc[0, "queueing_delay"], 0.0)


def test_delay_summary(tmp_path):
    pairs = [(0.0, 1000), (0.0005, 500), (0.001, 1500), (2.0, 1000)]
    summary = _analyser(tmp_path, 10, pairs).delay_summary()

    assert summary["count"] == 4
    _close(summary["mean"], 0.00025)
    # delays are 0, 0.0005, 0.0005, 0
    _close(summary["stdev"], math.sqrt(0.00000025 / 3), rel=1e-6)
    _close(summary["ci"], 1.96 * summary["stdev"] / 2)


def test_occupancy_summary(tmp_path):
    pairs = [(0.0, 1000)] * 3
    summary = _analyser(tmp_path, 3, pairs).occupancy_summary()
    assert summary["max"] == 3.0


def test_empty_trace():
    analyser = EventTraceAnalyser.init_with_event_trace(io.StringIO(""))
    assert analyser.packet_table().empty
    assert analyser.delay_summary() == {"count": 0, "mean": 0.0, "stdev": 0.0, "ci": 0.0}
    assert analyser.occupancy_summary() == {"mean": 0.0, "max": 0.0}


def test_format_delay_summary():
    text = format_delay_summary({"count": 2, "mean": 0.5, "stdev": 0.1, "ci": 0.05})
    assert text.splitlines()[0] == "Queueing delay"
    assert "\tError %: 10.000000000000" in text

    text = format_delay_summary({"count": 0, "mean": 0.0, "stdev": 0.0, "ci": 0.0})
    assert text.endswith("\tMean is 0")
