#! /usr/bin/env python3
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from linksim.analysis import EventTraceAnalyser, format_delay_summary
from linksim.config import LinkConfig
from linksim.core import LinkSimulator
from linksim.errors import LinkSimError
from linksim.stat import LinkReport, format_report
from linksim.trace import load_trace_files
from linksim.tracer import Tracer


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s:%(message)s"
)
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    parser = argparse.ArgumentParser(
        description="Simulate a bottleneck link with a drop-tail buffer fed by packet arrival traces."
    )
    parser.add_argument(
        "buffer_capacity", nargs="?", type=int, help="Buffer size in packets"
    )
    parser.add_argument(
        "bandwidth_mbps", nargs="?", type=int, help="Link bandwidth in Mbit/s"
    )
    parser.add_argument(
        "trace_files", nargs="*", help="Trace files with '<time> <size>' lines"
    )
    parser.add_argument("-c", "--config", help="Path to a YAML run configuration")
    parser.add_argument(
        "--trace-out", help="Write every processed event to this JSON-lines file"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )
    parser.add_argument(
        "--analyse",
        action="store_true",
        help="Print a queueing delay summary built from the event trace",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = vars(parser.parse_args(argv))

    if args["config"] is None and (
        args["buffer_capacity"] is None
        or args["bandwidth_mbps"] is None
        or not args["trace_files"]
    ):
        parser.error(
            "either --config or BUFFER_CAPACITY BANDWIDTH_MBPS TRACE [TRACE ...] is required"
        )
    if args["config"] is not None and args["buffer_capacity"] is not None:
        parser.error("positional parameters can not be combined with --config")
    return args


def build_config(args: Dict[str, Any]) -> LinkConfig:
    if args["config"]:
        config = LinkConfig.from_yaml(args["config"])
    else:
        config = LinkConfig.from_dict(
            {
                "buffer_capacity": args["buffer_capacity"],
                "bandwidth_mbps": args["bandwidth_mbps"],
                "trace_files": args["trace_files"],
            }
        )
    if args.get("trace_out"):
        config.trace_out = args["trace_out"]
    return config


def run(config: LinkConfig) -> LinkReport:
    sim = LinkSimulator(config.buffer_capacity, config.bandwidth_bps)
    sim.load_records(load_trace_files(config.trace_files))
    if config.trace_out:
        with Tracer(file_path=config.trace_out) as tracer:
            sim.add_tick_callback(tracer.get_event_dumper(sim))
            return sim.run()
    return sim.run()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args["verbose"]:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = build_config(args)
        if args["analyse"] and not config.trace_out:
            raise LinkSimError("--analyse needs an event trace, set --trace-out")
        report = run(config)
    except (LinkSimError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    if args["json"]:
        print(json.dumps(report.todict(), indent=2))
    else:
        print(format_report(report))

    if args["analyse"]:
        with open(config.trace_out, "r", encoding="utf8") as fd:
            analyser = EventTraceAnalyser.init_with_event_trace(fd)
        print(format_delay_summary(analyser.delay_summary()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
