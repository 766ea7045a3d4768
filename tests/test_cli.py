import json

import pytest

import tests.test_data as test_data
from linksim import cli
from linksim.config import LinkConfig
from linksim.utils import get_resource_path


def _data(filename: str) -> str:
    return get_resource_path(filename, test_data)


def test_parse_args_positional():
    args = cli.parse_args(["10", "54", "a.txt", "b.txt"])
    assert args["buffer_capacity"] == 10
    assert args["bandwidth_mbps"] == 54
    assert args["trace_files"] == ["a.txt", "b.txt"]
    assert args["config"] is None


def test_parse_args_config():
    args = cli.parse_args(["--config", "run.yaml", "--trace-out", "ev.jsonl"])
    assert args["config"] == "run.yaml"
    assert args["trace_out"] == "ev.jsonl"


@pytest.mark.parametrize(
    "argv", [[], ["10"], ["10", "54"], ["ten", "54", "a.txt"], ["10", "54", "a.txt", "-c", "r.yaml"]]
)
def test_parse_args_invalid(argv):
    with pytest.raises(SystemExit):
        cli.parse_args(argv)


def test_build_config_trace_out_override():
    args = cli.parse_args(["-c", _data("run_small.yaml"), "--trace-out", "ev.jsonl"])
    config = cli.build_config(args)
    assert isinstance(config, LinkConfig)
    assert config.trace_out == "ev.jsonl"


def test_run_1():
    config = LinkConfig(
        buffer_capacity=1,
        bandwidth_mbps=8,
        trace_files=[_data("trace_burst_a.txt"), _data("trace_burst_b.txt")],
    )
    report = cli.run(config)
    assert (report.packets_in, report.packets_out, report.packets_lost) == (4, 2, 2)


def test_main_positional(capsys):
    assert cli.main(["10", "8", _data("trace_small.txt")]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "time = 2.001000",
        "packets_in = 4",
        "packets_out = 4",
        "packets_lost = 0",
        "lost_packets = 0.000000%",
        "Average queueing delay = 0.000250 seconds",
    ]


def test_main_config_json(capsys):
    assert cli.main(["--config", _data("run_burst.yaml"), "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["packets_in"] == 4
    assert report["packets_out"] == 2
    assert report["packets_lost"] == 2
    assert report["loss_pct"] == 50.0


def test_main_analyse(tmp_path, capsys):
    trace_out = tmp_path / "events.jsonl"
    argv = ["10", "8", _data("trace_small.txt"), "--trace-out", str(trace_out), "--analyse"]
    assert cli.main(argv) == 0
    out = capsys.readouterr().out
    assert "Queueing delay" in out
    assert "\tPackets: 4" in out
    assert len(trace_out.read_text().splitlines()) == 8


def test_main_analyse_without_trace(caplog):
    assert cli.main(["10", "8", _data("trace_small.txt"), "--analyse"]) == 1
    assert "--trace-out" in caplog.text


def test_main_malformed_trace(caplog):
    assert cli.main(["10", "8", _data("trace_bad.txt")]) == 1
    assert "trace_bad.txt:2" in caplog.text


def test_main_missing_trace(tmp_path):
    assert cli.main(["10", "8", str(tmp_path / "missing.txt")]) == 1


def test_main_invalid_config(caplog):
    assert cli.main(["0", "8", _data("trace_small.txt")]) == 1
    assert "buffer_capacity must be a positive integer" in caplog.text
