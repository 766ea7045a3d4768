import tests.test_data as test_data

from linksim.utils import get_resource_path, load_resource, yaml_to_dict


def test_load_resource1():
    assert load_resource("trace_small.txt", test_data).startswith("0.0 1000\n")


def test_load_yaml1():
    params = yaml_to_dict(load_resource("run_small.yaml", test_data))
    assert params == {
        "buffer_capacity": 10,
        "bandwidth_mbps": 8,
        "trace_files": ["trace_small.txt"],
    }


def test_get_resource_path1():
    assert get_resource_path("run_small.yaml", test_data).endswith("run_small.yaml")
