from __future__ import annotations

import logging
from dataclasses import dataclass, field
from os import path
from typing import Any, Dict, List, Optional

from schema import And, Or, Schema, SchemaError
from schema import Optional as SchemaOptional
import yaml

from linksim.common import BPS_PER_MBPS, BufferCapacity, InterfaceBW
from linksim.errors import ConfigError
from linksim.utils import yaml_to_dict


logger = logging.getLogger(__name__)


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


LINK_CONFIG_SCHEMA = Schema(
    {
        "buffer_capacity": And(
            _positive_int, error="buffer_capacity must be a positive integer"
        ),
        "bandwidth_mbps": And(
            _positive_int, error="bandwidth_mbps must be a positive integer"
        ),
        "trace_files": And([str], error="trace_files must be a list of paths"),
        SchemaOptional("trace_out"): Or(
            None, str, error="trace_out must be a path or null"
        ),
    }
)


@dataclass
class LinkConfig:
    """
    Parameters of a single link run.

    Attributes:
        buffer_capacity: Buffer size in packets.
        bandwidth_mbps: Link capacity in megabits per second.
        trace_files: Arrival traces, read in the given order.
        trace_out: Optional path of a JSON-lines trace of processed events.
    """

    buffer_capacity: BufferCapacity
    bandwidth_mbps: int
    trace_files: List[str] = field(default_factory=list)
    trace_out: Optional[str] = None

    @property
    def bandwidth_bps(self) -> InterfaceBW:
        return self.bandwidth_mbps * BPS_PER_MBPS

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> LinkConfig:
        if not isinstance(params, dict):
            raise ConfigError(f"Configuration must be a mapping, got {params!r}")
        try:
            validated = LINK_CONFIG_SCHEMA.validate(params)
        except SchemaError as exc:
            raise ConfigError(f"Invalid configuration: {exc.code}") from exc
        return cls(**validated)

    @classmethod
    def from_yaml(cls, config_path: str) -> LinkConfig:
        """
        Load a configuration file. Relative trace paths are resolved against the file's directory.
        """
        logger.debug("Loading configuration from %s", config_path)
        try:
            with open(config_path, "r", encoding="utf-8") as fd:
                params = yaml_to_dict(fd.read())
        except yaml.YAMLError as exc:
            raise ConfigError(f"Can not parse {config_path}: {exc}") from exc

        config = cls.from_dict(params)
        base_dir = path.dirname(path.abspath(config_path))
        config.trace_files = [path.join(base_dir, p) for p in config.trace_files]
        if config.trace_out is not None:
            config.trace_out = path.join(base_dir, config.trace_out)
        return config

    def todict(self) -> Dict[str, Any]:
        return {
            "buffer_capacity": self.buffer_capacity,
            "bandwidth_mbps": self.bandwidth_mbps,
            "trace_files": list(self.trace_files),
            "trace_out": self.trace_out,
        }
