"""Per-broker statistics: brokers, their partitions and latency windows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

__all__ = ["Window", "TopicPartition", "Broker"]

_I32_RANGE = (-(2**31), 2**31 - 1)
_I64_RANGE = (-(2**63), 2**63 - 1)


def _object(data: Any, what: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _require(data: Mapping, key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field {key!r}") from None


def _check_int(value: Any, key: str, bounds: tuple[int, int] = _I64_RANGE) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer, got {value!r}")
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"field {key!r} is out of range: {value}")
    return value


def _int(data: Mapping, key: str, bounds: tuple[int, int] = _I64_RANGE) -> int:
    return _check_int(_require(data, key), key, bounds)


def _i32(data: Mapping, key: str) -> int:
    return _int(data, key, _I32_RANGE)


def _opt_int(data: Mapping, key: str) -> Optional[int]:
    value = data.get(key)
    return None if value is None else _check_int(value, key)


def _str(data: Mapping, key: str) -> str:
    value = _require(data, key)
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {value!r}")
    return value


def _opt_window(data: Mapping, key: str) -> Optional[Window]:
    value = data.get(key)
    return None if value is None else Window.from_dict(value)


@dataclass(frozen=True)
class Window:
    """Rolling window statistics, sampled from a histogram.

    The values are estimates, not exact figures.
    """

    min: int
    max: int
    avg: int
    sum: int
    cnt: int
    stddev: int
    hdrsize: int
    p50: int
    p75: int
    p90: int
    p95: int
    p99: int
    p99_99: int
    outofrange: int

    @classmethod
    def from_dict(cls, data: Mapping) -> Window:
        """Build a window from its decoded JSON object."""
        data = _object(data, "window")
        return cls(**{f.name: _int(data, f.name) for f in fields(cls)})


@dataclass(frozen=True)
class TopicPartition:
    """A topic and partition specifier."""

    topic: str
    partition: int

    @classmethod
    def from_dict(cls, data: Mapping) -> TopicPartition:
        """Build a topic partition from its decoded JSON object."""
        data = _object(data, "topic partition")
        return cls(topic=_str(data, "topic"), partition=_i32(data, "partition"))


_BROKER_COUNTERS = (
    "stateage",
    "outbuf_cnt",
    "outbuf_msg_cnt",
    "waitresp_cnt",
    "waitresp_msg_cnt",
    "tx",
    "txbytes",
    "txerrs",
    "txretries",
    "req_timeouts",
    "rx",
    "rxbytes",
    "rxerrs",
    "rxcorriderrs",
    "rxpartial",
    "zbuf_grow",
    "buf_grow",
)


@dataclass(frozen=True)
class Broker:
    """Statistics for one broker handle.

    Latencies are in microseconds, except ``throttle`` which is in
    milliseconds. ``req`` maps request type names to the number sent.
    """

    name: str
    nodeid: int
    nodename: str
    source: str
    state: str
    stateage: int
    outbuf_cnt: int
    outbuf_msg_cnt: int
    waitresp_cnt: int
    waitresp_msg_cnt: int
    tx: int
    txbytes: int
    txerrs: int
    txretries: int
    req_timeouts: int
    rx: int
    rxbytes: int
    rxerrs: int
    rxcorriderrs: int
    rxpartial: int
    req: Dict[str, int]
    zbuf_grow: int
    buf_grow: int
    wakeups: Optional[int] = None
    connects: Optional[int] = None
    disconnects: Optional[int] = None
    int_latency: Optional[Window] = None
    outbuf_latency: Optional[Window] = None
    rtt: Optional[Window] = None
    throttle: Optional[Window] = None
    toppars: Dict[str, TopicPartition] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping) -> Broker:
        """Build broker statistics from the decoded JSON object."""
        data = _object(data, "broker")
        req = _object(_require(data, "req"), "field 'req'")
        toppars = _object(_require(data, "toppars"), "field 'toppars'")
        return cls(
            name=_str(data, "name"),
            nodeid=_i32(data, "nodeid"),
            nodename=_str(data, "nodename"),
            source=_str(data, "source"),
            state=_str(data, "state"),
            req={
                _check_key(name): _check_int(count, f"req.{name}")
                for name, count in req.items()
            },
            wakeups=_opt_int(data, "wakeups"),
            connects=_opt_int(data, "connects"),
            disconnects=_opt_int(data, "disconnects"),
            int_latency=_opt_window(data, "int_latency"),
            outbuf_latency=_opt_window(data, "outbuf_latency"),
            rtt=_opt_window(data, "rtt"),
            throttle=_opt_window(data, "throttle"),
            toppars={
                _check_key(name): TopicPartition.from_dict(value)
                for name, value in toppars.items()
            },
            **{key: _int(data, key) for key in _BROKER_COUNTERS},
        )


def _check_key(key: Any) -> str:
    if not isinstance(key, str):
        raise ValueError(f"object key must be a string, got {key!r}")
    return key