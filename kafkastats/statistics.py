"""Client statistics: the overall report and its per-topic parts."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from kafkastats.broker_stats import (
    Broker,
    Window,
    _check_key,
    _i32,
    _int,
    _object,
    _require,
    _str,
)

__all__ = [
    "Partition",
    "Topic",
    "ConsumerGroup",
    "ExactlyOnceSemantics",
    "Statistics",
]

_I32_MIN, _I32_MAX = -(2**31), 2**31 - 1
_INT_KEY = re.compile(r"[+-]?[0-9]+")


def _bool(data: Mapping, key: str) -> bool:
    value = _require(data, key)
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean, got {value!r}")
    return value


def _partition_key(key: Any) -> int:
    key = _check_key(key)
    if not _INT_KEY.fullmatch(key):
        raise ValueError(f"partition key must be an integer, got {key!r}")
    number = int(key)
    if not _I32_MIN <= number <= _I32_MAX:
        raise ValueError(f"partition key is out of range: {key}")
    return number


@dataclass(frozen=True)
class Partition:
    """Statistics for one partition of a topic."""

    partition: int
    broker: int
    leader: int
    desired: bool
    unknown: bool
    msgq_cnt: int
    msgq_bytes: int
    xmit_msgq_cnt: int
    xmit_msgq_bytes: int
    fetchq_cnt: int
    fetchq_size: int
    fetch_state: str
    query_offset: int
    next_offset: int
    app_offset: int
    stored_offset: int
    committed_offset: int
    eof_offset: int
    lo_offset: int
    hi_offset: int
    ls_offset: int
    consumer_lag: int
    txmsgs: int
    txbytes: int
    rxmsgs: int
    rxbytes: int
    msgs: int
    rx_ver_drops: int
    msgs_inflight: int
    next_ack_seq: int
    next_err_seq: int
    acked_msgid: int

    @classmethod
    def from_dict(cls, data: Mapping) -> Partition:
        """Build partition statistics from the decoded JSON object."""
        data = _object(data, "partition")
        special = {
            "partition": _i32(data, "partition"),
            "broker": _i32(data, "broker"),
            "leader": _i32(data, "leader"),
            "desired": _bool(data, "desired"),
            "unknown": _bool(data, "unknown"),
            "fetch_state": _str(data, "fetch_state"),
        }
        counters = {
            f.name: _int(data, f.name) for f in fields(cls) if f.name not in special
        }
        return cls(**special, **counters)


@dataclass(frozen=True)
class Topic:
    """Statistics for one topic, with its partitions keyed by partition ID."""

    topic: str
    metadata_age: int
    batchsize: Window
    batchcnt: Window
    partitions: Dict[int, Partition]

    @classmethod
    def from_dict(cls, data: Mapping) -> Topic:
        """Build topic statistics from the decoded JSON object."""
        data = _object(data, "topic")
        partitions = _object(_require(data, "partitions"), "field 'partitions'")
        return cls(
            topic=_str(data, "topic"),
            metadata_age=_int(data, "metadata_age"),
            batchsize=Window.from_dict(_require(data, "batchsize")),
            batchcnt=Window.from_dict(_require(data, "batchcnt")),
            partitions={
                _partition_key(key): Partition.from_dict(value)
                for key, value in partitions.items()
            },
        )


@dataclass(frozen=True)
class ConsumerGroup:
    """Consumer group manager statistics.

    ``rebalance_reason`` is empty if no rebalance has happened.
    """

    state: str
    stateage: int
    join_state: str
    rebalance_age: int
    rebalance_cnt: int
    rebalance_reason: str
    assignment_size: int

    @classmethod
    def from_dict(cls, data: Mapping) -> ConsumerGroup:
        """Build consumer group statistics from the decoded JSON object."""
        data = _object(data, "consumer group")
        return cls(
            state=_str(data, "state"),
            stateage=_int(data, "stateage"),
            join_state=_str(data, "join_state"),
            rebalance_age=_int(data, "rebalance_age"),
            rebalance_cnt=_int(data, "rebalance_cnt"),
            rebalance_reason=_str(data, "rebalance_reason"),
            assignment_size=_i32(data, "assignment_size"),
        )


@dataclass(frozen=True)
class ExactlyOnceSemantics:
    """Idempotent and transactional producer statistics."""

    idemp_state: str
    idemp_stateage: int
    txn_state: str
    txn_stateage: int
    txn_may_enq: bool
    producer_id: int
    producer_epoch: int
    epoch_cnt: int

    @classmethod
    def from_dict(cls, data: Mapping) -> ExactlyOnceSemantics:
        """Build exactly-once statistics from the decoded JSON object."""
        data = _object(data, "eos")
        return cls(
            idemp_state=_str(data, "idemp_state"),
            idemp_stateage=_int(data, "idemp_stateage"),
            txn_state=_str(data, "txn_state"),
            txn_stateage=_int(data, "txn_stateage"),
            txn_may_enq=_bool(data, "txn_may_enq"),
            producer_id=_int(data, "producer_id"),
            producer_epoch=_int(data, "producer_epoch"),
            epoch_cnt=_int(data, "epoch_cnt"),
        )


_STATISTICS_COUNTERS = (
    "ts",
    "time",
    "replyq",
    "msg_cnt",
    "msg_size",
    "msg_max",
    "msg_size_max",
    "tx",
    "tx_bytes",
    "rx",
    "rx_bytes",
    "txmsgs",
    "txmsg_bytes",
    "rxmsgs",
    "rxmsg_bytes",
    "simple_cnt",
    "metadata_cache_cnt",
)


@dataclass(frozen=True)
class Statistics:
    """An overall statistics report for one client handle.

    ``ts`` is a monotonic clock in microseconds; ``time`` is wall-clock
    seconds since the Unix epoch. ``client_type`` comes from the ``type`` key.
    """

    name: str
    client_id: str
    client_type: str
    ts: int
    time: int
    replyq: int
    msg_cnt: int
    msg_size: int
    msg_max: int
    msg_size_max: int
    tx: int
    tx_bytes: int
    rx: int
    rx_bytes: int
    txmsgs: int
    txmsg_bytes: int
    rxmsgs: int
    rxmsg_bytes: int
    simple_cnt: int
    metadata_cache_cnt: int
    brokers: Dict[str, Broker]
    topics: Dict[str, Topic]
    cgrp: Optional[ConsumerGroup] = None
    eos: Optional[ExactlyOnceSemantics] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> Statistics:
        """Build a statistics report from the decoded JSON object."""
        data = _object(data, "statistics")
        brokers = _object(_require(data, "brokers"), "field 'brokers'")
        topics = _object(_require(data, "topics"), "field 'topics'")
        cgrp = data.get("cgrp")
        eos = data.get("eos")
        return cls(
            name=_str(data, "name"),
            client_id=_str(data, "client_id"),
            client_type=_str(data, "type"),
            brokers={
                _check_key(key): Broker.from_dict(value)
                for key, value in brokers.items()
            },
            topics={
                _check_key(key): Topic.from_dict(value)
                for key, value in topics.items()
            },
            cgrp=None if cgrp is None else ConsumerGroup.from_dict(cgrp),
            eos=None if eos is None else ExactlyOnceSemantics.from_dict(eos),
            **{key: _int(data, key) for key in _STATISTICS_COUNTERS},
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> Statistics:
        """Parse a statistics report from JSON text.

        Raises ``ValueError`` for malformed JSON or a report of the wrong shape.
        """
        return cls.from_dict(json.loads(text))