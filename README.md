# kafkastats

Plain Python data structures for working with Kafka clients. The package has
no runtime dependencies.

- `kafkastats.statistics`: frozen dataclasses for the JSON statistics report a
  Kafka client emits periodically: `Statistics`, `Topic`, `Partition`,
  `ConsumerGroup` and `ExactlyOnceSemantics`.
- `kafkastats.broker_stats`: per-broker statistics: `Broker`, `Window` and
  `TopicPartition`.
- `kafkastats.topic_partition_list`: `Offset` values with their raw integer
  encoding, `TopicPartitionList` for ordered collections of
  topic/partition/offset entries, and the errors `KafkaError`,
  `SetPartitionOffsetError` and `OffsetFetchError`.
- `kafkastats.util`: `Timeout`, `millis_to_epoch` and `current_time_millis`.

## Installation

```
pip install kafkastats
```

## Parsing statistics

```python
from kafkastats.statistics import Statistics

stats = Statistics.from_json(payload)
print(stats.name, stats.client_type, stats.msg_cnt)
for name, broker in stats.brokers.items():
    print(name, broker.state, broker.rtt.p99 if broker.rtt else None)
    print(broker.req.get("Produce"))
for topic in stats.topics.values():
    for pid, partition in topic.partitions.items():
        print(topic.topic, pid, partition.consumer_lag)
```

`Statistics.from_json` accepts `str` or `bytes`; `Statistics.from_dict` takes
an already decoded mapping, and every other statistics class has its own
`from_dict`. The report's `type` key becomes `Statistics.client_type`.
Topic partitions are keyed by integer partition ID.

Malformed JSON, missing fields, values of the wrong type and integers out of
range all raise `ValueError`. The optional sections `cgrp` and `eos`, and the
broker fields `wakeups`, `connects`, `disconnects`, `int_latency`,
`outbuf_latency`, `rtt` and `throttle`, are `None` when absent.

## Offsets and topic partition lists

```python
from kafkastats.topic_partition_list import Offset, TopicPartitionList

tpl = TopicPartitionList()
tpl.add_partition_offset("orders", 0, Offset.beginning())
tpl.add_partition_offset("orders", 1, Offset.at(42))
tpl.add_partition_range("events", 0, 3)      # partitions 0..3 inclusive

elem = tpl.find_partition("orders", 1)
print(elem.offset)                  # Offset.at(42)
print(Offset.tail(10).to_raw())     # -2010
print(Offset.from_raw(-2))          # Offset.beginning()
print(len(tpl))                     # 6

tpl.set_partition_offset("missing", 0, Offset.end())  # raises SetPartitionOffsetError
```

A partition added without an offset has `Offset.invalid()`. Offsets that
cannot be encoded (`Offset.at(-1)`, `Offset.tail(0)` and below) have
`to_raw()` return `None` and are rejected with `SetPartitionOffsetError` by
`set_offset`, `set_partition_offset`, `add_partition_offset` and
`set_all_offsets`.

`TopicPartitionList` supports `len()`, iteration, `==` (same entries in any
order), `copy()`, `elements()`, `elements_for_topic()` and
`add_topic_unassigned()`. `to_topic_map()` and `from_topic_map()` convert to
and from a `{(topic, partition): Offset}` dictionary. An element's
`check_error()` raises `OffsetFetchError` if its `error` is set.

## Timeouts

```python
from datetime import datetime, timedelta, timezone
from kafkastats.util import Timeout, millis_to_epoch, current_time_millis

Timeout.after(timedelta(seconds=2)).as_millis()   # 2000
Timeout.never().as_millis()                       # -1
Timeout.from_value(None) == Timeout.never()       # True
Timeout.after(timedelta(seconds=2)) - timedelta(seconds=1)  # Timeout.after(1 s)
millis_to_epoch(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc))  # 1000
```

Subtracting `Timeout.never()` raises `ValueError`; `never` minus a finite
timeout stays `never`. Finite timeouts sort before `never`.
`millis_to_epoch` returns 0 for times before the epoch.

## What this package does not do

It contains no Kafka client: it does not connect to brokers, produce or
consume messages, or collect statistics itself. Statistics reports must be
obtained elsewhere and passed in as JSON, and topic partition lists are plain
in-memory values.

## Running the tests

```
pip install -e .[test]
pytest
```