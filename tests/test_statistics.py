import copy
import json

import pytest

from kafkastats.statistics import (
    ConsumerGroup,
    ExactlyOnceSemantics,
    Partition,
    Statistics,
    Topic,
)

EXAMPLE = r"""
{
  "name": "rdkafka#producer-1",
  "client_id": "rdkafka",
  "type": "producer",
  "ts": 1163982743268,
  "time": 1589652530,
  "replyq": 0,
  "msg_cnt": 320,
  "msg_size": 9920,
  "msg_max": 500000,
  "msg_size_max": 1073741824,
  "simple_cnt": 0,
  "metadata_cache_cnt": 1,
  "brokers": {
    "localhost:9092/0": {
      "name": "localhost:9092/0",
      "nodeid": 0,
      "nodename": "localhost:9092",
      "source": "configured",
      "state": "UP",
      "stateage": 8005652,
      "outbuf_cnt": 0,
      "outbuf_msg_cnt": 0,
      "waitresp_cnt": 1,
      "waitresp_msg_cnt": 126,
      "tx": 31311,
      "txbytes": 463869957,
      "txerrs": 0,
      "txretries": 0,
      "req_timeouts": 0,
      "rx": 31310,
      "rxbytes": 1753668,
      "rxerrs": 0,
      "rxcorriderrs": 0,
      "rxpartial": 0,
      "zbuf_grow": 0,
      "buf_grow": 0,
      "wakeups": 131568,
      "connects": 1,
      "disconnects": 0,
      "int_latency": {
        "min": 2, "max": 9193, "avg": 605, "sum": 874202325, "stddev": 1080,
        "p50": 319, "p75": 481, "p90": 1135, "p95": 3023, "p99": 5919,
        "p99_99": 9087, "outofrange": 0, "hdrsize": 15472, "cnt": 1443154
      },
      "outbuf_latency": {
        "min": 1, "max": 308, "avg": 22, "sum": 107311, "stddev": 21,
        "p50": 22, "p75": 29, "p90": 36, "p95": 44, "p99": 111,
        "p99_99": 309, "outofrange": 0, "hdrsize": 11376, "cnt": 4740
      },
      "rtt": {
        "min": 94, "max": 3279, "avg": 237, "sum": 1124867, "stddev": 198,
        "p50": 193, "p75": 245, "p90": 329, "p95": 393, "p99": 1183,
        "p99_99": 3279, "outofrange": 0, "hdrsize": 13424, "cnt": 4739
      },
      "throttle": {
        "min": 0, "max": 0, "avg": 0, "sum": 0, "stddev": 0,
        "p50": 0, "p75": 0, "p90": 0, "p95": 0, "p99": 0,
        "p99_99": 0, "outofrange": 0, "hdrsize": 17520, "cnt": 4739
      },
      "req": {
        "Produce": 31307,
        "Offset": 0,
        "Metadata": 2,
        "FindCoordinator": 0,
        "SaslHandshake": 0,
        "ApiVersion": 2,
        "InitProducerId": 0,
        "AddPartitionsToTxn": 0,
        "AddOffsetsToTxn": 0,
        "EndTxn": 0,
        "TxnOffsetCommit": 0,
        "SaslAuthenticate": 0
      },
      "toppars": {
        "test-0": {"topic": "test", "partition": 0},
        "test-1": {"topic": "test", "partition": 1},
        "test-2": {"topic": "test", "partition": 2}
      }
    }
  },
  "topics": {
    "test": {
      "topic": "test",
      "metadata_age": 7014,
      "batchsize": {
        "min": 99, "max": 240276, "avg": 11871, "sum": 56260370, "stddev": 13137,
        "p50": 10431, "p75": 11583, "p90": 12799, "p95": 13823, "p99": 72191,
        "p99_99": 240639, "outofrange": 0, "hdrsize": 14448, "cnt": 4739
      },
      "batchcnt": {
        "min": 1, "max": 6161, "avg": 304, "sum": 1442353, "stddev": 336,
        "p50": 267, "p75": 297, "p90": 329, "p95": 353, "p99": 1847,
        "p99_99": 6175, "outofrange": 0, "hdrsize": 8304, "cnt": 4739
      },
      "partitions": {
        "0": {
          "partition": 0, "broker": 0, "leader": 0, "desired": false, "unknown": false,
          "msgq_cnt": 845, "msgq_bytes": 26195, "xmit_msgq_cnt": 0, "xmit_msgq_bytes": 0,
          "fetchq_cnt": 0, "fetchq_size": 0, "fetch_state": "none",
          "query_offset": -1001, "next_offset": 0, "app_offset": -1001,
          "stored_offset": -1001, "commited_offset": -1001, "committed_offset": -1001,
          "eof_offset": -1001, "lo_offset": -1001, "hi_offset": -1001, "ls_offset": -1001,
          "consumer_lag": -1, "txmsgs": 3950967, "txbytes": 122479977,
          "rxmsgs": 0, "rxbytes": 0, "msgs": 3951812, "rx_ver_drops": 0,
          "msgs_inflight": 1067, "next_ack_seq": 0, "next_err_seq": 0, "acked_msgid": 0
        },
        "1": {
          "partition": 1, "broker": 0, "leader": 0, "desired": false, "unknown": false,
          "msgq_cnt": 229, "msgq_bytes": 7099, "xmit_msgq_cnt": 0, "xmit_msgq_bytes": 0,
          "fetchq_cnt": 0, "fetchq_size": 0, "fetch_state": "none",
          "query_offset": -1001, "next_offset": 0, "app_offset": -1001,
          "stored_offset": -1001, "commited_offset": -1001, "committed_offset": -1001,
          "eof_offset": -1001, "lo_offset": -1001, "hi_offset": -1001, "ls_offset": -1001,
          "consumer_lag": -1, "txmsgs": 3950656, "txbytes": 122470336,
          "rxmsgs": 0, "rxbytes": 0, "msgs": 3952618, "rx_ver_drops": 0,
          "msgs_inflight": 0, "next_ack_seq": 0, "next_err_seq": 0, "acked_msgid": 0
        },
        "2": {
          "partition": 2, "broker": 0, "leader": 0, "desired": false, "unknown": false,
          "msgq_cnt": 1816, "msgq_bytes": 56296, "xmit_msgq_cnt": 0, "xmit_msgq_bytes": 0,
          "fetchq_cnt": 0, "fetchq_size": 0, "fetch_state": "none",
          "query_offset": -1001, "next_offset": 0, "app_offset": -1001,
          "stored_offset": -1001, "commited_offset": -1001, "committed_offset": -1001,
          "eof_offset": -1001, "lo_offset": -1001, "hi_offset": -1001, "ls_offset": -1001,
          "consumer_lag": -1, "txmsgs": 3952027, "txbytes": 122512837,
          "rxmsgs": 0, "rxbytes": 0, "msgs": 3953855, "rx_ver_drops": 0,
          "msgs_inflight": 0, "next_ack_seq": 0, "next_err_seq": 0, "acked_msgid": 0
        },
        "-1": {
          "partition": -1, "broker": -1, "leader": -1, "desired": false, "unknown": false,
          "msgq_cnt": 0, "msgq_bytes": 0, "xmit_msgq_cnt": 0, "xmit_msgq_bytes": 0,
          "fetchq_cnt": 0, "fetchq_size": 0, "fetch_state": "none",
          "query_offset": -1001, "next_offset": 0, "app_offset": -1001,
          "stored_offset": -1001, "commited_offset": -1001, "committed_offset": -1001,
          "eof_offset": -1001, "lo_offset": -1001, "hi_offset": -1001, "ls_offset": -1001,
          "consumer_lag": -1, "txmsgs": 0, "txbytes": 0,
          "rxmsgs": 0, "rxbytes": 0, "msgs": 500000, "rx_ver_drops": 0,
          "msgs_inflight": 0, "next_ack_seq": 0, "next_err_seq": 0, "acked_msgid": 0
        }
      }
    }
  },
  "tx": 31311,
  "tx_bytes": 463869957,
  "rx": 31310,
  "rx_bytes": 1753668,
  "txmsgs": 11853650,
  "txmsg_bytes": 367463150,
  "rxmsgs": 0,
  "rxmsg_bytes": 0
}
"""

CGRP = {
    "state": "up",
    "stateage": 1200,
    "join_state": "steady",
    "rebalance_age": 900,
    "rebalance_cnt": 1,
    "rebalance_reason": "",
    "assignment_size": 3,
}

EOS = {
    "idemp_state": "Assigned",
    "idemp_stateage": 100,
    "txn_state": "Ready",
    "txn_stateage": 50,
    "txn_may_enq": True,
    "producer_id": 7,
    "producer_epoch": 0,
    "epoch_cnt": 1,
}


@pytest.fixture
def example_data():
    return json.loads(EXAMPLE)


def test_statistics():
    stats = Statistics.from_json(EXAMPLE)

    assert stats.name == "rdkafka#producer-1"
    assert stats.client_type == "producer"
    assert stats.ts == 1163982743268
    assert stats.time == 1589652530
    assert stats.replyq == 0
    assert stats.msg_cnt == 320
    assert stats.msg_size == 9920
    assert stats.msg_max == 500000
    assert stats.msg_size_max == 1073741824
    assert stats.simple_cnt == 0

    assert len(stats.brokers) == 1
    broker = next(iter(stats.brokers.values()))
    assert broker.req == {
        "Produce": 31307,
        "Offset": 0,
        "Metadata": 2,
        "FindCoordinator": 0,
        "SaslHandshake": 0,
        "ApiVersion": 2,
        "InitProducerId": 0,
        "AddPartitionsToTxn": 0,
        "AddOffsetsToTxn": 0,
        "EndTxn": 0,
        "TxnOffsetCommit": 0,
        "SaslAuthenticate": 0,
    }

    assert len(stats.topics) == 1


def test_statistics_totals_and_optional_sections():
    stats = Statistics.from_json(EXAMPLE)
    assert stats.client_id == "rdkafka"
    assert stats.metadata_cache_cnt == 1
    assert (stats.tx, stats.tx_bytes, stats.rx, stats.rx_bytes) == (
        31311,
        463869957,
        31310,
        1753668,
    )
    assert stats.txmsgs == 11853650
    assert stats.txmsg_bytes == 367463150
    assert stats.cgrp is None
    assert stats.eos is None


def test_topic_partitions_keyed_by_integer():
    topic = Statistics.from_json(EXAMPLE).topics["test"]
    assert topic.topic == "test"
    assert topic.metadata_age == 7014
    assert set(topic.partitions) == {0, 1, 2, -1}
    assert topic.batchsize.p99_99 == 240639
    assert topic.batchcnt.max == 6161


def test_partition_values():
    partitions = Statistics.from_json(EXAMPLE).topics["test"].partitions
    first = partitions[0]
    assert first.msgq_cnt == 845
    assert first.msgs_inflight == 1067
    assert first.committed_offset == -1001
    assert first.fetch_state == "none"
    assert first.desired is False
    unassigned = partitions[-1]
    assert unassigned.partition == -1
    assert unassigned.broker == -1
    assert unassigned.msgs == 500000


def test_from_json_accepts_bytes():
    stats = Statistics.from_json(EXAMPLE.encode("utf-8"))
    assert stats.name == "rdkafka#producer-1"


def test_from_dict_matches_from_json(example_data):
    assert Statistics.from_dict(example_data) == Statistics.from_json(EXAMPLE)


def test_consumer_group_and_eos(example_data):
    example_data["cgrp"] = CGRP
    example_data["eos"] = EOS
    stats = Statistics.from_dict(example_data)
    assert stats.cgrp == ConsumerGroup(
        state="up",
        stateage=1200,
        join_state="steady",
        rebalance_age=900,
        rebalance_cnt=1,
        rebalance_reason="",
        assignment_size=3,
    )
    assert stats.eos == ExactlyOnceSemantics(
        idemp_state="Assigned",
        idemp_stateage=100,
        txn_state="Ready",
        txn_stateage=50,
        txn_may_enq=True,
        producer_id=7,
        producer_epoch=0,
        epoch_cnt=1,
    )


def test_null_optional_sections(example_data):
    example_data["cgrp"] = None
    example_data["eos"] = None
    stats = Statistics.from_dict(example_data)
    assert stats.cgrp is None
    assert stats.eos is None


def test_invalid_json_raises():
    with pytest.raises(ValueError):
        Statistics.from_json("{not json")


def test_missing_required_field(example_data):
    del example_data["metadata_cache_cnt"]
    with pytest.raises(ValueError, match="metadata_cache_cnt"):
        Statistics.from_dict(example_data)


def test_missing_type_field(example_data):
    del example_data["type"]
    with pytest.raises(ValueError, match="type"):
        Statistics.from_dict(example_data)


def test_wrong_field_type(example_data):
    example_data["msg_cnt"] = "320"
    with pytest.raises(ValueError, match="msg_cnt"):
        Statistics.from_dict(example_data)


def test_top_level_must_be_object():
    with pytest.raises(ValueError):
        Statistics.from_json("[1, 2, 3]")


def test_partition_bool_field_must_be_bool(example_data):
    data = copy.deepcopy(example_data["topics"]["test"]["partitions"]["0"])
    data["desired"] = 0
    with pytest.raises(ValueError, match="desired"):
        Partition.from_dict(data)


def test_partition_i32_out_of_range(example_data):
    data = copy.deepcopy(example_data["topics"]["test"]["partitions"]["0"])
    data["leader"] = 2**31
    with pytest.raises(ValueError, match="leader"):
        Partition.from_dict(data)


def test_topic_rejects_non_integer_partition_key(example_data):
    data = copy.deepcopy(example_data["topics"]["test"])
    data["partitions"]["abc"] = data["partitions"].pop("0")
    with pytest.raises(ValueError, match="partition key"):
        Topic.from_dict(data)


def test_topic_rejects_out_of_range_partition_key(example_data):
    data = copy.deepcopy(example_data["topics"]["test"])
    data["partitions"][str(2**31)] = data["partitions"].pop("0")
    with pytest.raises(ValueError, match="out of range"):
        Topic.from_dict(data)


def test_topic_missing_window(example_data):
    data = copy.deepcopy(example_data["topics"]["test"])
    del data["batchcnt"]
    with pytest.raises(ValueError, match="batchcnt"):
        Topic.from_dict(data)


def test_consumer_group_missing_field():
    data = dict(CGRP)
    del data["join_state"]
    with pytest.raises(ValueError, match="join_state"):
        ConsumerGroup.from_dict(data)


def test_eos_txn_may_enq_must_be_bool():
    data = dict(EOS, txn_may_enq="yes")
    with pytest.raises(ValueError, match="txn_may_enq"):
        ExactlyOnceSemantics.from_dict(data)


def test_broker_errors_propagate(example_data):
    example_data["brokers"]["localhost:9092/0"]["nodeid"] = "zero"
    with pytest.raises(ValueError, match="nodeid"):
        Statistics.from_dict(example_data)