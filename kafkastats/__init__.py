"""Kafka client statistics, topic partition lists, offsets and timeouts."""

__version__ = "0.1.0"
__all__ = ["broker_stats", "statistics", "topic_partition_list", "util"]