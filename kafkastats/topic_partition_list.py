"""Topics, partitions and offsets, and lists of them."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

__all__ = [
    "KafkaError",
    "SetPartitionOffsetError",
    "OffsetFetchError",
    "OffsetKind",
    "Offset",
    "TopicPartitionListElem",
    "TopicPartitionList",
]

PARTITION_UNASSIGNED = -1

OFFSET_BEGINNING = -2
OFFSET_END = -1
OFFSET_STORED = -1000
OFFSET_INVALID = -1001
OFFSET_TAIL_BASE = -2000

INVALID_ARGUMENT = "InvalidArgument"
UNKNOWN_PARTITION = "UnknownPartition"


class KafkaError(Exception):
    """Base class for errors raised by this package."""


class _CodedError(KafkaError):
    description = "error"

    def __init__(self, code: str) -> None:
        super().__init__(f"{self.description}: {code}")
        self.code = code

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash((type(self), self.code))


class SetPartitionOffsetError(_CodedError):
    """Setting the offset of a partition failed."""

    description = "Set partition offset error"


class OffsetFetchError(_CodedError):
    """An element of a list carries an error from an offset fetch."""

    description = "Offset fetch error"


class OffsetKind(enum.Enum):
    """The kinds of offset a partition can be positioned at."""

    BEGINNING = "beginning"
    END = "end"
    STORED = "stored"
    INVALID = "invalid"
    OFFSET = "offset"
    OFFSET_TAIL = "offset_tail"


_SPECIAL_RAW = {
    OffsetKind.BEGINNING: OFFSET_BEGINNING,
    OffsetKind.END: OFFSET_END,
    OffsetKind.STORED: OFFSET_STORED,
    OffsetKind.INVALID: OFFSET_INVALID,
}
_RAW_SPECIAL = {raw: kind for kind, raw in _SPECIAL_RAW.items()}


@dataclass(frozen=True)
class Offset:
    """A partition offset.

    ``value`` is only meaningful for the ``OFFSET`` and ``OFFSET_TAIL`` kinds.
    Negative values may be built but cannot be converted to a raw offset.
    """

    kind: OffsetKind
    value: Optional[int] = None

    def __post_init__(self) -> None:
        numeric = self.kind in (OffsetKind.OFFSET, OffsetKind.OFFSET_TAIL)
        if numeric and not isinstance(self.value, int):
            raise TypeError(f"{self.kind.name} offset needs an integer value")
        if not numeric and self.value is not None:
            raise ValueError(f"{self.kind.name} offset takes no value")

    @classmethod
    def beginning(cls) -> Offset:
        return cls(OffsetKind.BEGINNING)

    @classmethod
    def end(cls) -> Offset:
        return cls(OffsetKind.END)

    @classmethod
    def stored(cls) -> Offset:
        return cls(OffsetKind.STORED)

    @classmethod
    def invalid(cls) -> Offset:
        return cls(OffsetKind.INVALID)

    @classmethod
    def at(cls, value: int) -> Offset:
        """A specific offset."""
        return cls(OffsetKind.OFFSET, value)

    @classmethod
    def tail(cls, value: int) -> Offset:
        """An offset ``value`` messages before the end of the partition."""
        return cls(OffsetKind.OFFSET_TAIL, value)

    @classmethod
    def from_raw(cls, raw_offset: int) -> Offset:
        """Decode the integer representation of an offset."""
        kind = _RAW_SPECIAL.get(raw_offset)
        if kind is not None:
            return cls(kind)
        if raw_offset <= OFFSET_TAIL_BASE:
            return cls.tail(OFFSET_TAIL_BASE - raw_offset)
        return cls.at(raw_offset)

    def to_raw(self) -> Optional[int]:
        """Encode the offset as an integer, or ``None`` if it cannot be."""
        if self.kind in _SPECIAL_RAW:
            return _SPECIAL_RAW[self.kind]
        assert self.value is not None
        if self.kind is OffsetKind.OFFSET:
            return self.value if self.value >= 0 else None
        return OFFSET_TAIL_BASE - self.value if self.value > 0 else None

    def __repr__(self) -> str:
        if self.kind is OffsetKind.OFFSET:
            return f"Offset.at({self.value})"
        if self.kind is OffsetKind.OFFSET_TAIL:
            return f"Offset.tail({self.value})"
        return f"Offset.{self.kind.value}()"


def _check_topic(topic: str) -> str:
    if not isinstance(topic, str):
        raise TypeError("topic name must be a string")
    if "\x00" in topic:
        raise ValueError("topic name must not contain NUL characters")
    return topic


class TopicPartitionListElem:
    """One topic partition, with its offset and an optional error code."""

    __slots__ = ("_topic", "_partition", "_raw_offset", "error")

    def __init__(
        self,
        topic: str,
        partition: int,
        offset: Optional[Offset] = None,
        error: Optional[str] = None,
    ) -> None:
        self._topic = _check_topic(topic)
        self._partition = int(partition)
        self._raw_offset = OFFSET_INVALID
        self.error = error
        if offset is not None:
            self.set_offset(offset)

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def partition(self) -> int:
        return self._partition

    @property
    def offset(self) -> Offset:
        return Offset.from_raw(self._raw_offset)

    def check_error(self) -> None:
        """Raise the error attached to this element, if there is one."""
        if self.error is not None:
            raise OffsetFetchError(self.error)

    def set_offset(self, offset: Offset) -> None:
        """Set the offset; unrepresentable offsets are rejected."""
        raw = offset.to_raw()
        if raw is None:
            raise SetPartitionOffsetError(INVALID_ARGUMENT)
        self._raw_offset = raw

    def _copy(self) -> TopicPartitionListElem:
        elem = TopicPartitionListElem(self._topic, self._partition, error=self.error)
        elem._raw_offset = self._raw_offset
        return elem

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TopicPartitionListElem):
            return NotImplemented
        return (
            self.topic == other.topic
            and self.partition == other.partition
            and self.offset == other.offset
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"TopicPartitionListElem({self.topic!r}, {self.partition}, "
            f"{self.offset!r})"
        )


TopicMap = Dict[Tuple[str, int], Offset]


class TopicPartitionList:
    """An ordered list of topic partitions with optional offsets."""

    def __init__(self, capacity: int = 5) -> None:
        if capacity < 0:
            raise ValueError("capacity cannot be negative")
        self._capacity = capacity
        self._elems: List[TopicPartitionListElem] = []

    @property
    def capacity(self) -> int:
        """Number of elements the list holds before it must grow."""
        return max(self._capacity, len(self._elems))

    @classmethod
    def from_topic_map(cls, topic_map: TopicMap) -> TopicPartitionList:
        """Build a list from a ``{(topic, partition): offset}`` mapping."""
        tpl = cls(len(topic_map))
        for (topic, partition), offset in topic_map.items():
            tpl.add_partition_offset(topic, partition, offset)
        return tpl

    def __len__(self) -> int:
        return len(self._elems)

    def __iter__(self) -> Iterator[TopicPartitionListElem]:
        return iter(self._elems)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TopicPartitionList):
            return NotImplemented
        if len(self) != len(other):
            return False
        return all(
            elem == other.find_partition(elem.topic, elem.partition)
            for elem in self._elems
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = "".join(
            f"({elem.topic}, {elem.partition}): {elem.offset!r}, "
            for elem in self._elems
        )
        return f"TPL {{{body}}}"

    def copy(self) -> TopicPartitionList:
        """An independent copy of the list and its elements."""
        new = TopicPartitionList(self._capacity)
        new._elems = [elem._copy() for elem in self._elems]
        return new

    __copy__ = copy

    def add_topic_unassigned(self, topic: str) -> TopicPartitionListElem:
        """Add a topic without a specific partition."""
        return self.add_partition(topic, PARTITION_UNASSIGNED)

    def add_partition(self, topic: str, partition: int) -> TopicPartitionListElem:
        """Append a topic partition with an invalid offset and return it."""
        elem = TopicPartitionListElem(topic, partition)
        self._elems.append(elem)
        return elem

    def add_partition_range(
        self, topic: str, start_partition: int, stop_partition: int
    ) -> None:
        """Append partitions ``start_partition`` to ``stop_partition`` inclusive."""
        _check_topic(topic)
        for partition in range(start_partition, stop_partition + 1):
            self.add_partition(topic, partition)

    def set_partition_offset(self, topic: str, partition: int, offset: Offset) -> None:
        """Set the offset of a partition already in the list."""
        _check_topic(topic)
        if offset.to_raw() is None:
            raise SetPartitionOffsetError(INVALID_ARGUMENT)
        elem = self.find_partition(topic, partition)
        if elem is None:
            raise SetPartitionOffsetError(UNKNOWN_PARTITION)
        elem.set_offset(offset)

    def add_partition_offset(self, topic: str, partition: int, offset: Offset) -> None:
        """Append a topic partition and set its offset."""
        self.add_partition(topic, partition)
        self.set_partition_offset(topic, partition, offset)

    def find_partition(
        self, topic: str, partition: int
    ) -> Optional[TopicPartitionListElem]:
        """The first element for this topic and partition, or ``None``."""
        _check_topic(topic)
        return next(
            (
                elem
                for elem in self._elems
                if elem.topic == topic and elem.partition == partition
            ),
            None,
        )

    def set_all_offsets(self, offset: Offset) -> None:
        """Set every element's offset."""
        for elem in self._elems:
            elem.set_offset(offset)

    def elements(self) -> List[TopicPartitionListElem]:
        return list(self._elems)

    def elements_for_topic(self, topic: str) -> List[TopicPartitionListElem]:
        return [elem for elem in self._elems if elem.topic == topic]

    def to_topic_map(self) -> TopicMap:
        """A ``{(topic, partition): offset}`` mapping of the list."""
        return {(elem.topic, elem.partition): elem.offset for elem in self._elems}