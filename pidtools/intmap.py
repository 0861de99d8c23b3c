from __future__ import annotations

import enum
from typing import Iterator

# Bucket counts used by the tools. Powers of 10 work well.
LIVE_PIDS_BUCKETS = 1000
MATCH_BUCKETS = 100


class IntMapError(Exception):
    """Base class for IntegerSet errors."""


class InvalidBucketCount(IntMapError, ValueError):
    pass


class AllocationError(IntMapError, MemoryError):
    pass


class NegativeValueError(IntMapError, ValueError):
    pass


class SetDestroyedError(IntMapError, RuntimeError):
    pass


class IterStatus(enum.Enum):
    MORE_REMAIN = "more_remain"
    LAST_VALUE = "last_value"
    PAST_END = "past_end"


class IntegerSet:
    """A set of non-negative ints hashed into a fixed number of buckets.

    Each bucket is a chain (a plain list) of values in insertion order.
    The bucket count never changes; size it for the expected cardinality.
    """

    def __init__(self, bucket_count: int) -> None:
        if isinstance(bucket_count, bool) or not isinstance(bucket_count, int) or bucket_count < 1:
            raise InvalidBucketCount(f"bucket count must be a positive integer, got {bucket_count!r}")
        try:
            self._buckets: list[list[int]] | None = [[] for _ in range(bucket_count)]
        except MemoryError as e:
            raise AllocationError(f"cannot allocate {bucket_count} buckets") from e
        self.bucket_count = bucket_count
        self._size = 0

    def _chains(self) -> list[list[int]]:
        if self._buckets is None:
            raise SetDestroyedError("IntegerSet has been destroyed")
        return self._buckets

    def _chain_for(self, value: int) -> list[int]:
        buckets = self._chains()
        if value < 0:
            raise NegativeValueError(f"values must be non-negative, got {value}")
        return buckets[value % self.bucket_count]

    @property
    def size(self) -> int:
        self._chains()
        return self._size

    def contains(self, value: int) -> bool:
        chain = self._chain_for(value)
        if not chain:
            return False
        for item in chain:
            if item == value:
                return True
        return False

    def add(self, value: int) -> bool:
        """Add value; returns False (and changes nothing) if it is already present."""
        chain = self._chain_for(value)
        for item in chain:
            if item == value:
                return False
        chain.append(value)
        self._size += 1
        return True

    def remove(self, value: int) -> bool:
        chain = self._chain_for(value)
        for idx, item in enumerate(chain):
            if item == value:
                del chain[idx]
                self._size -= 1
                return True
        return False

    def values(self) -> list[int]:
        """All values in bucket order, then chain order. Not sorted."""
        out: list[int] = []
        for chain in self._chains():
            out.extend(chain)
        return out

    def destroy(self) -> None:
        buckets = self._chains()
        for chain in buckets:
            chain.clear()
        self._buckets = None
        self._size = 0

    def iterator(self) -> "IntegerSetIterator":
        self._chains()
        return IntegerSetIterator(self)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, int):
            return False
        return self.contains(value)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[int]:
        it = self.iterator()
        while True:
            value, status = it.next()
            if status is IterStatus.PAST_END:
                return
            yield value

    def __repr__(self) -> str:
        if self._buckets is None:
            return f"<IntegerSet buckets={self.bucket_count} destroyed>"
        return f"<IntegerSet buckets={self.bucket_count} size={self._size}>"


class IntegerSetIterator:
    """Cursor over an IntegerSet.

    Tracks (bucket index, position in chain) only, so it never holds on to
    a chain element. Mutating the set while a cursor is in use is not
    supported; results are unspecified.
    """

    def __init__(self, intset: IntegerSet) -> None:
        self._set = intset
        self.reset()

    def reset(self) -> None:
        # -1 means "before the first element"
        self._bucket = -1
        self._pos = -1

    def _advance(self, bucket: int, pos: int) -> tuple[int, int] | None:
        """Return the position after (bucket, pos), or None when exhausted."""
        buckets = self._set._chains()
        if bucket >= 0 and pos + 1 < len(buckets[bucket]):
            return bucket, pos + 1
        for b in range(bucket + 1, len(buckets)):
            if buckets[b]:
                return b, 0
        return None

    def next(self) -> tuple[int | None, IterStatus]:
        if self._bucket == len(self._set._chains()):
            return None, IterStatus.PAST_END

        cur = self._advance(self._bucket, self._pos)
        if cur is None:
            # park past the end so later calls stay cheap
            self._bucket = len(self._set._chains())
            self._pos = -1
            return None, IterStatus.PAST_END

        self._bucket, self._pos = cur
        value = self._set._chains()[self._bucket][self._pos]
        if self._advance(self._bucket, self._pos) is None:
            return value, IterStatus.LAST_VALUE
        return value, IterStatus.MORE_REMAIN
