import logging
from typing import Optional

from binser.config import settings
from binser.core.interface.storage_backend_interface import StorageBackend
from binser.persistence.region import allocate_region
from binser_exception_model.exception import StorageOverflowException, OutOfDataException, \
    BufferReleasedException

logger = logging.getLogger(__name__)


class FixedStorage(StorageBackend):
    """
    Fixed-capacity byte region with independent write and read cursors.

    The whole region is allocated up front and never grows. Writes past the
    capacity and reads past the written bytes are always rejected.

    Layout:

        0                 read_position      physical_size          capacity
        |--- consumed ---|---- unread ------|------ free ----------|

    Attributes:
        _region (bytearray): The owned byte region, None once moved out
        _capacity (int): Size of the region in bytes
        _write_idx (int): Offset of the next free byte
        _read_idx (int): Offset of the next byte to consume
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = settings.fixed_capacity
        if capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {capacity}")
        self._capacity = capacity
        self._region = allocate_region(capacity)
        self._write_idx = 0
        self._read_idx = 0

    def _ensure_owned(self) -> bytearray:
        if self._region is None:
            raise BufferReleasedException("FixedStorage was moved out and can no longer be used")
        return self._region

    def append_bytes(self, data: bytes) -> None:
        region = self._ensure_owned()
        end = self._write_idx + len(data)
        if end > self._capacity:
            raise StorageOverflowException("Write exceeds fixed storage capacity",
                                           capacity=self._capacity, requested=end)
        region[self._write_idx:end] = data
        self._write_idx = end

    def consume_bytes(self, count: int) -> bytes:
        region = self._ensure_owned()
        if count < 0:
            raise ValueError(f"Cannot read a negative number of bytes: {count}")
        remaining = self._write_idx - self._read_idx
        if count > remaining:
            raise OutOfDataException("Read exceeds written data", requested=count, remaining=remaining)
        start = self._read_idx
        self._read_idx += count
        return bytes(region[start:self._read_idx])

    def truncate(self, size: int) -> None:
        region = self._ensure_owned()
        if not 0 <= size <= self._write_idx:
            raise ValueError(f"Truncate size {size} outside written range 0..{self._write_idx}")
        region[size:self._write_idx] = bytes(self._write_idx - size)
        self._write_idx = size
        self._read_idx = min(self._read_idx, size)

    def seek_read(self, position: int) -> None:
        self._ensure_owned()
        if not 0 <= position <= self._write_idx:
            raise ValueError(f"Read position {position} outside written range 0..{self._write_idx}")
        self._read_idx = position

    def load_payload(self, payload: bytes) -> None:
        region = self._ensure_owned()
        if len(payload) > self._capacity:
            raise StorageOverflowException("Persisted payload exceeds fixed storage capacity",
                                           capacity=self._capacity, requested=len(payload))
        region[:len(payload)] = payload
        self._write_idx = len(payload)
        self._read_idx = 0

    @property
    def physical_size(self) -> int:
        return self._write_idx

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def read_position(self) -> int:
        return self._read_idx

    @property
    def payload(self) -> bytes:
        return bytes(self._ensure_owned()[:self._write_idx])

    def rewind(self) -> None:
        self._ensure_owned()
        self._read_idx = 0

    def reset(self) -> None:
        region = self._ensure_owned()
        region[:self._write_idx] = bytes(self._write_idx)
        self._write_idx = 0
        self._read_idx = 0

    def copy(self) -> "FixedStorage":
        region = self._ensure_owned()
        clone = FixedStorage(self._capacity)
        clone._region[:self._write_idx] = region[:self._write_idx]
        clone._write_idx = self._write_idx
        return clone

    def move(self) -> "FixedStorage":
        region = self._ensure_owned()
        target = FixedStorage.__new__(FixedStorage)
        target._capacity = self._capacity
        target._region = region
        target._write_idx = self._write_idx
        target._read_idx = self._read_idx

        self._region = None
        self._capacity = 0
        self._write_idx = 0
        self._read_idx = 0
        logger.debug(f"Moved fixed storage region of {target._capacity} bytes")
        return target

    def __repr__(self):
        return (f"FixedStorage(capacity={self._capacity}, physical_size={self._write_idx}, "
                f"read_position={self._read_idx})")
