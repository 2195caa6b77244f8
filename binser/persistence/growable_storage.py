import logging
from typing import Optional

from binser.config import settings
from binser.core.interface.storage_backend_interface import StorageBackend
from binser.persistence.region import allocate_region, reallocate_region
from binser_exception_model.exception import OutOfDataException, BufferReleasedException

logger = logging.getLogger(__name__)


class GrowableStorage(StorageBackend):
    """
    Byte region that starts small and doubles its capacity on demand.

    Writes are purely sequential. Before an append the capacity is doubled,
    as many times as needed, while ``physical_size + len(data) >= capacity``,
    so after any append the physical size is strictly below the capacity.
    With the default initial capacity of 4, writing N bytes leaves a capacity
    of the smallest ``4 * 2**k`` greater than N.

    Reads are linear and bounds-checked unless ``wrap_reads`` is enabled. In
    that ring mode the read cursor advances modulo the physical size: a read
    that runs off the end continues from the first byte, and reading the
    last byte brings the cursor back to zero. Ring mode only yields the
    written values when reads mirror the writes exactly.

    Attributes:
        _region (bytearray): The owned byte region, None once moved out
        _initial_capacity (int): Capacity restored by ``reset``
        _capacity (int): Current logical capacity
        _size (int): Physical size, number of bytes written
        _read_idx (int): Offset of the next byte to consume
        _wrap_reads (bool): Whether the read cursor wraps
    """

    def __init__(self, initial_capacity: Optional[int] = None, wrap_reads: Optional[bool] = None):
        if initial_capacity is None:
            initial_capacity = settings.growable_initial_capacity
        if wrap_reads is None:
            wrap_reads = settings.wrap_reads
        if initial_capacity < 1:
            raise ValueError(f"Initial capacity must be positive, got {initial_capacity}")
        self._initial_capacity = initial_capacity
        self._wrap_reads = wrap_reads
        self._capacity = initial_capacity
        self._region = allocate_region(initial_capacity)
        self._size = 0
        self._read_idx = 0

    def _ensure_owned(self) -> bytearray:
        if self._region is None:
            raise BufferReleasedException("GrowableStorage was moved out and can no longer be used")
        return self._region

    def _grow_for(self, count: int) -> None:
        new_capacity = self._capacity
        while self._size + count >= new_capacity:
            new_capacity *= 2
        if new_capacity == self._capacity:
            return
        self._region = reallocate_region(self._region, self._size, new_capacity)
        logger.debug(f"Grew storage from {self._capacity} to {new_capacity} bytes")
        self._capacity = new_capacity

    def append_bytes(self, data: bytes) -> None:
        self._ensure_owned()
        count = len(data)
        self._grow_for(count)
        self._region[self._size:self._size + count] = data
        self._size += count

    def consume_bytes(self, count: int) -> bytes:
        region = self._ensure_owned()
        if count < 0:
            raise ValueError(f"Cannot read a negative number of bytes: {count}")
        if self._wrap_reads:
            return self._consume_wrapping(region, count)

        remaining = self._size - self._read_idx
        if count > remaining:
            raise OutOfDataException("Read exceeds written data", requested=count, remaining=remaining)
        start = self._read_idx
        self._read_idx += count
        return bytes(region[start:self._read_idx])

    def _consume_wrapping(self, region: bytearray, count: int) -> bytes:
        if count > self._size:
            raise OutOfDataException("Read is larger than the whole written region",
                                     requested=count, remaining=self._size)
        if count == 0:
            return b""
        start = self._read_idx
        end = start + count
        if end <= self._size:
            chunk = bytes(region[start:end])
        else:
            chunk = bytes(region[start:self._size]) + bytes(region[:end - self._size])
        if end >= self._size:
            logger.warning(f"Read cursor wrapped past physical size {self._size}")
        self._read_idx = end % self._size
        return chunk

    def truncate(self, size: int) -> None:
        region = self._ensure_owned()
        if not 0 <= size <= self._size:
            raise ValueError(f"Truncate size {size} outside written range 0..{self._size}")
        region[size:self._size] = bytes(self._size - size)
        self._size = size
        if self._wrap_reads:
            if self._read_idx >= size:
                self._read_idx = 0
        else:
            self._read_idx = min(self._read_idx, size)

    def seek_read(self, position: int) -> None:
        self._ensure_owned()
        if not 0 <= position <= self._size:
            raise ValueError(f"Read position {position} outside written range 0..{self._size}")
        self._read_idx = position

    def load_payload(self, payload: bytes) -> None:
        self._ensure_owned()
        size = len(payload)
        capacity = max(size * 2, self._initial_capacity)
        region = allocate_region(capacity)
        region[:size] = payload
        self._region = region
        self._capacity = capacity
        self._size = size
        self._read_idx = 0

    @property
    def physical_size(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def read_position(self) -> int:
        return self._read_idx

    @property
    def wrap_reads(self) -> bool:
        return self._wrap_reads

    @property
    def payload(self) -> bytes:
        return bytes(self._ensure_owned()[:self._size])

    def rewind(self) -> None:
        self._ensure_owned()
        self._read_idx = 0

    def reset(self) -> None:
        self._ensure_owned()
        self._region = allocate_region(self._initial_capacity)
        self._capacity = self._initial_capacity
        self._size = 0
        self._read_idx = 0

    def copy(self) -> "GrowableStorage":
        region = self._ensure_owned()
        clone = GrowableStorage(self._initial_capacity, self._wrap_reads)
        clone._region = reallocate_region(region, self._size, self._capacity)
        clone._capacity = self._capacity
        clone._size = self._size
        return clone

    def move(self) -> "GrowableStorage":
        region = self._ensure_owned()
        target = GrowableStorage.__new__(GrowableStorage)
        target._initial_capacity = self._initial_capacity
        target._wrap_reads = self._wrap_reads
        target._capacity = self._capacity
        target._region = region
        target._size = self._size
        target._read_idx = self._read_idx

        self._region = None
        self._capacity = 0
        self._size = 0
        self._read_idx = 0
        logger.debug(f"Moved growable storage region of {target._capacity} bytes")
        return target

    def __repr__(self):
        return (f"GrowableStorage(capacity={self._capacity}, physical_size={self._size}, "
                f"read_position={self._read_idx}, wrap_reads={self._wrap_reads})")
