from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """
    Abstract interface for the byte region a serializer writes into and reads from.

    Implementations own the region and its cursors. They only move bytes; all
    type-aware logic lives in the serializer that wraps them.
    """

    @abstractmethod
    def append_bytes(self, data: bytes) -> None:
        """
        Copy `data` to the current write position and advance it by ``len(data)``.

        Args:
            data: The bytes to append

        Raises:
            StorageOverflowException: If a fixed-capacity region cannot hold the bytes
            AllocationFailureError: If the region cannot be grown
        """
        ...

    @abstractmethod
    def consume_bytes(self, count: int) -> bytes:
        """
        Return `count` bytes starting at the read cursor and advance the cursor.

        Args:
            count: The number of bytes to read

        Returns:
            The bytes read from the region

        Raises:
            OutOfDataException: If fewer than `count` unread bytes remain
        """
        ...

    @abstractmethod
    def truncate(self, size: int) -> None:
        """
        Discard every byte written at or after offset `size`.

        The write cursor moves back to `size` and the read cursor is clamped
        to it. Capacity is unchanged.

        Raises:
            ValueError: If `size` is negative or beyond the physical size
        """
        ...

    @abstractmethod
    def seek_read(self, position: int) -> None:
        """
        Move the read cursor to `position`.

        Raises:
            ValueError: If `position` is negative or beyond the physical size
        """
        ...

    @abstractmethod
    def load_payload(self, payload: bytes) -> None:
        """
        Replace the region contents with a previously persisted payload.

        Both cursors are reset: the write cursor sits after the payload and
        the read cursor at zero.
        """
        ...

    @property
    @abstractmethod
    def physical_size(self) -> int:
        """Number of bytes written so far."""
        ...

    @property
    @abstractmethod
    def capacity(self) -> int:
        """Total size of the allocated region."""
        ...

    @property
    @abstractmethod
    def read_position(self) -> int:
        ...

    @property
    @abstractmethod
    def payload(self) -> bytes:
        """Copy of the written bytes."""
        ...

    @property
    def remaining(self) -> int:
        """Bytes written but not yet consumed."""
        return self.physical_size - self.read_position

    @abstractmethod
    def rewind(self) -> None:
        ...

    @abstractmethod
    def reset(self) -> None:
        ...

    @abstractmethod
    def copy(self) -> "StorageBackend":
        """
        Return an independent copy of the written bytes with the read cursor rewound.
        """
        ...

    @abstractmethod
    def move(self) -> "StorageBackend":
        """
        Transfer the region and cursors into a new instance.

        The source is released afterwards and raises BufferReleasedException on use.
        """
        ...

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()
