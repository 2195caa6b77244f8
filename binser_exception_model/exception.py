class StorageOverflowException(Exception):
    """
    Exception raised when a write does not fit into a fixed-capacity storage.

    Attributes:
        capacity -- total capacity of the storage in bytes
        requested -- physical size the write would have produced
        message -- explanation of the error
    """

    def __init__(self, message, capacity=None, requested=None):
        self.capacity = capacity
        self.requested = requested
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.capacity is not None and self.requested is not None:
            return f"{self.message} (capacity={self.capacity}, requested={self.requested})"
        return self.message


class OutOfDataException(Exception):
    """
    Exception raised when a read asks for more bytes than remain unread.

    Attributes:
        requested -- number of bytes the read asked for
        remaining -- number of unread bytes left in the storage
        message -- explanation of the error
    """

    def __init__(self, message, requested=None, remaining=None):
        self.requested = requested
        self.remaining = remaining
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.requested is not None and self.remaining is not None:
            return f"{self.message} (requested={self.requested}, remaining={self.remaining})"
        return self.message


class NonTrivialTypeException(Exception):
    """
    Exception raised when a value or read spec has no fixed byte layout.
    """

    def __init__(self, message, type_name=None):
        self.type_name = type_name
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.type_name is not None:
            return f"{self.message} (type={self.type_name})"
        return self.message


class InvalidDestinationException(Exception):
    """
    Exception raised when a caller-supplied text destination is missing or too small.
    """

    def __init__(self, message, required=None, available=None):
        self.required = required
        self.available = available
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.required is not None and self.available is not None:
            return f"{self.message} (required={self.required}, available={self.available})"
        return self.message


class AllocationFailureError(MemoryError):
    """
    Fatal error raised when a byte region cannot be allocated or grown.

    Derives from MemoryError so that generic ``except Exception`` handlers
    written for recoverable conditions are not the natural place to catch it.
    """

    def __init__(self, message, requested=None):
        self.requested = requested
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.requested is not None:
            return f"{self.message} (requested={self.requested})"
        return self.message


class BufferReleasedException(Exception):
    """
    Exception raised when a storage is used after its region was moved out.
    """

    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class CorruptedBufferFileException(Exception):
    """
    Exception raised when a persisted buffer is shorter than its header claims.
    """

    def __init__(self, message, path=None):
        self.path = path
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.path is not None:
            return f"{self.message} (path={self.path})"
        return self.message


class UnregisteredTypeException(Exception):
    """
    Exception raised when dispatching a type that has no registered callback.
    """

    def __init__(self, message, type_name=None):
        self.type_name = type_name
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.type_name is not None:
            return f"{self.message} (type={self.type_name})"
        return self.message
