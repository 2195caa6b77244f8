import logging

from binser_exception_model.exception import AllocationFailureError

logger = logging.getLogger(__name__)


def allocate_region(size: int) -> bytearray:
    """
    Allocate a zero-filled byte region of `size` bytes.

    Raises:
        AllocationFailureError: If the memory cannot be obtained. The error is
            fatal; callers are not expected to recover from it.
    """
    if size < 0:
        raise ValueError(f"Region size must be non-negative, got {size}")
    try:
        return bytearray(size)
    except MemoryError as e:
        logger.critical(f"Cannot allocate byte region of {size} bytes")
        raise AllocationFailureError("Cannot allocate byte region", requested=size) from e


def reallocate_region(region: bytearray, used: int, new_size: int) -> bytearray:
    """
    Return a region of `new_size` bytes holding the first `used` bytes of `region`.

    The old region is left untouched if the allocation fails.
    """
    new_region = allocate_region(new_size)
    new_region[:used] = region[:used]
    return new_region
