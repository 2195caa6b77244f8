"""
Persistence of a storage region to a binary stream or file.

File layout (native byte order, not portable across machines):

    ┌──────────────────────┬──────────────────────────────────┐
    │  PHYSICAL SIZE (u64) │  PAYLOAD (physical size bytes)   │
    └──────────────────────┴──────────────────────────────────┘
            8 bytes                    variable
"""

import logging
import struct
from pathlib import Path
from typing import BinaryIO, Union

from binser.core.interface.storage_backend_interface import StorageBackend
from binser_exception_model.exception import CorruptedBufferFileException

HEADER_FORMAT: str = '=Q'  # physical size
HEADER_SIZE: int = struct.calcsize(HEADER_FORMAT)

logger = logging.getLogger(__name__)


def serialize_to_stream(storage: StorageBackend, stream: BinaryIO) -> int:
    """
    Write the physical size header followed by the payload bytes.

    Returns:
        The number of bytes written to `stream`
    """
    payload = storage.payload
    stream.write(struct.pack(HEADER_FORMAT, len(payload)))
    stream.write(payload)
    return HEADER_SIZE + len(payload)


def deserialize_from_stream(storage: StorageBackend, stream: BinaryIO, source=None) -> int:
    """
    Read a header and payload from `stream` into `storage`.

    Returns:
        The number of payload bytes loaded

    Raises:
        CorruptedBufferFileException: If the stream ends before the header or payload is complete
        StorageOverflowException: If a fixed storage is too small for the payload
    """
    header = stream.read(HEADER_SIZE)
    if len(header) != HEADER_SIZE:
        raise CorruptedBufferFileException(
            f"Buffer header truncated: expected {HEADER_SIZE} bytes, got {len(header)}", path=source)
    (size,) = struct.unpack(HEADER_FORMAT, header)

    payload = stream.read(size)
    if len(payload) != size:
        raise CorruptedBufferFileException(
            f"Buffer payload truncated: expected {size} bytes, got {len(payload)}", path=source)
    storage.load_payload(payload)
    return size


def save_to_file(storage: StorageBackend, path: Union[str, Path]) -> int:
    path = Path(path)
    with path.open('wb') as f:
        written = serialize_to_stream(storage, f)
    logger.info(f"Saved {written - HEADER_SIZE} payload bytes to {path}")
    return written


def load_from_file(storage: StorageBackend, path: Union[str, Path]) -> int:
    path = Path(path)
    with path.open('rb') as f:
        size = deserialize_from_stream(storage, f, source=str(path))
    logger.info(f"Loaded {size} payload bytes from {path}")
    return size
