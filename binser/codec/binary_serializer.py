"""
Generic write/read surface over a storage backend.

Values are written one after another with no framing of their own and must
be read back with the same sequence of specs. Encodings:

    scalar (numpy, bool, int, float)   raw native bytes
    Enum member                        value as int32
    str / numpy.str_                   count (UTF-8 bytes) + bytes
    bytes / numpy.bytes_               count (up to first NUL) + bytes
    numpy.ndarray / tuple              elements only, no count
    list / set / frozenset / deque     count + elements
    dict                               count + key, value, key, value, ...
    queue.LifoQueue                    count + elements bottom to top
    queue.Queue                        count + elements front to back
    queue.PriorityQueue                count + elements in removal order

Counts use the configured unsigned size type (uint64 by default).
"""

import collections
import enum
import queue
from pathlib import Path
from typing import Any, BinaryIO, Collection, Iterable, List, Optional, Union

import numpy as np

from binser.codec.type_registry import TypeRegistry, default_registry
from binser.config import settings
from binser.core.interface.storage_backend_interface import StorageBackend
from binser.persistence import buffer_file
from binser.persistence.fixed_storage import FixedStorage
from binser.persistence.growable_storage import GrowableStorage
from binser_data_model.type_spec import FixedArray, ENUM_DTYPE, container_origin, dtype_of_value, \
    enum_value, is_enum_spec, is_trivially_copyable, resolve_dtype, scalar_from_bytes, scalar_to_bytes, \
    size_dtype, type_name
from binser_exception_model.exception import InvalidDestinationException, NonTrivialTypeException

_NATIVE_SCALARS = (bool, int, float)


class BinarySerializer:
    """
    Encodes values into a storage backend and decodes them back in order.

    The serializer holds no state besides the storage cursors, so reads must
    repeat the exact sequence of types used for the writes.

    Attributes:
        _storage (StorageBackend): Byte sink and source
        _registry (TypeRegistry): Callbacks for classes without a native encoding
        _size_dtype (np.dtype): Layout of count prefixes
        _legacy_deque_order (bool): Rebuild deques front-first, reversing them
    """

    def __init__(self, storage: StorageBackend, registry: Optional[TypeRegistry] = None,
                 size_type: Optional[str] = None, legacy_deque_order: Optional[bool] = None):
        self._storage = storage
        self._registry = registry if registry is not None else default_registry
        self._size_dtype = size_dtype(size_type or settings.size_type)
        if legacy_deque_order is None:
            legacy_deque_order = settings.legacy_deque_order
        self._legacy_deque_order = legacy_deque_order

        self._container_readers = {
            list: self._read_list,
            dict: self._read_dict,
            set: self._read_set,
            frozenset: self._read_frozenset,
            tuple: self._read_tuple,
            collections.deque: self._read_deque,
            queue.LifoQueue: self._read_stack,
            queue.PriorityQueue: self._read_priority_queue,
            queue.Queue: self._read_queue,
        }

    @classmethod
    def fixed(cls, capacity: Optional[int] = None, **kwargs) -> "BinarySerializer":
        return cls(FixedStorage(capacity), **kwargs)

    @classmethod
    def growable(cls, initial_capacity: Optional[int] = None, wrap_reads: Optional[bool] = None,
                 **kwargs) -> "BinarySerializer":
        return cls(GrowableStorage(initial_capacity, wrap_reads), **kwargs)

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def copy(self) -> "BinarySerializer":
        """Serializer over a rewound copy of the storage, sharing the registry."""
        return BinarySerializer(self._storage.copy(), self._registry, self._size_dtype.name,
                                self._legacy_deque_order)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _write_scalar(self, value: Any, dtype: np.dtype) -> None:
        self._storage.append_bytes(scalar_to_bytes(value, dtype))

    def _read_scalar(self, dtype: np.dtype) -> Any:
        return scalar_from_bytes(self._storage.consume_bytes(dtype.itemsize), dtype)

    def write_size(self, count: int) -> None:
        self._write_scalar(count, self._size_dtype)

    def read_size(self) -> int:
        return int(self._read_scalar(self._size_dtype))

    def write(self, value: Any) -> None:
        """
        Append the encoding of `value`, recursing into containers.

        A failed write leaves the storage as it was before the call: bytes
        already appended for the value are discarded.

        Raises:
            NonTrivialTypeException: If `value` (or a nested element) has no
                fixed layout and no registered write callback
            StorageOverflowException: If a fixed-capacity backend runs out of room
        """
        mark = self._storage.physical_size
        try:
            self._write_value(value)
        except Exception:
            self._storage.truncate(mark)
            raise

    def _write_value(self, value: Any) -> None:
        if self._registry.has_writer(type(value)):
            self._registry.dispatch_write(self, value)
            return

        dtype = dtype_of_value(value)
        if dtype is not None:
            self._write_scalar(value, dtype)
        elif isinstance(value, enum.Enum):
            self._write_scalar(enum_value(value), ENUM_DTYPE)
        elif isinstance(value, str):
            self._write_text(value)
        elif isinstance(value, (bytes, bytearray)):
            self._write_cstr(value)
        elif isinstance(value, np.ndarray):
            self._write_array(value)
        elif isinstance(value, tuple):
            for item in value:
                self._write_value(item)
        elif isinstance(value, dict):
            self._write_dict(value)
        elif isinstance(value, (list, set, frozenset, collections.deque)):
            self._write_sequence(value)
        elif isinstance(value, queue.LifoQueue):
            self._write_stack(value)
        elif isinstance(value, queue.Queue):
            self._write_drained(value)
        else:
            raise NonTrivialTypeException("Type is not trivial type", type_name=type(value).__name__)

    def read(self, spec: Any) -> Any:
        """
        Decode one value described by `spec`.

        `spec` is a numpy scalar type or dtype, ``bool``/``int``/``float``,
        ``str``, ``bytes``, an ``Enum`` subclass, a registered class, a
        :class:`FixedArray`, or a parameterised container such as
        ``list[np.int32]`` or ``dict[str, list[float]]``.

        Raises:
            NonTrivialTypeException: If `spec` cannot be decoded
            OutOfDataException: If the storage runs out of bytes
        """
        if self._registry.has_reader(spec):
            return self._registry.dispatch_read(self, spec)
        if isinstance(spec, FixedArray):
            return self._read_array(spec)
        if is_trivially_copyable(spec):
            value = self._read_scalar(resolve_dtype(spec))
            if isinstance(spec, type) and spec in _NATIVE_SCALARS:
                return value.item()
            return value
        if is_enum_spec(spec):
            return spec(int(self._read_scalar(ENUM_DTYPE)))
        if spec is str:
            return self._read_text()
        if spec is bytes:
            return self._read_cstr_value()

        origin, args = container_origin(spec)
        reader = self._container_readers.get(origin)
        if reader is None:
            raise NonTrivialTypeException("Type is not trivial type", type_name=type_name(spec))
        return reader(spec, args)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _write_text(self, text: str) -> None:
        data = text.encode('utf-8')
        self.write_size(len(data))
        self._storage.append_bytes(data)

    def _read_text(self) -> str:
        count = self.read_size()
        return self._storage.consume_bytes(count).decode('utf-8')

    def _write_cstr(self, value: Union[bytes, bytearray]) -> None:
        data = bytes(value).split(b'\x00', 1)[0]
        self.write_size(len(data))
        self._storage.append_bytes(data)

    def _read_cstr_value(self) -> bytes:
        count = self.read_size()
        return self._storage.consume_bytes(count)

    def read_cstr(self, destination: Union[bytearray, memoryview]) -> int:
        """
        Read null-terminated text into a caller-supplied buffer.

        A terminating NUL is stored after the text when the buffer has room for it.

        Returns:
            The number of text bytes copied into `destination`

        Raises:
            InvalidDestinationException: If `destination` is None, read-only,
                or shorter than the encoded text
        """
        if destination is None:
            raise InvalidDestinationException("Destination buffer for text read is None")
        if not isinstance(destination, (bytearray, memoryview)) or \
                (isinstance(destination, memoryview) and destination.readonly):
            raise InvalidDestinationException("Destination buffer for text read must be writable")

        start = self._storage.read_position
        count = self.read_size()
        if len(destination) < count:
            # cursor stays at the start of the record
            self._storage.seek_read(start)
            raise InvalidDestinationException("Destination buffer too small for text",
                                              required=count, available=len(destination))
        destination[:count] = self._storage.consume_bytes(count)
        if len(destination) > count:
            destination[count] = 0
        return count

    # ------------------------------------------------------------------
    # Fixed-size arrays
    # ------------------------------------------------------------------

    def _write_array(self, array: np.ndarray) -> None:
        if array.dtype.hasobject:
            for item in array.flat:
                self._write_value(item)
            return
        if array.dtype.itemsize == 0:
            raise NonTrivialTypeException("Type is not trivial type", type_name=str(array.dtype))
        self._storage.append_bytes(np.ascontiguousarray(array).tobytes())

    def _read_array(self, spec: FixedArray) -> np.ndarray:
        if is_trivially_copyable(spec.element):
            dtype = resolve_dtype(spec.element)
            data = self._storage.consume_bytes(dtype.itemsize * spec.count)
            return np.frombuffer(data, dtype=dtype).reshape(spec.dims).copy()

        result = np.empty(spec.count, dtype=object)
        for i in range(spec.count):
            result[i] = self.read(spec.element)
        return result.reshape(spec.dims)

    def _read_tuple(self, spec: Any, args: tuple) -> tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            raise NonTrivialTypeException("Variable-length tuple has no fixed element count",
                                          type_name=type_name(spec))
        return tuple(self.read(arg) for arg in args)

    # ------------------------------------------------------------------
    # Sequences, maps and sets
    # ------------------------------------------------------------------

    @staticmethod
    def _element_spec(spec: Any, args: tuple, arity: int = 1) -> tuple:
        if len(args) != arity:
            raise NonTrivialTypeException(f"Container spec must name {arity} element type(s)",
                                          type_name=type_name(spec))
        return args

    def _write_sequence(self, items: Collection[Any]) -> None:
        self.write_size(len(items))
        for item in items:
            self._write_value(item)

    def _read_list(self, spec: Any, args: tuple) -> list:
        (element,) = self._element_spec(spec, args)
        count = self.read_size()
        out = []
        for _ in range(count):
            out.append(self.read(element))
        return out

    def _write_dict(self, mapping: dict) -> None:
        self.write_size(len(mapping))
        for key, val in mapping.items():
            self._write_value(key)
            self._write_value(val)

    def _read_dict(self, spec: Any, args: tuple) -> dict:
        key_spec, val_spec = self._element_spec(spec, args, arity=2)
        count = self.read_size()
        out = {}
        for _ in range(count):
            key = self.read(key_spec)
            out[key] = self.read(val_spec)
        return out

    def _read_set(self, spec: Any, args: tuple) -> set:
        (element,) = self._element_spec(spec, args)
        count = self.read_size()
        out = set()
        for _ in range(count):
            out.add(self.read(element))
        return out

    def _read_frozenset(self, spec: Any, args: tuple) -> frozenset:
        return frozenset(self._read_set(spec, args))

    def _read_deque(self, spec: Any, args: tuple) -> collections.deque:
        (element,) = self._element_spec(spec, args)
        count = self.read_size()
        out = collections.deque()
        push = out.appendleft if self._legacy_deque_order else out.append
        for _ in range(count):
            push(self.read(element))
        return out

    # ------------------------------------------------------------------
    # Draining containers: stacks, queues, priority queues
    # ------------------------------------------------------------------

    @staticmethod
    def _drain(source: queue.Queue) -> List[Any]:
        """Empty `source` in removal order."""
        items = []
        while True:
            try:
                items.append(source.get_nowait())
            except queue.Empty:
                return items

    @staticmethod
    def _refill(target: queue.Queue, items: Iterable[Any]) -> None:
        for item in items:
            target.put_nowait(item)
            # put() counts a new unfinished task; the drained item was not one
            target.task_done()

    def _write_stack(self, stack: queue.LifoQueue) -> None:
        drained = self._drain(stack)  # top to bottom
        bottom_up = list(reversed(drained))
        try:
            self.write_size(len(bottom_up))
            for item in bottom_up:
                self._write_value(item)
        finally:
            self._refill(stack, bottom_up)

    def _write_drained(self, source: queue.Queue) -> None:
        drained = self._drain(source)
        try:
            self.write_size(len(drained))
            for item in drained:
                self._write_value(item)
        finally:
            self._refill(source, drained)

    def _read_into(self, target: queue.Queue, element: Any) -> queue.Queue:
        count = self.read_size()
        for _ in range(count):
            target.put(self.read(element))
        return target

    def _read_stack(self, spec: Any, args: tuple) -> queue.LifoQueue:
        (element,) = self._element_spec(spec, args)
        return self._read_into(queue.LifoQueue(), element)

    def _read_queue(self, spec: Any, args: tuple) -> queue.Queue:
        (element,) = self._element_spec(spec, args)
        return self._read_into(queue.Queue(), element)

    def _read_priority_queue(self, spec: Any, args: tuple) -> queue.PriorityQueue:
        (element,) = self._element_spec(spec, args)
        return self._read_into(queue.PriorityQueue(), element)

    # ------------------------------------------------------------------
    # Registered objects
    # ------------------------------------------------------------------

    def write_registered(self, obj: Any) -> None:
        self._registry.dispatch_write(self, obj)

    def read_registered(self, cls: type) -> Any:
        return self._registry.dispatch_read(self, cls)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def serialize_to_stream(self, stream: BinaryIO) -> int:
        return buffer_file.serialize_to_stream(self._storage, stream)

    def deserialize_from_stream(self, stream: BinaryIO) -> int:
        return buffer_file.deserialize_from_stream(self._storage, stream)

    def save_to_file(self, path: Union[str, Path]) -> int:
        return buffer_file.save_to_file(self._storage, path)

    def load_from_file(self, path: Union[str, Path]) -> int:
        return buffer_file.load_from_file(self._storage, path)
