import logging
from typing import Any, Callable, Dict

from binser_exception_model.exception import UnregisteredTypeException

# Callback types: a writer encodes one instance through the serializer,
# a reader decodes and returns one instance
WriteFunc = Callable[[Any, Any], None]
ReadFunc = Callable[[Any], Any]

logger = logging.getLogger(__name__)


class TypeRegistry:
    """
    Side table of per-type write/read callbacks keyed by the class object.

    The first registration for a class wins; later registrations are ignored.
    Callbacks receive the serializer and use its ``write``/``read`` methods,
    so registered types add no wire format of their own.
    """

    def __init__(self):
        self._writers: Dict[type, WriteFunc] = {}
        self._readers: Dict[type, ReadFunc] = {}

    def define_write(self, cls: type, fn: WriteFunc) -> bool:
        """Register `fn(serializer, obj)` for `cls`. Returns False if one was already registered."""
        if cls in self._writers:
            logger.debug(f"Write callback for {cls.__name__} already registered, ignoring")
            return False
        self._writers[cls] = fn
        return True

    def define_read(self, cls: type, fn: ReadFunc) -> bool:
        """Register `fn(serializer) -> obj` for `cls`. Returns False if one was already registered."""
        if cls in self._readers:
            logger.debug(f"Read callback for {cls.__name__} already registered, ignoring")
            return False
        self._readers[cls] = fn
        return True

    def has_writer(self, cls: type) -> bool:
        return cls in self._writers

    def has_reader(self, cls: Any) -> bool:
        return isinstance(cls, type) and cls in self._readers

    def dispatch_write(self, serializer, obj: Any) -> None:
        fn = self._writers.get(type(obj))
        if fn is None:
            raise UnregisteredTypeException("No write callback registered", type_name=type(obj).__name__)
        fn(serializer, obj)

    def dispatch_read(self, serializer, cls: type) -> Any:
        fn = self._readers.get(cls)
        if fn is None:
            raise UnregisteredTypeException("No read callback registered",
                                            type_name=getattr(cls, '__name__', repr(cls)))
        return fn(serializer)

    def clear(self) -> None:
        self._writers.clear()
        self._readers.clear()


default_registry = TypeRegistry()
