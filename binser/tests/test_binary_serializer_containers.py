import collections
import queue
import typing
import unittest

import numpy as np

from binser.codec.binary_serializer import BinarySerializer
from binser.codec.type_registry import TypeRegistry
from binser_exception_model.exception import NonTrivialTypeException


def pop_all(source: queue.Queue) -> list:
    items = []
    while not source.empty():
        items.append(source.get_nowait())
    return items


class ContainerRoundTripMixin:
    def make_serializer(self, **kwargs) -> BinarySerializer:
        raise NotImplementedError

    def setUp(self):
        self.ser = self.make_serializer()

    def test_vector_of_strings(self):
        vec = ["hello", "world", "one", "two\n\n\t\t"]
        self.ser.write(vec)
        out = self.ser.read(list[str])
        self.assertEqual(out, vec)

    def test_numpy_string_elements(self):
        words = list(np.array(["a", "bb", "ccc"]))
        self.ser.write(words)
        self.assertEqual(self.ser.read(list[str]), ["a", "bb", "ccc"])

    def test_typing_aliases(self):
        self.ser.write([np.int16(1), np.int16(2)])
        self.assertEqual(self.ser.read(typing.List[np.int16]), [1, 2])

    def test_empty_list(self):
        self.ser.write([])
        self.assertEqual(self.ser.storage.physical_size, 8)
        self.assertEqual(self.ser.read(list[np.int32]), [])

    def test_sequence_layout(self):
        self.ser.write([np.uint8(7), np.uint8(9)])
        self.assertEqual(self.ser.storage.payload, np.uint64(2).tobytes() + b"\x07\x09")

    def test_nested_containers(self):
        value = {"a": [1, 2, 3], "b": [], "c": [-4]}
        self.ser.write(value)
        self.assertEqual(self.ser.read(dict[str, list[int]]), value)

    def test_map(self):
        value = {np.int32(1): "one", np.int32(2): "two"}
        self.ser.write(value)
        out = self.ser.read(dict[np.int32, str])
        self.assertEqual(out, value)
        # Natural iteration order is kept for insertion-ordered dicts
        self.assertEqual(list(out.keys()), [1, 2])

    def test_set(self):
        value = {"x", "y", "z"}
        self.ser.write(value)
        self.assertEqual(self.ser.read(set[str]), value)

    def test_frozenset(self):
        value = frozenset({1.5, 2.5})
        self.ser.write(value)
        out = self.ser.read(frozenset[float])
        self.assertIsInstance(out, frozenset)
        self.assertEqual(out, value)

    def test_stack_preserves_pop_order(self):
        stack = queue.LifoQueue()
        for n in (1, 2, 3):
            stack.put(np.int32(n))  # top to bottom: 3, 2, 1

        self.ser.write(stack)
        out = self.ser.read(queue.LifoQueue[np.int32])
        self.assertEqual(pop_all(out), [3, 2, 1])

    def test_stack_is_written_bottom_to_top(self):
        stack = queue.LifoQueue()
        for n in (1, 2, 3):
            stack.put(np.uint8(n))
        self.ser.write(stack)
        self.assertEqual(self.ser.storage.payload[8:], b"\x01\x02\x03")

    def test_stack_source_is_restored(self):
        stack = queue.LifoQueue()
        for n in (1, 2, 3):
            stack.put(n)
        self.ser.write(stack)
        self.assertEqual(stack.unfinished_tasks, 3)
        self.assertEqual(pop_all(stack), [3, 2, 1])

    def test_queue_preserves_dequeue_order(self):
        fifo = queue.Queue()
        for n in (1, 2, 3):
            fifo.put(np.int64(n))

        self.ser.write(fifo)
        out = self.ser.read(queue.Queue[np.int64])
        self.assertEqual(pop_all(out), [1, 2, 3])
        self.assertEqual(pop_all(fifo), [1, 2, 3])

    def test_queue_source_restored_when_element_fails(self):
        fifo = queue.Queue()
        fifo.put(1)
        fifo.put(object())
        with self.assertRaises(NonTrivialTypeException):
            self.ser.write(fifo)
        self.assertEqual(fifo.qsize(), 2)
        self.assertEqual(fifo.get_nowait(), 1)

    def test_priority_queue(self):
        heap = queue.PriorityQueue()
        for n in (5, 1, 4, 2, 3):
            heap.put(np.int32(n))

        self.ser.write(heap)
        # Elements are encoded in removal order
        self.assertEqual(self.ser.storage.payload[8:12], np.int32(1).tobytes())

        out = self.ser.read(queue.PriorityQueue[np.int32])
        self.assertEqual(out.qsize(), 5)
        self.assertEqual(pop_all(out), [1, 2, 3, 4, 5])
        self.assertEqual(pop_all(heap), [1, 2, 3, 4, 5])

    def test_deque_preserves_order(self):
        dq = collections.deque(["a", "b", "c"])
        self.ser.write(dq)
        out = self.ser.read(collections.deque[str])
        self.assertEqual(list(out), ["a", "b", "c"])

    def test_legacy_deque_order_reverses(self):
        ser = self.make_serializer(legacy_deque_order=True)
        ser.write(collections.deque([1, 2, 3]))
        out = ser.read(typing.Deque[int])
        self.assertEqual(list(out), [3, 2, 1])

    def test_list_of_fixed_arrays(self):
        value = [(np.int8(1), np.int8(2)), (np.int8(3), np.int8(4))]
        self.ser.write(value)
        self.assertEqual(self.ser.read(list[tuple[np.int8, np.int8]]), value)

    def test_custom_count_prefix_type(self):
        ser = self.make_serializer(size_type="uint32")
        ser.write(["ab"])
        self.assertEqual(ser.storage.physical_size, 4 + 4 + 2)
        self.assertEqual(ser.read(list[str]), ["ab"])


class TestFixedSerializerContainers(ContainerRoundTripMixin, unittest.TestCase):
    def make_serializer(self, **kwargs) -> BinarySerializer:
        return BinarySerializer.fixed(4096, registry=TypeRegistry(), **kwargs)


class TestGrowableSerializerContainers(ContainerRoundTripMixin, unittest.TestCase):
    def make_serializer(self, **kwargs) -> BinarySerializer:
        return BinarySerializer.growable(registry=TypeRegistry(), **kwargs)

    def test_large_nested_map_grows_storage(self):
        value = {f"key{i}": [float(j) for j in range(i)] for i in range(50)}
        self.ser.write(value)
        self.assertGreater(self.ser.storage.capacity, 4)
        self.assertEqual(self.ser.read(dict[str, list[float]]), value)


if __name__ == '__main__':
    unittest.main()
