import unittest
from unittest.mock import Mock

from binser.codec.type_registry import TypeRegistry
from binser_exception_model.exception import UnregisteredTypeException


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


class TestTypeRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = TypeRegistry()

    def test_first_registration_wins(self):
        first = Mock()
        second = Mock()
        self.assertTrue(self.registry.define_write(Point, first))
        self.assertFalse(self.registry.define_write(Point, second))

        serializer = object()
        point = Point(1, 2)
        self.registry.dispatch_write(serializer, point)
        first.assert_called_once_with(serializer, point)
        second.assert_not_called()

    def test_read_dispatch(self):
        reader = Mock(return_value=Point(3, 4))
        self.assertTrue(self.registry.define_read(Point, reader))
        self.assertFalse(self.registry.define_read(Point, Mock()))

        serializer = object()
        result = self.registry.dispatch_read(serializer, Point)
        reader.assert_called_once_with(serializer)
        self.assertEqual(result.x, 3)

    def test_unregistered_dispatch(self):
        with self.assertRaises(UnregisteredTypeException) as ctx:
            self.registry.dispatch_write(object(), Point(0, 0))
        self.assertEqual(ctx.exception.type_name, "Point")
        with self.assertRaises(UnregisteredTypeException):
            self.registry.dispatch_read(object(), Point)

    def test_lookup_is_by_exact_type(self):
        class SubPoint(Point):
            pass

        self.registry.define_write(Point, Mock())
        self.assertTrue(self.registry.has_writer(Point))
        self.assertFalse(self.registry.has_writer(SubPoint))
        self.assertFalse(self.registry.has_reader(Point))
        self.assertFalse(self.registry.has_reader(list[int]))

    def test_clear(self):
        self.registry.define_write(Point, Mock())
        self.registry.define_read(Point, Mock())
        self.registry.clear()
        self.assertFalse(self.registry.has_writer(Point))
        self.assertFalse(self.registry.has_reader(Point))


if __name__ == '__main__':
    unittest.main()
