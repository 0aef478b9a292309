"""Unit tests for LocalServer and RecurringTask."""

import threading
import time
import unittest
from unittest.mock import MagicMock

from axis_bridge.server import LocalServer, NodeId, OBJECTS_FOLDER, RecurringTask


class TestAddressSpace(unittest.TestCase):
    """Test node registration and writes."""

    def setUp(self):
        self.server = LocalServer()
        self.ns = self.server.register_namespace("urn:test")
        self.folder = self.server.add_folder(NodeId(self.ns, "axis"), "axis")
        self.a = NodeId(self.ns, "axis.a")
        self.b = NodeId(self.ns, "axis.b")
        self.server.add_variables(self.folder, {self.a: 0, self.b: "x"})

    def test_namespace_indices(self):
        self.assertEqual(self.ns, 1)
        self.assertEqual(self.server.register_namespace("urn:test"), 1)
        self.assertEqual(self.server.register_namespace("urn:other"), 2)

    def test_initial_values(self):
        self.assertEqual(self.server.read_value(self.a).value, 0)
        self.assertEqual(self.server.read_value(self.b).value, "x")

    def test_set_values_batch(self):
        ok = self.server.set_values({self.a: 5, self.b: "y"}, 42.0)

        self.assertTrue(ok)
        a, b = self.server.read_values([self.a, self.b])
        self.assertEqual((a.value, b.value), (5, "y"))
        self.assertEqual(a.source_timestamp, 42.0)
        self.assertEqual(b.source_timestamp, 42.0)

    def test_set_value_unknown_node(self):
        self.assertFalse(self.server.set_value(NodeId(self.ns, "nope"), 1, 1.0))

    def test_duplicates_rejected(self):
        with self.assertRaises(ValueError):
            self.server.add_variables(self.folder, {self.a: 1})
        with self.assertRaises(ValueError):
            self.server.add_folder(NodeId(self.ns, "axis"), "axis")

    def test_unknown_parent(self):
        with self.assertRaises(KeyError):
            self.server.add_folder(NodeId(self.ns, "child"), "child", parent=NodeId(self.ns, "ghost"))

    def test_methods(self):
        callback = MagicMock(return_value="done")
        node = self.server.add_method(NodeId(self.ns, "axis.go"), "go", callback, parent=self.folder)

        self.assertEqual(self.server.call_method(node, 1, 2), "done")
        callback.assert_called_once_with(1, 2)

    def test_method_errors_propagate(self):
        node = self.server.add_method(NodeId(self.ns, "fail"), "fail", MagicMock(side_effect=RuntimeError))
        with self.assertRaises(RuntimeError):
            self.server.call_method(node)

    def test_browse(self):
        self.server.add_method(NodeId(self.ns, "axis.go"), "go", MagicMock(), parent=self.folder)

        self.assertIn(self.folder, self.server.browse(OBJECTS_FOLDER))
        children = set(self.server.browse(self.folder))
        self.assertEqual(children, {self.a, self.b, NodeId(self.ns, "axis.go")})

    def test_node_id_str(self):
        self.assertEqual(str(self.a), "ns=1;s=axis.a")


class TestPollingActions(unittest.TestCase):
    """Test server-driven polling."""

    def test_actions_run_while_started(self):
        server = LocalServer()
        calls = []
        server.add_polling_action(20, lambda: calls.append(time.monotonic()))

        time.sleep(0.05)
        self.assertEqual(calls, [])

        with server:
            time.sleep(0.15)
        count = len(calls)

        self.assertGreaterEqual(count, 3)
        time.sleep(0.06)
        self.assertEqual(len(calls), count)

    def test_action_added_while_running(self):
        server = LocalServer()
        ran = threading.Event()
        server.start()
        try:
            server.add_polling_action(10, ran.set)
            self.assertTrue(ran.wait(1.0))
        finally:
            server.stop()


class TestRecurringTask(unittest.TestCase):
    """Test the task scheduler."""

    def test_exception_does_not_stop_schedule(self):
        calls = []

        def flaky():
            calls.append(1)
            raise RuntimeError("boom")

        task = RecurringTask(0.01, flaky, name="Flaky")
        task.start()
        time.sleep(0.1)
        task.stop(timeout=1.0)

        self.assertGreater(len(calls), 2)
        self.assertFalse(task.running)

    def test_stop_waits_for_running_cycle(self):
        entered = threading.Event()
        finished = threading.Event()

        def slow():
            entered.set()
            time.sleep(0.1)
            finished.set()

        task = RecurringTask(1.0, slow)
        task.start()
        self.assertTrue(entered.wait(1.0))
        task.stop()

        self.assertTrue(finished.is_set())

    def test_invalid_interval(self):
        with self.assertRaises(ValueError):
            RecurringTask(0, lambda: None)


if __name__ == '__main__':
    unittest.main()
